"""
Numeric Evaluation for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

evaluate(node, x) never raises on numeric trouble. Any domain violation
gives NaN, which plotting code treats as a break in the curve:

    - division by |v| < 1e-10
    - tan, exp or a power with a non-finite (or complex) result
    - cot, sec, csc with a near-zero denominator
    - ln, log of a non-positive argument; sqrt of a negative one
    - arcsin, arccos outside [-1, 1]; arcsec, arccsc inside (-1, 1)
    - NaN or infinite operands, and unknown function names

Variables other than the bound one evaluate to: pi/π -> π, e -> e,
anything else -> 0.
"""

import logging
import math
from typing import Callable, Dict, Iterable, List

from .nodes import EPSILON, NodeType, Number, Variable, BinaryOp, Function, Operator

logger = logging.getLogger(__name__)

NAN = float("nan")

UnaryHandler = Callable[[float], float]

CONSTANTS: Dict[str, float] = {
    "pi": math.pi,
    "π": math.pi,
    "e": math.e,
}


# ============================================================
# Function Handlers
# ============================================================

def unary_only(f: UnaryHandler) -> UnaryHandler:
    """Wrap a math function so domain and range errors become NaN."""
    def handler(u: float) -> float:
        try:
            result = f(u)
        except (ValueError, OverflowError, ZeroDivisionError):
            return NAN
        return result if math.isfinite(result) else NAN
    return handler


def reciprocal_of(f: UnaryHandler) -> UnaryHandler:
    """1/f(u), NaN where |f(u)| < EPSILON."""
    def handler(u: float) -> float:
        denominator = f(u)
        if abs(denominator) < EPSILON:
            return NAN
        return 1.0 / denominator
    return handler


def _cot(u: float) -> float:
    s = math.sin(u)
    if abs(s) < EPSILON:
        return NAN
    return math.cos(u) / s


def _positive_only(f: UnaryHandler) -> UnaryHandler:
    def handler(u: float) -> float:
        return f(u) if u > 0 else NAN
    return handler


def _outside_unit(f: UnaryHandler) -> UnaryHandler:
    """Apply f(1/u) for |u| >= 1, else NaN (arcsec, arccsc)."""
    def handler(u: float) -> float:
        if abs(u) < 1:
            return NAN
        return f(1.0 / u)
    return handler


FUNCTION_TABLE: Dict[str, UnaryHandler] = {
    "sin": unary_only(math.sin),
    "cos": unary_only(math.cos),
    "tan": unary_only(math.tan),
    "cot": _cot,
    "sec": reciprocal_of(math.cos),
    "csc": reciprocal_of(math.sin),
    "arcsin": unary_only(math.asin),
    "arccos": unary_only(math.acos),
    "arctan": unary_only(math.atan),
    "arccot": unary_only(lambda u: math.pi / 2 - math.atan(u)),
    "arcsec": _outside_unit(unary_only(math.acos)),
    "arccsc": _outside_unit(unary_only(math.asin)),
    "exp": unary_only(math.exp),
    "ln": _positive_only(unary_only(math.log)),
    "log": _positive_only(unary_only(math.log10)),
    "sqrt": unary_only(math.sqrt),
    "abs": abs,
}


def _binary(op: Operator, a: float, b: float) -> float:
    if op is Operator.ADD:
        return a + b
    if op is Operator.SUBTRACT:
        return a - b
    if op is Operator.MULTIPLY:
        return a * b
    if op is Operator.DIVIDE:
        if abs(b) < EPSILON:
            return NAN
        return a / b
    try:
        result = math.pow(a, b)
    except (ValueError, OverflowError, ZeroDivisionError):
        return NAN
    return result if math.isfinite(result) else NAN


# ============================================================
# Evaluation
# ============================================================

def evaluate(node: NodeType, x: float, variable: str = "x") -> float:
    """
    Evaluate a tree at ``variable = x``.

    Returns:
        The value, or NaN on any domain violation.
    """
    if isinstance(node, Number):
        return node.value

    if isinstance(node, Variable):
        if node.name == variable:
            return float(x)
        if node.name in CONSTANTS:
            return CONSTANTS[node.name]
        logger.debug("unknown variable %r evaluates to 0", node.name)
        return 0.0

    if isinstance(node, Function):
        argument = evaluate(node.argument, x, variable)
        if not math.isfinite(argument):
            return NAN
        handler = FUNCTION_TABLE.get(node.name)
        if handler is None:
            logger.debug("unknown function %r evaluates to NaN", node.name)
            return NAN
        return handler(argument)

    if isinstance(node, BinaryOp):
        left = evaluate(node.left, x, variable)
        right = evaluate(node.right, x, variable)
        if not (math.isfinite(left) and math.isfinite(right)):
            return NAN
        return _binary(node.operator, left, right)

    return NAN


def evaluate_batch(node: NodeType, xs: Iterable[float], variable: str = "x") -> List[float]:
    """Evaluate at several points, in order."""
    return [evaluate(node, x, variable) for x in xs]
