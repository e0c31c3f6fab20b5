"""
Simplification for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

Two strategies, used together by simplify():

eliminate_identities(node)
    Bottom-up passes repeated until nothing changes (at most MAX_PASSES):

        x+0 = 0+x = x      x-0 = x        0-x = -x       x-x = 0
        x×1 = 1×x = x      x×0 = 0×x = 0  -1×(-1×u) = u
        x/1 = x            0/x = 0        x/x = 1
        x^0 = 1            x^1 = x        1^x = 1        (x^a)^b = x^(a×b)

    plus constant folding of number-only operations and a handful of
    exact function values such as sin(0) and ln(1).

Canonicalizer.canonicalize(node)
    Expansion and like-term collection (see canonical.py).

The pass cap is a safety valve for inputs that oscillate between equal-cost
shapes; it is not what makes ordinary inputs terminate.
"""

import logging
import math
from typing import Callable, Dict, List, Optional, Tuple

from .canonical import Canonicalizer
from .nodes import (
    EPSILON, NodeType, Number, BinaryOp, Function, Operator,
    negate, is_number, is_one, is_zero, is_minus_one,
    is_operator, is_integer_value, to_string,
)

logger = logging.getLogger(__name__)

MAX_PASSES = 20

FoldHandler = Callable[[float, float], Optional[float]]
FoldFuncsType = Dict[Operator, FoldHandler]


# ============================================================
# Fold Operation Builders
# ============================================================

def binary_only(f: Callable[[float, float], float]) -> FoldHandler:
    """Create a folder that refuses non-finite results."""
    def handler(a: float, b: float) -> Optional[float]:
        result = f(a, b)
        return result if math.isfinite(result) else None
    return handler


def safe_div() -> FoldHandler:
    """Safe division handler that returns None on division by (near) zero."""
    def handler(a: float, b: float) -> Optional[float]:
        if abs(b) < EPSILON:
            return None
        return a / b
    return handler


def safe_pow() -> FoldHandler:
    """Power handler that refuses complex, infinite or undefined results."""
    def handler(a: float, b: float) -> Optional[float]:
        if a < 0 and not is_integer_value(b):
            return None
        if abs(a) < EPSILON and b < 0:
            return None
        try:
            result = math.pow(a, b)
        except (ValueError, OverflowError):
            return None
        return result if math.isfinite(result) else None
    return handler


ARITHMETIC_FOLDS: FoldFuncsType = {
    Operator.ADD: binary_only(lambda a, b: a + b),
    Operator.SUBTRACT: binary_only(lambda a, b: a - b),
    Operator.MULTIPLY: binary_only(lambda a, b: a * b),
    Operator.DIVIDE: safe_div(),
    Operator.POWER: safe_pow(),
}

# (function, argument, value) triples that fold exactly
EXACT_FUNCTION_VALUES: List[Tuple[str, float, float]] = [
    ("sin", 0.0, 0.0),
    ("cos", 0.0, 1.0),
    ("tan", 0.0, 0.0),
    ("arcsin", 0.0, 0.0),
    ("arctan", 0.0, 0.0),
    ("exp", 0.0, 1.0),
    ("ln", 1.0, 0.0),
    ("ln", math.e, 1.0),
    ("log", 1.0, 0.0),
    ("log", 10.0, 1.0),
    ("sqrt", 0.0, 0.0),
    ("sqrt", 1.0, 1.0),
]


# ============================================================
# Identity Elimination
# ============================================================

def _simplify_binary(op: Operator, left: NodeType, right: NodeType,
                     folds: FoldFuncsType) -> NodeType:
    if isinstance(left, Number) and isinstance(right, Number) and op in folds:
        folded = folds[op](left.value, right.value)
        if folded is not None:
            return Number(folded)

    if op is Operator.ADD:
        if is_zero(left):
            return right
        if is_zero(right):
            return left

    elif op is Operator.SUBTRACT:
        if is_zero(right):
            return left
        if is_zero(left):
            return negate(right)
        if left == right:
            return Number(0)

    elif op is Operator.MULTIPLY:
        if is_zero(left) or is_zero(right):
            return Number(0)
        if is_one(left):
            return right
        if is_one(right):
            return left
        if is_minus_one(right):
            left, right = right, left
        if is_minus_one(left) and is_operator(right, Operator.MULTIPLY) and is_minus_one(right.left):
            return right.right
        # Pull a numeric factor through a coefficient product: 2×(3×u) = 6×u
        if isinstance(left, Number) and is_operator(right, Operator.MULTIPLY) \
                and isinstance(right.left, Number):
            return _simplify_binary(op, Number(left.value * right.left.value), right.right, folds)
        if isinstance(right, Number) and is_operator(left, Operator.MULTIPLY) \
                and isinstance(left.left, Number):
            return _simplify_binary(op, Number(left.left.value * right.value), left.right, folds)

    elif op is Operator.DIVIDE:
        if is_one(right):
            return left
        if is_zero(left) and not is_zero(right):
            return Number(0)
        if left == right and not is_zero(right):
            return Number(1)
        if is_minus_one(right):
            return negate(left)

    elif op is Operator.POWER:
        if is_zero(right):
            return Number(1)
        if is_one(right):
            return left
        if is_one(left):
            return Number(1)
        if is_operator(left, Operator.POWER):
            exponent = _simplify_binary(Operator.MULTIPLY, left.right, right, folds)
            return _simplify_binary(Operator.POWER, left.left, exponent, folds)

    return BinaryOp(op, left, right)


def _simplify_function(name: str, argument: NodeType) -> NodeType:
    if isinstance(argument, Number):
        if name == "abs":
            return Number(abs(argument.value))
        for fname, arg, value in EXACT_FUNCTION_VALUES:
            if fname == name and is_number(argument, arg):
                return Number(value)
    return Function(name, argument)


def _simplify_pass(node: NodeType, folds: FoldFuncsType) -> NodeType:
    if isinstance(node, BinaryOp):
        left = _simplify_pass(node.left, folds)
        right = _simplify_pass(node.right, folds)
        return _simplify_binary(node.operator, left, right, folds)
    if isinstance(node, Function):
        return _simplify_function(node.name, _simplify_pass(node.argument, folds))
    return node


def eliminate_identities(node: NodeType, max_passes: int = MAX_PASSES,
                         folds: Optional[FoldFuncsType] = None) -> NodeType:
    """
    Remove algebraic identities bottom-up until a pass changes nothing.

    Args:
        node: Expression tree
        max_passes: Upper bound on the number of passes
        folds: Constant folding handlers per operator (default ARITHMETIC_FOLDS)
    """
    folds = ARITHMETIC_FOLDS if folds is None else folds
    current = node
    for _ in range(max_passes):
        simplified = _simplify_pass(current, folds)
        if simplified == current:
            return simplified
        current = simplified
    logger.warning("identity elimination stopped after %d passes at %s",
                   max_passes, to_string(current))
    return current


_default_canonicalizer = Canonicalizer()


def simplify(node: NodeType, max_passes: int = MAX_PASSES,
             canonicalizer: Optional[Canonicalizer] = None) -> NodeType:
    """
    Fully simplify: identity elimination alternated with canonicalization.

    Stops once a round leaves the tree unchanged, so the result is a fixed
    point and simplify(simplify(e)) == simplify(e).

    Example:
        simplify(parse("2x+3x"))   # 5×x
        simplify(parse("x*x"))     # x^2
    """
    canonicalizer = canonicalizer or _default_canonicalizer
    current = node
    for i in range(max_passes):
        candidate = canonicalizer.canonicalize(eliminate_identities(current, max_passes))
        if candidate == current:
            logger.debug("simplified to %s after %d rounds", to_string(current), i)
            return current
        current = candidate
    logger.warning("simplification stopped after %d rounds at %s",
                   max_passes, to_string(current))
    return current
