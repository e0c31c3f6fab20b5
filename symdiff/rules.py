"""
Derivative Rules for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

Each rule is a stateless descriptor:

    DerivativeRule(name, priority, matches, apply, description, tags)

    matches(node, variable) -> bool
    apply(node, variable, engine) -> node

``apply`` asks ``engine.differentiate(sub, variable)`` for the derivatives
of subexpressions, so differentiation is a recursive descent driven purely
by which rule matches first. Higher priority fires first; equal priorities
keep registration order.

Built-in rule groups:
    basic         constant, free-of-variable, variable
    power         power-simple, power-composite, power-general
    arithmetic    sum, difference, quotient, product
    trig          sin, cos, tan, cot, sec, csc
    inverse-trig  arcsin, arccos, arctan, arccot, arcsec, arccsc
    exp-log       exp, ln, log, sqrt, abs
"""

from typing import Any, Callable, Dict, List, Optional

from .nodes import (
    NodeType, Number, Variable, Function, Operator,
    add, subtract, multiply, divide, power,
    contains_variable, is_operator, is_one, is_zero,
)

MatchFunc = Callable[[NodeType, str], bool]
ApplyFunc = Callable[[NodeType, str, Any], NodeType]
ChainFunc = Callable[[NodeType, NodeType], NodeType]


class DerivativeRule:
    """A named, prioritized derivative rule."""

    def __init__(self, name: str, priority: int, matches: MatchFunc, apply: ApplyFunc,
                 description: Optional[str] = None, tags: Optional[List[str]] = None):
        self.name = name
        self.priority = priority
        self.matches = matches
        self.apply = apply
        self.description = description
        self.tags = tags or []

    def __repr__(self) -> str:
        base = f"@{self.name}[{self.priority}]"
        if self.description:
            base += f" \"{self.description}\""
        return base


# ============================================================
# Basic Rules
# ============================================================

def _is_constant(node: NodeType, variable: str) -> bool:
    return isinstance(node, Number)


def _is_free(node: NodeType, variable: str) -> bool:
    return not contains_variable(node, variable)


def _is_target(node: NodeType, variable: str) -> bool:
    return isinstance(node, Variable) and node.name == variable


def _zero(node: NodeType, variable: str, engine: Any) -> NodeType:
    return Number(0)


def _one(node: NodeType, variable: str, engine: Any) -> NodeType:
    return Number(1)


# ============================================================
# Power Rules
# ============================================================

def _is_simple_power(node: NodeType, variable: str) -> bool:
    return (is_operator(node, Operator.POWER)
            and _is_target(node.left, variable)
            and not contains_variable(node.right, variable))


def _is_composite_power(node: NodeType, variable: str) -> bool:
    return (is_operator(node, Operator.POWER)
            and contains_variable(node.left, variable)
            and not _is_target(node.left, variable)
            and not contains_variable(node.right, variable))


def _is_general_power(node: NodeType, variable: str) -> bool:
    return is_operator(node, Operator.POWER) and contains_variable(node.right, variable)


def _decrement(exponent: NodeType) -> NodeType:
    if isinstance(exponent, Number):
        return Number(exponent.value - 1)
    return subtract(exponent, Number(1))


def _simple_power(node: NodeType, variable: str, engine: Any) -> NodeType:
    n = node.right
    if is_one(n):
        return Number(1)
    if is_zero(n):
        return Number(0)
    return multiply(n, power(node.left, _decrement(n)))


def _composite_power(node: NodeType, variable: str, engine: Any) -> NodeType:
    u, n = node.left, node.right
    du = engine.differentiate(u, variable)
    return multiply(multiply(n, power(u, _decrement(n))), du)


def _general_power(node: NodeType, variable: str, engine: Any) -> NodeType:
    # d(u^v) = u^v (v' ln u + v u'/u)
    u, v = node.left, node.right
    du = engine.differentiate(u, variable)
    dv = engine.differentiate(v, variable)
    return multiply(node, add(multiply(dv, Function("ln", u)),
                              multiply(v, divide(du, u))))


# ============================================================
# Arithmetic Rules
# ============================================================

def _operator_is(op: Operator) -> MatchFunc:
    def matches(node: NodeType, variable: str) -> bool:
        return is_operator(node, op)
    return matches


def _sum(node: NodeType, variable: str, engine: Any) -> NodeType:
    return add(engine.differentiate(node.left, variable),
               engine.differentiate(node.right, variable))


def _difference(node: NodeType, variable: str, engine: Any) -> NodeType:
    return subtract(engine.differentiate(node.left, variable),
                    engine.differentiate(node.right, variable))


def _quotient(node: NodeType, variable: str, engine: Any) -> NodeType:
    u, v = node.left, node.right
    du = engine.differentiate(u, variable)
    dv = engine.differentiate(v, variable)
    return divide(subtract(multiply(du, v), multiply(u, dv)), power(v, Number(2)))


def _product(node: NodeType, variable: str, engine: Any) -> NodeType:
    u, v = node.left, node.right
    du = engine.differentiate(u, variable)
    dv = engine.differentiate(v, variable)
    return add(multiply(du, v), multiply(u, dv))


# ============================================================
# Function Rules (chain rule)
# ============================================================

def _sin(u, du):
    return multiply(Function("cos", u), du)


def _cos(u, du):
    return multiply(multiply(Number(-1), Function("sin", u)), du)


def _tan(u, du):
    return multiply(divide(Number(1), power(Function("cos", u), Number(2))), du)


def _cot(u, du):
    return multiply(divide(Number(-1), power(Function("sin", u), Number(2))), du)


def _sec(u, du):
    secant = divide(Number(1), Function("cos", u))
    tangent = divide(Function("sin", u), Function("cos", u))
    return multiply(multiply(secant, tangent), du)


def _csc(u, du):
    cosecant = multiply(Number(-1), divide(Number(1), Function("sin", u)))
    cotangent = divide(Function("cos", u), Function("sin", u))
    return multiply(multiply(cosecant, cotangent), du)


def _one_minus_square_root(u):
    return Function("sqrt", subtract(Number(1), power(u, Number(2))))


def _one_plus_square(u):
    return add(Number(1), power(u, Number(2)))


def _u_root_square_minus_one(u):
    # |u| is intentionally not used here; the result is wrong in sign for u < 0
    return multiply(u, Function("sqrt", subtract(power(u, Number(2)), Number(1))))


def _arcsin(u, du):
    return divide(du, _one_minus_square_root(u))


def _arccos(u, du):
    return divide(multiply(Number(-1), du), _one_minus_square_root(u))


def _arctan(u, du):
    return divide(du, _one_plus_square(u))


def _arccot(u, du):
    return divide(multiply(Number(-1), du), _one_plus_square(u))


def _arcsec(u, du):
    return divide(du, _u_root_square_minus_one(u))


def _arccsc(u, du):
    return divide(multiply(Number(-1), du), _u_root_square_minus_one(u))


def _exp(u, du):
    return multiply(Function("exp", u), du)


def _ln(u, du):
    return divide(du, u)


def _log(u, du):
    return divide(du, multiply(u, Function("ln", Number(10))))


def _sqrt(u, du):
    return divide(du, multiply(Number(2), Function("sqrt", u)))


def _abs(u, du):
    # Undefined at u = 0, where the evaluator yields NaN
    return multiply(divide(u, Function("abs", u)), du)


def function_rule(name: str, priority: int, chain: ChainFunc,
                  description: Optional[str] = None,
                  tags: Optional[List[str]] = None) -> DerivativeRule:
    """
    Build a chain-rule DerivativeRule for a one-argument function.

    Args:
        name: Function name the rule fires on
        priority: Rule priority
        chain: chain(u, du) -> derivative of name(u)
    """
    def matches(node: NodeType, variable: str) -> bool:
        return isinstance(node, Function) and node.name == name

    def apply(node: NodeType, variable: str, engine: Any) -> NodeType:
        u = node.argument
        return chain(u, engine.differentiate(u, variable))

    return DerivativeRule(name, priority, matches, apply, description, tags)


TRIG_DERIVATIVES: Dict[str, ChainFunc] = {
    "sin": _sin,
    "cos": _cos,
    "tan": _tan,
    "cot": _cot,
    "sec": _sec,
    "csc": _csc,
}

INVERSE_TRIG_DERIVATIVES: Dict[str, ChainFunc] = {
    "arcsin": _arcsin,
    "arccos": _arccos,
    "arctan": _arctan,
    "arccot": _arccot,
    "arcsec": _arcsec,
    "arccsc": _arccsc,
}

EXP_LOG_DERIVATIVES: Dict[str, ChainFunc] = {
    "exp": _exp,
    "ln": _ln,
    "log": _log,
    "sqrt": _sqrt,
    "abs": _abs,
}


# ============================================================
# Default Rule Table
# ============================================================

def default_rules() -> List[DerivativeRule]:
    """Return a fresh list of the built-in rules in registration order."""
    rules = [
        DerivativeRule("constant", 200, _is_constant, _zero,
                       "d(c) = 0", ["basic"]),
        DerivativeRule("free-of-variable", 160, _is_free, _zero,
                       "d(u) = 0 when u does not mention the variable", ["basic"]),
        DerivativeRule("variable", 150, _is_target, _one,
                       "d(x) = 1", ["basic"]),
        DerivativeRule("power-simple", 100, _is_simple_power, _simple_power,
                       "d(x^n) = n x^(n-1)", ["power"]),
        DerivativeRule("power-composite", 98, _is_composite_power, _composite_power,
                       "d(u^n) = n u^(n-1) u'", ["power"]),
        DerivativeRule("power-general", 95, _is_general_power, _general_power,
                       "d(u^v) = u^v (v' ln u + v u'/u)", ["power"]),
        DerivativeRule("sum", 90, _operator_is(Operator.ADD), _sum,
                       "d(u+v) = u' + v'", ["arithmetic"]),
        DerivativeRule("difference", 90, _operator_is(Operator.SUBTRACT), _difference,
                       "d(u-v) = u' - v'", ["arithmetic"]),
        DerivativeRule("quotient", 85, _operator_is(Operator.DIVIDE), _quotient,
                       "d(u/v) = (u'v - uv')/v^2", ["arithmetic"]),
        DerivativeRule("product", 80, _operator_is(Operator.MULTIPLY), _product,
                       "d(uv) = u'v + uv'", ["arithmetic"]),
    ]
    for name, chain in TRIG_DERIVATIVES.items():
        rules.append(function_rule(name, 70, chain, f"chain rule for {name}", ["trig"]))
    for name, chain in INVERSE_TRIG_DERIVATIVES.items():
        rules.append(function_rule(name, 70, chain, f"chain rule for {name}", ["inverse-trig"]))
    for name, chain in EXP_LOG_DERIVATIVES.items():
        rules.append(function_rule(name, 65, chain, f"chain rule for {name}", ["exp-log"]))
    return rules
