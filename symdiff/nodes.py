"""
Expression Tree for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

Expressions are immutable trees built from four node kinds:

    Number(3.0)                          - numeric literal
    Variable("x")                        - named variable
    BinaryOp(Operator.ADD, left, right)  - +, -, ×, /, ^
    Function("sin", argument)            - one-argument function call

Nodes compare by structure, so ``parse("x+1") == parse("x + 1")``.
Every rewrite builds new nodes; nothing is mutated in place.

Serialization:
    to_string(node) renders with the fewest parentheses that keep the text
    re-parseable, and with the readability shortcuts ``-u`` for ``(-1)×u``,
    ``u`` for ``1×u`` and ``a-b`` for ``a+(-b)``.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Tuple, Union

# Tolerance used for every "is this zero / one / minus one" test
EPSILON = 1e-10


class Operator(Enum):
    """Binary operators with their display symbol and precedence."""

    ADD = ("+", 1)
    SUBTRACT = ("-", 1)
    MULTIPLY = ("×", 2)
    DIVIDE = ("/", 2)
    POWER = ("^", 3)

    def __init__(self, symbol: str, precedence: int):
        self.symbol = symbol
        self.precedence = precedence

    @classmethod
    def from_symbol(cls, symbol: str) -> 'Operator':
        for op in cls:
            if op.symbol == symbol:
                return op
        raise ValueError(f"Unknown operator symbol: {symbol!r}")


# Fixed ASCII mapping used by canonical_string()
ASCII_SYMBOLS = {
    Operator.ADD: "+",
    Operator.SUBTRACT: "-",
    Operator.MULTIPLY: "*",
    Operator.DIVIDE: "/",
    Operator.POWER: "^",
}


@dataclass(frozen=True)
class Number:
    value: float

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))

    def __str__(self) -> str:
        return to_string(self)


@dataclass(frozen=True)
class Variable:
    name: str

    def __str__(self) -> str:
        return to_string(self)


@dataclass(frozen=True)
class BinaryOp:
    operator: Operator
    left: 'NodeType'
    right: 'NodeType'

    def __str__(self) -> str:
        return to_string(self)


@dataclass(frozen=True)
class Function:
    name: str
    argument: 'NodeType'

    def __str__(self) -> str:
        return to_string(self)


NodeType = Union[Number, Variable, BinaryOp, Function]


# ============================================================
# Node Builders
# ============================================================

def add(left: NodeType, right: NodeType) -> BinaryOp:
    return BinaryOp(Operator.ADD, left, right)


def subtract(left: NodeType, right: NodeType) -> BinaryOp:
    return BinaryOp(Operator.SUBTRACT, left, right)


def multiply(left: NodeType, right: NodeType) -> BinaryOp:
    return BinaryOp(Operator.MULTIPLY, left, right)


def divide(left: NodeType, right: NodeType) -> BinaryOp:
    return BinaryOp(Operator.DIVIDE, left, right)


def power(base: NodeType, exponent: NodeType) -> BinaryOp:
    return BinaryOp(Operator.POWER, base, exponent)


def negate(node: NodeType) -> NodeType:
    """Return -node, folding numeric literals."""
    if isinstance(node, Number):
        return Number(-node.value)
    return multiply(Number(-1), node)


# ============================================================
# Predicates
# ============================================================

def is_number(node: NodeType, value: float) -> bool:
    """True if node is a Number within EPSILON of value."""
    return isinstance(node, Number) and abs(node.value - value) < EPSILON


def is_zero(node: NodeType) -> bool:
    return is_number(node, 0.0)


def is_one(node: NodeType) -> bool:
    return is_number(node, 1.0)


def is_minus_one(node: NodeType) -> bool:
    return is_number(node, -1.0)


def is_operator(node: NodeType, op: Operator) -> bool:
    return isinstance(node, BinaryOp) and node.operator is op


def contains_variable(node: NodeType, name: str) -> bool:
    """
    Check whether a subtree references a variable.

    Shared by the power rules and the free-of-variable rule.
    """
    if isinstance(node, Variable):
        return node.name == name
    if isinstance(node, BinaryOp):
        return contains_variable(node.left, name) or contains_variable(node.right, name)
    if isinstance(node, Function):
        return contains_variable(node.argument, name)
    return False


def is_integer_value(value: float) -> bool:
    return math.isfinite(value) and abs(value - round(value)) < EPSILON


# ============================================================
# Serialization
# ============================================================

def format_number(value: float) -> str:
    """Render a float, dropping the trailing ``.0`` of integral values."""
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value == int(value) and abs(value) < 1e15:
        return str(int(value))
    text = repr(value)
    if "e" in text:
        # Exponent notation would read back as Euler's number
        text = format(Decimal(text), "f")
    return text


def to_string(node: NodeType) -> str:
    """Render a node as re-parseable infix text."""
    if isinstance(node, Number):
        return format_number(node.value)
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, Function):
        return f"{node.name}({to_string(node.argument)})"
    if isinstance(node, BinaryOp):
        return _format_binary(node)
    raise TypeError(f"Not an expression node: {node!r}")


def _format_binary(node: BinaryOp) -> str:
    op = node.operator

    if op is Operator.MULTIPLY and is_minus_one(node.left):
        return "-" + _format_operand(node.right, op, is_right=True)
    if op is Operator.MULTIPLY and is_one(node.left):
        return _format_operand(node.right, op, is_right=True)
    if op is Operator.SUBTRACT and is_zero(node.left):
        return "-" + _format_operand(node.right, op, is_right=True)

    left = _format_operand(node.left, op, is_right=False)
    right = _format_operand(node.right, op, is_right=True)
    if op is Operator.ADD and right.startswith("-"):
        return f"{left}{right}"
    return f"{left}{op.symbol}{right}"


def _format_operand(child: NodeType, parent: Operator, is_right: bool) -> str:
    text = to_string(child)
    if _needs_parentheses(child, parent, is_right):
        return f"({text})"
    if text.startswith("-"):
        # a+(-b) is merged by the caller; everywhere else a sign needs wrapping
        if is_right and parent is not Operator.ADD:
            return f"({text})"
        if not is_right and parent is Operator.POWER:
            return f"({text})"
    return text


def _needs_parentheses(child: NodeType, parent: Operator, is_right: bool) -> bool:
    if not isinstance(child, BinaryOp):
        return False
    child_prec = child.operator.precedence
    if child_prec < parent.precedence:
        return True
    if is_right and child_prec == parent.precedence:
        return parent in (Operator.SUBTRACT, Operator.DIVIDE, Operator.POWER)
    return False


def canonical_string(node: NodeType) -> str:
    """
    Stringify for equality probing of display forms.

    Integer-valued floats print as ints, other numbers with six decimals
    (trailing zeros stripped), and every BinaryOp is fully parenthesized.
    """
    if isinstance(node, Number):
        value = node.value
        if is_integer_value(value):
            return str(int(round(value)))
        return f"{value:.6f}".rstrip("0").rstrip(".")
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, Function):
        return f"{node.name}({canonical_string(node.argument)})"
    left = canonical_string(node.left)
    right = canonical_string(node.right)
    return f"({left}{ASCII_SYMBOLS[node.operator]}{right})"


# ============================================================
# Size Metrics
# ============================================================

def count_nodes(node: NodeType) -> int:
    if isinstance(node, BinaryOp):
        return 1 + count_nodes(node.left) + count_nodes(node.right)
    if isinstance(node, Function):
        return 1 + count_nodes(node.argument)
    return 1


def node_stats(node: NodeType) -> Tuple[int, int, int, int]:
    """Return (nodes, divisions, powers, functions) for a subtree."""
    if isinstance(node, BinaryOp):
        ln, ld, lp, lf = node_stats(node.left)
        rn, rd, rp, rf = node_stats(node.right)
        return (1 + ln + rn,
                ld + rd + (node.operator is Operator.DIVIDE),
                lp + rp + (node.operator is Operator.POWER),
                lf + rf)
    if isinstance(node, Function):
        n, d, p, f = node_stats(node.argument)
        return (n + 1, d, p, f + 1)
    return (1, 0, 0, 0)
