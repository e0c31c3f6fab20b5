"""
Canonical Forms for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

Brings an expression into a canonical sum of products:

    expand      - distribute products over sums, expand (sum)^n for small n
    flatten     - turn +/- chains into a signed list of terms
    collect     - read each term as a MathTerm, merge like terms, drop zeros
    order       - non-constant terms first, by total degree, then by key
    rebuild     - emit an addition/subtraction chain

A MathTerm is ``coefficient × Π var^e × Π func(arg)^e × Π (subexpr)^e``.
Two terms are like terms when everything except the coefficient agrees.

Fractions at the top level keep numerator and denominator apart; a
monomial over a monomial is cancelled exponent by exponent, with the
coefficient ratio reduced by integer GCD.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .nodes import (
    EPSILON, NodeType, Number, Variable, BinaryOp, Function, Operator,
    add, subtract, multiply, divide, power, is_operator, is_zero,
    is_integer_value,
)

logger = logging.getLogger(__name__)

# Largest integer power of a sum that gets multiplied out
MAX_EXPANSION_POWER = 10


# ============================================================
# Canonical Base Key
# ============================================================

def _key_number(value: float) -> str:
    if is_integer_value(value):
        return str(int(round(value)))
    return f"{value:.10g}"


def canonical_key(node: NodeType, exact: bool = False) -> str:
    """
    Structural signature of a subtree.

    With ``exact=False`` a Number in coefficient position (the node itself or
    a factor of a product) is the placeholder ``CONST``, so ``2×x`` and
    ``x×3`` share a key. Numbers inside exponents, function arguments and
    +, -, / composites always keep their value; otherwise ``x^2`` and ``x^3``
    would collide.
    """
    if isinstance(node, Number):
        return f"NUM:{_key_number(node.value)}" if exact else "CONST"
    if isinstance(node, Variable):
        return f"VAR:{node.name}"
    if isinstance(node, Function):
        return f"FUNC:{node.name}:[{canonical_key(node.argument, True)}]"

    op = node.operator
    if op is Operator.MULTIPLY:
        pair = sorted([canonical_key(node.left, exact), canonical_key(node.right, exact)])
        return f"MUL:[{pair[0]}]|[{pair[1]}]"
    left = canonical_key(node.left, True)
    right = canonical_key(node.right, True)
    prefix = {
        Operator.ADD: "ADD",
        Operator.SUBTRACT: "SUB",
        Operator.DIVIDE: "DIV",
        Operator.POWER: "POW",
    }[op]
    return f"{prefix}:[{left}]:[{right}]"


@dataclass(frozen=True, order=True)
class FunctionKey:
    """A function applied to a canonicalized argument, usable as a dict key."""

    name: str
    key: str
    argument: NodeType = field(compare=False, repr=False)

    @classmethod
    def of(cls, name: str, argument: NodeType) -> 'FunctionKey':
        return cls(name, canonical_key(argument, exact=True), argument)

    def to_node(self) -> Function:
        return Function(self.name, self.argument)


# ============================================================
# MathTerm
# ============================================================

def _clean(value: float) -> float:
    """Snap near-integers so 2.9999999999 prints as 3."""
    if is_integer_value(value):
        return float(round(value))
    return value


def _merge_exponents(a: Dict, b: Dict) -> Dict:
    merged = dict(a)
    for k, e in b.items():
        merged[k] = merged.get(k, 0.0) + e
    return {k: _clean(e) for k, e in merged.items() if abs(e) >= EPSILON}


def _merge_nested(a: Dict, b: Dict) -> Dict:
    merged = dict(a)
    for k, (node, e) in b.items():
        if k in merged:
            merged[k] = (merged[k][0], merged[k][1] + e)
        else:
            merged[k] = (node, e)
    return {k: (n, _clean(e)) for k, (n, e) in merged.items() if abs(e) >= EPSILON}


def _format_exponent(e: float) -> str:
    return _key_number(e)


def _raise_to(node: NodeType, exponent: float) -> NodeType:
    if abs(exponent - 1) < EPSILON:
        return node
    return power(node, Number(exponent))


def product_of(nodes: List[NodeType]) -> Optional[NodeType]:
    """Left-fold a list of factors into a product; None when empty."""
    if not nodes:
        return None
    result = nodes[0]
    for factor in nodes[1:]:
        result = multiply(result, factor)
    return result


def with_coefficient(coefficient: float, node: Optional[NodeType]) -> NodeType:
    """Prefix a factor with a numeric coefficient, omitting a 1."""
    if node is None:
        return Number(_clean(coefficient))
    if abs(coefficient - 1) < EPSILON:
        return node
    if abs(coefficient + 1) < EPSILON:
        return multiply(Number(-1), node)
    return multiply(Number(_clean(coefficient)), node)


class MathTerm:
    """
    One product term: coefficient and exponent maps.

    Attributes:
        coefficient: numeric factor
        variables: variable name -> exponent
        functions: FunctionKey -> exponent
        nested: canonical key -> (irreducible subexpression, exponent)
    """

    __slots__ = ("coefficient", "variables", "functions", "nested")

    def __init__(self, coefficient: float = 1.0,
                 variables: Optional[Dict[str, float]] = None,
                 functions: Optional[Dict[FunctionKey, float]] = None,
                 nested: Optional[Dict[str, Tuple[NodeType, float]]] = None):
        self.coefficient = _clean(coefficient)
        self.variables = variables or {}
        self.functions = functions or {}
        self.nested = nested or {}

    @classmethod
    def opaque(cls, node: NodeType) -> 'MathTerm':
        """Treat a whole subtree as a single irreducible factor."""
        return cls(nested={canonical_key(node, exact=True): (node, 1.0)})

    @classmethod
    def from_node(cls, node: NodeType) -> 'MathTerm':
        """Read a product-shaped subtree as a term; anything else is opaque."""
        if isinstance(node, Number):
            return cls(node.value)
        if isinstance(node, Variable):
            return cls(variables={node.name: 1.0})
        if isinstance(node, Function):
            return cls(functions={FunctionKey.of(node.name, node.argument): 1.0})

        op = node.operator
        if op is Operator.MULTIPLY:
            return cls.from_node(node.left).multiply(cls.from_node(node.right))
        if op is Operator.DIVIDE:
            inverse = cls.from_node(node.right).power(-1.0)
            if inverse is not None:
                return cls.from_node(node.left).multiply(inverse)
        if op is Operator.POWER and isinstance(node.right, Number):
            raised = cls.from_node(node.left).power(node.right.value)
            if raised is not None:
                return raised
        return cls.opaque(node)

    def multiply(self, other: 'MathTerm') -> 'MathTerm':
        return MathTerm(self.coefficient * other.coefficient,
                        _merge_exponents(self.variables, other.variables),
                        _merge_exponents(self.functions, other.functions),
                        _merge_nested(self.nested, other.nested))

    def power(self, exponent: float) -> Optional['MathTerm']:
        """Raise to a numeric power; None if the coefficient cannot be raised."""
        c = self.coefficient
        if abs(c) < EPSILON and exponent < 0:
            return None
        if c < 0 and not is_integer_value(exponent):
            return None
        try:
            raised = math.pow(c, exponent)
        except (ValueError, OverflowError):
            return None
        if not math.isfinite(raised):
            return None
        return MathTerm(
            raised,
            {k: _clean(e * exponent) for k, e in self.variables.items() if abs(e * exponent) >= EPSILON},
            {k: _clean(e * exponent) for k, e in self.functions.items() if abs(e * exponent) >= EPSILON},
            {k: (n, _clean(e * exponent)) for k, (n, e) in self.nested.items()
             if abs(e * exponent) >= EPSILON},
        )

    def scaled(self, factor: float) -> 'MathTerm':
        return MathTerm(self.coefficient * factor, self.variables, self.functions, self.nested)

    def unit(self) -> 'MathTerm':
        """The same term with coefficient 1."""
        return MathTerm(1.0, self.variables, self.functions, self.nested)

    def is_constant(self) -> bool:
        return not (self.variables or self.functions or self.nested)

    def is_zero(self) -> bool:
        return abs(self.coefficient) < EPSILON

    def degree(self) -> float:
        return sum(self.variables.values())

    def base_key(self) -> str:
        """Key shared by exactly the terms that are like this one."""
        parts = [f"{name}^{_format_exponent(e)}" for name, e in sorted(self.variables.items())]
        parts += [f"{fk.name}[{fk.key}]^{_format_exponent(e)}"
                  for fk, e in sorted(self.functions.items())]
        parts += [f"<{k}>^{_format_exponent(e)}" for k, (_, e) in sorted(self.nested.items())]
        return "*".join(parts) or "1"

    def is_like(self, other: 'MathTerm') -> bool:
        return self.base_key() == other.base_key()

    def factor_lists(self) -> Tuple[List[NodeType], List[NodeType]]:
        """Split the non-numeric factors into numerator and denominator lists."""
        numerator: List[NodeType] = []
        denominator: List[NodeType] = []

        def place(node: NodeType, e: float):
            if e > 0:
                numerator.append(_raise_to(node, e))
            else:
                denominator.append(_raise_to(node, -e))

        for name, e in sorted(self.variables.items()):
            place(Variable(name), e)
        for fk, e in sorted(self.functions.items()):
            place(fk.to_node(), e)
        for _, (node, e) in sorted(self.nested.items(), key=lambda item: item[0]):
            place(node, e)
        return numerator, denominator

    def to_node(self) -> NodeType:
        numerator, denominator = self.factor_lists()
        top = with_coefficient(self.coefficient, product_of(numerator))
        if denominator:
            return divide(top, product_of(denominator))
        return top

    def __repr__(self) -> str:
        return f"MathTerm({self.coefficient} * {self.base_key()})"


# ============================================================
# Sum Helpers
# ============================================================

def negate_term(node: NodeType) -> NodeType:
    if isinstance(node, Number):
        return Number(-node.value)
    if is_operator(node, Operator.MULTIPLY) and isinstance(node.left, Number):
        return with_coefficient(-node.left.value, node.right)
    return multiply(Number(-1), node)


def flatten_sum(node: NodeType) -> List[NodeType]:
    """Flatten nested +/- into a list of signed terms."""
    if is_operator(node, Operator.ADD):
        return flatten_sum(node.left) + flatten_sum(node.right)
    if is_operator(node, Operator.SUBTRACT):
        return flatten_sum(node.left) + [negate_term(t) for t in flatten_sum(node.right)]
    return [node]


def merge_terms(terms: List[MathTerm]) -> List[MathTerm]:
    """Sum the coefficients of like terms, keeping first-seen order; drop zeros."""
    groups: Dict[str, MathTerm] = {}
    for term in terms:
        key = term.base_key()
        if key in groups:
            first = groups[key]
            groups[key] = MathTerm(first.coefficient + term.coefficient,
                                   first.variables, first.functions, first.nested)
        else:
            groups[key] = term
    return [t for t in groups.values() if not t.is_zero()]


def term_sort_key(term: MathTerm) -> Tuple[bool, float, str]:
    """Non-constant terms first, higher total degree first, then by key."""
    return (term.is_constant(), -term.degree(), canonical_key(term.unit().to_node()))


def build_sum(terms: List[MathTerm]) -> NodeType:
    """Rebuild an addition chain; negative terms become subtractions."""
    if not terms:
        return Number(0)
    result = terms[0].to_node()
    for term in terms[1:]:
        if term.coefficient < 0:
            result = subtract(result, term.scaled(-1).to_node())
        else:
            result = add(result, term.to_node())
    return result


def reduce_ratio(numerator: float, denominator: float) -> Tuple[float, float]:
    """Reduce a coefficient ratio by integer GCD; non-integers divide through."""
    if is_integer_value(numerator) and is_integer_value(denominator):
        p, q = int(round(numerator)), int(round(denominator))
        g = math.gcd(p, q) or 1
        p, q = p // g, q // g
        if q < 0:
            p, q = -p, -q
        return float(p), float(q)
    return numerator / denominator, 1.0


# ============================================================
# Canonicalizer
# ============================================================

class Canonicalizer:
    """
    Expands and collects an expression into canonical form.

    Stateless apart from configuration; safe to share.
    """

    def __init__(self, max_expansion_power: int = MAX_EXPANSION_POWER):
        self.max_expansion_power = max_expansion_power

    def canonicalize(self, node: NodeType) -> NodeType:
        """Canonical form of a node; a top-level fraction stays a fraction."""
        if is_operator(node, Operator.DIVIDE):
            return self.cancel(self.canonicalize(node.left), self.canonicalize(node.right))
        return self.collect(self.expand(node))

    def collect(self, node: NodeType) -> NodeType:
        terms = [MathTerm.from_node(t) for t in flatten_sum(node)]
        merged = merge_terms(terms)
        return build_sum(sorted(merged, key=term_sort_key))

    def expand(self, node: NodeType) -> NodeType:
        if isinstance(node, (Number, Variable)):
            return node
        if isinstance(node, Function):
            return Function(node.name, self.canonicalize(node.argument))

        op = node.operator
        if op in (Operator.ADD, Operator.SUBTRACT):
            return BinaryOp(op, self.expand(node.left), self.expand(node.right))
        if op is Operator.MULTIPLY:
            return self.expand_product(self.expand(node.left), self.expand(node.right))
        if op is Operator.DIVIDE:
            return self.canonicalize(node)
        return self.expand_power(self.expand(node.left), self.canonicalize(node.right))

    def expand_product(self, left: NodeType, right: NodeType) -> NodeType:
        """Distribute a product over the terms of both factors."""
        left_terms = flatten_sum(left)
        right_terms = flatten_sum(right)
        products = [MathTerm.from_node(a).multiply(MathTerm.from_node(b)).to_node()
                    for a in left_terms for b in right_terms]
        result = products[0]
        for term in products[1:]:
            result = add(result, term)
        return result

    def expand_power(self, base: NodeType, exponent: NodeType) -> NodeType:
        if isinstance(exponent, Number):
            n = exponent.value
            if (is_integer_value(n) and 2 <= n <= self.max_expansion_power
                    and len(flatten_sum(base)) > 1):
                result = base
                for _ in range(int(round(n)) - 1):
                    result = self.expand_product(result, base)
                return result
            return MathTerm.from_node(power(base, exponent)).to_node()
        return power(base, exponent)

    def cancel(self, numerator: NodeType, denominator: NodeType) -> NodeType:
        """
        Simplify numerator/denominator.

        A monomial over a monomial cancels: exponents of matching bases are
        subtracted and the coefficient ratio is reduced by GCD. Anything
        else is left as an unreduced fraction.
        """
        if is_zero(denominator):
            return divide(numerator, denominator)
        if is_zero(numerator):
            return Number(0)
        if len(flatten_sum(numerator)) > 1 or len(flatten_sum(denominator)) > 1:
            if isinstance(denominator, Number) and abs(denominator.value - 1) < EPSILON:
                return numerator
            return divide(numerator, denominator)

        top = MathTerm.from_node(numerator)
        bottom = MathTerm.from_node(denominator)
        inverse = bottom.unit().power(-1.0)
        if inverse is None or abs(bottom.coefficient) < EPSILON:
            return divide(numerator, denominator)

        p, q = reduce_ratio(top.coefficient, bottom.coefficient)
        ratio = top.unit().multiply(inverse).scaled(p)
        result = ratio.to_node()
        if abs(q - 1) < EPSILON:
            return result
        if is_operator(result, Operator.DIVIDE):
            return divide(result.left, with_coefficient(q, result.right))
        return divide(result, Number(q))
