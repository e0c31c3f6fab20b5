"""
Trigonometric rewrites for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

Rewrites a canonical expression with the usual identities, producing an
alternative display form:

    sin(u)/cos(u)          -> tan(u)
    cos(u)/sin(u)          -> cot(u)
    1/cos(u)               -> sec(u)
    1/sin(u)               -> csc(u)
    sin(u)^2 + cos(u)^2    -> 1
    cos(u)^2 - sin(u)^2    -> cos(2u)
    2 sin(u) cos(u)        -> sin(2u)

Each identity works on MathTerms, so common factors around the
trigonometric part are carried along unchanged.
"""

from typing import Dict, List, Optional, Tuple

from .canonical import (
    FunctionKey, MathTerm, build_sum, flatten_sum, merge_terms, term_sort_key,
)
from .nodes import EPSILON, NodeType, Number, Operator, divide, is_operator, multiply


def _key(name: str, template: FunctionKey) -> FunctionKey:
    return FunctionKey(name, template.key, template.argument)


def _with_functions(term: MathTerm, functions: Dict[FunctionKey, float]) -> MathTerm:
    cleaned = {k: e for k, e in functions.items() if abs(e) >= EPSILON}
    return MathTerm(term.coefficient, term.variables, cleaned, term.nested)


def _trig_arguments(term: MathTerm) -> List[FunctionKey]:
    """One FunctionKey per distinct sin/cos argument in the term."""
    seen: Dict[str, FunctionKey] = {}
    for fk in sorted(term.functions):
        if fk.name in ("sin", "cos") and fk.key not in seen:
            seen[fk.key] = fk
    return list(seen.values())


def rewrite_ratios(term: MathTerm) -> MathTerm:
    """Turn sin/cos quotients and reciprocals into tan, cot, sec and csc."""
    functions = dict(term.functions)
    for template in _trig_arguments(term):
        sin_key, cos_key = _key("sin", template), _key("cos", template)
        s = functions.pop(sin_key, 0.0)
        c = functions.pop(cos_key, 0.0)

        if s > 0 and c < 0:
            m = min(s, -c)
            tan_key = _key("tan", template)
            functions[tan_key] = functions.get(tan_key, 0.0) + m
            s, c = s - m, c + m
        elif s < 0 and c > 0:
            m = min(-s, c)
            cot_key = _key("cot", template)
            functions[cot_key] = functions.get(cot_key, 0.0) + m
            s, c = s + m, c - m

        if c < 0:
            sec_key = _key("sec", template)
            functions[sec_key] = functions.get(sec_key, 0.0) - c
            c = 0.0
        if s < 0:
            csc_key = _key("csc", template)
            functions[csc_key] = functions.get(csc_key, 0.0) - s
            s = 0.0

        functions[sin_key] = s
        functions[cos_key] = c
    return _with_functions(term, functions)


def _split_square(term: MathTerm, name: str) -> List[Tuple[FunctionKey, MathTerm]]:
    """(key, rest) pairs for every name(u)^2 factor the term contains."""
    pairs = []
    for fk, e in term.functions.items():
        if fk.name == name and e >= 2 - EPSILON:
            functions = dict(term.functions)
            functions[fk] = e - 2
            pairs.append((fk, _with_functions(term, functions)))
    return pairs


def _double_argument(template: FunctionKey) -> NodeType:
    u = template.argument
    if len(flatten_sum(u)) > 1:
        return multiply(Number(2), u)
    return MathTerm.from_node(u).scaled(2.0).to_node()


def _combine_squares(terms: List[MathTerm]) -> Optional[List[MathTerm]]:
    """Apply one Pythagorean or cos(2u) identity; None when none applies."""
    for i, first in enumerate(terms):
        for fk, rest in _split_square(first, "sin"):
            for j, second in enumerate(terms):
                if i == j:
                    continue
                for gk, other_rest in _split_square(second, "cos"):
                    if gk.key != fk.key or rest.base_key() != other_rest.base_key():
                        continue
                    remaining = [t for k, t in enumerate(terms) if k not in (i, j)]
                    if abs(first.coefficient - second.coefficient) < EPSILON:
                        return remaining + [rest]
                    if abs(first.coefficient + second.coefficient) < EPSILON:
                        cos2 = FunctionKey.of("cos", _double_argument(fk))
                        functions = dict(other_rest.functions)
                        functions[cos2] = functions.get(cos2, 0.0) + 1
                        return remaining + [_with_functions(other_rest, functions)]
    return None


def rewrite_double_angle(term: MathTerm) -> MathTerm:
    """c·sin(u)·cos(u)·R -> (c/2)·sin(2u)·R"""
    for template in _trig_arguments(term):
        sin_key, cos_key = _key("sin", template), _key("cos", template)
        if abs(term.functions.get(sin_key, 0.0) - 1) < EPSILON \
                and abs(term.functions.get(cos_key, 0.0) - 1) < EPSILON:
            functions = dict(term.functions)
            del functions[sin_key]
            del functions[cos_key]
            sin2 = FunctionKey.of("sin", _double_argument(template))
            functions[sin2] = functions.get(sin2, 0.0) + 1
            halved = MathTerm(term.coefficient / 2, term.variables, {}, term.nested)
            return _with_functions(halved, functions)
    return term


def rewrite_trig(node: NodeType) -> NodeType:
    """
    Apply trigonometric identities to a canonical sum or fraction.

    Returns a new tree; the input is returned unchanged when no identity
    applies.
    """
    if is_operator(node, Operator.DIVIDE) and len(flatten_sum(node.left)) > 1:
        numerator = rewrite_trig(node.left)
        denominator = rewrite_trig(node.right)
        if numerator == node.left and denominator == node.right:
            return node
        return divide(numerator, denominator)

    terms = [MathTerm.from_node(t) for t in flatten_sum(node)]
    changed = False
    while True:
        combined = _combine_squares(terms)
        if combined is None:
            break
        terms, changed = combined, True

    rewritten = [rewrite_ratios(rewrite_double_angle(t)) for t in terms]
    if not changed and all(a.base_key() == b.base_key() and a.coefficient == b.coefficient
                           for a, b in zip(terms, rewritten)):
        return node
    return build_sum(sorted(merge_terms(rewritten), key=term_sort_key))
