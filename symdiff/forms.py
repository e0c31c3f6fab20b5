"""
Display Forms for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

A simplified derivative is offered in several algebraically equal forms:

    EXPANDED       canonical sum of products (always present)
    FACTORED       common factor pulled out of the sum, cancelled
                   against the denominator for fractions
    TRIGONOMETRIC  tan/cot/sec/csc and Pythagorean rewrites

select_best() picks the smallest one (fewest nodes, then shortest
canonical string, then the order above). That form is what gets
differentiated again for the second derivative, which keeps trees from
growing with each pass.
"""

import logging
import math
from enum import Enum
from functools import reduce
from typing import Dict, List, Optional, Tuple

from .canonical import (
    Canonicalizer, MathTerm, build_sum, flatten_sum, product_of, reduce_ratio,
    term_sort_key, with_coefficient,
)
from .nodes import (
    EPSILON, NodeType, Operator, canonical_string, count_nodes, divide,
    is_integer_value, is_operator, multiply, to_string,
)
from .simplify import MAX_PASSES, eliminate_identities, simplify
from .trig import rewrite_trig

logger = logging.getLogger(__name__)


class FormType(Enum):
    """Kinds of display form, in tie-breaking priority order."""

    EXPANDED = ("expanded", 0)
    FACTORED = ("factored", 1)
    TRIGONOMETRIC = ("trigonometric", 2)

    def __init__(self, label: str, priority: int):
        self.label = label
        self.priority = priority


class SimplifiedForm:
    """One display form of an expression."""

    def __init__(self, node: NodeType, form_type: FormType):
        self.node = node
        self.form_type = form_type
        self.text = to_string(node)
        self.key = canonical_string(node)

    def score(self) -> Tuple[int, int, int]:
        return (count_nodes(self.node), len(self.key), self.form_type.priority)

    def to_dict(self) -> Dict:
        return {"type": self.form_type.label, "text": self.text}

    def __repr__(self) -> str:
        return f"{self.form_type.label}: {self.text}"


def select_best(forms: List[SimplifiedForm]) -> SimplifiedForm:
    """Smallest form by node count, then canonical length, then form priority."""
    return min(forms, key=lambda form: form.score())


class SimplificationForms:
    """The set of forms generated for one expression."""

    def __init__(self, forms: List[SimplifiedForm]):
        if not forms:
            raise ValueError("SimplificationForms needs at least one form")
        self.forms = forms

    def display_forms(self) -> List[SimplifiedForm]:
        """Forms with duplicates removed, keeping the first per canonical string."""
        seen = set()
        distinct = []
        for form in self.forms:
            if form.key not in seen:
                seen.add(form.key)
                distinct.append(form)
        return distinct

    def best(self) -> SimplifiedForm:
        return select_best(self.forms)

    def get(self, form_type: FormType) -> Optional[SimplifiedForm]:
        for form in self.forms:
            if form.form_type is form_type:
                return form
        return None

    @property
    def expanded(self) -> SimplifiedForm:
        return self.forms[0]

    def texts(self) -> List[str]:
        return [form.text for form in self.display_forms()]

    def to_dict(self) -> Dict:
        return {
            "best": self.best().text,
            "forms": [form.to_dict() for form in self.display_forms()],
        }

    def __len__(self) -> int:
        return len(self.display_forms())

    def __iter__(self):
        return iter(self.display_forms())

    def __repr__(self) -> str:
        return f"SimplificationForms({', '.join(repr(f) for f in self.display_forms())})"


# ============================================================
# Common Factor Extraction
# ============================================================

def _common_exponents(maps: List[Dict]) -> Dict:
    """Keys present with a positive exponent in every map, at the minimum exponent."""
    common = {}
    for key in maps[0]:
        exponents = [m.get(key, 0.0) for m in maps]
        smallest = min(exponents)
        if smallest > EPSILON:
            common[key] = smallest
    return common


def common_factor(terms: List[MathTerm]) -> MathTerm:
    """
    Greatest common factor of a list of terms.

    The coefficient is the integer GCD when every coefficient is integral,
    otherwise 1; each variable, function and subexpression contributes its
    smallest exponent if it occurs in every term.
    """
    coefficients = [t.coefficient for t in terms]
    if all(is_integer_value(c) for c in coefficients):
        g = reduce(math.gcd, (abs(int(round(c))) for c in coefficients)) or 1
    else:
        g = 1

    nested_maps = [{k: e for k, (_, e) in t.nested.items()} for t in terms]
    nested_common = _common_exponents(nested_maps)
    return MathTerm(
        float(g),
        _common_exponents([t.variables for t in terms]),
        _common_exponents([t.functions for t in terms]),
        {k: (terms[0].nested[k][0], e) for k, e in nested_common.items()},
    )


def _is_trivial(term: MathTerm) -> bool:
    return term.is_constant() and abs(term.coefficient - 1) < EPSILON


class FormGenerator:
    """
    Builds the display forms of an expression.

    Example:
        forms = FormGenerator().generate(parse("x^x*ln(x) + x^x"))
        forms.best().text    # x^x×(ln(x)+1)
    """

    def __init__(self, canonicalizer: Optional[Canonicalizer] = None,
                 max_passes: int = MAX_PASSES):
        self.canonicalizer = canonicalizer or Canonicalizer()
        self.max_passes = max_passes

    def generate(self, node: NodeType) -> SimplificationForms:
        expanded = simplify(node, self.max_passes, self.canonicalizer)
        forms = [SimplifiedForm(expanded, FormType.EXPANDED)]

        factored = self.factor(expanded)
        if factored is not None:
            forms.append(SimplifiedForm(factored, FormType.FACTORED))

        trig = rewrite_trig(expanded)
        if trig != expanded:
            forms.append(SimplifiedForm(eliminate_identities(trig, self.max_passes),
                                        FormType.TRIGONOMETRIC))

        logger.debug("forms for %s: %s", to_string(node), forms)
        return SimplificationForms(forms)

    def _factor_sum(self, node: NodeType) -> Optional[Tuple[MathTerm, NodeType]]:
        terms = [MathTerm.from_node(t) for t in flatten_sum(node)]
        if len(terms) < 2:
            return None
        gcf = common_factor(terms)
        if _is_trivial(gcf):
            return None
        inverse = gcf.power(-1.0)
        if inverse is None:
            return None
        rest = [t.multiply(inverse) for t in terms]
        return gcf, build_sum(sorted(rest, key=term_sort_key))

    def factor(self, node: NodeType) -> Optional[NodeType]:
        """Factored form of a canonical node, or None if nothing factors out."""
        if is_operator(node, Operator.DIVIDE):
            return self._factor_fraction(node)
        extracted = self._factor_sum(node)
        if extracted is None:
            return None
        gcf, rest = extracted
        return multiply(gcf.to_node(), rest)

    def _factor_fraction(self, node: NodeType) -> Optional[NodeType]:
        extracted = self._factor_sum(node.left)
        if extracted is None:
            return None
        gcf, rest = extracted

        if len(flatten_sum(node.right)) > 1:
            return divide(multiply(gcf.to_node(), rest), node.right)

        bottom = MathTerm.from_node(node.right)
        inverse = bottom.unit().power(-1.0)
        if inverse is None or abs(bottom.coefficient) < EPSILON:
            return divide(multiply(gcf.to_node(), rest), node.right)

        p, q = reduce_ratio(gcf.coefficient, bottom.coefficient)
        ratio = gcf.unit().multiply(inverse)
        numerator_factors, denominator_factors = ratio.factor_lists()

        top = product_of(numerator_factors)
        if top is None and abs(p - 1) < EPSILON:
            top = rest
        else:
            top = multiply(with_coefficient(p, top), rest)

        if not denominator_factors and abs(q - 1) < EPSILON:
            return top
        return divide(top, with_coefficient(q, product_of(denominator_factors)))
