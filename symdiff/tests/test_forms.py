"""Tests for trigonometric rewrites and display forms."""

import pytest
from symdiff import (
    FormGenerator, FormType, MathTerm, SimplificationForms, SimplifiedForm,
    parse, rewrite_trig, select_best, to_string,
)
from symdiff.evaluator import evaluate
from symdiff.forms import common_factor
from symdiff.trig import rewrite_double_angle, rewrite_ratios


def trig(text):
    return to_string(rewrite_trig(parse(text)))


class TestTrigRewrites:
    """Tests for rewrite_trig()."""

    @pytest.mark.parametrize("text, expected", [
        ("sin(x)/cos(x)", "tan(x)"),
        ("cos(x)/sin(x)", "cot(x)"),
        ("1/cos(x)", "sec(x)"),
        ("1/sin(x)", "csc(x)"),
        ("sin(x)^2+cos(x)^2", "1"),
        ("cos(x)^2-sin(x)^2", "cos(2×x)"),
        ("2sin(x)cos(x)", "sin(2×x)"),
        ("x/cos(x)^2", "x×sec(x)^2"),
    ])
    def test_rewrite(self, text, expected):
        """Each identity applies."""
        assert trig(text) == expected

    def test_pythagorean_with_common_factor(self):
        """Factors around the squares are carried along."""
        assert trig("3x*sin(x)^2+3x*cos(x)^2") == "3×x"

    def test_unchanged_when_nothing_applies(self):
        """Input without trig structure comes back as is."""
        node = parse("x^2+1")
        assert rewrite_trig(node) is node

    def test_mismatched_arguments(self):
        """sin(x)^2+cos(2x)^2 is not an identity."""
        node = parse("sin(x)^2+cos(2x)^2")
        assert rewrite_trig(node) == node

    def test_ratio_on_term(self):
        """rewrite_ratios works on a single MathTerm."""
        term = MathTerm.from_node(parse("sin(x)^2/cos(x)"))
        assert to_string(rewrite_ratios(term).to_node()) == "sin(x)×tan(x)"

    def test_double_angle_halves_coefficient(self):
        """c sin cos becomes c/2 sin(2u)."""
        term = MathTerm.from_node(parse("6sin(x)cos(x)"))
        assert to_string(rewrite_double_angle(term).to_node()) == "3×sin(2×x)"

    @pytest.mark.parametrize("text", [
        "sin(x)/cos(x)",
        "x*sin(x)^2+x*cos(x)^2",
        "cos(x)^2-sin(x)^2",
        "4sin(x)cos(x)+x",
        "(sin(x)+1)/cos(x)",
    ])
    def test_preserves_value(self, text):
        """Rewritten forms evaluate to the same numbers."""
        node = parse(text)
        rewritten = rewrite_trig(node)
        for at in (0.3, 1.1, 2.0):
            assert evaluate(rewritten, at) == pytest.approx(evaluate(node, at))


class TestSimplifiedForm:
    """Tests for form scoring and selection."""

    def test_text_and_key(self):
        """A form keeps display text and canonical key."""
        form = SimplifiedForm(parse("2x+1"), FormType.EXPANDED)
        assert form.text == "2×x+1"
        assert form.key == "((2*x)+1)"

    def test_fewest_nodes_wins(self):
        """select_best prefers the smaller tree."""
        small = SimplifiedForm(parse("tan(x)"), FormType.TRIGONOMETRIC)
        large = SimplifiedForm(parse("sin(x)/cos(x)"), FormType.EXPANDED)
        assert select_best([large, small]) is small

    def test_tie_goes_to_form_priority(self):
        """Equal size falls back to expanded, factored, trigonometric."""
        a = SimplifiedForm(parse("x+1"), FormType.FACTORED)
        b = SimplifiedForm(parse("x+1"), FormType.EXPANDED)
        assert select_best([a, b]) is b

    def test_empty_forms_rejected(self):
        """A form set needs at least one form."""
        with pytest.raises(ValueError):
            SimplificationForms([])

    def test_display_forms_dedupe(self):
        """Forms with the same canonical string are shown once."""
        forms = SimplificationForms([
            SimplifiedForm(parse("x+1"), FormType.EXPANDED),
            SimplifiedForm(parse("x+1"), FormType.FACTORED),
        ])
        assert len(forms) == 1
        assert forms.texts() == ["x+1"]
        assert forms.get(FormType.FACTORED) is not None
        assert forms.get(FormType.TRIGONOMETRIC) is None


class TestCommonFactor:
    """Tests for common_factor()."""

    def test_integer_gcd_and_min_exponent(self):
        """6x^2 and 4x share 2x."""
        terms = [MathTerm.from_node(parse(t)) for t in ("6x^2", "4x")]
        gcf = common_factor(terms)
        assert gcf.coefficient == 2
        assert gcf.variables == {"x": 1.0}

    def test_nothing_common(self):
        """x and 1 share only 1."""
        terms = [MathTerm.from_node(parse(t)) for t in ("x", "1")]
        gcf = common_factor(terms)
        assert gcf.is_constant()
        assert gcf.coefficient == 1

    def test_non_integer_coefficients(self):
        """Fractional coefficients give a unit coefficient."""
        terms = [MathTerm.from_node(parse(t)) for t in ("0.5x", "1.5x^2")]
        gcf = common_factor(terms)
        assert gcf.coefficient == 1
        assert gcf.variables == {"x": 1.0}


class TestFormGenerator:
    """Tests for generating every display form."""

    def setup_method(self):
        """Set up a generator."""
        self.generator = FormGenerator()

    def test_expanded_always_present(self):
        """A lone term has just the expanded form."""
        forms = self.generator.generate(parse("x"))
        assert forms.texts() == ["x"]
        assert forms.expanded.form_type is FormType.EXPANDED

    def test_factored_form(self):
        """A common factor is pulled out."""
        forms = self.generator.generate(parse("2x+4"))
        assert forms.texts() == ["2×x+4", "2×(x+2)"]
        assert forms.best().form_type is FormType.EXPANDED

    def test_factored_wins_when_smaller(self):
        """x^x×ln(x)+x^x reads best factored."""
        forms = self.generator.generate(parse("x^x*ln(x)+x^x"))
        assert forms.expanded.text == "ln(x)×x^x+x^x"
        assert forms.best().text == "x^x×(ln(x)+1)"
        assert forms.best().form_type is FormType.FACTORED

    def test_factored_fraction(self):
        """A factor of the numerator is shown outside the sum."""
        forms = self.generator.generate(parse("(2x+2)/x"))
        assert forms.get(FormType.FACTORED).text == "2×(x+1)/x"

    def test_trigonometric_form(self):
        """A trig rewrite is offered and wins when shorter."""
        forms = self.generator.generate(parse("sin(x)/cos(x)"))
        assert forms.best().text == "tan(x)"
        assert forms.best().form_type is FormType.TRIGONOMETRIC

    def test_to_dict(self):
        """to_dict lists the best form and every distinct form."""
        data = self.generator.generate(parse("2x+4")).to_dict()
        assert data["best"] == "2×x+4"
        assert data["forms"][1] == {"type": "factored", "text": "2×(x+2)"}

    @pytest.mark.parametrize("text", [
        "x^2*sin(x)+2x*sin(x)",
        "(3x^2+6x)/x^3",
        "2sin(x)cos(x)",
        "x^x*ln(x)+x^x",
    ])
    def test_all_forms_agree(self, text):
        """Every form evaluates like the input."""
        node = parse(text)
        for form in self.generator.generate(node):
            for at in (0.4, 1.3):
                assert evaluate(form.node, at) == pytest.approx(evaluate(node, at))
