"""Tests for numeric evaluation."""

import math

import pytest
from symdiff import evaluate, evaluate_batch, parse
from symdiff.evaluator import FUNCTION_TABLE
from symdiff.nodes import Variable, Function


class TestEvaluate:
    """Tests for evaluate()."""

    def test_polynomial(self):
        """Arithmetic evaluates directly."""
        assert evaluate(parse("x^2+1"), 3.0) == 10.0
        assert evaluate(parse("2x-7/2"), 1.0) == -1.5

    def test_functions(self):
        """Functions use the math module."""
        assert evaluate(parse("sin(x)"), 0.5) == pytest.approx(math.sin(0.5))
        assert evaluate(parse("log(x)"), 100.0) == pytest.approx(2.0)
        assert evaluate(parse("abs(x)"), -3.0) == 3.0
        assert evaluate(parse("sec(x)"), 0.0) == 1.0
        assert evaluate(parse("arccot(x)"), 0.0) == pytest.approx(math.pi / 2)
        assert evaluate(parse("arcsec(x)"), 2.0) == pytest.approx(math.pi / 3)

    def test_constants(self):
        """π and e parse as numbers; pi and π variables are looked up."""
        assert evaluate(parse("π"), 0.0) == pytest.approx(math.pi)
        assert evaluate(parse("e"), 0.0) == pytest.approx(math.e)
        assert evaluate(Variable("pi"), 0.0) == pytest.approx(math.pi)

    def test_other_variable_is_zero(self):
        """Unbound variables evaluate to 0."""
        assert evaluate(parse("x+y"), 2.0) == 2.0

    def test_custom_variable(self):
        """The bound variable can be renamed."""
        assert evaluate(parse("t^2"), 3.0, variable="t") == 9.0
        assert evaluate(parse("t^2"), 3.0) == 0.0

    def test_all_functions_have_handlers(self):
        """Every reserved function evaluates."""
        from symdiff import FUNCTION_NAMES
        assert set(FUNCTION_TABLE) == set(FUNCTION_NAMES)

    def test_batch(self):
        """evaluate_batch keeps input order."""
        assert evaluate_batch(parse("2x"), [0.0, 1.0, 2.0]) == [0.0, 2.0, 4.0]


class TestDomainErrors:
    """Domain violations give NaN instead of raising."""

    @pytest.mark.parametrize("text, at", [
        ("1/x", 0.0),
        ("1/(x-x)", 3.0),
        ("ln(x)", 0.0),
        ("ln(x)", -1.0),
        ("log(x)", -2.0),
        ("sqrt(x)", -1.0),
        ("arcsin(x)", 2.0),
        ("arccos(x)", -1.5),
        ("arcsec(x)", 0.5),
        ("arccsc(x)", 0.0),
        ("cot(x)", 0.0),
        ("csc(x)", 0.0),
        ("exp(x)", 1000.0),
        ("x^0.5", -4.0),
        ("x^(0-1)", 0.0),
        ("sin(1/x)", 0.0),
    ])
    def test_nan(self, text, at):
        """Undefined points evaluate to NaN."""
        assert math.isnan(evaluate(parse(text), at))

    def test_unknown_function(self):
        """An unknown function name evaluates to NaN."""
        assert math.isnan(evaluate(Function("sinh", Variable("x")), 1.0))

    def test_negative_base_integer_power(self):
        """A negative base with an integral exponent is fine."""
        assert evaluate(parse("x^3"), -2.0) == -8.0
