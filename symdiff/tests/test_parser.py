"""Tests for the tokenizer and parser."""

import math

import pytest
from symdiff import ParseError, parse, tokenize, to_string
from symdiff.nodes import (
    Number, Variable, Function, add, subtract, multiply, divide, power,
)
from symdiff.parser import (
    Parser, NumberToken, VariableToken, OperatorToken, FunctionToken,
    LeftParen, RightParen, TIMES,
)

x = Variable("x")
y = Variable("y")


class TestTokenizer:
    """Tests for tokenize()."""

    def test_number_then_variable(self):
        """A number directly before a letter gets an implicit ×."""
        assert tokenize("3x") == [NumberToken(3.0), TIMES, VariableToken("x")]

    def test_number_then_paren(self):
        """A number directly before '(' gets an implicit ×."""
        tokens = tokenize("2(x+1)")
        assert tokens[:3] == [NumberToken(2.0), TIMES, LeftParen()]

    def test_paren_then_paren(self):
        """')' directly before '(' gets an implicit ×."""
        tokens = tokenize("(a)(b)")
        assert tokens == [LeftParen(), VariableToken("a"), RightParen(), TIMES,
                          LeftParen(), VariableToken("b"), RightParen()]

    def test_paren_then_number(self):
        """')' directly before a digit gets an implicit ×."""
        tokens = tokenize("(x)2")
        assert tokens[-2:] == [TIMES, NumberToken(2.0)]

    def test_whitespace_blocks_implicit_multiplication(self):
        """Only adjacent tokens are multiplied implicitly."""
        assert tokenize("3 x") == [NumberToken(3.0), VariableToken("x")]

    def test_function_name(self):
        """A reserved name followed by '(' is a function."""
        assert tokenize("sin(x)") == [FunctionToken("sin"), LeftParen(),
                                      VariableToken("x"), RightParen()]

    def test_reserved_name_without_paren_is_variable(self):
        """A reserved name not followed by '(' is just a name."""
        assert tokenize("sin") == [VariableToken("sin")]

    def test_pi_constant(self):
        """π becomes a number."""
        assert tokenize("π") == [NumberToken(math.pi)]

    def test_e_constant(self):
        """A bare e becomes Euler's number."""
        assert tokenize("e") == [NumberToken(math.e)]

    def test_e_inside_name_is_not_constant(self):
        """e only counts as a constant on its own."""
        assert tokenize("ex") == [VariableToken("ex")]

    def test_operator_aliases(self):
        """'*' and '÷' are spellings of '×' and '/'."""
        assert tokenize("a*b")[1] == OperatorToken("×")
        assert tokenize("a÷b")[1] == OperatorToken("/")

    def test_decimal_number(self):
        """Decimal literals are read as floats."""
        assert tokenize("2.5") == [NumberToken(2.5)]

    def test_malformed_number(self):
        """A number with two points is rejected."""
        with pytest.raises(ParseError) as exc:
            tokenize("1.2.3")
        assert "malformed number" in str(exc.value)

    def test_unknown_character(self):
        """Unrecognized characters are rejected with their position."""
        with pytest.raises(ParseError) as exc:
            tokenize("x $ 1")
        assert exc.value.position == 2
        assert "'$'" in str(exc.value)


class TestParserStructure:
    """Tests for the trees parse() builds."""

    def test_precedence(self):
        """× binds tighter than +."""
        assert parse("1+2*x") == add(Number(1), multiply(Number(2), x))

    def test_left_associative_subtraction(self):
        """x-y-1 is (x-y)-1."""
        assert parse("x-y-1") == subtract(subtract(x, y), Number(1))

    def test_left_associative_division(self):
        """x/y/2 is (x/y)/2."""
        assert parse("x/y/2") == divide(divide(x, y), Number(2))

    def test_left_associative_power(self):
        """2^3^2 is (2^3)^2."""
        assert parse("2^3^2") == power(power(Number(2), Number(3)), Number(2))

    def test_parentheses(self):
        """Parentheses override precedence."""
        assert parse("(x+1)*y") == multiply(add(x, Number(1)), y)

    def test_implicit_multiplication(self):
        """3x^2 parses as 3×(x^2)."""
        assert parse("3x^2") == multiply(Number(3), power(x, Number(2)))

    def test_function_call(self):
        """Function arguments are full expressions."""
        assert parse("sin(x+1)") == Function("sin", add(x, Number(1)))

    def test_nested_functions(self):
        """Functions nest."""
        assert parse("ln(cos(x))") == Function("ln", Function("cos", x))

    def test_leading_minus_on_number(self):
        """-3 folds to a negative literal."""
        assert parse("-3") == Number(-3)

    def test_leading_minus_on_term(self):
        """-x becomes (-1)×x."""
        assert parse("-x") == multiply(Number(-1), x)

    def test_leading_minus_covers_first_term_only(self):
        """-x+y negates only x."""
        assert parse("-x+y") == add(multiply(Number(-1), x), y)

    def test_leading_minus_inside_parentheses(self):
        """A parenthesized group may start with a minus."""
        assert parse("x*(-y)") == multiply(x, multiply(Number(-1), y))

    def test_whitespace_ignored(self):
        """Whitespace does not change the tree."""
        assert parse(" x  + 1 ") == parse("x+1")


class TestParserErrors:
    """Tests for rejected input."""

    def test_empty(self):
        """Empty input is rejected."""
        with pytest.raises(ParseError) as exc:
            parse("")
        assert "cannot be empty" in str(exc.value)

    def test_whitespace_only(self):
        """Whitespace-only input is rejected as empty."""
        with pytest.raises(ParseError):
            parse("   ")

    def test_trailing_operator(self):
        """An operator with no right operand is rejected."""
        with pytest.raises(ParseError) as exc:
            parse("x+")
        assert "unexpected end of expression" in str(exc.value)

    def test_missing_close_paren(self):
        """An unbalanced '(' is rejected."""
        with pytest.raises(ParseError) as exc:
            parse("(x+1")
        assert "missing closing parenthesis" in str(exc.value)

    def test_extra_close_paren(self):
        """A stray ')' is rejected."""
        with pytest.raises(ParseError) as exc:
            parse("x)")
        assert "after complete expression" in str(exc.value)

    def test_minus_after_operator(self):
        """A minus is not accepted in the middle of a term."""
        with pytest.raises(ParseError):
            parse("x*-1")

    def test_space_separated_operands(self):
        """Operands separated by whitespace are not multiplied."""
        with pytest.raises(ParseError):
            parse("2 x")

    def test_function_without_paren(self):
        """A function token must be followed by '('."""
        with pytest.raises(ParseError) as exc:
            Parser([FunctionToken("sin"), VariableToken("x")]).parse()
        assert "must be followed by '('" in str(exc.value)

    def test_function_name_with_space(self):
        """A space between a function name and its argument is rejected."""
        with pytest.raises(ParseError):
            parse("sin 1")

    def test_parse_error_is_symdiff_error(self):
        """ParseError is catchable as the package base error."""
        from symdiff import SymdiffError
        with pytest.raises(SymdiffError):
            parse("(")


class TestRoundTrip:
    """Serialized trees parse back to themselves."""

    @pytest.mark.parametrize("text", [
        "x^2+3×x-1",
        "x-(y-1)",
        "x/(y/2)",
        "x^(y^2)",
        "(x+1)^2",
        "sin(x)×cos(x)",
        "-x+y",
        "2×x/(x+1)",
        "ln(x)/log(x)",
    ])
    def test_round_trip(self, text):
        """to_string output reparses to the same tree."""
        node = parse(text)
        assert parse(to_string(node)) == node

    def test_to_string_is_stable(self):
        """Serializing twice gives the same text."""
        node = parse("3x^2 - 2(x+1)")
        text = to_string(node)
        assert to_string(parse(text)) == text
