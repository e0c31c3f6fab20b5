"""
Tokenizer and Parser for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

Turns infix text into an expression tree.

Tokenizer:
    - digits and '.' form numbers; letter runs form names
    - a reserved name directly followed by '(' is a function
    - 'π' and a bare 'e' are numeric constants
    - '*' and '÷' are accepted as spellings of '×' and '/'
    - implicit multiplication is inserted lexically:
          3x      -> 3 × x
          2(x+1)  -> 2 × (x+1)
          x(y)    -> x × (y)
          (a)(b)  -> (a) × (b)

Grammar (all binary operators left-associative, '^' included):
    expression := ['-'] term (('+'|'-') term)*
    term       := power (('×'|'/') power)*
    power      := base ('^' base)*
    base       := Number | Variable | Function '(' expression ')' | '(' expression ')'

A leading '-' is only accepted at the start of an expression, which is
where the serializer emits one.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Union

from .errors import ParseError
from .nodes import (
    NodeType, Number, Variable, BinaryOp, Function, Operator, negate,
)

logger = logging.getLogger(__name__)

FUNCTION_NAMES = frozenset({
    "sin", "cos", "tan", "cot", "sec", "csc",
    "arcsin", "arccos", "arctan", "arccot", "arcsec", "arccsc",
    "ln", "log", "sqrt", "exp", "abs",
})

OPERATOR_ALIASES = {
    "+": "+",
    "-": "-",
    "×": "×",
    "*": "×",
    "/": "/",
    "÷": "/",
    "^": "^",
}

PI_SYMBOL = "π"


# ============================================================
# Tokens
# ============================================================

@dataclass(frozen=True)
class NumberToken:
    value: float


@dataclass(frozen=True)
class VariableToken:
    name: str


@dataclass(frozen=True)
class OperatorToken:
    symbol: str


@dataclass(frozen=True)
class FunctionToken:
    name: str


@dataclass(frozen=True)
class LeftParen:
    pass


@dataclass(frozen=True)
class RightParen:
    pass


Token = Union[NumberToken, VariableToken, OperatorToken, FunctionToken, LeftParen, RightParen]

TIMES = OperatorToken("×")


def _starts_atom(ch: str) -> bool:
    """True if ch begins a name, a constant or a parenthesized group."""
    return ch.isalpha() or ch == "("


def tokenize(text: str) -> List[Token]:
    """
    Split expression text into tokens.

    Raises:
        ParseError: on an unrecognized character or a malformed number.
    """
    tokens: List[Token] = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if ch.isspace():
            i += 1
            continue

        if ch.isdigit() or ch == ".":
            start = i
            while i < n and (text[i].isdigit() or text[i] == "."):
                i += 1
            literal = text[start:i]
            try:
                value = float(literal)
            except ValueError:
                raise ParseError(f"malformed number '{literal}'", start) from None
            tokens.append(NumberToken(value))
            if i < n and _starts_atom(text[i]):
                tokens.append(TIMES)
            continue

        if ch == PI_SYMBOL:
            tokens.append(NumberToken(math.pi))
            i += 1
            if i < n and _starts_atom(text[i]):
                tokens.append(TIMES)
            continue

        if ch.isalpha():
            start = i
            while i < n and text[i].isalpha() and text[i] != PI_SYMBOL:
                i += 1
            name = text[start:i]
            followed_by_paren = i < n and text[i] == "("

            if followed_by_paren and name in FUNCTION_NAMES:
                tokens.append(FunctionToken(name))
                continue

            if name == "e":
                tokens.append(NumberToken(math.e))
            else:
                tokens.append(VariableToken(name))
            if i < n and _starts_atom(text[i]):
                tokens.append(TIMES)
            continue

        if ch in OPERATOR_ALIASES:
            tokens.append(OperatorToken(OPERATOR_ALIASES[ch]))
            i += 1
            continue

        if ch == "(":
            tokens.append(LeftParen())
            i += 1
            continue

        if ch == ")":
            tokens.append(RightParen())
            i += 1
            if i < n and (text[i].isdigit() or _starts_atom(text[i])):
                tokens.append(TIMES)
            continue

        raise ParseError(f"unrecognized character '{ch}'", i)

    return tokens


# ============================================================
# Parser
# ============================================================

class Parser:
    """
    Recursive-descent parser over a token list.

    The cursor lives on the instance, so build one Parser per input.
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.position = 0

    def parse(self) -> NodeType:
        if not self.tokens:
            raise ParseError("expression cannot be empty")
        node = self._expression()
        if self.position < len(self.tokens):
            raise ParseError(
                f"unexpected {self._describe(self._peek())} after complete expression",
                self.position)
        return node

    def _peek(self) -> Optional[Token]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def _advance(self) -> Token:
        token = self.tokens[self.position]
        self.position += 1
        return token

    def _at_operator(self, *symbols: str) -> bool:
        token = self._peek()
        return isinstance(token, OperatorToken) and token.symbol in symbols

    def _expression(self) -> NodeType:
        if self._at_operator("-"):
            self._advance()
            node = negate(self._term())
        else:
            node = self._term()

        while self._at_operator("+", "-"):
            op = Operator.from_symbol(self._advance().symbol)
            node = BinaryOp(op, node, self._term())
        return node

    def _term(self) -> NodeType:
        node = self._power()
        while self._at_operator("×", "/"):
            op = Operator.from_symbol(self._advance().symbol)
            node = BinaryOp(op, node, self._power())
        return node

    def _power(self) -> NodeType:
        node = self._base()
        while self._at_operator("^"):
            self._advance()
            node = BinaryOp(Operator.POWER, node, self._base())
        return node

    def _base(self) -> NodeType:
        token = self._peek()
        if token is None:
            raise ParseError("unexpected end of expression", self.position)

        if isinstance(token, NumberToken):
            self._advance()
            return Number(token.value)

        if isinstance(token, VariableToken):
            self._advance()
            return Variable(token.name)

        if isinstance(token, FunctionToken):
            self._advance()
            if not isinstance(self._peek(), LeftParen):
                raise ParseError(f"function '{token.name}' must be followed by '('", self.position)
            self._advance()
            argument = self._expression()
            self._expect_close()
            return Function(token.name, argument)

        if isinstance(token, LeftParen):
            self._advance()
            node = self._expression()
            self._expect_close()
            return node

        raise ParseError(f"unexpected {self._describe(token)}", self.position)

    def _expect_close(self) -> None:
        if not isinstance(self._peek(), RightParen):
            raise ParseError("missing closing parenthesis", self.position)
        self._advance()

    @staticmethod
    def _describe(token: Token) -> str:
        if isinstance(token, OperatorToken):
            return f"operator '{token.symbol}'"
        if isinstance(token, RightParen):
            return "')'"
        if isinstance(token, LeftParen):
            return "'('"
        if isinstance(token, NumberToken):
            return f"number {token.value}"
        if isinstance(token, VariableToken):
            return f"variable '{token.name}'"
        return f"function '{token.name}'"


def parse(text: str) -> NodeType:
    """
    Parse expression text into a tree.

    Example:
        parse("3x^2 + sin(x)")

    Raises:
        ParseError: on empty or malformed input.
    """
    tokens = tokenize(text)
    node = Parser(tokens).parse()
    logger.debug("parsed %r into %s", text, node)
    return node
