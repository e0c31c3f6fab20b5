"""
Derivative Pipeline for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

compute_derivative() runs the whole chain:

    parse -> differentiate -> eliminate identities -> canonicalize and
    generate forms -> select best -> (again, for the second derivative) ->
    serialize

and returns either a Success or a Failure; it never raises for bad input.

Example:
    from symdiff import compute_derivative

    result = compute_derivative("x^x")
    if result.is_success:
        print(result.text)          # x^x×(ln(x)+1)
        print(result.second_text)
    else:
        print(result.message)
"""

import logging
from typing import Dict, Optional, Tuple, Union

from .canonical import Canonicalizer
from .engine import DerivationTrace, DerivativeEngine
from .errors import CalculationError, ParseError
from .evaluator import evaluate
from .forms import FormGenerator, SimplificationForms
from .graph import DEFAULT_RANGE, DEFAULT_STEP, GraphData, build_graph_data
from .nodes import NodeType, to_string
from .parser import parse
from .simplify import MAX_PASSES, eliminate_identities

logger = logging.getLogger(__name__)

DEFAULT_VARIABLE = "x"


class Success:
    """A computed derivative with all of its display forms."""

    is_success = True

    def __init__(self, expression: NodeType, variable: str, forms: SimplificationForms,
                 second_forms: Optional[SimplificationForms] = None,
                 trace: Optional[DerivationTrace] = None):
        self.expression = expression
        self.variable = variable
        self.forms = forms
        self.second_forms = second_forms
        self.trace = trace

    @property
    def derivative(self) -> NodeType:
        return self.forms.best().node

    @property
    def text(self) -> str:
        return self.forms.best().text

    @property
    def second_derivative(self) -> Optional[NodeType]:
        return self.second_forms.best().node if self.second_forms else None

    @property
    def second_text(self) -> Optional[str]:
        return self.second_forms.best().text if self.second_forms else None

    def to_dict(self) -> Dict:
        return {
            "expression": to_string(self.expression),
            "variable": self.variable,
            "derivative": self.forms.to_dict(),
            "second_derivative": self.second_forms.to_dict() if self.second_forms else None,
        }

    def __repr__(self) -> str:
        return f"Success(d/d{self.variable} {to_string(self.expression)} = {self.text})"


class Failure:
    """Why a derivative could not be computed."""

    is_success = False

    def __init__(self, message: str, kind: str):
        self.message = message
        self.kind = kind

    def to_dict(self) -> Dict:
        return {"error": self.message, "kind": self.kind}

    def __repr__(self) -> str:
        return f"Failure({self.kind}: {self.message})"


CalculationResult = Union[Success, Failure]


class CalculusEngine:
    """
    Runs the parse/differentiate/simplify pipeline.

    Holds only configuration, so one instance can be shared.
    """

    def __init__(self, engine: Optional[DerivativeEngine] = None,
                 canonicalizer: Optional[Canonicalizer] = None,
                 max_passes: int = MAX_PASSES, second_derivative: bool = True):
        self.engine = engine or DerivativeEngine()
        self.generator = FormGenerator(canonicalizer, max_passes)
        self.max_passes = max_passes
        self.second_derivative = second_derivative

    def _derive(self, node: NodeType, variable: str,
                trace: bool = False) -> Tuple[SimplificationForms, Optional[DerivationTrace]]:
        recorder = None
        if trace:
            raw, recorder = self.engine.differentiate(node, variable, trace=True)
        else:
            raw = self.engine.differentiate(node, variable)
        cleaned = eliminate_identities(raw, self.max_passes)
        return self.generator.generate(cleaned), recorder

    def compute_derivative(self, text: str, variable: str = DEFAULT_VARIABLE,
                           trace: bool = False) -> CalculationResult:
        """
        Differentiate expression text.

        Args:
            text: Infix expression, e.g. "3x^2 + sin(x)"
            variable: Variable to differentiate by
            trace: Record which rules produced the first derivative

        Returns:
            Success with the first (and optionally second) derivative forms,
            or Failure with a user-facing message.
        """
        try:
            expression = parse(text)
            forms, recorder = self._derive(expression, variable, trace)
            second_forms = None
            if self.second_derivative:
                second_forms, _ = self._derive(forms.best().node, variable)
            result = Success(expression, variable, forms, second_forms, recorder)
            logger.debug("%r", result)
        except ParseError as e:
            logger.info("rejected input %r: %s", text, e)
            return Failure(f"Invalid expression: {e}", "parse")
        except CalculationError as e:
            logger.error("no derivative rule for %r", text, exc_info=True)
            return Failure(f"Unsupported expression: {e}", "calculation")
        except RecursionError:
            logger.error("expression too deeply nested: %.40r", text)
            return Failure("Expression too deeply nested", "calculation")
        return result

    def evaluate(self, text: str, x: float, variable: str = DEFAULT_VARIABLE) -> float:
        """
        Parse and evaluate expression text at a point.

        Raises:
            ParseError: if the text does not parse.
        """
        return evaluate(parse(text), x, variable)

    def graph(self, text: str, x_min: float = DEFAULT_RANGE[0],
              x_max: float = DEFAULT_RANGE[1], step: float = DEFAULT_STEP,
              variable: str = DEFAULT_VARIABLE) -> Union[GraphData, Failure]:
        """Sample f, f' and f'' for plotting; a Failure if differentiation fails."""
        result = self.compute_derivative(text, variable)
        if not result.is_success:
            return result
        return build_graph_data(result.expression, result.derivative, result.second_derivative,
                                x_min, x_max, step, variable)


_default_engine: Optional[CalculusEngine] = None


def default_engine() -> CalculusEngine:
    """The shared CalculusEngine behind compute_derivative()."""
    global _default_engine
    if _default_engine is None:
        _default_engine = CalculusEngine()
    return _default_engine


def compute_derivative(text: str, variable: str = DEFAULT_VARIABLE) -> CalculationResult:
    """Differentiate expression text with the shared default engine."""
    return default_engine().compute_derivative(text, variable)
