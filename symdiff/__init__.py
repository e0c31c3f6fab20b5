"""
SYMDIFF - Symbolic Differentiation via Prioritized Rules

Parses infix expressions, differentiates them with a table of prioritized
derivative rules, and simplifies the result into a few display forms.

Quick Start:
    from symdiff import compute_derivative

    result = compute_derivative("x^3 + sin(x)")
    result.text              # 3×x^2+cos(x)
    result.second_text       # 6×x-sin(x)

    compute_derivative("2x +").message
    # Invalid expression: unexpected end of expression (at position 4)

Lower-level pieces:
    from symdiff import parse, DerivativeEngine, simplify, evaluate

    engine = DerivativeEngine()
    raw = engine.differentiate(parse("x*x"), "x")   # x+x×1
    simplify(raw)                                   # 2×x
    evaluate(parse("x^2"), 3.0)                     # 9.0

Expression Syntax:
    3x^2 + 2x - 1        implicit multiplication after numbers and ')'
    sin(x) arcsin(x)     trig and inverse trig
    exp(x) ln(x) log(x)  log is base 10
    sqrt(x) abs(x)
    π, e                 constants

Rule Groups:
    basic, power, arithmetic, trig, inverse-trig, exp-log
"""

__version__ = "0.1.0"

# Errors
from .errors import (
    SymdiffError,
    ParseError,
    CalculationError,
)

# Expression trees
from .nodes import (
    NodeType,
    Number,
    Variable,
    BinaryOp,
    Function,
    Operator,
    EPSILON,
    add,
    subtract,
    multiply,
    divide,
    power,
    negate,
    contains_variable,
    to_string,
    canonical_string,
    count_nodes,
)

# Parsing
from .parser import (
    tokenize,
    parse,
    FUNCTION_NAMES,
)

# Rules and engine
from .rules import (
    DerivativeRule,
    function_rule,
    default_rules,
)
from .engine import (
    DerivativeEngine,
    DerivationStep,
    DerivationTrace,
)

# Simplification
from .canonical import (
    Canonicalizer,
    MathTerm,
    canonical_key,
)
from .simplify import (
    eliminate_identities,
    simplify,
    MAX_PASSES,
)
from .trig import rewrite_trig
from .forms import (
    FormType,
    SimplifiedForm,
    SimplificationForms,
    FormGenerator,
    select_best,
)

# Numerics
from .evaluator import evaluate, evaluate_batch
from .graph import (
    SpecialPoint,
    GraphData,
    sample_curve,
    find_critical_points,
    find_inflection_points,
    build_graph_data,
)

# Pipeline
from .calculus import (
    CalculusEngine,
    CalculationResult,
    Success,
    Failure,
    compute_derivative,
)

__all__ = [
    # Errors
    "SymdiffError",
    "ParseError",
    "CalculationError",
    # Trees
    "NodeType",
    "Number",
    "Variable",
    "BinaryOp",
    "Function",
    "Operator",
    "EPSILON",
    "add",
    "subtract",
    "multiply",
    "divide",
    "power",
    "negate",
    "contains_variable",
    "to_string",
    "canonical_string",
    "count_nodes",
    # Parsing
    "tokenize",
    "parse",
    "FUNCTION_NAMES",
    # Rules and engine
    "DerivativeRule",
    "function_rule",
    "default_rules",
    "DerivativeEngine",
    "DerivationStep",
    "DerivationTrace",
    # Simplification
    "Canonicalizer",
    "MathTerm",
    "canonical_key",
    "eliminate_identities",
    "simplify",
    "MAX_PASSES",
    "rewrite_trig",
    "FormType",
    "SimplifiedForm",
    "SimplificationForms",
    "FormGenerator",
    "select_best",
    # Numerics
    "evaluate",
    "evaluate_batch",
    "SpecialPoint",
    "GraphData",
    "sample_curve",
    "find_critical_points",
    "find_inflection_points",
    "build_graph_data",
    # Pipeline
    "CalculusEngine",
    "CalculationResult",
    "Success",
    "Failure",
    "compute_derivative",
]
