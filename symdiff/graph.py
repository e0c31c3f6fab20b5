"""
Curve Sampling for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

Numeric helpers for anything that wants to draw an expression: sampled
curves with NaN marking breaks, and the points where a derivative
changes sign.

    xs, ys = sample_curve(parse("1/x"))          # NaN near x = 0
    find_critical_points(f, df)                  # [SpecialPoint(x=0, y=0, kind='min')]
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from .evaluator import evaluate
from .nodes import NodeType, to_string

logger = logging.getLogger(__name__)

DEFAULT_RANGE = (-10.0, 10.0)
DEFAULT_STEP = 0.1
# |y| at or beyond this breaks the curve
Y_LIMIT = 100.0
# |f'| below this counts as a stationary grid point
FLAT_TOLERANCE = 1e-3


class SpecialPoint:
    """A point of interest on a curve: 'max', 'min', 'flat' or 'inflection'."""

    def __init__(self, x: float, y: float, kind: str):
        self.x = x
        self.y = y
        self.kind = kind

    def to_dict(self) -> Dict:
        return {"x": self.x, "y": self.y, "kind": self.kind}

    def __repr__(self) -> str:
        return f"SpecialPoint(x={self.x:.6g}, y={self.y:.6g}, kind={self.kind!r})"


def sample_grid(x_min: float = DEFAULT_RANGE[0], x_max: float = DEFAULT_RANGE[1],
                step: float = DEFAULT_STEP) -> np.ndarray:
    """Evenly spaced x values from x_min to x_max inclusive."""
    if step <= 0 or x_max <= x_min:
        raise ValueError("need x_min < x_max and a positive step")
    count = int(round((x_max - x_min) / step)) + 1
    return np.linspace(x_min, x_max, count)


def _values(node: NodeType, xs: np.ndarray, variable: str) -> np.ndarray:
    return np.array([evaluate(node, float(x), variable) for x in xs], dtype=float)


def sample_curve(
    node: NodeType,
    x_min: float = DEFAULT_RANGE[0],
    x_max: float = DEFAULT_RANGE[1],
    step: float = DEFAULT_STEP,
    variable: str = "x",
    y_limit: float = Y_LIMIT,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sample a curve on a regular grid.

    Args:
        node: Expression tree
        x_min, x_max, step: Grid definition
        variable: Variable bound to the x values
        y_limit: Values with |y| >= y_limit are replaced by NaN

    Returns:
        (xs, ys) arrays; NaN in ys marks a break.
    """
    xs = sample_grid(x_min, x_max, step)
    ys = _values(node, xs, variable)
    with np.errstate(invalid="ignore"):
        ys[~np.isfinite(ys) | (np.abs(ys) >= y_limit)] = np.nan
    logger.debug("sampled %s at %d points", to_string(node), len(xs))
    return xs, ys


def _sign_changes(xs: np.ndarray, values: np.ndarray) -> List[Tuple[float, float]]:
    """(x, direction) for each interval where finite values cross zero.

    direction is +1 for a rise through zero and -1 for a fall. A run of
    exact zeros between opposite signs is reported at its first sample.
    """
    crossings = []
    previous = None
    for i in range(len(xs)):
        b = values[i]
        if not np.isfinite(b):
            previous = None
            continue
        if b == 0:
            continue
        if previous is not None and (values[previous] > 0) != (b > 0):
            a = values[previous]
            if i - previous > 1:
                x = xs[previous + 1]
            else:
                x = xs[previous] - a * (xs[i] - xs[previous]) / (b - a)
            crossings.append((float(x), 1.0 if b > a else -1.0))
        previous = i
    return crossings


def find_critical_points(
    function: NodeType,
    derivative: NodeType,
    x_min: float = DEFAULT_RANGE[0],
    x_max: float = DEFAULT_RANGE[1],
    step: float = DEFAULT_STEP,
    variable: str = "x",
    tolerance: float = FLAT_TOLERANCE,
) -> List[SpecialPoint]:
    """
    Locate extrema of ``function`` from the sign of its derivative.

    A grid point with |f'| < tolerance is classified by the sign of f' on
    either side; a sign change between grid points is located by linear
    interpolation. Points where f itself is undefined or off-scale are
    skipped.
    """
    xs = sample_grid(x_min, x_max, step)
    slopes = _values(derivative, xs, variable)
    points: List[SpecialPoint] = []
    flat_indices = set()

    for i in range(1, len(xs) - 1):
        if np.isfinite(slopes[i]) and abs(slopes[i]) < tolerance:
            before, after = slopes[i - 1], slopes[i + 1]
            if before > 0 and after < 0:
                kind = "max"
            elif before < 0 and after > 0:
                kind = "min"
            else:
                kind = "flat"
            flat_indices.update((i - 1, i, i + 1))
            points.append(SpecialPoint(float(xs[i]), 0.0, kind))

    for x, direction in _sign_changes(xs, slopes):
        i = int(np.searchsorted(xs, x))
        if i in flat_indices or i - 1 in flat_indices:
            continue
        points.append(SpecialPoint(x, 0.0, "min" if direction > 0 else "max"))

    return _on_curve(function, points, variable)


def find_inflection_points(
    function: NodeType,
    second_derivative: NodeType,
    x_min: float = DEFAULT_RANGE[0],
    x_max: float = DEFAULT_RANGE[1],
    step: float = DEFAULT_STEP,
    variable: str = "x",
) -> List[SpecialPoint]:
    """Points where the second derivative changes sign."""
    xs = sample_grid(x_min, x_max, step)
    curvature = _values(second_derivative, xs, variable)
    points = [SpecialPoint(x, 0.0, "inflection") for x, _ in _sign_changes(xs, curvature)]
    return _on_curve(function, points, variable)


def _on_curve(function: NodeType, points: List[SpecialPoint], variable: str) -> List[SpecialPoint]:
    """Attach f(x) to each point, dropping those where f breaks."""
    kept = []
    for point in sorted(points, key=lambda p: p.x):
        y = evaluate(function, point.x, variable)
        if np.isfinite(y) and abs(y) < Y_LIMIT:
            kept.append(SpecialPoint(point.x, y, point.kind))
    return kept


class GraphData:
    """Sampled function, derivative curves and special points."""

    def __init__(self, xs: np.ndarray, ys: np.ndarray, dys: np.ndarray,
                 d2ys: Optional[np.ndarray], critical_points: List[SpecialPoint],
                 inflection_points: List[SpecialPoint]):
        self.xs = xs
        self.ys = ys
        self.dys = dys
        self.d2ys = d2ys
        self.critical_points = critical_points
        self.inflection_points = inflection_points

    def __repr__(self) -> str:
        return (f"GraphData({len(self.xs)} samples, "
                f"{len(self.critical_points)} critical, "
                f"{len(self.inflection_points)} inflection)")


def build_graph_data(
    function: NodeType,
    derivative: NodeType,
    second_derivative: Optional[NodeType] = None,
    x_min: float = DEFAULT_RANGE[0],
    x_max: float = DEFAULT_RANGE[1],
    step: float = DEFAULT_STEP,
    variable: str = "x",
) -> GraphData:
    """Sample everything a plot of f, f' and f'' needs."""
    xs, ys = sample_curve(function, x_min, x_max, step, variable)
    _, dys = sample_curve(derivative, x_min, x_max, step, variable)
    d2ys = None
    inflections: List[SpecialPoint] = []
    if second_derivative is not None:
        _, d2ys = sample_curve(second_derivative, x_min, x_max, step, variable)
        inflections = find_inflection_points(function, second_derivative,
                                             x_min, x_max, step, variable)
    critical = find_critical_points(function, derivative, x_min, x_max, step, variable)
    return GraphData(xs, ys, dys, d2ys, critical, inflections)
