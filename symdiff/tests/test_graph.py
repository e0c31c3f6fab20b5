"""Tests for curve sampling and special points."""

import math

import numpy as np
import pytest
from symdiff import parse
from symdiff.graph import (
    GraphData, SpecialPoint, build_graph_data, find_critical_points,
    find_inflection_points, sample_curve, sample_grid,
)


class TestSampleGrid:
    """Tests for grid construction."""

    def test_inclusive_range(self):
        """Both end points are sampled."""
        grid = sample_grid(-1.0, 1.0, 0.5)
        assert list(grid) == [-1.0, -0.5, 0.0, 0.5, 1.0]

    @pytest.mark.parametrize("x_min, x_max, step", [
        (1.0, 0.0, 0.1),
        (0.0, 0.0, 0.1),
        (0.0, 1.0, 0.0),
        (0.0, 1.0, -0.1),
    ])
    def test_bad_range(self, x_min, x_max, step):
        """An empty range or non-positive step is rejected."""
        with pytest.raises(ValueError):
            sample_grid(x_min, x_max, step)


class TestSampleCurve:
    """Tests for sample_curve()."""

    def test_values(self):
        """Samples are the evaluated function."""
        xs, ys = sample_curve(parse("x^2"), -1.0, 1.0, 0.5)
        assert list(ys) == [1.0, 0.25, 0.0, 0.25, 1.0]

    def test_pole_breaks_curve(self):
        """Undefined points are NaN."""
        xs, ys = sample_curve(parse("1/x"), -1.0, 1.0, 0.5)
        assert math.isnan(ys[2])
        assert ys[0] == -1.0 and ys[4] == 1.0

    def test_off_scale_breaks_curve(self):
        """Values beyond the y limit are NaN."""
        xs, ys = sample_curve(parse("x^3"), 0.0, 10.0, 1.0, y_limit=100.0)
        assert ys[4] == 64.0
        assert np.isnan(ys[5:]).all()

    def test_shares_grid(self):
        """Samples line up with sample_grid()."""
        xs, ys = sample_curve(parse("sin(x)/x"), -3.0, 3.0, 0.25)
        assert np.array_equal(xs, sample_grid(-3.0, 3.0, 0.25))
        assert len(ys) == len(xs) == 25
        assert math.isnan(ys[12])

    def test_other_variable(self):
        """The sampled variable can be renamed."""
        xs, ys = sample_curve(parse("2t"), 0.0, 1.0, 0.5, variable="t")
        assert list(ys) == [0.0, 1.0, 2.0]


class TestSpecialPoints:
    """Tests for extrema and inflection points."""

    def test_parabola_minimum(self):
        """x^2 has one minimum at 0."""
        points = find_critical_points(parse("x^2"), parse("2x"), -2.0, 2.0, 0.1)
        assert [p.kind for p in points] == ["min"]
        assert abs(points[0].x) < 0.1
        assert abs(points[0].y) < 0.01

    def test_sine_extrema(self):
        """sin has a maximum near π/2 and a minimum near 3π/2."""
        points = find_critical_points(parse("sin(x)"), parse("cos(x)"), 0.0, 6.0, 0.1)
        assert [p.kind for p in points] == ["max", "min"]
        assert points[0].x == pytest.approx(math.pi / 2, abs=0.01)
        assert points[1].x == pytest.approx(3 * math.pi / 2, abs=0.01)
        assert points[0].y == pytest.approx(1.0, abs=1e-3)

    def test_cubic_inflection(self):
        """x^3 bends at 0, even when 0 is a grid point."""
        points = find_inflection_points(parse("x^3"), parse("6x"), -1.0, 1.0, 0.1)
        assert [p.kind for p in points] == ["inflection"]
        assert abs(points[0].x) < 1e-9

    def test_points_off_the_curve_dropped(self):
        """Sign changes across a pole are not extrema of a defined curve."""
        points = find_critical_points(parse("1/x"), parse("0-1/x^2"), -1.0, 1.0, 0.1)
        assert points == []

    def test_to_dict(self):
        """SpecialPoint serializes to a plain dict."""
        point = SpecialPoint(1.0, 2.0, "max")
        assert point.to_dict() == {"x": 1.0, "y": 2.0, "kind": "max"}


class TestGraphData:
    """Tests for build_graph_data()."""

    def test_build(self):
        """All curves share one grid."""
        data = build_graph_data(parse("x^3-3x"), parse("3x^2-3"), parse("6x"),
                                -2.0, 2.0, 0.05)
        assert isinstance(data, GraphData)
        assert len(data.xs) == len(data.ys) == len(data.dys) == len(data.d2ys)
        assert [p.kind for p in data.critical_points] == ["max", "min"]
        assert [p.kind for p in data.inflection_points] == ["inflection"]

    def test_without_second_derivative(self):
        """The second curve is optional."""
        data = build_graph_data(parse("x^2"), parse("2x"), None, -1.0, 1.0, 0.5)
        assert data.d2ys is None
        assert data.inflection_points == []
