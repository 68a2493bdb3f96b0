"""Tests for the boolean geometry backend and the polygon compositor."""

import numpy as np
import pytest

from metablob.engine.blob.compositor import (
    EndType,
    FillRule,
    JoinType,
    PolygonCompositor,
    ShapelyBooleanOps,
)
from metablob.utils.geometry import signed_area
from tests.conftest import bbox, circle_points, square


def _int(points: np.ndarray) -> np.ndarray:
    return np.rint(points).astype(np.int64)


@pytest.fixture
def ops() -> ShapelyBooleanOps:
    return ShapelyBooleanOps()


def test_union_overlapping(ops):
    out = ops.union([_int(square(0, 0, 10)), _int(square(5, 5, 10))])
    assert len(out) == 1
    assert out[0].dtype == np.int64
    assert ops.orientation(out[0])
    assert signed_area(out[0].astype(float)) == pytest.approx(175.0)


def test_union_disjoint(ops):
    out = ops.union([_int(square(0, 0, 10)), _int(square(50, 0, 10))])
    assert len(out) == 2


def test_union_even_odd_keeps_hole(ops):
    out = ops.union([_int(square(0, 0, 10)), _int(square(2, 2, 6))], FillRule.EVEN_ODD)
    assert [ops.orientation(p) for p in out] == [True, False]


def test_orientation(ops):
    ccw = _int(square(0, 0, 10))
    assert ops.orientation(ccw)
    assert not ops.orientation(ccw[::-1])


def test_offset_square(ops):
    out = ops.offset([_int(square(0, 0, 100))], -10, JoinType.SQUARE, EndType.CLOSED_POLYGON)
    assert len(out) == 1
    assert bbox(out[0].astype(float)) == (10.0, 10.0, 90.0, 90.0)


def test_offset_round_grows(ops):
    out = ops.offset([_int(square(0, 0, 100))], 10, JoinType.ROUND)
    assert bbox(out[0].astype(float)) == (-10.0, -10.0, 110.0, 110.0)
    assert signed_area(out[0].astype(float)) < 120 * 120


def test_offset_closed_line(ops):
    out = ops.offset([_int(square(0, 0, 100))], 5, JoinType.MITER, EndType.CLOSED_LINE)
    # A band around the outline: outer ring plus inner hole
    assert sorted(ops.orientation(p) for p in out) == [False, True]


def test_compositor_drops_holes():
    compositor = PolygonCompositor(ShapelyBooleanOps(), scaling_factor=1e5)
    frame = {
        0: [
            np.array([[0, 0], [30, 0], [30, 10], [0, 10]], dtype=float),
            np.array([[0, 20], [30, 20], [30, 30], [0, 30]], dtype=float),
            np.array([[0, 0], [10, 0], [10, 30], [0, 30]], dtype=float),
            np.array([[20, 0], [30, 0], [30, 30], [20, 30]], dtype=float),
        ]
    }
    out = compositor.union(frame)
    assert len(out) == 1
    assert bbox(compositor.unscale(out)[0]) == pytest.approx((0.0, 0.0, 30.0, 30.0))


def test_compositor_scaling_roundtrip():
    compositor = PolygonCompositor(ShapelyBooleanOps(), scaling_factor=1e5)
    circle = circle_points((3.25, -1.5), 7.0, n=64)
    out = compositor.unscale(compositor.union({0: [circle]}))
    assert len(out) == 1
    radii = np.hypot(out[0][:, 0] - 3.25, out[0][:, 1] + 1.5)
    assert np.allclose(radii, 7.0, atol=1e-4)


def test_compositor_offset():
    compositor = PolygonCompositor(ShapelyBooleanOps(), scaling_factor=1e5)
    unioned = compositor.union({0: [square(0, 0, 100)]})
    assert compositor.offset(unioned, 0) == unioned

    shrunk = compositor.unscale(compositor.offset(unioned, -10))
    assert bbox(shrunk[0]) == pytest.approx((10.0, 10.0, 90.0, 90.0))
    assert compositor.offset(unioned, -60) == []
    assert compositor.compose({}, -5) == []


def test_simplify_merges_self_overlap(ops):
    out = ops.simplify([_int(square(0, 0, 10)), _int(square(0, 0, 10))])
    assert len(out) == 1
    assert signed_area(out[0].astype(float)) == pytest.approx(100.0)
