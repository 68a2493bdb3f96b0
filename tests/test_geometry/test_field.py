"""Tests for the low-resolution field contour."""

import math

import numpy as np
import pytest

from metablob.engine.blob.field import falloff, field_bounds, field_contours, sample_field
from metablob.utils.geometry import signed_area
from tests.conftest import centroid, shapes_from


def test_falloff_profile():
    d = np.array([0.0, 10.0, 20.0, 35.0])
    assert falloff(d, 10.0).tolist() == [1.0, 0.5, 0.0, 0.0]


def test_field_bounds_padding():
    shapes = shapes_from((0, 0, 10), (100, 50, 20))
    assert field_bounds(shapes, padding_factor=1.5) == (-30.0, -30.0, 130.0, 80.0)


def test_sample_field_peaks_at_center():
    shapes = shapes_from((0, 0, 10))
    values, xs, ys = sample_field(shapes, (-20.0, -20.0, 20.0, 20.0), 2.0)
    assert values.shape == (len(ys), len(xs)) == (20, 20)
    assert values.max() == pytest.approx(falloff(np.array([math.hypot(1, 1)]), 10.0)[0])
    assert values.min() >= 0.0


def test_single_shape_contour_at_half_is_circle():
    shapes = shapes_from((10, -5, 50))
    polygons = field_contours(shapes, threshold=0.5, sample_rate=5.0)
    assert len(polygons) == 1
    poly = polygons[0]
    # falloff is 0.5 at d = radius
    assert abs(signed_area(poly)) == pytest.approx(math.pi * 50**2, rel=0.05)
    cx, cy = centroid(poly)
    assert cx == pytest.approx(10, abs=2.0)
    assert cy == pytest.approx(-5, abs=2.0)


def test_far_shapes_give_separate_contours():
    shapes = shapes_from((0, 0, 20), (300, 0, 20))
    assert len(field_contours(shapes, threshold=0.5, sample_rate=5.0)) == 2


def test_close_shapes_merge_at_low_threshold():
    shapes = shapes_from((0, 0, 20), (70, 0, 20))
    assert len(field_contours(shapes, threshold=0.5, sample_rate=5.0)) == 2
    assert len(field_contours(shapes, threshold=0.05, sample_rate=5.0)) == 1


def test_no_shapes():
    assert field_contours((), threshold=0.5) == []
