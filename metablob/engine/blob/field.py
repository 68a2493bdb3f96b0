"""Low-resolution blob outline from a summed metaball falloff field.

Each shape contributes the Wyvill falloff 2(d/R)^3 - 3(d/R)^2 + 1 with
R = 2 * radius (zero beyond R). The field is sampled on a coarse grid over
the padded shape bounding box and iso-contoured with marching squares.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.ops import unary_union
from skimage.measure import find_contours

from metablob.engine.blob.compositor import extract_polys
from metablob.engine.context import Polygon, ShapeState

logger = logging.getLogger(__name__)


def falloff(d: NDArray[np.float64], radius: float) -> NDArray[np.float64]:
    big_r = radius * 2.0
    ratio = d / big_r
    value = 2.0 * ratio**3 - 3.0 * ratio**2 + 1.0
    return np.where(d >= big_r, 0.0, value)


def field_bounds(
    shapes: tuple[ShapeState, ...] | list[ShapeState],
    padding_factor: float = 1.3,
) -> tuple[float, float, float, float]:
    """(xmin, ymin, xmax, ymax) of all shapes padded by the largest radius."""
    padding = max(s.radius for s in shapes) * padding_factor
    return (
        min(s.x for s in shapes) - padding,
        min(s.y for s in shapes) - padding,
        max(s.x for s in shapes) + padding,
        max(s.y for s in shapes) + padding,
    )


def sample_field(
    shapes: tuple[ShapeState, ...] | list[ShapeState],
    bounds: tuple[float, float, float, float],
    sample_rate: float,
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    """Field values at grid cell centers. Returns (field, xs, ys)."""
    xmin, ymin, xmax, ymax = bounds
    cols = max(1, int(round((xmax - xmin) / sample_rate)))
    rows = max(1, int(round((ymax - ymin) / sample_rate)))
    xs = xmin + (np.arange(cols) + 0.5) * sample_rate
    ys = ymin + (np.arange(rows) + 0.5) * sample_rate
    gx, gy = np.meshgrid(xs, ys)

    values = np.zeros_like(gx)
    for s in shapes:
        values += falloff(np.hypot(gx - s.x, gy - s.y), s.radius)
    return values, xs, ys


def field_contours(
    shapes: tuple[ShapeState, ...] | list[ShapeState],
    threshold: float,
    sample_rate: float = 10.0,
    padding_factor: float = 1.3,
) -> list[Polygon]:
    """Outer iso-contours of the summed field at ``threshold``. Holes are dropped."""
    if not shapes:
        return []
    bounds = field_bounds(shapes, padding_factor)
    values, _, _ = sample_field(shapes, bounds, sample_rate)
    level = max(threshold, 1e-3)

    # Zero border so every contour closes inside the grid
    padded = np.pad(values, 1, mode="constant", constant_values=0.0)
    raw = find_contours(padded, level=level)

    xmin, ymin = bounds[0], bounds[1]
    rings = []
    for c in raw:
        if len(c) < 4:
            continue
        # (row, col) in padded grid -> canvas (x, y)
        x = xmin + (c[:, 1] - 1 + 0.5) * sample_rate
        y = ymin + (c[:, 0] - 1 + 0.5) * sample_rate
        ring = ShapelyPolygon(np.column_stack([x, y]))
        if not ring.is_valid:
            ring = ring.buffer(0)
        rings.extend(p for p in extract_polys(ring) if p.area > 0)

    if not rings:
        return []
    merged = unary_union(rings)
    polygons = [np.asarray(p.exterior.coords)[:-1] for p in extract_polys(merged)]
    logger.debug("Field contour at %.3f: %d raw -> %d polygons", level, len(raw), len(polygons))
    return polygons
