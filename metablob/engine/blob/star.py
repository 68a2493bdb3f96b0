"""Star-shape deformation: periodic spikes ("wings") along a closed contour.

The contour is resampled with a periodic spline, rotated to start at its
rightmost point and parametrised by arc length s in [0, 1). Each of the
``wings`` equal arc steps gets four control displacements along the outward
normal:

    s = 0          valley     -L * (1 - o)
    s = mid - δ    shoulder   +v * L * o
    s = mid        tip        +L * o
    s = mid + δ    shoulder   +v * L * o

with o = min(outer_offset_ratio, 1). Higher roundness narrows δ, lifts the
shoulders and blends the displacement profile from piecewise linear (sharp
spikes) toward a periodic cubic (round wings).
"""

from __future__ import annotations

import logging
import math

import numpy as np
import shapely
from numpy.typing import NDArray
from scipy.interpolate import CubicSpline
from shapely.geometry import LinearRing
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.validation import make_valid

from metablob.engine.blob.compositor import extract_polys
from metablob.engine.config import EngineConfig
from metablob.engine.context import Polygon
from metablob.utils.contour import resample_closed, spline_resample_closed
from metablob.utils.geometry import (
    EPSILON,
    clamp,
    closed_arc_lengths,
    drop_repeated_points,
    lerp,
    lerp_points,
    signed_area,
)

logger = logging.getLogger(__name__)


def start_at_rightmost(points: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.roll(points, -int(np.argmax(points[:, 0])), axis=0)


def wing_controls(
    wings: int,
    wing_length: float,
    outer_ratio: float,
    roundness: float,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Arc positions in [0, 1) and normal displacements of all wing control points."""
    step = 1.0 / wings
    mid = step / 2
    spread = mid * lerp(0.8, 0.2, roundness)
    vertical = lerp(0.2, 0.9, roundness)

    valley = -wing_length * (1 - outer_ratio)
    shoulder = vertical * wing_length * outer_ratio
    tip = wing_length * outer_ratio

    positions = []
    displacements = []
    for k in range(wings):
        base = k * step
        positions.extend([base, base + mid - spread, base + mid, base + mid + spread])
        displacements.extend([valley, shoulder, tip, shoulder])
    return np.array(positions), np.array(displacements)


def displacement_profile(
    s: NDArray[np.float64],
    control_s: NDArray[np.float64],
    control_d: NDArray[np.float64],
    roundness: float,
) -> NDArray[np.float64]:
    """Periodic displacement at arc positions s, blending linear and cubic interpolation."""
    linear = np.interp(s, control_s, control_d, period=1.0)
    if roundness <= 0:
        return linear
    spline = CubicSpline(
        np.append(control_s, 1.0),
        np.append(control_d, control_d[0]),
        bc_type="periodic",
    )
    cubic = spline(np.mod(s, 1.0))
    return linear + (cubic - linear) * roundness


class ArcCurve:
    """Closed polyline evaluated by normalised arc length."""

    def __init__(self, points: NDArray[np.float64]) -> None:
        self.ring = np.vstack([points, points[:1]])
        cumlen = closed_arc_lengths(points)
        self.perimeter = float(cumlen[-1])
        self.params = cumlen / max(self.perimeter, EPSILON)
        self.orientation = 1.0 if signed_area(points) >= 0 else -1.0

    def at(self, s: NDArray[np.float64]) -> NDArray[np.float64]:
        s = np.mod(s, 1.0)
        return np.column_stack([
            np.interp(s, self.params, self.ring[:, 0]),
            np.interp(s, self.params, self.ring[:, 1]),
        ])

    def outward_normals(self, s: NDArray[np.float64], h: float) -> NDArray[np.float64]:
        tangents = self.at(s + h) - self.at(s - h)
        norms = np.linalg.norm(tangents, axis=1)
        # Short arcs can give a zero tangent; keep the division finite
        tangents = tangents / np.maximum(norms, EPSILON)[:, None]
        return self.orientation * np.column_stack([tangents[:, 1], -tangents[:, 0]])


def inward_thickness(
    points: NDArray[np.float64],
    normals: NDArray[np.float64],
    ring: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Distance from each point to the far side of ``ring`` along its inward normal."""
    xmin, ymin = ring.min(axis=0)
    xmax, ymax = ring.max(axis=0)
    reach = max(math.hypot(xmax - xmin, ymax - ymin), EPSILON)
    starts = points - normals * (reach * 1e-6)
    ends = points - normals * reach
    rays = shapely.linestrings(np.stack([starts, ends], axis=1))
    hits = shapely.intersection(rays, LinearRing(ring))
    distances = shapely.distance(shapely.points(starts), hits)
    return np.where(shapely.is_empty(hits) | np.isnan(distances), reach, distances)


def largest_simple_ring(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Exterior of the largest valid piece of a possibly self-intersecting ring."""
    polygon = ShapelyPolygon(points)
    if polygon.is_valid:
        return points
    pieces = extract_polys(make_valid(polygon))
    if not pieces:
        return points
    largest = max(pieces, key=lambda p: p.area)
    logger.debug("Star deform: dropped %d self-intersection loops", len(pieces) - 1)
    return np.asarray(largest.exterior.coords)[:-1]


def deform(
    contour: Polygon,
    outer_offset_ratio: float,
    roundness: float,
    wing_count: int,
    dissolve: float = 0.0,
    config: EngineConfig | None = None,
) -> Polygon:
    """Reshape a closed contour into a star with ``wing_count`` wings.

    ``outer_offset_ratio = 0`` returns the outline unchanged. Inward
    displacement is capped at ``EngineConfig.valley_depth_limit`` of the local
    thickness so valleys do not cut through narrow bridges, and any remaining
    self-intersection loops are dropped.
    """
    config = config or EngineConfig()
    contour = np.asarray(contour, dtype=np.float64)
    if len(contour) < 3 or outer_offset_ratio <= 0:
        return contour

    ring = drop_repeated_points(contour)
    if len(ring) < 3:
        return contour
    # Linear densify first: a periodic spline through sparse vertices overshoots
    dense = resample_closed(
        ring,
        config.star_resample_points * config.star_densify_factor,
    )
    points = start_at_rightmost(spline_resample_closed(dense, config.star_resample_points))
    curve = ArcCurve(points)
    if curve.perimeter < EPSILON:
        return contour

    wings = int(clamp(wing_count, config.min_wings, config.max_wings))
    roundness = clamp(roundness, 0.0, 1.0)
    outer_ratio = clamp(outer_offset_ratio, 0.0, 1.0)
    equivalent_radius = math.sqrt(abs(signed_area(points)) / math.pi)
    wing_length = (
        equivalent_radius
        * config.wing_length_factor
        * outer_offset_ratio
        * (1 - clamp(dissolve, 0.0, 1.0) * config.wing_dissolve_shrink)
    )

    control_s, control_d = wing_controls(wings, wing_length, outer_ratio, roundness)
    # Single pass: resampled vertices and control points merged in arc order
    h = 0.5 / len(points)
    vertex_s = curve.params[:-1]
    gap = np.abs(vertex_s[:, None] - control_s[None, :])
    gap = np.minimum(gap, 1.0 - gap).min(axis=1)
    s = np.union1d(vertex_s[gap > h / 2], control_s)

    base = curve.at(s)
    normals = curve.outward_normals(s, h)
    displacement = displacement_profile(s, control_s, control_d, roundness)
    depth_limit = config.valley_depth_limit * inward_thickness(base, normals, points)
    displacement = np.maximum(displacement, -depth_limit)
    moved = base + normals * displacement[:, None]

    closing = lerp_points(moved[-1], moved[0], 0.9)
    moved = np.vstack([moved, closing])

    logger.debug(
        "Star deform: %d wings, wing length %.2f, %d -> %d points",
        wings,
        wing_length,
        len(contour),
        config.star_output_points,
    )
    return largest_simple_ring(spline_resample_closed(moved, config.star_output_points))
