"""Connector polygons between two circles.

metaball() bridges two merged circles with a smooth waist.
gravitation() raises a one-sided bump on the first circle pointing at the second.

Both are based on the tangent-bound construction from
https://varun.ca/metaballs/ (after SATO Hiroyuki's metaball script).
Degenerate input yields an empty (0, 2) polygon, never an exception.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from metablob.utils.geometry import EPSILON, angle, clamp, dist, lerp_points, polar_point, spline_through

logger = logging.getLogger(__name__)

EMPTY_POLYGON = np.empty((0, 2))


@dataclass(frozen=True)
class TangentBounds:
    """Points where the outer lines touching both circles cross their outlines.

    Looking from center1 to center2: p1 left and p2 right on circle 1,
    p3 left and p4 right on circle 2.

              p2                                      p4
              +---------------------------------------+
           (  center1  )                         (  center2  )
              +---------------------------------------+
              p1                                      p3
    """

    p1: NDArray[np.float64]
    p2: NDArray[np.float64]
    p3: NDArray[np.float64]
    p4: NDArray[np.float64]


def tangent_bounds(
    radius1: float,
    radius2: float,
    center1: tuple[float, float],
    center2: tuple[float, float],
    inward_shift: float,
) -> TangentBounds | None:
    """Four bound points, or None when one circle swallows the other or centers coincide."""
    d = dist(center1, center2)
    if d < EPSILON or radius1 <= 0 or radius2 <= 0:
        return None
    if abs(radius1 - radius2) >= d:
        return None

    if d < radius1 + radius2:
        u1 = math.acos(clamp((radius1**2 + d**2 - radius2**2) / (2 * radius1 * d), -1.0, 1.0))
        u2 = math.acos(clamp((radius2**2 + d**2 - radius1**2) / (2 * radius2 * d), -1.0, 1.0))
    else:
        u1 = 0.0
        u2 = 0.0

    angle_between_centers = angle(center2, center1)
    max_spread = math.acos(clamp((radius1 - radius2) / d, -1.0, 1.0))

    angle1 = angle_between_centers + u1 + (max_spread - u1) * inward_shift
    angle2 = angle_between_centers - u1 - (max_spread - u1) * inward_shift
    angle3 = angle_between_centers + math.pi - u2 - (math.pi - u2 - max_spread) * inward_shift
    angle4 = angle_between_centers - math.pi + u2 + (math.pi - u2 - max_spread) * inward_shift

    return TangentBounds(
        p1=polar_point(center1, angle1, radius1),
        p2=polar_point(center1, angle2, radius1),
        p3=polar_point(center2, angle3, radius2),
        p4=polar_point(center2, angle4, radius2),
    )


def weighted_midpoint(
    center1: tuple[float, float],
    radius1: float,
    center2: tuple[float, float],
    radius2: float,
) -> NDArray[np.float64]:
    """Point between the centers that splits the gap in proportion to the radii."""
    w = radius1 / max(radius1 + radius2, EPSILON)
    return lerp_points(np.asarray(center1, dtype=np.float64), np.asarray(center2, dtype=np.float64), w)


def metaball(
    radius1: float,
    radius2: float,
    center1: tuple[float, float],
    center2: tuple[float, float],
    inward_shift: float = 0.5,
    ease_ratio: float = 1.0,
    spline_samples: int = 8,
) -> NDArray[np.float64]:
    """Bridge polygon between two circles.

    The two waist points start at the radius-weighted midpoint and are pushed
    toward the tangent lines by ``ease_ratio`` (1.0 = on the tangent line).
    """
    bounds = tangent_bounds(radius1, radius2, center1, center2, inward_shift)
    if bounds is None:
        logger.debug("metaball: degenerate pair %s r=%s / %s r=%s", center1, radius1, center2, radius2)
        return EMPTY_POLYGON

    t = clamp(ease_ratio, 0.0, 1.0)
    w = radius1 / (radius1 + radius2)
    midpoint = weighted_midpoint(center1, radius1, center2, radius2)

    left_on_tangent = lerp_points(bounds.p1, bounds.p3, w)
    right_on_tangent = lerp_points(bounds.p2, bounds.p4, w)
    if np.linalg.norm(left_on_tangent - right_on_tangent) < EPSILON:
        logger.debug("metaball: zero-width tangent lines between %s and %s", center1, center2)
        return EMPTY_POLYGON

    waist_left = midpoint + (left_on_tangent - midpoint) * t
    waist_right = midpoint + (right_on_tangent - midpoint) * t

    left_edge = spline_through(bounds.p1, waist_left, bounds.p3, spline_samples)
    right_edge = spline_through(bounds.p4, waist_right, bounds.p2, spline_samples)
    return np.vstack([left_edge, right_edge])


def gravitation(
    center1: tuple[float, float],
    radius1: float,
    center2: tuple[float, float],
    radius2: float,
    strength: float = 1.0,
    inward_shift: float = 0.5,
    spline_samples: int = 8,
) -> NDArray[np.float64]:
    """Bump on circle 1 pulled toward circle 2 by ``strength`` (0 = flat, 1 = reaches the midpoint)."""
    bounds = tangent_bounds(radius1, radius2, center1, center2, inward_shift)
    if bounds is None:
        logger.debug("gravitation: degenerate pair %s r=%s / %s r=%s", center1, radius1, center2, radius2)
        return EMPTY_POLYGON

    c1 = np.asarray(center1, dtype=np.float64)
    midpoint = weighted_midpoint(center1, radius1, center2, radius2)
    to_mid = midpoint - c1
    length = float(np.linalg.norm(to_mid))
    if length < EPSILON:
        return EMPTY_POLYGON

    outline_point = c1 + to_mid * (radius1 / length)
    pulled = lerp_points(outline_point, midpoint, clamp(strength, 0.0, 1.0))
    return spline_through(bounds.p1, pulled, bounds.p2, spline_samples)
