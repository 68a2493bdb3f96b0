"""Leaf-node geometry helpers. No engine imports."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

EPSILON = 1e-9


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def lerp_points(p1: NDArray[np.float64], p2: NDArray[np.float64], t: float) -> NDArray[np.float64]:
    return np.asarray(p1, dtype=np.float64) + (np.asarray(p2, dtype=np.float64) - p1) * t


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def smoothstep(edge0: float, edge1: float, x: float) -> float:
    """Hermite ease between two edges. Works with edge0 > edge1 (reversed ramp)."""
    if abs(edge1 - edge0) < EPSILON:
        return 1.0 if x >= edge1 else 0.0
    t = clamp((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def dist(p1: tuple[float, float], p2: tuple[float, float]) -> float:
    return math.hypot(p1[0] - p2[0], p1[1] - p2[1])


def angle(p1: tuple[float, float], p2: tuple[float, float]) -> float:
    """Angle of the vector pointing from p2 to p1."""
    return math.atan2(p1[1] - p2[1], p1[0] - p2[0])


def polar_point(center: tuple[float, float], theta: float, r: float) -> NDArray[np.float64]:
    return np.array([center[0] + r * math.cos(theta), center[1] + r * math.sin(theta)])


def circle_polygon(
    center: tuple[float, float],
    radius: float,
    step: float = 0.1,
) -> NDArray[np.float64]:
    """Outline of a circle sampled every ``step`` radians, counter-clockwise."""
    theta = np.arange(0.0, 2 * np.pi, step)
    return np.column_stack([
        center[0] + np.cos(theta) * radius,
        center[1] + np.sin(theta) * radius,
    ])


def signed_area(points: NDArray[np.float64]) -> float:
    """Shoelace formula for signed area of an implicitly closed ring. Positive = CCW."""
    if len(points) < 3:
        return 0.0
    x = points[:, 0]
    y = points[:, 1]
    return float(0.5 * np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def closed_arc_lengths(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Cumulative arc-length around a closed ring, including the closing edge.

    Returns N+1 values; the last one is the perimeter.
    """
    ring = np.vstack([points, points[:1]])
    segment_lengths = np.sqrt(np.sum(np.diff(ring, axis=0) ** 2, axis=1))
    return np.concatenate([[0.0], np.cumsum(segment_lengths)])


def drop_repeated_points(points: NDArray[np.float64], tol: float = 1e-9) -> NDArray[np.float64]:
    """Remove consecutive duplicates (including last == first) from a ring."""
    if len(points) < 2:
        return points
    keep = np.ones(len(points), dtype=bool)
    keep[1:] = np.any(np.abs(np.diff(points, axis=0)) > tol, axis=1)
    cleaned = points[keep]
    if len(cleaned) > 1 and np.all(np.abs(cleaned[-1] - cleaned[0]) <= tol):
        cleaned = cleaned[:-1]
    return cleaned


def spline_through(
    p0: NDArray[np.float64],
    pm: NDArray[np.float64],
    p1: NDArray[np.float64],
    n: int = 8,
) -> NDArray[np.float64]:
    """Quadratic curve passing through p0 (t=0), pm (t=0.5) and p1 (t=1).

    Returns n+1 samples including both ends.
    """
    t = np.linspace(0.0, 1.0, n + 1)[:, None]
    b0 = (1 - t) * (1 - 2 * t)
    bm = 4 * t * (1 - t)
    b1 = t * (2 * t - 1)
    return b0 * p0 + bm * pm + b1 * p1
