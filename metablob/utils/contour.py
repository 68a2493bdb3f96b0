"""Contour helpers: Douglas-Peucker simplification and arc-length resampling."""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray
from scipy.interpolate import splev, splprep

from metablob.utils.geometry import closed_arc_lengths, drop_repeated_points

logger = logging.getLogger(__name__)


def _segment_distances(
    points: NDArray[np.float64],
    start: NDArray[np.float64],
    end: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Distance from each point to the segment start-end (not the infinite line)."""
    seg = end - start
    seg_len2 = float(np.dot(seg, seg))
    if seg_len2 < 1e-20:
        return np.linalg.norm(points - start, axis=1)
    t = np.clip(np.dot(points - start, seg) / seg_len2, 0.0, 1.0)
    closest = start + np.outer(t, seg)
    return np.linalg.norm(points - closest, axis=1)


def rdp_simplify(
    points: NDArray[np.float64],
    epsilon: float,
) -> NDArray[np.float64]:
    """Ramer-Douglas-Peucker line simplification.

    Reduces point count while preserving shape within epsilon tolerance.
    Endpoints are always kept.
    """
    if len(points) <= 2:
        return points

    distances = _segment_distances(points, points[0], points[-1])
    max_idx = int(np.argmax(distances))
    max_dist = distances[max_idx]

    if max_dist > epsilon:
        left = rdp_simplify(points[: max_idx + 1], epsilon)
        right = rdp_simplify(points[max_idx:], epsilon)
        return np.vstack([left[:-1], right])
    return points[[0, -1]]


def radial_simplify(points: NDArray[np.float64], epsilon: float) -> NDArray[np.float64]:
    """Drop points closer than epsilon to the last kept point. Last point is kept."""
    if len(points) <= 2:
        return points
    sq_tol = epsilon * epsilon
    kept = [0]
    prev = points[0]
    for i in range(1, len(points)):
        delta = points[i] - prev
        if delta[0] * delta[0] + delta[1] * delta[1] > sq_tol:
            kept.append(i)
            prev = points[i]
    if kept[-1] != len(points) - 1:
        kept.append(len(points) - 1)
    return points[kept]


def simplify_contour(
    contour: NDArray[np.float64],
    tolerance: float,
    high_quality: bool = False,
) -> NDArray[np.float64]:
    """Simplify an implicitly closed contour.

    A radial-distance pass runs first unless ``high_quality`` is set, then
    Douglas-Peucker bounds the perpendicular deviation by ``tolerance``.
    Never returns fewer than three points for a ring that had three.
    """
    contour = np.asarray(contour, dtype=np.float64)
    if len(contour) <= 3 or tolerance <= 0:
        return contour

    ring = np.vstack([contour, contour[:1]])
    if not high_quality:
        ring = radial_simplify(ring, tolerance)
    simplified = rdp_simplify(ring, tolerance)[:-1]

    if len(simplified) < 3:
        n = len(contour)
        simplified = contour[[0, n // 3, (2 * n) // 3]]
    return simplified


def resample_closed(points: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    """Even resample of a closed ring along arc length (piecewise linear)."""
    cumlen = closed_arc_lengths(points)
    ring = np.vstack([points, points[:1]])
    even_s = np.linspace(0.0, cumlen[-1], n, endpoint=False)
    return np.column_stack([
        np.interp(even_s, cumlen, ring[:, 0]),
        np.interp(even_s, cumlen, ring[:, 1]),
    ])


def spline_resample_closed(points: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    """Periodic interpolating B-spline through a closed ring, sampled at n points.

    Falls back to linear arc-length resampling when the spline cannot be fit.
    """
    pts = drop_repeated_points(np.asarray(points, dtype=np.float64))
    if len(pts) < 4:
        return resample_closed(pts, n) if len(pts) >= 2 else pts

    closed = np.vstack([pts, pts[:1]])
    try:
        tck, _ = splprep([closed[:, 0], closed[:, 1]], s=0, per=True, k=3)
        u_fine = np.linspace(0, 1, n, endpoint=False)
        sx, sy = splev(u_fine, tck)
    except (ValueError, TypeError) as e:
        logger.debug("Periodic spline fit failed (%s), falling back to linear resample", e)
        return resample_closed(pts, n)
    return np.column_stack([sx, sy])
