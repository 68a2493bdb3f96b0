"""Connectivity grouping: which shapes merge into one blob and which only pull on each other.

For shapes A, B at distance d:

    distance_ratio = radius_extend_factor * (r_a + r_b) / d

    ratio >= consider_connected                   -> merged (same cluster, metaball bridge)
    gravitation_visible <= ratio < connected and
      ratio at closeness 1 >= connected           -> gravitating (bump on both sides)
    otherwise                                     -> unrelated

Overlapping pairs (one center inside the other circle) share a cluster at any
closeness but get no connector polygon.

Clusters are built by breadth-first traversal seeded in input order, visiting
neighbours nearest first. Cluster shape can therefore depend on the order of
the input shapes when several neighbours are equally eligible.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import minimum_spanning_tree

from metablob.engine.blob.connectors import gravitation, metaball
from metablob.engine.blob.distance_matrix import DistanceMatrix
from metablob.engine.config import EngineConfig
from metablob.engine.context import ClusterParams, Connection, Polygon, ShapeState
from metablob.utils.geometry import EPSILON, circle_polygon, dist, lerp, smoothstep

logger = logging.getLogger(__name__)


@dataclass
class Grouping:
    """Output of one traversal. Rebuilt whenever shapes or thresholds change."""

    # shape id -> representative shape id
    representatives: dict[int, int] = field(default_factory=dict)
    # representative id -> circle outlines + connector polygons of its cluster
    paths_map: dict[int, list[Polygon]] = field(default_factory=dict)
    connections: list[Connection] = field(default_factory=list)
    gravitating_pairs: set[Connection] = field(default_factory=set)
    radius_extend_factor: float = 1.0
    biggest_radius_extend: float = 1.0

    def clusters(self) -> dict[int, list[int]]:
        """Representative id -> member ids, in traversal order."""
        out: dict[int, list[int]] = {rep: [] for rep in self.paths_map}
        for shape_id, rep in self.representatives.items():
            out[rep].append(shape_id)
        return out


def euclidean_matrix(shapes: tuple[ShapeState, ...] | list[ShapeState]) -> DistanceMatrix[ShapeState]:
    return DistanceMatrix(shapes, lambda a, b: dist(a.center, b.center), key=lambda s: s.id)


def normalized_matrix(base: DistanceMatrix[ShapeState]) -> DistanceMatrix[ShapeState]:
    """Derived matrix: center distance relative to the radius sum."""

    def _normalized(a: ShapeState, b: ShapeState) -> float:
        d = base.between(a, b)
        return (d if d is not None else dist(a.center, b.center)) / max(a.radius + b.radius, EPSILON)

    return DistanceMatrix(base.items, _normalized, key=lambda s: s.id)


def is_overlapping(a: ShapeState, b: ShapeState, d: float | None = None) -> bool:
    """True when one center lies inside the other circle."""
    if d is None:
        d = dist(a.center, b.center)
    return d < max(a.radius, b.radius)


def biggest_radius_extend_of_smallest(
    normalized: DistanceMatrix[ShapeState],
    consider_connected: float,
    smallest: float,
) -> float:
    """Radius extension at closeness 1.

    Large enough for the bottleneck edge of the minimum spanning tree over
    normalised distances to count as merged, so every shape has a merged
    neighbour and all shapes form a single cluster.
    """
    shapes = normalized.items
    n = len(shapes)
    if n < 2:
        return smallest

    weights = np.zeros((n, n))
    for i, a in enumerate(shapes):
        for j in range(i + 1, n):
            b = shapes[j]
            if is_overlapping(a, b):
                # csgraph treats 0 as a missing edge
                weights[i, j] = EPSILON
                continue
            w = normalized.between(a, b)
            if w is not None and w > 0:
                weights[i, j] = w

    if not weights.any():
        return smallest

    mst = minimum_spanning_tree(csr_matrix(weights))
    bottleneck = float(mst.toarray().max())
    # Nudge past the bound so the bottleneck pair classifies as merged despite rounding
    return max(smallest, consider_connected * bottleneck * (1 + 1e-6))


def group_shapes(
    shapes: tuple[ShapeState, ...] | list[ShapeState],
    params: ClusterParams,
    config: EngineConfig | None = None,
    matrix: DistanceMatrix[ShapeState] | None = None,
) -> Grouping:
    config = config or EngineConfig()
    if matrix is None:
        matrix = euclidean_matrix(shapes)
    connected = params.consider_connected_lower_bound
    visible = params.gravitation_force_visible_lower_bound

    biggest = biggest_radius_extend_of_smallest(
        normalized_matrix(matrix), connected, config.smallest_radius_extend
    )
    factor = lerp(config.smallest_radius_extend, biggest, params.closeness)
    result = Grouping(radius_extend_factor=factor, biggest_radius_extend=biggest)

    by_id = {s.id: s for s in shapes}
    merged_pairs: set[frozenset[int]] = set()
    gravitating: dict[frozenset[int], Connection] = {}

    for seed in shapes:
        if seed.id in result.representatives:
            continue
        result.representatives[seed.id] = seed.id
        result.paths_map[seed.id] = []
        queue = deque([seed])

        while queue:
            shape = queue.popleft()
            rep = result.representatives[shape.id]
            result.paths_map[rep].append(circle_polygon(shape.center, shape.radius, config.circle_angle_step))

            for entry in matrix.knn(shape):
                other = entry.ref
                d = max(entry.distance, EPSILON)
                if is_overlapping(shape, other, d):
                    # Same region already, joined without a connector
                    if other.id not in result.representatives:
                        result.representatives[other.id] = rep
                        queue.append(other)
                    continue

                radius_sum = shape.radius + other.radius
                ratio = factor * radius_sum / d
                pair = frozenset((shape.id, other.id))

                if ratio >= connected:
                    if other.id not in result.representatives:
                        result.representatives[other.id] = rep
                        queue.append(other)
                    if pair in merged_pairs:
                        continue
                    merged_pairs.add(pair)
                    result.connections.append(Connection(shape.id, other.id, ratio))
                    waist = lerp(
                        config.metaball_min_waist,
                        1.0,
                        smoothstep(connected, max(1.0, connected), ratio),
                    )
                    bridge = metaball(
                        shape.radius,
                        other.radius,
                        shape.center,
                        other.center,
                        config.inward_shift,
                        waist,
                        config.connector_spline_samples,
                    )
                    if len(bridge):
                        result.paths_map[rep].append(bridge)
                elif ratio >= visible and biggest * radius_sum / d >= connected:
                    # Deferred: the far side's representative may not be known yet
                    gravitating.setdefault(pair, Connection(shape.id, other.id, ratio))

    for conn in gravitating.values():
        a, b = by_id[conn.from_id], by_id[conn.to_id]
        strength = smoothstep(visible, connected, conn.distance_ratio or 0.0)
        for near, far in ((a, b), (b, a)):
            bump = gravitation(
                near.center,
                near.radius,
                far.center,
                far.radius,
                strength,
                config.inward_shift,
                config.connector_spline_samples,
            )
            if len(bump):
                result.paths_map[result.representatives[near.id]].append(bump)
        result.gravitating_pairs.add(conn)

    logger.debug(
        "Grouped %d shapes into %d clusters (factor=%.3f, %d merged, %d gravitating)",
        len(shapes),
        len(result.paths_map),
        factor,
        len(result.connections),
        len(result.gravitating_pairs),
    )
    return result
