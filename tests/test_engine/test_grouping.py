"""Tests for connectivity grouping."""

import pytest

from metablob.engine.blob.grouping import (
    biggest_radius_extend_of_smallest,
    euclidean_matrix,
    group_shapes,
    is_overlapping,
    normalized_matrix,
)
from metablob.engine.context import ClusterParams
from tests.conftest import SCATTERED, TWO_CIRCLES, shapes_from


def test_biggest_radius_extend_two_circles():
    normalized = normalized_matrix(euclidean_matrix(TWO_CIRCLES))
    biggest = biggest_radius_extend_of_smallest(normalized, 0.75, 1.0)
    # 0.75 * 50 / 20, nudged up
    assert biggest == pytest.approx(1.875, rel=1e-5)
    assert biggest > 1.875


def test_biggest_radius_extend_never_below_smallest():
    close = shapes_from((0, 0, 10), (15, 0, 10))
    normalized = normalized_matrix(euclidean_matrix(close))
    assert biggest_radius_extend_of_smallest(normalized, 0.75, 1.0) == 1.0


def test_factor_interpolates_with_closeness():
    low = group_shapes(TWO_CIRCLES, ClusterParams(closeness=0.0))
    high = group_shapes(TWO_CIRCLES, ClusterParams(closeness=1.0))
    mid = group_shapes(TWO_CIRCLES, ClusterParams(closeness=0.5))
    assert low.radius_extend_factor == pytest.approx(1.0)
    assert high.radius_extend_factor == pytest.approx(high.biggest_radius_extend)
    assert low.radius_extend_factor < mid.radius_extend_factor < high.radius_extend_factor


def test_unrelated_pair():
    grouping = group_shapes(TWO_CIRCLES, ClusterParams(closeness=0.1))
    assert grouping.representatives == {0: 0, 1: 1}
    assert grouping.connections == []
    assert grouping.gravitating_pairs == set()
    # Circle outline only
    assert [len(v) for v in grouping.paths_map.values()] == [1, 1]


def test_merged_pair():
    grouping = group_shapes(TWO_CIRCLES, ClusterParams(closeness=1.0))
    assert grouping.representatives == {0: 0, 1: 0}
    assert grouping.clusters() == {0: [0, 1]}
    assert len(grouping.connections) == 1
    conn = grouping.connections[0]
    assert (conn.from_id, conn.to_id) == (0, 1)
    assert conn.distance_ratio >= 0.75
    # Two circles plus one bridge
    assert len(grouping.paths_map[0]) == 3


def test_gravitating_pair():
    grouping = group_shapes(TWO_CIRCLES, ClusterParams(closeness=0.5))
    assert grouping.representatives == {0: 0, 1: 1}
    assert grouping.connections == []
    assert len(grouping.gravitating_pairs) == 1
    conn = next(iter(grouping.gravitating_pairs))
    assert 0.5 <= conn.distance_ratio < 0.75
    # Circle plus bump on each side
    assert len(grouping.paths_map[0]) == 2
    assert len(grouping.paths_map[1]) == 2


def test_gravitation_requires_merge_at_full_closeness():
    params = ClusterParams(
        consider_connected_lower_bound=1.0,
        gravitation_force_visible_lower_bound=0.01,
        closeness=0.0,
    )
    shapes = shapes_from((0, 0, 10), (50, 0, 10), (500, 0, 10))
    grouping = group_shapes(shapes, params)
    pairs = {frozenset((c.from_id, c.to_id)) for c in grouping.gravitating_pairs}
    assert frozenset((0, 1)) in pairs
    assert frozenset((1, 2)) in pairs
    # Visible at the current closeness, but never merged even at closeness 1
    assert frozenset((0, 2)) not in pairs


def test_overlapping_pairs_join_without_connectors():
    shapes = shapes_from((0, 0, 20), (5, 0, 10))
    assert is_overlapping(shapes[0], shapes[1])
    for closeness in (0.0, 1.0):
        grouping = group_shapes(shapes, ClusterParams(closeness=closeness))
        assert grouping.clusters() == {0: [0, 1]}
        assert grouping.connections == []
        assert grouping.gravitating_pairs == set()
        # Both circle outlines, no bridge
        assert len(grouping.paths_map[0]) == 2


def test_mutually_overlapping_pair_is_one_cluster():
    shapes = shapes_from((0, 0, 10), (5, 0, 10))
    grouping = group_shapes(shapes, ClusterParams(closeness=1.0))
    assert len(grouping.paths_map) == 1
    assert grouping.radius_extend_factor == 1.0


def test_overlap_bridges_components():
    # 0 and 1 overlap; 2 is only reachable through a merge with 1
    shapes = shapes_from((0, 0, 10), (6, 0, 10), (60, 0, 10))
    grouping = group_shapes(shapes, ClusterParams(closeness=1.0))
    assert len(grouping.paths_map) == 1
    assert [(c.from_id, c.to_id) for c in grouping.connections] == [(1, 2)]


def test_full_closeness_connects_everything():
    grouping = group_shapes(SCATTERED, ClusterParams(closeness=1.0))
    assert len(grouping.paths_map) == 1
    assert set(grouping.representatives.values()) == {0}


def test_chain_merges_transitively():
    shapes = shapes_from((0, 0, 10), (25, 0, 10), (50, 0, 10))
    grouping = group_shapes(shapes, ClusterParams(closeness=0.0))
    assert grouping.clusters() == {0: [0, 1, 2]}
    assert len(grouping.connections) == 2


def test_traversal_order_follows_input_order():
    forward = group_shapes(shapes_from((0, 0, 10), (25, 0, 10)), ClusterParams(closeness=0.0))
    shapes = shapes_from((0, 0, 10), (25, 0, 10))
    backward = group_shapes(tuple(reversed(shapes)), ClusterParams(closeness=0.0))
    assert list(forward.paths_map) == [0]
    assert list(backward.paths_map) == [1]


def test_single_and_empty_inputs():
    assert group_shapes((), ClusterParams()).paths_map == {}
    single = group_shapes(shapes_from((5, 5, 3)), ClusterParams())
    assert single.representatives == {0: 0}
    assert single.radius_extend_factor == 1.0
