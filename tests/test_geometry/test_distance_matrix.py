"""Tests for the sorted distance matrix."""

import math

from metablob.engine.blob.distance_matrix import DistanceMatrix
from metablob.engine.blob.grouping import euclidean_matrix, normalized_matrix
from tests.conftest import shapes_from

SHAPES = shapes_from((0, 0, 5), (10, 0, 5), (0, 30, 10), (-10, 0, 2))


def test_knn_sorted_by_distance():
    matrix = euclidean_matrix(SHAPES)
    row = matrix.knn(SHAPES[0])
    assert len(row) == 3
    assert [e.distance for e in row] == sorted(e.distance for e in row)
    assert row[-1].ref.id == 2


def test_ties_keep_input_order():
    matrix = euclidean_matrix(SHAPES)
    row = matrix.knn(SHAPES[0])
    # Shapes 1 and 3 are both 10 away
    assert [e.ref.id for e in row[:2]] == [1, 3]
    assert matrix.nn(SHAPES[0]).ref.id == 1


def test_between_and_k():
    matrix = euclidean_matrix(SHAPES)
    assert matrix.between(SHAPES[1], SHAPES[2]) == math.hypot(10, 30)
    assert matrix.between(SHAPES[0], SHAPES[0]) is None
    assert len(matrix.knn(SHAPES[2], k=1)) == 1
    assert len(matrix) == 4


def test_knn_returns_copy():
    matrix = euclidean_matrix(SHAPES)
    matrix.knn(SHAPES[0]).clear()
    assert len(matrix.knn(SHAPES[0])) == 3


def test_nn_within_and_where():
    matrix = euclidean_matrix(SHAPES)
    near = matrix.nn_within(SHAPES[0], 10.0)
    assert {e.ref.id for e in near} == {1, 3}
    small = matrix.where(SHAPES[0], lambda e: e.ref.radius < 5)
    assert [e.ref.id for e in small] == [3]


def test_derived_matrix():
    base = euclidean_matrix(SHAPES)
    normalized = normalized_matrix(base)
    assert normalized.between(SHAPES[0], SHAPES[1]) == 1.0
    assert normalized.between(SHAPES[0], SHAPES[2]) == 2.0
    # Order can differ from the base matrix
    assert [e.ref.id for e in base.knn(SHAPES[3])] == [0, 1, 2]
    assert [e.ref.id for e in normalized.knn(SHAPES[3])] == [0, 2, 1]


def test_arbitrary_items():
    matrix = DistanceMatrix([1, 4, 9], lambda a, b: abs(a - b))
    assert matrix.nn(4).ref == 1
    assert matrix.between(1, 9) == 8
    assert matrix.nn(100) is None
