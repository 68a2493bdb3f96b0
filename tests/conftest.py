"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from metablob.engine.context import ClusterParams, FrameInput, ShapeState, StarParams


def shapes_from(*specs: tuple[float, float, float]) -> tuple[ShapeState, ...]:
    """(x, y, radius) triples -> ShapeStates with ids in input order."""
    return tuple(ShapeState(id=i, x=x, y=y, radius=r) for i, (x, y, r) in enumerate(specs))


def make_frame(
    shapes: tuple[ShapeState, ...],
    closeness: float = 0.5,
    dissolve: float = 0.0,
    star: StarParams | None = None,
    dragging: bool = False,
) -> FrameInput:
    return FrameInput(
        shapes=shapes,
        cluster=ClusterParams(closeness=closeness),
        star=star or StarParams(),
        dissolve=dissolve,
        dragging=dragging,
    )


def circle_points(center: tuple[float, float], radius: float, n: int = 100) -> np.ndarray:
    theta = np.linspace(0.0, 2 * np.pi, n, endpoint=False)
    return np.column_stack([center[0] + radius * np.cos(theta), center[1] + radius * np.sin(theta)])


def square(x0: float, y0: float, size: float) -> np.ndarray:
    return np.array([[x0, y0], [x0 + size, y0], [x0 + size, y0 + size], [x0, y0 + size]], dtype=float)


def bbox(points: np.ndarray) -> tuple[float, float, float, float]:
    """(xmin, ymin, xmax, ymax) of a point set."""
    return (
        float(np.min(points[:, 0])),
        float(np.min(points[:, 1])),
        float(np.max(points[:, 0])),
        float(np.max(points[:, 1])),
    )


def centroid(points: np.ndarray) -> tuple[float, float]:
    return (float(np.mean(points[:, 0])), float(np.mean(points[:, 1])))


# Two r=10 circles 50 apart: unrelated at low closeness, merged at closeness 1
TWO_CIRCLES = shapes_from((0, 0, 10), (50, 0, 10))

# Two r=30 circles 100 apart: merged at closeness 1 with room for decorations
TWO_LARGE_CIRCLES = shapes_from((0, 0, 30), (100, 0, 30))

SCATTERED = shapes_from(
    (0, 0, 10),
    (100, 0, 15),
    (40, 80, 8),
    (300, 300, 20),
    (-150, 40, 12),
    (220, -60, 9),
)


@pytest.fixture
def two_circles() -> tuple[ShapeState, ...]:
    return TWO_CIRCLES


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
