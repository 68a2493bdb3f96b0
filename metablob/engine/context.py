"""Shape model, frame inputs and FrameContext, the mutable state object flowing through all stages.

Shapes are addressed by integer handles into a ShapeArena; every derived
structure is keyed by shape id, never by object identity.
Per-frame inputs are frozen value objects so the pipeline can diff them.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from metablob.engine.config import EngineConfig

if TYPE_CHECKING:
    from metablob.engine.blob.compositor import PolygonCompositor
    from metablob.engine.blob.distance_matrix import DistanceMatrix
    from metablob.engine.blob.grouping import Grouping

# Implicitly closed ring of (x, y) points
Polygon = NDArray[np.float64]


@dataclass(frozen=True)
class ShapeState:
    """Immutable snapshot of one pain shape."""

    id: int
    x: float
    y: float
    radius: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass
class Shape:
    id: int
    x: float
    y: float
    radius: float

    def state(self) -> ShapeState:
        return ShapeState(id=self.id, x=self.x, y=self.y, radius=self.radius)


def validate_shapes(shapes: tuple[ShapeState, ...] | list[ShapeState]) -> None:
    """Reject negative radii, duplicate ids and distinct shapes sharing a center."""
    seen_ids: set[int] = set()
    seen_centers: dict[tuple[float, float], int] = {}
    for s in shapes:
        if s.radius <= 0:
            raise ValueError(f"Shape {s.id} has non-positive radius {s.radius}")
        if s.id in seen_ids:
            raise ValueError(f"Duplicate shape id: {s.id}")
        seen_ids.add(s.id)
        other = seen_centers.get(s.center)
        if other is not None:
            raise ValueError(f"Shapes {other} and {s.id} share the center {s.center}")
        seen_centers[s.center] = s.id


class ShapeArena:
    """Owns the mutable shapes edited by the UI layer. Ids are never reused."""

    def __init__(self) -> None:
        self._shapes: dict[int, Shape] = {}
        self._ids = itertools.count()

    def add(self, x: float, y: float, radius: float) -> int:
        shape = Shape(id=next(self._ids), x=float(x), y=float(y), radius=float(radius))
        self._check(shape)
        self._shapes[shape.id] = shape
        return shape.id

    def remove(self, shape_id: int) -> None:
        del self._shapes[shape_id]

    def move(self, shape_id: int, x: float, y: float) -> None:
        shape = self._shapes[shape_id]
        moved = Shape(id=shape_id, x=float(x), y=float(y), radius=shape.radius)
        self._check(moved)
        shape.x, shape.y = moved.x, moved.y

    def resize(self, shape_id: int, radius: float) -> None:
        if radius <= 0:
            raise ValueError(f"Shape {shape_id} radius must be positive, got {radius}")
        self._shapes[shape_id].radius = float(radius)

    def get(self, shape_id: int) -> Shape:
        return self._shapes[shape_id]

    def snapshot(self) -> tuple[ShapeState, ...]:
        return tuple(s.state() for s in self._shapes.values())

    def _check(self, shape: Shape) -> None:
        if shape.radius <= 0:
            raise ValueError(f"Shape radius must be positive, got {shape.radius}")
        for other in self._shapes.values():
            if other.id != shape.id and (other.x, other.y) == (shape.x, shape.y):
                raise ValueError(f"Shape {other.id} already sits at ({shape.x}, {shape.y})")

    def __len__(self) -> int:
        return len(self._shapes)

    def __contains__(self, shape_id: int) -> bool:
        return shape_id in self._shapes


@dataclass(frozen=True)
class ClusterParams:
    """Thresholds controlling when shapes merge or visibly pull on each other."""

    consider_connected_lower_bound: float = 0.75
    gravitation_force_visible_lower_bound: float = 0.5
    closeness: float = 0.5

    def __post_init__(self) -> None:
        if not 0 < self.consider_connected_lower_bound <= 1:
            raise ValueError("consider_connected_lower_bound must be in (0, 1]")
        if not 0 < self.gravitation_force_visible_lower_bound <= 1:
            raise ValueError("gravitation_force_visible_lower_bound must be in (0, 1]")
        if not 0 <= self.closeness <= 1:
            raise ValueError("closeness must be in [0, 1]")


@dataclass(frozen=True)
class StarParams:
    outer_offset_ratio: float = 0.0
    roundness: float = 0.5
    wing_count: int = 8

    def __post_init__(self) -> None:
        if self.outer_offset_ratio < 0:
            raise ValueError("outer_offset_ratio must be >= 0")
        if not 0 <= self.roundness <= 1:
            raise ValueError("roundness must be in [0, 1]")


@dataclass(frozen=True)
class Connection:
    """Directed pull between two shapes; feeds the coloring skeleton."""

    from_id: int
    to_id: int
    distance_ratio: float | None = None


@dataclass(frozen=True)
class SpaceFillingPosition:
    center: tuple[float, float]
    radius: float


@dataclass(frozen=True)
class FrameInput:
    """Everything the engine reads for one tick. Compared by value between ticks."""

    shapes: tuple[ShapeState, ...] = ()
    cluster: ClusterParams = field(default_factory=ClusterParams)
    star: StarParams = field(default_factory=StarParams)
    dissolve: float = 0.0
    dragging: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.dissolve <= 1:
            raise ValueError("dissolve must be in [0, 1]")
        validate_shapes(self.shapes)


@dataclass
class FrameResult:
    contours: list[Polygon] = field(default_factory=list)
    skeleton: list[Connection] = field(default_factory=list)
    decorations: list[SpaceFillingPosition] = field(default_factory=list)


@dataclass
class FrameContext:
    """Shared state flowing through the pipeline, kept across ticks for caching."""

    frame: FrameInput = field(default_factory=FrameInput)
    config: EngineConfig = field(default_factory=EngineConfig)
    rng: np.random.Generator = field(default_factory=np.random.default_rng)
    # Set by the pipeline once the boolean backend is ready
    compositor: PolygonCompositor | None = None

    # --- Clustering ---
    distance_matrix: DistanceMatrix | None = None
    normalized_matrix: DistanceMatrix | None = None
    grouping: Grouping | None = None

    # --- Compositing (integer coordinates, scaled by EngineConfig.scaling_factor) ---
    unioned_scaled: list[NDArray[np.int64]] = field(default_factory=list)
    dissolved_scaled: list[NDArray[np.int64]] = field(default_factory=list)
    # Outlines after union, dissolve offset and coarse simplification
    outlines: list[Polygon] = field(default_factory=list)
    # Final outlines, star-deformed when requested
    contours: list[Polygon] = field(default_factory=list)

    # --- Decorations ---
    field_polygons: list[Polygon] = field(default_factory=list)
    decorations: list[list[SpaceFillingPosition]] = field(default_factory=list)

    # --- Pipeline metadata ---
    completed_stages: set[str] = field(default_factory=set)
    rerun_stages: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def shapes(self) -> tuple[ShapeState, ...]:
        return self.frame.shapes

    @property
    def num_shapes(self) -> int:
        return len(self.frame.shapes)

    @property
    def cluster_count(self) -> int:
        if self.grouping is None:
            return 0
        return len(self.grouping.paths_map)

    def get_shape(self, shape_id: int) -> ShapeState | None:
        for s in self.frame.shapes:
            if s.id == shape_id:
                return s
        return None

    def result(self) -> FrameResult:
        skeleton: list[Connection] = []
        if self.grouping is not None:
            skeleton = list(self.grouping.connections) + sorted(
                self.grouping.gravitating_pairs, key=lambda c: (c.from_id, c.to_id)
            )
        return FrameResult(
            contours=list(self.contours),
            skeleton=skeleton,
            decorations=[p for group in self.decorations for p in group],
        )
