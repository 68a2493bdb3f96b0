"""Stage registry: every pipeline stage is a standalone function registered via decorator.

Usage:
    @stage(id="S1.01", phase=Phase.COMPOSITING, dependencies=["S0.02"], tags={"shapes"})
    def union(ctx: FrameContext) -> None:
        ctx.unioned_scaled = ctx.compositor.union(ctx.grouping.paths_map)

``tags`` name the frame inputs a stage reads ("shapes", "dissolve", "star",
"decoration_toggle"); the pipeline re-runs a stage when one of them changed.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from metablob.engine.context import FrameContext

logger = logging.getLogger(__name__)


class Phase(enum.IntEnum):
    CLUSTERING = 0
    COMPOSITING = 1
    DEFORMATION = 2
    DECORATION = 3


@dataclass
class StageSpec:
    id: str
    phase: Phase
    fn: Callable[["FrameContext"], None]
    dependencies: list[str] = field(default_factory=list)
    tags: set[str] = field(default_factory=set)
    description: str = ""


class StageRegistry:
    """Singleton registry of all stages."""

    def __init__(self) -> None:
        self._stages: dict[str, StageSpec] = {}

    def register(self, spec: StageSpec) -> None:
        if spec.id in self._stages:
            raise ValueError(f"Duplicate stage ID: {spec.id}")
        self._stages[spec.id] = spec
        logger.debug("Registered stage %s (%s)", spec.id, spec.phase.name)

    def resolve_order(self) -> list[StageSpec]:
        """Topological sort of all stages respecting dependencies."""
        pool = self._stages

        # Kahn's algorithm
        in_degree: dict[str, int] = {sid: 0 for sid in pool}
        for sid, spec in pool.items():
            for dep in spec.dependencies:
                if dep in pool:
                    in_degree[sid] += 1

        queue = sorted([sid for sid, d in in_degree.items() if d == 0])
        ordered: list[StageSpec] = []

        while queue:
            sid = queue.pop(0)
            ordered.append(pool[sid])
            for other_id, other_spec in pool.items():
                if sid in other_spec.dependencies:
                    in_degree[other_id] -= 1
                    if in_degree[other_id] == 0:
                        queue.append(other_id)
                        queue.sort()

        if len(ordered) != len(pool):
            missing = set(pool.keys()) - {s.id for s in ordered}
            raise ValueError(f"Circular dependency detected among: {missing}")

        return ordered

    @property
    def count(self) -> int:
        return len(self._stages)


# Module-level singleton
_registry = StageRegistry()


def get_registry() -> StageRegistry:
    return _registry


def stage(
    *,
    id: str,
    phase: Phase,
    dependencies: list[str] | None = None,
    tags: set[str] | None = None,
    description: str = "",
):
    """Decorator to register a stage function."""

    def decorator(fn: Callable[["FrameContext"], None]):
        spec = StageSpec(
            id=id,
            phase=phase,
            fn=fn,
            dependencies=dependencies or [],
            tags=tags or set(),
            description=description,
        )
        _registry.register(spec)
        return fn

    return decorator
