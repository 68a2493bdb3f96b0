"""Pipeline orchestrator: runs stages in dependency order once per frame tick.

Between ticks the immutable FrameInput snapshots are compared by value; only
stages whose inputs changed (or whose dependencies re-ran) are executed again.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
import time
from typing import Callable

import numpy as np

from metablob.engine.blob.compositor import PolygonBooleanOps, PolygonCompositor, ShapelyBooleanOps
from metablob.engine.config import EngineConfig
from metablob.engine.context import FrameContext, FrameInput, FrameResult
from metablob.engine.registry import StageRegistry, StageSpec, get_registry

logger = logging.getLogger(__name__)

ALL_INPUTS = frozenset({"shapes", "dissolve", "star", "decoration_toggle"})


def register_stages() -> None:
    """Import all stage modules so @stage decorators fire."""
    package = importlib.import_module("metablob.engine.stages")
    for _, module_name, _ in pkgutil.iter_modules(package.__path__):
        importlib.import_module(f"metablob.engine.stages.{module_name}")


def dirty_inputs(previous: FrameInput | None, current: FrameInput) -> set[str]:
    """Input groups that changed between two frames."""
    if previous is None:
        return set(ALL_INPUTS)
    dirty: set[str] = set()
    # A drag in progress always recomputes the outline
    if previous.shapes != current.shapes or previous.cluster != current.cluster or current.dragging:
        dirty.add("shapes")
    if previous.dissolve != current.dissolve:
        dirty.add("dissolve")
    if previous.star != current.star:
        dirty.add("star")
    if (previous.dissolve > 0) != (current.dissolve > 0):
        dirty.add("decoration_toggle")
    return dirty


class Pipeline:
    """Orchestrates the stage pipeline and owns the cached FrameContext."""

    def __init__(
        self,
        registry: StageRegistry | None = None,
        config: EngineConfig | None = None,
        ops_factory: Callable[[], PolygonBooleanOps] = ShapelyBooleanOps,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.registry = registry or get_registry()
        self.config = config or EngineConfig()
        self._ops_factory = ops_factory
        self.ctx = FrameContext(config=self.config, rng=rng or np.random.default_rng())
        self._previous: FrameInput | None = None

    @property
    def ready(self) -> bool:
        return self.ctx.compositor is not None

    def ensure_ready(self) -> None:
        """One-shot initialisation of the boolean geometry backend."""
        if self.ctx.compositor is not None:
            return
        ops = self._ops_factory()
        self.ctx.compositor = PolygonCompositor(ops, self.config.scaling_factor)
        logger.info("Boolean geometry backend ready: %s", type(ops).__name__)

    def tick(self, frame: FrameInput) -> FrameResult:
        """Advance one frame and return the current outlines, skeleton and decorations."""
        self.ensure_ready()
        dirty = dirty_inputs(self._previous, frame)
        self.ctx.frame = frame
        # Clean stages are skipped; stages that failed last tick run again
        self.run(self.ctx, dirty)
        self._previous = frame
        return self.ctx.result()

    def run(self, ctx: FrameContext, dirty: set[str] | None = None) -> FrameContext:
        """Run stages on ``ctx``. With ``dirty`` None every stage runs."""
        start = time.perf_counter()
        ordered = self.registry.resolve_order()
        ctx.rerun_stages = set()

        for spec in ordered:
            if dirty is not None and not self._needs_run(spec, ctx, dirty):
                continue
            t0 = time.perf_counter()
            ctx.rerun_stages.add(spec.id)
            try:
                spec.fn(ctx)
                ctx.completed_stages.add(spec.id)
                ctx.errors.pop(spec.id, None)
                elapsed = (time.perf_counter() - t0) * 1000
                logger.debug("  %s completed in %.1fms", spec.id, elapsed)
            except Exception as e:
                ctx.completed_stages.discard(spec.id)
                ctx.errors[spec.id] = str(e)
                logger.warning("  %s FAILED: %s", spec.id, e)

        total = (time.perf_counter() - start) * 1000
        logger.debug(
            "Tick complete: %d/%d stages re-ran in %.1fms (dirty=%s)",
            len(ctx.rerun_stages),
            len(ordered),
            total,
            sorted(dirty) if dirty is not None else "all",
        )
        return ctx

    @staticmethod
    def _needs_run(spec: StageSpec, ctx: FrameContext, dirty: set[str]) -> bool:
        if spec.id not in ctx.completed_stages:
            return True
        if spec.tags & dirty:
            return True
        return any(dep in ctx.rerun_stages for dep in spec.dependencies)


def create_pipeline(config: EngineConfig | None = None, seed: int | None = None) -> Pipeline:
    """Factory function for creating a pipeline with all stages registered."""
    register_stages()
    return Pipeline(config=config, rng=np.random.default_rng(seed))
