"""S1.01: Polygon Union.

Union of every cluster's polygons on integer coordinates; holes dropped.
"""

from __future__ import annotations

from metablob.engine.context import FrameContext
from metablob.engine.registry import Phase, stage


@stage(
    id="S1.01",
    phase=Phase.COMPOSITING,
    dependencies=["S0.02"],
    tags={"shapes"},
    description="Union all cluster polygons into outer contours",
)
def union(ctx: FrameContext) -> None:
    if ctx.grouping is None or ctx.compositor is None:
        raise RuntimeError("union needs a grouping and a ready compositor")
    ctx.unioned_scaled = ctx.compositor.union(ctx.grouping.paths_map)
