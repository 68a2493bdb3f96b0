"""S1.02: Dissolve Offset.

Shrinks the union by dissolve * EngineConfig.dissolve_offset canvas units
(square joins). A fully dissolved region simply yields no contours.
"""

from __future__ import annotations

from metablob.engine.context import FrameContext
from metablob.engine.registry import Phase, stage


@stage(
    id="S1.02",
    phase=Phase.COMPOSITING,
    dependencies=["S1.01"],
    tags={"dissolve"},
    description="Inward offset of the union driven by dissolve",
)
def dissolve_offset(ctx: FrameContext) -> None:
    if ctx.compositor is None:
        raise RuntimeError("dissolve offset needs a ready compositor")
    delta = -ctx.config.dissolve_offset * ctx.frame.dissolve
    ctx.dissolved_scaled = ctx.compositor.offset(ctx.unioned_scaled, delta)
