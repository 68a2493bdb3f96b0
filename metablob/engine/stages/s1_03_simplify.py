"""S1.03: Coarse Simplification.

Back to canvas coordinates, then Douglas-Peucker with the union tolerance.
"""

from __future__ import annotations

from metablob.engine.context import FrameContext
from metablob.engine.registry import Phase, stage
from metablob.utils.contour import simplify_contour


@stage(
    id="S1.03",
    phase=Phase.COMPOSITING,
    dependencies=["S1.02"],
    description="Simplify unioned outlines",
)
def simplify_outlines(ctx: FrameContext) -> None:
    if ctx.compositor is None:
        raise RuntimeError("simplification needs a ready compositor")
    tolerance = ctx.config.union_simplify_tolerance
    ctx.outlines = [
        simplify_contour(p, tolerance) for p in ctx.compositor.unscale(ctx.dissolved_scaled)
    ]
