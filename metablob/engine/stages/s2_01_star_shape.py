"""S2.01: Star Shape.

Adds wings to every outline when the outer offset ratio is positive, then
simplifies again with the finer star tolerance.
"""

from __future__ import annotations

from metablob.engine.blob.star import deform
from metablob.engine.context import FrameContext
from metablob.engine.registry import Phase, stage
from metablob.utils.contour import simplify_contour


@stage(
    id="S2.01",
    phase=Phase.DEFORMATION,
    dependencies=["S1.03"],
    tags={"star"},
    description="Star-shape deformation of the outlines",
)
def star_shape(ctx: FrameContext) -> None:
    star = ctx.frame.star
    if star.outer_offset_ratio <= 0:
        ctx.contours = list(ctx.outlines)
        return

    ctx.contours = [
        simplify_contour(
            deform(
                outline,
                star.outer_offset_ratio,
                star.roundness,
                star.wing_count,
                ctx.frame.dissolve,
                ctx.config,
            ),
            ctx.config.star_simplify_tolerance,
            high_quality=True,
        )
        for outline in ctx.outlines
    ]
