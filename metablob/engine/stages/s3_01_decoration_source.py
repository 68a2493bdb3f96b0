"""S3.01: Decoration Source.

Region the decorations are scattered in: the low-resolution field contour
(default) or the undissolved union outline. Depends on shapes only, so it
stays frozen while dissolve or star parameters animate.
"""

from __future__ import annotations

from metablob.engine.blob.field import field_contours
from metablob.engine.context import FrameContext
from metablob.engine.registry import Phase, stage


@stage(
    id="S3.01",
    phase=Phase.DECORATION,
    dependencies=["S1.01"],
    tags={"shapes"},
    description="Low-resolution outline used as decoration source",
)
def decoration_source(ctx: FrameContext) -> None:
    config = ctx.config
    if config.decoration_source == "outline":
        if ctx.compositor is None:
            raise RuntimeError("outline source needs a ready compositor")
        ctx.field_polygons = ctx.compositor.unscale(ctx.unioned_scaled)
    elif config.decoration_source == "field":
        ctx.field_polygons = field_contours(
            ctx.shapes,
            threshold=1.0 - ctx.frame.cluster.closeness,
            sample_rate=config.field_sample_rate,
            padding_factor=config.field_padding_factor,
        )
    else:
        raise ValueError(f"Unknown decoration source: {config.decoration_source}")
