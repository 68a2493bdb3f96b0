"""S3.02: Space Filling.

Scatters decorative circles inside each source polygon. The per-polygon
share of EngineConfig.max_decorations keeps the total bounded for the
renderer's uniform buffer.
"""

from __future__ import annotations

import logging

from metablob.engine.blob.space_filling import fill
from metablob.engine.context import FrameContext
from metablob.engine.registry import Phase, stage

logger = logging.getLogger(__name__)


@stage(
    id="S3.02",
    phase=Phase.DECORATION,
    dependencies=["S3.01"],
    tags={"decoration_toggle"},
    description="Rejection-sample decorations inside the source polygons",
)
def space_filling(ctx: FrameContext) -> None:
    config = ctx.config
    polygons = ctx.field_polygons
    if not polygons or (config.decorate_only_while_dissolving and ctx.frame.dissolve <= 0):
        ctx.decorations = []
        return

    per_polygon = config.max_decorations // len(polygons)
    ctx.decorations = [
        fill(
            polygon,
            config.decoration_radius_bounds,
            config.decoration_density,
            config.decoration_max_attempts,
            ctx.rng,
        )[:per_polygon]
        for polygon in polygons
    ]
    logger.debug(
        "Placed %d decorations in %d polygons",
        sum(len(d) for d in ctx.decorations),
        len(polygons),
    )
