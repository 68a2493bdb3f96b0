"""S0.02: Connectivity Grouping.

Breadth-first clustering into representatives; emits circle outlines,
metaball bridges and gravitation bumps per cluster.
"""

from __future__ import annotations

import logging

from metablob.engine.blob.grouping import group_shapes
from metablob.engine.context import FrameContext
from metablob.engine.registry import Phase, stage

logger = logging.getLogger(__name__)


@stage(
    id="S0.02",
    phase=Phase.CLUSTERING,
    dependencies=["S0.01"],
    tags={"shapes"},
    description="Group shapes into clusters and build connector polygons",
)
def connectivity(ctx: FrameContext) -> None:
    ctx.grouping = group_shapes(ctx.shapes, ctx.frame.cluster, ctx.config, ctx.distance_matrix)
    logger.debug("%d shapes -> %d clusters", ctx.num_shapes, ctx.cluster_count)
