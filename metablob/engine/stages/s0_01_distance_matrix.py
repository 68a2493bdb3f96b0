"""S0.01: Distance Matrix.

Sorted pairwise center distances, plus the derived matrix of distance over
radius sum used to size the radius extension at full closeness.
"""

from __future__ import annotations

from metablob.engine.blob.grouping import euclidean_matrix, normalized_matrix
from metablob.engine.context import FrameContext
from metablob.engine.registry import Phase, stage


@stage(
    id="S0.01",
    phase=Phase.CLUSTERING,
    tags={"shapes"},
    description="Pairwise shape distances sorted by nearest neighbour",
)
def distance_matrix(ctx: FrameContext) -> None:
    ctx.distance_matrix = euclidean_matrix(ctx.shapes)
    ctx.normalized_matrix = normalized_matrix(ctx.distance_matrix)
