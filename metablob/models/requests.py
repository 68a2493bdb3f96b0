"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from metablob.engine.context import ClusterParams, FrameInput, ShapeState, StarParams


class ShapeIn(BaseModel):
    id: int = Field(..., description="Stable shape handle")
    x: float
    y: float
    radius: float = Field(..., gt=0, description="Circle radius in canvas units")


class ClusterIn(BaseModel):
    consider_connected_lower_bound: float = Field(default=0.75, gt=0, le=1)
    gravitation_force_visible_lower_bound: float = Field(default=0.5, gt=0, le=1)
    closeness: float = Field(default=0.5, ge=0, le=1)


class StarIn(BaseModel):
    outer_offset_ratio: float = Field(default=0.0, ge=0)
    roundness: float = Field(default=0.5, ge=0, le=1)
    wing_count: int = Field(default=8, description="Clamped to [5, 20] by the engine")


class BlobRequest(BaseModel):
    shapes: list[ShapeIn] = Field(default_factory=list)
    cluster: ClusterIn = Field(default_factory=ClusterIn)
    star: StarIn = Field(default_factory=StarIn)
    dissolve: float = Field(default=0.0, ge=0, le=1)
    seed: int | None = Field(default=None, description="RNG seed for decoration sampling")

    def to_frame(self) -> FrameInput:
        """Raises ValueError on duplicate ids or shapes sharing a center."""
        return FrameInput(
            shapes=tuple(ShapeState(id=s.id, x=s.x, y=s.y, radius=s.radius) for s in self.shapes),
            cluster=ClusterParams(**self.cluster.model_dump()),
            star=StarParams(**self.star.model_dump()),
            dissolve=self.dissolve,
        )
