"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    stages_registered: int = 0


class ConnectionOut(BaseModel):
    from_id: int
    to_id: int
    distance_ratio: float | None = None


class DecorationOut(BaseModel):
    x: float
    y: float
    radius: float


class BlobResponse(BaseModel):
    contours: list[list[list[float]]] = Field(default_factory=list)
    skeleton: list[ConnectionOut] = Field(default_factory=list)
    decorations: list[DecorationOut] = Field(default_factory=list)
    cluster_count: int = 0
    processing_time_ms: float = 0.0
    errors: dict[str, str] = Field(default_factory=dict)
