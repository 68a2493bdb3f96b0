"""POST /api/blobs: one engine tick over a posted frame."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, HTTPException

from metablob.config import settings
from metablob.engine.context import FrameInput, FrameResult
from metablob.engine.pipeline import create_pipeline
from metablob.models.requests import BlobRequest
from metablob.models.responses import (
    BlobResponse,
    ConnectionOut,
    DecorationOut,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(result: FrameResult, clusters: int, elapsed: float, errors: dict[str, str]) -> BlobResponse:
    return BlobResponse(
        contours=[[[float(x), float(y)] for x, y in contour] for contour in result.contours],
        skeleton=[
            ConnectionOut(from_id=c.from_id, to_id=c.to_id, distance_ratio=c.distance_ratio)
            for c in result.skeleton
        ],
        decorations=[
            DecorationOut(x=d.center[0], y=d.center[1], radius=d.radius) for d in result.decorations
        ],
        cluster_count=clusters,
        processing_time_ms=round(elapsed, 1),
        errors=errors,
    )


@router.post("/blobs", response_model=BlobResponse)
async def blobs(req: BlobRequest) -> BlobResponse:
    start = time.perf_counter()

    try:
        frame: FrameInput = req.to_frame()
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    seed = req.seed if req.seed is not None else settings.metablob_default_seed
    pipeline = create_pipeline(seed=seed)
    result = pipeline.tick(frame)

    elapsed = (time.perf_counter() - start) * 1000
    logger.info(
        "Blobs: %d shapes -> %d contours in %.1fms",
        len(frame.shapes),
        len(result.contours),
        elapsed,
    )
    return _to_response(result, pipeline.ctx.cluster_count, elapsed, dict(pipeline.ctx.errors))
