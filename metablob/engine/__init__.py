"""metablob outline engine."""

from metablob.engine.context import FrameInput, FrameResult, ShapeArena, ShapeState
from metablob.engine.pipeline import Pipeline, create_pipeline
from metablob.engine.registry import Phase, get_registry, stage

__all__ = [
    "stage",
    "Phase",
    "get_registry",
    "FrameInput",
    "FrameResult",
    "ShapeArena",
    "ShapeState",
    "Pipeline",
    "create_pipeline",
]
