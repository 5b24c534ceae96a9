"""Sequential analysis pipelines with per-step fallback."""

from percepta.pipeline.definitions import IMAGE_PIPELINE_STEPS
from percepta.pipeline.engine import COMPLETE_MESSAGE, PipelineEngine, ProgressCallback
from percepta.pipeline.schemas import (
    ContextPropagation,
    PipelineResult,
    PipelineStep,
    ProgressEvent,
    ProgressStatus,
    RunState,
    StepAvailability,
    StepRecord,
)

__all__ = [
    "IMAGE_PIPELINE_STEPS",
    "COMPLETE_MESSAGE",
    "PipelineEngine",
    "ProgressCallback",
    "ContextPropagation",
    "PipelineResult",
    "PipelineStep",
    "ProgressEvent",
    "ProgressStatus",
    "RunState",
    "StepAvailability",
    "StepRecord",
]
