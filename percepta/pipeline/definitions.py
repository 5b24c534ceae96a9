"""Built-in pipeline step declarations."""

from percepta.models.defaults import REASONING_MODEL_ID, VISION_MODEL_ID
from percepta.pipeline.schemas import PipelineStep

IMAGE_PIPELINE_STEPS: tuple[PipelineStep, ...] = (
    PipelineStep(
        name="vision",
        message="Scanning image...",
        model_id=VISION_MODEL_ID,
        context_key="detections",
    ),
    PipelineStep(
        name="reasoning",
        message="Analyzing safety...",
        model_id=REASONING_MODEL_ID,
    ),
)
