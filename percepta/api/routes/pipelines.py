"""Pipeline introspection routes."""

from fastapi import APIRouter, Depends

from percepta.api.deps import get_engine
from percepta.pipeline import IMAGE_PIPELINE_STEPS, PipelineEngine, StepAvailability

router = APIRouter(prefix="/pipelines", tags=["pipelines"])


@router.get("/image/steps", response_model=list[StepAvailability])
async def get_image_pipeline_steps(
    engine: PipelineEngine = Depends(get_engine),
) -> list[StepAvailability]:
    """Image pipeline steps with their current model availability."""
    return engine.describe_steps(IMAGE_PIPELINE_STEPS)
