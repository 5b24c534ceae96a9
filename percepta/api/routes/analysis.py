"""Analysis API routes.

Endpoints:
    POST /v1/analyze/image    Run the image pipeline on a base64 image
    POST /v1/analyze/video    Video pipeline (not yet available)

A failed pipeline is still a 200 response: ``success`` is false, ``error``
carries the message and the outputs of steps that did run stay visible.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from PIL import UnidentifiedImageError
from pydantic import BaseModel, Field

from percepta.api.deps import get_engine
from percepta.media import ImageInput
from percepta.pipeline import (
    PipelineEngine,
    PipelineResult,
    ProgressEvent,
    ProgressStatus,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analyze", tags=["analysis"])


class AnalyzeImageRequest(BaseModel):
    """Image submitted for analysis."""

    image: str = Field(..., description="Base64 image bytes (data: URLs accepted)")
    mime_type: str = "image/jpeg"
    filename: Optional[str] = None


class AnalysisResponse(BaseModel):
    """A serialized PipelineResult plus the progress observed while it ran."""

    success: bool
    state: str
    outputs: dict[str, Any] = Field(default_factory=dict)
    steps: list[dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None
    start_time: str
    end_time: Optional[str] = None
    duration_ms: int
    progress: list[ProgressEvent] = Field(default_factory=list)


def _to_response(result: PipelineResult, progress: list[ProgressEvent]) -> AnalysisResponse:
    data = result.model_dump(mode="json")
    return AnalysisResponse(
        success=data["success"],
        state=data["state"],
        outputs=data["outputs"],
        steps=data["steps"],
        error=data["error_message"],
        start_time=data["start_time"],
        end_time=data["end_time"],
        duration_ms=data["duration_ms"],
        progress=progress,
    )


@router.post("/image", response_model=AnalysisResponse)
async def analyze_image(
    request: AnalyzeImageRequest,
    engine: PipelineEngine = Depends(get_engine),
) -> AnalysisResponse:
    """Run vision detection then safety reasoning on one image."""
    try:
        image = ImageInput.from_base64(
            request.image, mime_type=request.mime_type, filename=request.filename
        )
        image.size()
    except (ValueError, UnidentifiedImageError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid image: {e}")

    # Per-request engine so concurrent requests record only their own events
    run_engine = PipelineEngine(
        engine.registry, context_propagation=engine.context_propagation
    )
    progress: list[ProgressEvent] = []

    def record(step: int, total: int, message: str, status: ProgressStatus) -> None:
        progress.append(
            ProgressEvent(step_index=step, total_steps=total, message=message, status=status)
        )

    run_engine.on_progress(record)
    result = await run_engine.execute_image_pipeline(image)

    if not result.success:
        logger.warning(f"Image analysis failed: {result.error_message}")
    return _to_response(result, progress)


@router.post("/video", response_model=AnalysisResponse)
async def analyze_video(
    engine: PipelineEngine = Depends(get_engine),
) -> AnalysisResponse:
    """Declared for API completeness; always returns a failed result."""
    result = await engine.execute_video_pipeline(None)
    return _to_response(result, [])
