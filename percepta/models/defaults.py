"""Default model registrations for the image pipeline."""

import logging

from percepta.config import Settings
from percepta.models.gemini import GeminiReasoningModel, GeminiVisionModel
from percepta.registry import ModelRegistry

logger = logging.getLogger(__name__)

VISION_MODEL_ID = "gemini-vision"
REASONING_MODEL_ID = "gemini-reasoning"
VISION_FALLBACK_ID = "gemini-vision-fallback"
REASONING_FALLBACK_ID = "gemini-reasoning-fallback"


def _build_vision(settings: Settings, model_id: str) -> GeminiVisionModel:
    return GeminiVisionModel(
        api_key=settings.vision_api_key,
        model_id=model_id,
        image_quality=settings.analysis.image_quality,
        max_image_size=settings.analysis.max_image_size,
    )


def _build_reasoning(settings: Settings, model_id: str) -> GeminiReasoningModel:
    return GeminiReasoningModel(
        api_key=settings.reasoning_api_key,
        model_id=model_id,
        image_quality=settings.analysis.reasoning_image_quality,
        max_image_size=settings.analysis.max_image_size,
        report_language=settings.analysis.report_language,
    )


def register_default_models(registry: ModelRegistry, settings: Settings) -> ModelRegistry:
    """Register the vision and reasoning engines (and their fallbacks).

    Fallbacks run the same variants against settings.fallback_model_id and
    are only registered when the feature flag is on and the fallback model
    differs from the primary one.
    """
    registry.register(VISION_MODEL_ID, _build_vision(settings, settings.model_id), priority=1)
    registry.register(REASONING_MODEL_ID, _build_reasoning(settings, settings.model_id), priority=1)

    if settings.features.model_fallback and settings.fallback_model_id != settings.model_id:
        registry.register(
            VISION_FALLBACK_ID,
            _build_vision(settings, settings.fallback_model_id),
            priority=0,
            fallback_for=VISION_MODEL_ID,
        )
        registry.register(
            REASONING_FALLBACK_ID,
            _build_reasoning(settings, settings.fallback_model_id),
            priority=0,
            fallback_for=REASONING_MODEL_ID,
        )
    else:
        logger.info("Model fallback disabled; registering primaries only")

    return registry
