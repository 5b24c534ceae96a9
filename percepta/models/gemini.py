"""Gemini-backed analysis models.

Engine 1 (GeminiVisionModel): object and hazard detection.
Engine 2 (GeminiReasoningModel): safety analysis and report generation,
using the detections from engine 1 as context.

Both variants satisfy AnalysisModel structurally and delegate the network
call to a ModelBackend, so tests can inject a fake backend.
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from percepta.config import DEFAULT_MODEL
from percepta.llm.backends import ModelBackend, get_backend
from percepta.llm.client import parse_llm_json_response
from percepta.media import ImageInput
from percepta.models.contract import (
    CapabilityDescriptor,
    MediaType,
    ModelErrorRecord,
    ModelLifecycle,
    ModelRole,
    ModelState,
)
from percepta.models.errors import AnalysisError, ConfigurationError

logger = logging.getLogger(__name__)

VISION_PROMPT = """
You are an industrial safety vision system. Analyze this image and identify:
1. All persons/workers visible
2. Heavy machinery and equipment
3. Vehicles (forklifts, trucks, cranes)
4. Potential hazards (open pits, elevated areas, electrical equipment)

Return ONLY valid JSON in this exact format:
{
  "objects": [
    { "label": "person", "box_2d": [ymin, xmin, ymax, xmax], "score": 0.95 },
    { "label": "machine", "box_2d": [ymin, xmin, ymax, xmax], "score": 0.90 }
  ]
}

Rules:
- Use 0-1000 scale for all box coordinates
- Labels must be: "person", "machine", "vehicle", or "hazard"
- Include confidence score between 0 and 1
- No markdown, no explanation, just JSON
"""

REASONING_PROMPT = """
You are an expert Industrial Safety Officer conducting a comprehensive safety assessment.

DETECTED IN SCENE: [{summary}]

Analyze this industrial/construction site image and provide a safety report.

Return ONLY valid JSON in this exact format:
{{
  "risk_score": 75,
  "risk_level": "Warning",
  "findings": [
    {{
      "type": "warning",
      "title": "Title of finding",
      "description": "Brief description"
    }}
  ],
  "safety_report": "{report_template}"
}}

Rules:
- risk_score: 0-100 (0=completely safe, 100=critical danger)
- risk_level: "Safe" (0-30), "Warning" (31-70), or "Danger" (71-100)
- findings: Array of 2-5 key observations with type: "success", "warning", or "danger"
- safety_report: Detailed markdown report in {language}
- Consider: PPE compliance, proximity hazards, equipment safety, environmental factors
- No markdown blocks around JSON, just pure JSON
"""

# report_language -> (language name, report skeleton, placeholder when missing)
REPORT_LANGUAGES = {
    "ar": (
        "Arabic",
        "## تقرير السلامة الصناعية\\n\\n### الملخص التنفيذي\\n...\\n\\n"
        "### المخاطر المحددة\\n...\\n\\n### التوصيات\\n...",
        "تقرير غير متوفر",
    ),
    "en": (
        "English",
        "## Industrial Safety Report\\n\\n### Executive Summary\\n...\\n\\n"
        "### Identified Risks\\n...\\n\\n### Recommendations\\n...",
        "Report unavailable",
    ),
}


class Finding(BaseModel):
    """One key observation in a safety report."""

    type: str = "warning"
    title: str = ""
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def _from_text(cls, data: Any) -> Any:
        # Bare strings are taken as the finding's title
        if isinstance(data, str):
            return {"title": data}
        return data


class SafetyReport(BaseModel):
    """Normalized output of the reasoning engine."""

    risk_score: int = Field(default=0, ge=0, le=100)
    risk_level: str = "Safe"
    findings: list[Finding] = Field(default_factory=list)
    safety_report: str = ""

    @field_validator("risk_score", mode="before")
    @classmethod
    def _clamp_score(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return max(0, min(100, round(v)))
        return v


def _require_image(input: Any) -> ImageInput:
    if not isinstance(input, ImageInput):
        raise TypeError(f"Expected ImageInput, got {type(input).__name__}")
    return input


class _GeminiModel:
    """Shared plumbing for the two Gemini variants (not part of the contract)."""

    _key_label = "Model"
    # Parsed in place of an empty model reply
    _empty_response = "{}"

    def __init__(
        self,
        api_key: str = "",
        model_id: str = DEFAULT_MODEL,
        *,
        backend: Optional[ModelBackend] = None,
        image_quality: float = 0.8,
        max_image_size: Optional[int] = 4096,
    ):
        self.backend = backend if backend is not None else get_backend(model_id, api_key)
        self.image_quality = image_quality
        self.max_image_size = max_image_size
        self.lifecycle = ModelLifecycle(type(self).__name__)

    @property
    def state(self) -> ModelState:
        return self.lifecycle.state

    @property
    def last_error(self) -> Optional[ModelErrorRecord]:
        return self.lifecycle.last_error

    async def initialize(self) -> None:
        if not self.backend.is_configured():
            raise ConfigurationError(f"{self._key_label} API key not configured")
        self.lifecycle.mark_initialized()

    async def health_check(self) -> bool:
        return self.backend.is_configured()

    async def _generate(self, prompt: str, image: ImageInput, quality: float) -> dict:
        image_bytes = image.to_jpeg(quality=quality, max_size=self.max_image_size)
        result = await self.backend.generate_with_image(
            prompt,
            image_bytes,
            "image/jpeg",
            label=type(self).__name__,
        )
        return parse_llm_json_response(result.content or self._empty_response)

    def _fail(self, error: Exception) -> AnalysisError:
        self.lifecycle.record_error(error, "analyze")
        return AnalysisError(
            f"{type(self).__name__} analysis failed: {error}",
            model_id=self.backend.model_id,
        )


class GeminiVisionModel(_GeminiModel):
    """Gemini vision model for object/hazard detection."""

    _key_label = "Vision"
    _empty_response = '{"objects": []}'

    def get_capabilities(self) -> CapabilityDescriptor:
        return CapabilityDescriptor(
            media_type=MediaType.IMAGE,
            role=ModelRole.DETECTION,
            priority=1,
            supported_features=["bounding_boxes", "object_labels", "confidence_scores"],
        )

    async def analyze(self, input: Any, context: Optional[dict[str, Any]] = None) -> list[dict]:
        """Detect objects in an image.

        Returns:
            List of {"label", "box_2d", "score"} dicts (0-1000 box scale)
        """
        try:
            image = _require_image(input)
            parsed = await self._generate(VISION_PROMPT, image, self.image_quality)
            objects = parsed.get("objects") or []
            if not isinstance(objects, list):
                raise ValueError("'objects' is not a list")
            logger.info(f"Vision detected {len(objects)} objects")
            return objects
        except Exception as e:
            raise self._fail(e) from e


class GeminiReasoningModel(_GeminiModel):
    """Gemini reasoning model for safety analysis."""

    _key_label = "Reasoning"

    def __init__(self, *args: Any, report_language: str = "ar", **kwargs: Any):
        kwargs.setdefault("image_quality", 0.6)
        super().__init__(*args, **kwargs)
        if report_language not in REPORT_LANGUAGES:
            raise ValueError(
                f"Unsupported report language '{report_language}'. "
                f"Available: {sorted(REPORT_LANGUAGES)}"
            )
        self.report_language = report_language

    def get_capabilities(self) -> CapabilityDescriptor:
        return CapabilityDescriptor(
            media_type=MediaType.IMAGE,
            role=ModelRole.ANALYSIS,
            priority=1,
            supported_features=["risk_assessment", "safety_report", "recommendations"],
        )

    def build_prompt(self, context: Optional[dict[str, Any]]) -> str:
        detections = (context or {}).get("detections") or []
        labels = [str(d.get("label", "")) for d in detections if isinstance(d, dict)]
        summary = ", ".join(label for label in labels if label) or "No objects detected"
        language, template, _ = REPORT_LANGUAGES[self.report_language]
        return REASONING_PROMPT.format(
            summary=summary, report_template=template, language=language
        )

    async def analyze(self, input: Any, context: Optional[dict[str, Any]] = None) -> dict:
        """Analyze an image for safety concerns.

        Returns:
            SafetyReport as a dict (risk_score, risk_level, findings, safety_report)
        """
        try:
            image = _require_image(input)
            parsed = await self._generate(self.build_prompt(context), image, self.image_quality)
            # Falsy fields fall back to the report defaults
            report = SafetyReport.model_validate(
                {k: v for k, v in parsed.items() if v not in (None, "", [])}
            )
            if not report.safety_report:
                report.safety_report = REPORT_LANGUAGES[self.report_language][2]
            return report.model_dump()
        except Exception as e:
            raise self._fail(e) from e
