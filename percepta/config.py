"""Configuration for models, keys, and feature flags.

Values come from environment variables, optionally layered over a YAML
file (PERCEPTA_CONFIG_FILE). Environment values always win.

Environment variables:
    GEMINI_API_KEY               Shared key for both engines
    PERCEPTA_VISION_API_KEY      Key for the vision engine (overrides shared)
    PERCEPTA_REASONING_API_KEY   Key for the reasoning engine (overrides shared)
    PERCEPTA_MODEL               Primary Gemini model id
    PERCEPTA_FALLBACK_MODEL      Gemini model id used by fallback registrations
    PERCEPTA_DEBUG               "1"/"true" enables debug logging
    PERCEPTA_CONFIG_FILE         Optional YAML file with any Settings field
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_FALLBACK_MODEL = "gemini-1.5-flash"

_TRUE_VALUES = ("1", "true", "yes")


class FeatureFlags(BaseModel):
    """Feature toggles."""

    video_analysis: bool = Field(
        default=False, description="Enable when video models are ready"
    )
    model_fallback: bool = Field(
        default=True,
        description="Register fallback engines on the fallback model id",
    )
    debug_mode: bool = False


class AnalysisSettings(BaseModel):
    """Knobs passed to the concrete analysis models."""

    image_quality: float = Field(default=0.8, ge=0.0, le=1.0, description="JPEG quality for uploads")
    reasoning_image_quality: float = Field(default=0.6, ge=0.0, le=1.0)
    max_image_size: int = Field(default=4096, description="Max dimension in pixels")
    report_language: str = "ar"


class Settings(BaseModel):
    """Full application configuration."""

    vision_api_key: str = ""
    reasoning_api_key: str = ""
    model_id: str = DEFAULT_MODEL
    fallback_model_id: str = DEFAULT_FALLBACK_MODEL
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)


class ConfigValidation(BaseModel):
    """Outcome of validate_config()."""

    valid: bool
    issues: list[str] = Field(default_factory=list)


def _load_yaml(config_file: Path) -> dict[str, Any]:
    """Load a YAML settings file; a missing file is an empty config."""
    if not config_file.exists():
        logger.warning(f"Config file not found: {config_file}")
        return {}
    with open(config_file, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_file} must contain a mapping")
    return data


def load_settings(config_file: Optional[Path] = None) -> Settings:
    """Build Settings from an optional YAML file plus environment variables."""
    if config_file is None and os.environ.get("PERCEPTA_CONFIG_FILE"):
        config_file = Path(os.environ["PERCEPTA_CONFIG_FILE"])

    data: dict[str, Any] = _load_yaml(config_file) if config_file else {}

    shared_key = os.environ.get("GEMINI_API_KEY", "")
    vision_key = os.environ.get("PERCEPTA_VISION_API_KEY", shared_key)
    reasoning_key = os.environ.get("PERCEPTA_REASONING_API_KEY", shared_key)
    if vision_key:
        data["vision_api_key"] = vision_key
    if reasoning_key:
        data["reasoning_api_key"] = reasoning_key

    if os.environ.get("PERCEPTA_MODEL"):
        data["model_id"] = os.environ["PERCEPTA_MODEL"]
    if os.environ.get("PERCEPTA_FALLBACK_MODEL"):
        data["fallback_model_id"] = os.environ["PERCEPTA_FALLBACK_MODEL"]

    if os.environ.get("PERCEPTA_DEBUG", "").lower() in _TRUE_VALUES:
        data.setdefault("features", {})["debug_mode"] = True

    return Settings.model_validate(data)


def validate_config(settings: Settings) -> ConfigValidation:
    """Report missing prerequisites without raising."""
    issues = []
    if not settings.vision_api_key:
        issues.append("Vision API key not configured")
    if not settings.reasoning_api_key:
        issues.append("Reasoning API key not configured")
    return ConfigValidation(valid=not issues, issues=issues)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
