"""Shared LLM backend utilities.

Provides the multimodal backend abstraction used by the concrete
analysis models, plus response parsing helpers.
"""

from percepta.llm.backends import (
    GeminiBackend,
    LLMCallResult,
    ModelBackend,
    get_backend,
)
from percepta.llm.client import parse_llm_json_response

__all__ = [
    "GeminiBackend",
    "LLMCallResult",
    "ModelBackend",
    "get_backend",
    "parse_llm_json_response",
]
