"""LLM backend abstraction for multimodal model calls.

Provides a unified interface for sending an image plus a text prompt to
a hosted model and getting back a normalized response. Concrete analysis
models (see percepta.models.gemini) own prompt construction and response
parsing; backends own provider-specific concerns:
- Client creation and credential checks
- Request construction (inline image bytes + prompt)
- Response text extraction and token counting
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from percepta.models.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class LLMCallResult:
    """Normalized response from any LLM backend."""

    content: str
    model_id: str
    input_tokens: int
    output_tokens: int
    duration_ms: int


@runtime_checkable
class ModelBackend(Protocol):
    """Protocol for multimodal backend implementations."""

    @property
    def model_id(self) -> str: ...

    def is_configured(self) -> bool: ...

    async def generate_with_image(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        *,
        max_tokens: int = 8192,
        label: str = "",
    ) -> LLMCallResult: ...


class GeminiBackend:
    """Google Gemini backend.

    Uses the async surface of the google-genai SDK
    (``client.aio.models.generate_content``) so that a pipeline step
    yields to the event loop while the request is in flight.

    Requires google-genai package: pip install google-genai
    """

    def __init__(self, model_id: str = "gemini-2.0-flash", api_key: str = ""):
        self._model_id = model_id
        self._api_key = (api_key or "").strip()
        self._client: Any = None

    @property
    def model_id(self) -> str:
        return self._model_id

    def is_configured(self) -> bool:
        """Return True when an API key has been configured."""
        return bool(self._api_key)

    def _get_client(self):
        """Get (and cache) a Gemini client."""
        if not self._api_key:
            raise ConfigurationError(
                f"No API key configured for {self._model_id}. "
                f"Set GEMINI_API_KEY or the per-model PERCEPTA_*_API_KEY variable."
            )
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate_with_image(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        *,
        max_tokens: int = 8192,
        label: str = "",
    ) -> LLMCallResult:
        """Send a text+image prompt to Gemini and return the generated text.

        An empty candidate yields empty content; callers decide what an
        empty answer means.

        Raises:
            ConfigurationError: If no API key is configured
        """
        from google.genai import types

        client = self._get_client()
        start_time = time.time()

        logger.info(
            f"[{label}] Gemini request: model={self._model_id}, "
            f"{len(image_bytes):,} image bytes, {len(prompt):,} prompt chars"
        )

        response = await client.aio.models.generate_content(
            model=self._model_id,
            contents=[
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                prompt,
            ],
            config=types.GenerateContentConfig(max_output_tokens=max_tokens),
        )

        duration_ms = int((time.time() - start_time) * 1000)

        raw_text = ""
        if response.candidates and response.candidates[0].content:
            for part in response.candidates[0].content.parts or []:
                raw_text += getattr(part, "text", "") or ""

        if not raw_text.strip():
            logger.warning(f"[{label}] Empty response from {self._model_id}")

        usage = getattr(response, "usage_metadata", None)
        input_tokens = (getattr(usage, "prompt_token_count", 0) or 0) if usage else 0
        output_tokens = (getattr(usage, "candidates_token_count", 0) or 0) if usage else 0

        logger.info(
            f"[{label}] Gemini completed: {input_tokens}+{output_tokens} tokens, "
            f"{duration_ms}ms, {len(raw_text):,} chars"
        )

        return LLMCallResult(
            content=raw_text.strip(),
            model_id=self._model_id,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            duration_ms=duration_ms,
        )


def get_backend(model_id: str, api_key: str = "") -> GeminiBackend:
    """Get the appropriate backend for a model ID.

    Raises:
        ValueError: If model_id is not recognized
    """
    if model_id.startswith("gemini-"):
        return GeminiBackend(model_id=model_id, api_key=api_key)
    raise ValueError(
        f"Unknown model: '{model_id}'. Expected a model ID starting with 'gemini-'."
    )
