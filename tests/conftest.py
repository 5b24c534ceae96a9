"""Shared fixtures: fake models, a tiny test image, fake LLM backends."""

import io
from typing import Any, Optional

import pytest
from PIL import Image

from percepta.llm.backends import LLMCallResult
from percepta.media import ImageInput
from percepta.models.contract import CapabilityDescriptor, MediaType, ModelRole
from percepta.registry import ModelRegistry


class FakeModel:
    """AnalysisModel test double that records every analyze() call."""

    def __init__(
        self,
        name: str = "fake",
        *,
        output: Any = None,
        error: Optional[BaseException] = None,
        healthy: Any = True,
        media_type: MediaType = MediaType.IMAGE,
        role: ModelRole = ModelRole.DETECTION,
        priority: int = 1,
    ):
        self.name = name
        self.output = output if output is not None else {"model": name}
        self.error = error
        self.healthy = healthy
        self.capabilities = CapabilityDescriptor(
            media_type=media_type, role=role, priority=priority
        )
        self.calls: list[tuple[Any, Optional[dict]]] = []
        self.initialized = False

    async def initialize(self) -> None:
        self.initialized = True

    async def analyze(self, input: Any, context: Optional[dict[str, Any]] = None) -> Any:
        self.calls.append((input, context))
        if self.error is not None:
            raise self.error
        return self.output

    async def health_check(self) -> bool:
        if isinstance(self.healthy, BaseException):
            raise self.healthy
        return self.healthy

    def get_capabilities(self) -> CapabilityDescriptor:
        return self.capabilities


class FakeBackend:
    """ModelBackend test double returning canned text."""

    def __init__(self, content: str = "{}", *, configured: bool = True, error: Optional[Exception] = None):
        self.content = content
        self.configured = configured
        self.error = error
        self.prompts: list[str] = []
        self.images: list[bytes] = []

    @property
    def model_id(self) -> str:
        return "gemini-test"

    def is_configured(self) -> bool:
        return self.configured

    async def generate_with_image(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        *,
        max_tokens: int = 8192,
        label: str = "",
    ) -> LLMCallResult:
        self.prompts.append(prompt)
        self.images.append(image_bytes)
        if self.error is not None:
            raise self.error
        return LLMCallResult(
            content=self.content,
            model_id=self.model_id,
            input_tokens=0,
            output_tokens=0,
            duration_ms=0,
        )


@pytest.fixture
def make_model():
    """Factory for FakeModel instances."""
    return FakeModel


@pytest.fixture
def make_backend():
    """Factory for FakeBackend instances."""
    return FakeBackend


@pytest.fixture
def registry():
    return ModelRegistry()


def _png_bytes(size: tuple[int, int] = (64, 48), mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color=(200, 40, 40, 255)[: len(mode)]).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _png_bytes()


@pytest.fixture
def image(png_bytes) -> ImageInput:
    return ImageInput(data=png_bytes, mime_type="image/png", filename="site.png")
