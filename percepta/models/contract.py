"""Capability contract every analysis model satisfies.

A model is anything that structurally provides the four operations of
AnalysisModel. Variants do not inherit from a common base; shared
lifecycle bookkeeping is composed in via ModelLifecycle.
"""

import inspect
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class MediaType(str, Enum):
    """Kind of input artifact a model consumes."""
    IMAGE = "image"
    VIDEO = "video"
    UNKNOWN = "unknown"


class ModelRole(str, Enum):
    """Position a model plays in a pipeline."""
    DETECTION = "detection"
    ANALYSIS = "analysis"
    UNKNOWN = "unknown"


class ModelState(str, Enum):
    """Model lifecycle states."""
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    ERRORED = "errored"


class CapabilityDescriptor(BaseModel):
    """Static description of what a model can do.

    Read by the registry for capability-based discovery, so it must be
    fully populated before initialize() has run.
    """

    model_config = ConfigDict(frozen=True)

    media_type: MediaType = MediaType.UNKNOWN
    role: ModelRole = ModelRole.UNKNOWN
    priority: int = Field(default=1, description="Self-declared preference among peers")
    supported_features: list[str] = Field(default_factory=list)


class ModelErrorRecord(BaseModel):
    """Diagnostic record of the last failure a model observed."""

    message: str
    operation: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class AnalysisModel(Protocol):
    """Protocol for analysis model implementations."""

    async def initialize(self) -> None:
        """One-time setup. Raises ConfigurationError if prerequisites are absent."""
        ...

    async def analyze(self, input: Any, context: Optional[dict[str, Any]] = None) -> Any:
        """Run analysis on the input artifact. Raises AnalysisError on failure."""
        ...

    async def health_check(self) -> bool:
        """Availability signal. Must not raise for ordinary unavailability."""
        ...

    def get_capabilities(self) -> CapabilityDescriptor: ...


_ASYNC_OPERATIONS = ("initialize", "analyze", "health_check")


def is_valid_model(obj: Any) -> bool:
    """Check whether obj is a valid registrant.

    runtime_checkable only verifies attribute presence, so this also
    requires the lifecycle operations to be coroutine functions.
    """
    if not isinstance(obj, AnalysisModel):
        return False
    if not callable(getattr(obj, "get_capabilities", None)):
        return False
    return all(
        inspect.iscoroutinefunction(getattr(obj, name))
        for name in _ASYNC_OPERATIONS
    )


class ModelLifecycle:
    """Lifecycle bookkeeping composed into concrete model variants.

    Tracks state and the last error. record_error() logs the failure,
    stores a ModelErrorRecord and returns the exception so callers can
    write ``raise self.lifecycle.record_error(e, "analyze")``.
    """

    def __init__(self, owner: str):
        self.owner = owner
        self.state = ModelState.UNINITIALIZED
        self.last_error: Optional[ModelErrorRecord] = None

    @property
    def initialized(self) -> bool:
        return self.state == ModelState.INITIALIZED

    def mark_initialized(self) -> None:
        self.state = ModelState.INITIALIZED

    def record_error(self, error: BaseException, operation: str = "") -> BaseException:
        self.last_error = ModelErrorRecord(message=str(error), operation=operation)
        self.state = ModelState.ERRORED
        logger.error(f"[{self.owner}] Error in {operation or 'unknown'}: {error}")
        return error
