"""Model registry schemas."""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, Field

from percepta.models.contract import CapabilityDescriptor


@dataclass
class Registration:
    """A model bound to an id plus registry-assigned metadata.

    The registry does not own the model; it only holds a reference for
    lookup.
    """

    model_id: str
    model: Any
    priority: int = 1
    fallback_for: Optional[str] = None
    enabled: bool = True


@dataclass(frozen=True)
class CapabilityMatch:
    """One result of a capability-based lookup."""

    model_id: str
    model: Any
    priority: int


class ModelHealth(BaseModel):
    """Health status of a single registered model."""

    healthy: bool
    enabled: bool
    error: Optional[str] = None


class RegistrationSummary(BaseModel):
    """Lightweight, serializable view of a registration."""

    model_id: str
    enabled: bool
    priority: int
    fallback_for: Optional[str] = None
    fallbacks: list[str] = Field(
        default_factory=list, description="Raw fallback chain for this id"
    )
    capabilities: CapabilityDescriptor
