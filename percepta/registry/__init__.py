"""Capability-indexed model registry with fallback chains."""

from percepta.registry.registry import ModelRegistry
from percepta.registry.schemas import (
    CapabilityMatch,
    ModelHealth,
    Registration,
    RegistrationSummary,
)

__all__ = [
    "ModelRegistry",
    "CapabilityMatch",
    "ModelHealth",
    "Registration",
    "RegistrationSummary",
]
