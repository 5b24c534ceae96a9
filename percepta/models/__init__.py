"""Analysis models: the capability contract, error taxonomy and variants.

Concrete variants live in percepta.models.gemini and are imported
explicitly; this package only re-exports the contract.
"""

from percepta.models.contract import (
    AnalysisModel,
    CapabilityDescriptor,
    MediaType,
    ModelErrorRecord,
    ModelLifecycle,
    ModelRole,
    ModelState,
    is_valid_model,
)
from percepta.models.errors import (
    AnalysisError,
    ConfigurationError,
    FeatureUnavailableError,
    ModelNotFoundError,
    PerceptaError,
    PipelineResultFrozenError,
)

__all__ = [
    "AnalysisModel",
    "CapabilityDescriptor",
    "MediaType",
    "ModelErrorRecord",
    "ModelLifecycle",
    "ModelRole",
    "ModelState",
    "is_valid_model",
    "AnalysisError",
    "ConfigurationError",
    "FeatureUnavailableError",
    "ModelNotFoundError",
    "PerceptaError",
    "PipelineResultFrozenError",
]
