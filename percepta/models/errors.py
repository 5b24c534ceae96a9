"""Error taxonomy shared by models, the registry and the pipeline engine."""

from typing import Optional


class PerceptaError(Exception):
    """Base class for all Percepta errors."""


class ConfigurationError(PerceptaError):
    """A model is missing a prerequisite it needs to operate (e.g. an API key).

    Raised from initialize(), never from analyze().
    """


class ModelNotFoundError(PerceptaError):
    """The requested model id has no enabled registration."""

    def __init__(self, model_id: str):
        self.model_id = model_id
        super().__init__(f"Model not found: {model_id}")


class AnalysisError(PerceptaError):
    """A model's analyze() failed.

    The underlying cause (network failure, malformed response, timeout) is
    attached as __cause__ by raising with ``from``.
    """

    def __init__(self, message: str, model_id: Optional[str] = None):
        self.model_id = model_id
        super().__init__(message)


class FeatureUnavailableError(PerceptaError):
    """A declared pipeline whose models are not available yet."""


class PipelineResultFrozenError(PerceptaError):
    """Mutation attempted on a PipelineResult after complete()."""
