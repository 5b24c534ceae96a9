"""Pipeline schemas: step declarations, progress events, and run results.

A PipelineResult is created at the start of a run, mutated only by the
engine during that run, and frozen once complete() is called.
"""

from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    computed_field,
    field_serializer,
)

from percepta.models.errors import PipelineResultFrozenError


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ProgressStatus(str, Enum):
    """Status carried by every progress event."""
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class RunState(str, Enum):
    """Pipeline run lifecycle states."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ContextPropagation(str, Enum):
    """Which prior outputs a step receives as context."""
    PREVIOUS = "previous"  # only the immediately preceding step's output
    ACCUMULATE = "accumulate"  # every prior step's output


class PipelineStep(BaseModel):
    """A named unit of work bound to a primary model id."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Key of this step's output in PipelineResult.outputs")
    message: str = Field(default="", description="Human-readable progress message")
    model_id: str = Field(..., description="Primary model id to run")
    context_key: Optional[str] = Field(
        default=None,
        description="Key under which later steps receive this output (defaults to name)",
    )

    @property
    def output_key(self) -> str:
        return self.context_key or self.name


class StepRecord(BaseModel):
    """Outcome of one executed step."""

    model_config = ConfigDict(frozen=True)

    name: str
    duration_ms: int = 0
    success: bool
    error: Optional[str] = None


class ProgressEvent(BaseModel):
    """A recorded progress notification."""

    step_index: int
    total_steps: int
    message: str
    status: ProgressStatus


class StepAvailability(BaseModel):
    """Whether a step's primary model (and its fallbacks) can currently run."""

    name: str
    message: str
    model_id: str
    available: bool
    fallbacks: list[str] = Field(default_factory=list)


class PipelineResult(BaseModel):
    """Output of one pipeline execution.

    Steps and outputs keep step declaration order. ``error`` holds the
    exception that aborted the run (excluded from serialization; see
    error_message). After complete(), steps is a tuple and outputs a
    read-only mapping.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    steps: list[StepRecord] = Field(default_factory=list)
    outputs: dict[str, Any] = Field(default_factory=dict)
    start_time: datetime = Field(default_factory=_now)
    end_time: Optional[datetime] = None
    success: bool = False
    state: RunState = RunState.PENDING
    error: Optional[BaseException] = Field(default=None, exclude=True)

    _frozen: bool = PrivateAttr(default=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if self._frozen:
            raise PipelineResultFrozenError(
                f"PipelineResult is complete; cannot set '{name}'"
            )
        super().__setattr__(name, value)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @field_serializer("steps")
    def _serialize_steps(self, steps: Any) -> list[StepRecord]:
        return list(steps)

    @field_serializer("outputs")
    def _serialize_outputs(self, outputs: Any) -> dict[str, Any]:
        return dict(outputs)

    @computed_field
    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    @computed_field
    @property
    def duration_ms(self) -> int:
        end = self.end_time or _now()
        return int((end - self.start_time).total_seconds() * 1000)

    def start(self) -> "PipelineResult":
        self.state = RunState.RUNNING
        return self

    def add_step(self, name: str, output: Any, duration_ms: int) -> None:
        """Record a successful step and its output."""
        self._check_mutable()
        self.steps.append(StepRecord(name=name, duration_ms=duration_ms, success=True))
        self.outputs[name] = output

    def add_error(self, name: str, error: BaseException, duration_ms: int) -> None:
        """Record a failed step; the error becomes the run's top-level error."""
        self._check_mutable()
        self.steps.append(
            StepRecord(name=name, duration_ms=duration_ms, success=False, error=str(error))
        )
        self.error = error

    def complete(self, success: bool = True) -> "PipelineResult":
        """Stamp end_time, set the terminal state and freeze the result."""
        self._check_mutable()
        self.end_time = _now()
        self.success = success
        self.state = RunState.COMPLETED if success else RunState.FAILED
        self.steps = tuple(self.steps)
        self.outputs = MappingProxyType(dict(self.outputs))
        self._frozen = True
        return self

    def _check_mutable(self) -> None:
        if self._frozen:
            raise PipelineResultFrozenError("PipelineResult is complete and read-only")
