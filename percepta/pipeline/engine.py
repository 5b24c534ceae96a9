"""Sequential pipeline execution with per-step fallback.

A pipeline is an ordered list of steps. Each step runs its primary model
and, if that fails, each registered fallback in chain order. The engine:

1. Emits a "loading" progress event before each step
2. Runs the step via run_with_fallback()
3. Records the output and threads it as context to later steps
4. On a step's final failure, records it, emits an "error" event and stops
5. On success of every step, emits a final "success" event

Steps never run in parallel: each may consume the previous step's output.
There is no pipeline-level retry; recovery is per step via fallback chains.
"""

import logging
import time
from typing import Any, Callable, Iterable, Optional, Sequence

from percepta.models.errors import FeatureUnavailableError, ModelNotFoundError
from percepta.pipeline.definitions import IMAGE_PIPELINE_STEPS
from percepta.pipeline.schemas import (
    ContextPropagation,
    PipelineResult,
    PipelineStep,
    ProgressStatus,
    StepAvailability,
)
from percepta.registry import ModelRegistry

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str, ProgressStatus], None]

COMPLETE_MESSAGE = "Analysis complete"


class _Subscription:
    """One on_progress() registration; identity distinguishes duplicates."""

    __slots__ = ("callback",)

    def __init__(self, callback: ProgressCallback):
        self.callback = callback


class PipelineEngine:
    """Orchestrates model execution against a registry.

    Holds no reference to past results: every execute() call creates and
    returns its own PipelineResult.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        context_propagation: ContextPropagation = ContextPropagation.PREVIOUS,
    ):
        self.registry = registry
        self.context_propagation = context_propagation
        self._subscriptions: list[_Subscription] = []

    # ── Progress ──────────────────────────────────────────

    def on_progress(self, callback: ProgressCallback) -> Callable[[], None]:
        """Subscribe to progress updates.

        The callback receives (step_index, total_steps, message, status).
        Returns a function that removes exactly this subscription.
        """
        subscription = _Subscription(callback)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def _emit_progress(
        self,
        step: int,
        total: int,
        message: str,
        status: ProgressStatus = ProgressStatus.LOADING,
    ) -> None:
        """Invoke observers in registration order, isolating failures."""
        for subscription in list(self._subscriptions):
            # Unsubscribed by an earlier observer during this emit
            if subscription not in self._subscriptions:
                continue
            try:
                subscription.callback(step, total, message, status)
            except Exception:
                logger.exception(
                    f"Progress callback failed ({step}/{total}, {status.value})"
                )

    # ── Execution ─────────────────────────────────────────

    async def run_with_fallback(
        self,
        model_id: str,
        input: Any,
        context: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Run a model, falling back to its registered fallbacks on failure.

        Raises:
            ModelNotFoundError: If model_id has no enabled registration
            Exception: The primary model's original error, if the primary
                and every fallback fail
        """
        model = self.registry.get(model_id)
        if model is None:
            raise ModelNotFoundError(model_id)

        context = context if context is not None else {}

        try:
            return await model.analyze(input, context)
        except Exception as primary_error:
            logger.warning(f"Primary model {model_id} failed: {primary_error}")

            for fallback in self.registry.get_fallback_registrations(model_id):
                try:
                    logger.info(f"Trying fallback {fallback.model_id} for {model_id}")
                    output = await fallback.model.analyze(input, context)
                    logger.info(f"Fallback {fallback.model_id} succeeded for {model_id}")
                    return output
                except Exception as fallback_error:
                    logger.warning(f"Fallback {fallback.model_id} failed: {fallback_error}")

            raise primary_error

    async def execute(
        self,
        steps: Sequence[PipelineStep],
        input: Any,
    ) -> PipelineResult:
        """Execute steps in order against one input artifact.

        Fail-fast at step granularity: the first step whose primary and
        fallbacks all fail aborts the run. Step failures are reported on
        the returned result, never raised.
        """
        steps = tuple(steps)
        total = len(steps)
        result = PipelineResult().start()
        context: dict[str, Any] = {}

        logger.info(f"Starting pipeline: {total} steps, context={self.context_propagation.value}")

        for index, step in enumerate(steps):
            self._emit_progress(index + 1, total, step.message)
            step_start = time.perf_counter()

            try:
                output = await self.run_with_fallback(step.model_id, input, dict(context))
            except Exception as e:
                duration_ms = int((time.perf_counter() - step_start) * 1000)
                logger.error(
                    f"Step '{step.name}' ({step.model_id}) failed after {duration_ms}ms: {e}"
                )
                result.add_error(step.name, e, duration_ms)
                self._emit_progress(0, total, str(e), ProgressStatus.ERROR)
                return result.complete(False)

            duration_ms = int((time.perf_counter() - step_start) * 1000)
            result.add_step(step.name, output, duration_ms)
            logger.info(f"Step '{step.name}' completed in {duration_ms}ms")

            if self.context_propagation == ContextPropagation.ACCUMULATE:
                context[step.output_key] = output
            else:
                context = {step.output_key: output}

        self._emit_progress(total, total, COMPLETE_MESSAGE, ProgressStatus.SUCCESS)
        logger.info(f"Pipeline completed: {total} steps, {result.duration_ms}ms")
        return result.complete(True)

    async def execute_image_pipeline(self, image: Any) -> PipelineResult:
        """Run the two-step image pipeline (vision detection, then safety reasoning)."""
        return await self.execute(IMAGE_PIPELINE_STEPS, image)

    async def execute_video_pipeline(self, video: Any) -> PipelineResult:
        """Video analysis is declared but has no models yet."""
        result = PipelineResult().start()
        result.error = FeatureUnavailableError("Video analysis not yet implemented")
        logger.warning("Video pipeline requested but not yet implemented")
        return result.complete(False)

    # ── Introspection ─────────────────────────────────────

    def describe_steps(self, steps: Iterable[PipelineStep]) -> list[StepAvailability]:
        """Resolve each step's availability against the registry."""
        return [
            StepAvailability(
                name=step.name,
                message=step.message,
                model_id=step.model_id,
                available=self.registry.get(step.model_id) is not None,
                fallbacks=[
                    r.model_id
                    for r in self.registry.get_fallback_registrations(step.model_id)
                ],
            )
            for step in steps
        ]
