"""Model registry - capability-indexed catalog with fallback chains.

Two independent concerns live here:
- priority ranks models for capability-based discovery
- fallback chains (insertion-ordered) drive failure recovery

Registries are constructed explicitly and passed to whoever needs them.
"""

import logging
from typing import Any, Optional

from percepta.models.contract import MediaType, ModelRole, is_valid_model
from percepta.registry.schemas import (
    CapabilityMatch,
    ModelHealth,
    Registration,
    RegistrationSummary,
)

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Registry of analysis models keyed by a stable string id.

    Not thread-safe; meant to be used from a single event loop.
    """

    def __init__(self):
        self._models: dict[str, Registration] = {}
        # primary id -> fallback ids, in registration order
        self._fallbacks: dict[str, list[str]] = {}

    def register(
        self,
        model_id: str,
        model: Any,
        *,
        priority: int = 1,
        fallback_for: Optional[str] = None,
        enabled: bool = True,
    ) -> "ModelRegistry":
        """Register (or replace) a model.

        Args:
            model_id: Unique identifier for the model
            model: Object satisfying the AnalysisModel protocol
            priority: Rank for capability lookup (higher first)
            fallback_for: Id of the primary model this one backs up
            enabled: Whether lookups may return this model

        Raises:
            TypeError: If model does not satisfy AnalysisModel
            ValueError: If model_id is empty or names itself as its primary
        """
        if not model_id:
            raise ValueError("model_id must be a non-empty string")
        if not is_valid_model(model):
            raise TypeError(
                f"{type(model).__name__} is not a valid model: it must provide "
                f"async initialize/analyze/health_check and get_capabilities"
            )
        if fallback_for == model_id:
            raise ValueError(f"Model '{model_id}' cannot be a fallback for itself")

        previous = self._models.get(model_id)
        if previous is not None and previous.fallback_for != fallback_for:
            self._remove_from_chain(previous.fallback_for, model_id)

        # dict assignment keeps an existing key's position
        self._models[model_id] = Registration(
            model_id=model_id,
            model=model,
            priority=priority,
            fallback_for=fallback_for,
            enabled=enabled,
        )

        if fallback_for:
            chain = self._fallbacks.setdefault(fallback_for, [])
            if model_id not in chain:
                chain.append(model_id)

        logger.info(
            f"Registered model: {model_id} "
            f"(priority={priority}, fallback_for={fallback_for or 'none'}, "
            f"enabled={enabled}) {model.get_capabilities().model_dump(mode='json')}"
        )
        return self

    def unregister(self, model_id: str) -> None:
        """Remove a model and purge it from every fallback chain. Idempotent."""
        removed = self._models.pop(model_id, None)
        for chain in self._fallbacks.values():
            if model_id in chain:
                chain.remove(model_id)
        if removed is not None:
            logger.info(f"Unregistered model: {model_id}")

    def _remove_from_chain(self, primary_id: Optional[str], model_id: str) -> None:
        if primary_id is None:
            return
        chain = self._fallbacks.get(primary_id)
        if chain and model_id in chain:
            chain.remove(model_id)

    def get(self, model_id: str) -> Optional[Any]:
        """Get an enabled model by id. Missing and disabled both return None."""
        registration = self._models.get(model_id)
        if registration is None or not registration.enabled:
            return None
        return registration.model

    def get_registration(self, model_id: str) -> Optional[Registration]:
        """Get the raw registration, regardless of enabled state."""
        return self._models.get(model_id)

    def enable(self, model_id: str) -> bool:
        """Enable a registration. Returns False if the id is unknown."""
        return self._set_enabled(model_id, True)

    def disable(self, model_id: str) -> bool:
        """Disable a registration without removing it from any chain."""
        return self._set_enabled(model_id, False)

    def _set_enabled(self, model_id: str, enabled: bool) -> bool:
        registration = self._models.get(model_id)
        if registration is None:
            return False
        registration.enabled = enabled
        logger.info(f"Model {model_id} {'enabled' if enabled else 'disabled'}")
        return True

    def get_by_capability(
        self,
        media_type: Optional[MediaType] = None,
        role: Optional[ModelRole] = None,
    ) -> list[CapabilityMatch]:
        """Find enabled models matching a capability filter.

        An unset filter field matches anything. Results are sorted by
        descending registry priority; ties keep registration order.
        """
        matches = []
        for model_id, registration in self._models.items():
            if not registration.enabled:
                continue
            caps = registration.model.get_capabilities()
            if media_type is not None and caps.media_type != media_type:
                continue
            if role is not None and caps.role != role:
                continue
            matches.append(
                CapabilityMatch(
                    model_id=model_id,
                    model=registration.model,
                    priority=registration.priority,
                )
            )
        # sorted() is stable
        return sorted(matches, key=lambda m: m.priority, reverse=True)

    def get_fallback_chain(self, model_id: str) -> list[str]:
        """Raw fallback ids for a primary, including disabled or missing ones."""
        return list(self._fallbacks.get(model_id, []))

    def get_fallback_registrations(self, model_id: str) -> list[Registration]:
        """Live, enabled fallback registrations for a primary, in chain order."""
        registrations = []
        for fallback_id in self._fallbacks.get(model_id, []):
            registration = self._models.get(fallback_id)
            if registration is not None and registration.enabled:
                registrations.append(registration)
        return registrations

    def get_fallbacks(self, model_id: str) -> list[Any]:
        """Live, enabled fallback models for a primary, in chain order."""
        return [r.model for r in self.get_fallback_registrations(model_id)]

    async def health_check(self) -> dict[str, ModelHealth]:
        """Check the health of every registered model.

        Each model is awaited independently; one that raises is reported
        unhealthy with its error message instead of aborting the check.
        """
        results: dict[str, ModelHealth] = {}
        for model_id, registration in list(self._models.items()):
            try:
                healthy = await registration.model.health_check()
                results[model_id] = ModelHealth(
                    healthy=bool(healthy), enabled=registration.enabled
                )
            except Exception as e:
                logger.warning(f"Health check failed for {model_id}: {e}")
                results[model_id] = ModelHealth(
                    healthy=False, enabled=registration.enabled, error=str(e)
                )
        return results

    def describe(self) -> list[RegistrationSummary]:
        """Serializable summaries of every registration, in registration order."""
        return [
            RegistrationSummary(
                model_id=r.model_id,
                enabled=r.enabled,
                priority=r.priority,
                fallback_for=r.fallback_for,
                fallbacks=self.get_fallback_chain(r.model_id),
                capabilities=r.model.get_capabilities(),
            )
            for r in self._models.values()
        ]

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models

    @property
    def count(self) -> int:
        """Number of registered models (enabled or not)."""
        return len(self._models)

    def list(self) -> list[str]:
        """All registered model ids, in registration order."""
        return list(self._models.keys())
