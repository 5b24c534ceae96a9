"""Model registry API routes.

Endpoints:
    GET  /v1/models                       List registrations
    GET  /v1/models/search                Capability lookup (media_type, role)
    GET  /v1/models/{model_id}            One registration
    GET  /v1/models/{model_id}/fallbacks  Raw and active fallback chain
    POST /v1/models/{model_id}/enable     Enable a registration
    POST /v1/models/{model_id}/disable    Disable a registration
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from percepta.api.deps import get_registry
from percepta.models.contract import CapabilityDescriptor, MediaType, ModelRole
from percepta.registry import ModelRegistry, RegistrationSummary

router = APIRouter(prefix="/models", tags=["models"])


class CapabilityMatchResponse(BaseModel):
    model_id: str
    priority: int
    capabilities: CapabilityDescriptor


class FallbackChainResponse(BaseModel):
    model_id: str
    chain: list[str]
    active: list[str]


class ModelStateResponse(BaseModel):
    model_id: str
    enabled: bool


def _get_or_404(registry: ModelRegistry, model_id: str) -> RegistrationSummary:
    for summary in registry.describe():
        if summary.model_id == model_id:
            return summary
    raise HTTPException(status_code=404, detail=f"Model not found: {model_id}")


@router.get("", response_model=list[RegistrationSummary])
async def list_models(
    registry: ModelRegistry = Depends(get_registry),
) -> list[RegistrationSummary]:
    """List every registration in registration order."""
    return registry.describe()


@router.get("/search", response_model=list[CapabilityMatchResponse])
async def search_models(
    media_type: Optional[MediaType] = None,
    role: Optional[ModelRole] = None,
    registry: ModelRegistry = Depends(get_registry),
) -> list[CapabilityMatchResponse]:
    """Enabled models matching a capability filter, highest priority first."""
    return [
        CapabilityMatchResponse(
            model_id=match.model_id,
            priority=match.priority,
            capabilities=match.model.get_capabilities(),
        )
        for match in registry.get_by_capability(media_type=media_type, role=role)
    ]


@router.get("/{model_id}", response_model=RegistrationSummary)
async def get_model(
    model_id: str,
    registry: ModelRegistry = Depends(get_registry),
) -> RegistrationSummary:
    """Get one registration (enabled or not)."""
    return _get_or_404(registry, model_id)


@router.get("/{model_id}/fallbacks", response_model=FallbackChainResponse)
async def get_model_fallbacks(
    model_id: str,
    registry: ModelRegistry = Depends(get_registry),
) -> FallbackChainResponse:
    """Fallback chain for a primary.

    ``chain`` is the raw registration-ordered list; ``active`` is what a
    failure would actually try right now.
    """
    if model_id not in registry:
        raise HTTPException(status_code=404, detail=f"Model not found: {model_id}")
    return FallbackChainResponse(
        model_id=model_id,
        chain=registry.get_fallback_chain(model_id),
        active=[r.model_id for r in registry.get_fallback_registrations(model_id)],
    )


@router.post("/{model_id}/enable", response_model=ModelStateResponse)
async def enable_model(
    model_id: str,
    registry: ModelRegistry = Depends(get_registry),
) -> ModelStateResponse:
    if not registry.enable(model_id):
        raise HTTPException(status_code=404, detail=f"Model not found: {model_id}")
    return ModelStateResponse(model_id=model_id, enabled=True)


@router.post("/{model_id}/disable", response_model=ModelStateResponse)
async def disable_model(
    model_id: str,
    registry: ModelRegistry = Depends(get_registry),
) -> ModelStateResponse:
    if not registry.disable(model_id):
        raise HTTPException(status_code=404, detail=f"Model not found: {model_id}")
    return ModelStateResponse(model_id=model_id, enabled=False)
