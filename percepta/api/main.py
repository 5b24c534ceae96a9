"""Percepta API - industrial safety image analysis service.

Exposes the model registry and the analysis pipelines:
- Model registrations, capability search and fallback chains
- Pipeline step availability
- Image analysis (vision detection, then safety reasoning)
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from percepta import __version__
from percepta.api.routes import analysis, models, pipelines
from percepta.config import Settings, get_settings, validate_config
from percepta.models.defaults import register_default_models
from percepta.models.errors import ConfigurationError
from percepta.pipeline import PipelineEngine
from percepta.registry import ModelRegistry

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def _initialize_models(registry: ModelRegistry) -> None:
    """Initialize every registered model; missing keys only warn."""
    for model_id in registry.list():
        model = registry.get_registration(model_id).model
        try:
            await model.initialize()
        except ConfigurationError as e:
            logger.warning(f"Model {model_id} not initialized: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    if app.state.settings is None:
        app.state.settings = get_settings()
    settings: Settings = app.state.settings

    if settings.features.debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)

    validation = validate_config(settings)
    for issue in validation.issues:
        logger.warning(f"Configuration issue: {issue}")

    if app.state.registry is None:
        logger.info("Registering default models...")
        app.state.registry = register_default_models(ModelRegistry(), settings)
    registry: ModelRegistry = app.state.registry
    await _initialize_models(registry)
    logger.info(f"Loaded {registry.count} models")

    app.state.engine = PipelineEngine(registry)

    logger.info("Percepta API ready")
    yield
    # Shutdown
    logger.info("Shutting down Percepta API")


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[ModelRegistry] = None,
) -> FastAPI:
    """Build the FastAPI app.

    Args:
        settings: Configuration; loaded from the environment when omitted
        registry: Pre-built registry; default Gemini models when omitted
    """
    app = FastAPI(
        title="Percepta API",
        description="""
## Industrial Safety Analysis

Runs uploaded images through a two-step pipeline:

- **Vision**: detects persons, machinery, vehicles and hazards
- **Reasoning**: scores the scene's risk and writes a safety report

### Key Endpoints

- `GET /v1/models` - List registered models
- `GET /v1/pipelines/image/steps` - Image pipeline availability
- `POST /v1/analyze/image` - Analyze a base64 image
""",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.engine = None

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    # Include routers with /v1 prefix
    app.include_router(models.router, prefix="/v1")
    app.include_router(pipelines.router, prefix="/v1")
    app.include_router(analysis.router, prefix="/v1")

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "service": "Percepta API",
            "version": __version__,
            "description": "Industrial safety image analysis",
            "docs": "/docs",
            "endpoints": {
                "models": "/v1/models",
                "pipelines": "/v1/pipelines/image/steps",
                "analyze_image": "/v1/analyze/image",
                "analyze_video": "/v1/analyze/video",
            },
        }

    @app.get("/health")
    async def health(request: Request):
        """Registry health plus configuration validation."""
        registry: ModelRegistry = request.app.state.registry
        models_health = await registry.health_check()
        validation = validate_config(request.app.state.settings)
        healthy = validation.valid and all(
            h.healthy for h in models_health.values() if h.enabled
        )
        return {
            "status": "healthy" if healthy else "degraded",
            "models_loaded": registry.count,
            "models": {k: v.model_dump() for k, v in models_health.items()},
            "config": validation.model_dump(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
