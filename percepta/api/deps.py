"""Request-scoped accessors for objects the lifespan stores on app.state."""

from fastapi import Request

from percepta.config import Settings
from percepta.pipeline import PipelineEngine
from percepta.registry import ModelRegistry


def get_registry(request: Request) -> ModelRegistry:
    return request.app.state.registry


def get_engine(request: Request) -> PipelineEngine:
    return request.app.state.engine


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
