"""Tests for the HTTP API (FastAPI TestClient, fake models)."""

import base64

import pytest
from fastapi.testclient import TestClient

from percepta.api.main import create_app
from percepta.config import Settings
from percepta.models.contract import ModelRole
from percepta.registry import ModelRegistry


@pytest.fixture
def settings():
    return Settings(vision_api_key="v", reasoning_api_key="r")


@pytest.fixture
def models(make_model):
    return {
        "gemini-vision": make_model("vision", output=[{"label": "person", "score": 0.9}]),
        "gemini-reasoning": make_model(
            "reasoning", output={"risk_score": 20}, role=ModelRole.ANALYSIS
        ),
        "vision-backup": make_model("backup", output=[]),
    }


@pytest.fixture
def api_registry(models):
    registry = ModelRegistry()
    registry.register("gemini-vision", models["gemini-vision"], priority=2)
    registry.register("gemini-reasoning", models["gemini-reasoning"])
    registry.register(
        "vision-backup", models["vision-backup"], priority=0, fallback_for="gemini-vision"
    )
    return registry


@pytest.fixture
def client(settings, api_registry):
    app = create_app(settings=settings, registry=api_registry)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def image_body(png_bytes):
    return {"image": base64.b64encode(png_bytes).decode(), "mime_type": "image/png"}


class TestServiceEndpoints:
    def test_root(self, client):
        data = client.get("/").json()
        assert data["service"] == "Percepta API"
        assert "models" in data["endpoints"]

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["models_loaded"] == 3
        assert data["models"]["gemini-vision"]["healthy"] is True
        assert data["config"]["valid"] is True

    def test_health_degraded_without_keys(self, api_registry):
        app = create_app(settings=Settings(), registry=api_registry)
        with TestClient(app) as client:
            data = client.get("/health").json()
        assert data["status"] == "degraded"
        assert "Vision API key not configured" in data["config"]["issues"]

    def test_lifespan_initializes_models(self, client, models):
        assert all(model.initialized for model in models.values())


class TestModelRoutes:
    def test_list(self, client):
        data = client.get("/v1/models").json()
        assert [m["model_id"] for m in data] == [
            "gemini-vision",
            "gemini-reasoning",
            "vision-backup",
        ]
        assert data[0]["fallbacks"] == ["vision-backup"]

    def test_get_one(self, client):
        data = client.get("/v1/models/vision-backup").json()
        assert data["fallback_for"] == "gemini-vision"
        assert data["capabilities"]["media_type"] == "image"

    def test_unknown_model_is_404(self, client):
        assert client.get("/v1/models/ghost").status_code == 404
        assert client.get("/v1/models/ghost/fallbacks").status_code == 404
        assert client.post("/v1/models/ghost/enable").status_code == 404
        assert client.post("/v1/models/ghost/disable").status_code == 404

    def test_search(self, client):
        data = client.get("/v1/models/search", params={"role": "detection"}).json()
        assert [m["model_id"] for m in data] == ["gemini-vision", "vision-backup"]

    def test_search_bad_filter_is_400(self, client):
        assert client.get("/v1/models/search", params={"role": "juggling"}).status_code == 400

    def test_disable_and_fallbacks(self, client):
        response = client.post("/v1/models/vision-backup/disable")
        assert response.json() == {"model_id": "vision-backup", "enabled": False}

        data = client.get("/v1/models/gemini-vision/fallbacks").json()
        assert data["chain"] == ["vision-backup"]
        assert data["active"] == []

        client.post("/v1/models/vision-backup/enable")
        data = client.get("/v1/models/gemini-vision/fallbacks").json()
        assert data["active"] == ["vision-backup"]


class TestPipelineRoutes:
    def test_image_steps(self, client):
        data = client.get("/v1/pipelines/image/steps").json()
        assert [s["name"] for s in data] == ["vision", "reasoning"]
        assert data[0]["available"] is True
        assert data[0]["fallbacks"] == ["vision-backup"]

    def test_image_steps_reflect_disable(self, client):
        client.post("/v1/models/gemini-reasoning/disable")
        data = client.get("/v1/pipelines/image/steps").json()
        assert data[1]["available"] is False


class TestAnalyzeRoutes:
    def test_analyze_image(self, client, image_body, models):
        response = client.post("/v1/analyze/image", json=image_body)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["state"] == "completed"
        assert data["outputs"]["reasoning"] == {"risk_score": 20}
        assert [e["status"] for e in data["progress"]] == ["loading", "loading", "success"]
        assert data["progress"][-1]["message"] == "Analysis complete"
        context = models["gemini-reasoning"].calls[0][1]
        assert context == {"detections": [{"label": "person", "score": 0.9}]}

    def test_failed_pipeline_is_200_with_partial_outputs(self, client, image_body, models):
        models["gemini-reasoning"].error = RuntimeError("quota exceeded")

        response = client.post("/v1/analyze/image", json=image_body)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "quota exceeded"
        assert "vision" in data["outputs"]
        assert data["progress"][-1] == {
            "step_index": 0,
            "total_steps": 2,
            "message": "quota exceeded",
            "status": "error",
        }

    def test_fallback_used_when_primary_fails(self, client, image_body, models):
        models["gemini-vision"].error = RuntimeError("primary down")

        data = client.post("/v1/analyze/image", json=image_body).json()

        assert data["success"] is True
        assert data["outputs"]["vision"] == []

    def test_invalid_base64_is_400(self, client):
        response = client.post("/v1/analyze/image", json={"image": "%%%"})
        assert response.status_code == 400

    def test_undecodable_image_is_400(self, client):
        body = {"image": base64.b64encode(b"definitely not an image").decode()}
        assert client.post("/v1/analyze/image", json=body).status_code == 400

    def test_missing_body_field_is_400(self, client):
        assert client.post("/v1/analyze/image", json={}).status_code == 400

    def test_analyze_video(self, client):
        data = client.post("/v1/analyze/video").json()
        assert data["success"] is False
        assert data["error"] == "Video analysis not yet implemented"
