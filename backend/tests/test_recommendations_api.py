from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from conftest import RecordingSleep, ScriptedLLMClient
from destinai.config import Settings, settings
from destinai.main import _LOG_DIR, GENERIC_FAILURE_MESSAGE, app
from destinai.routers.recommendations import get_recommender
from destinai.services.llm_client import ProviderHTTPError, TransportError, TransportTimeoutError
from destinai.services.recommendation.recommender import DestinationRecommender

REQUEST = {
    "who": "solo",
    "travel_type": "backpacking",
    "accommodation": "hostels",
    "activities": ["hiking", "surfing"],
    "budget": "medium",
    "weather": "sunny_dry",
    "season": "summer",
}


@pytest.fixture
def api():
    """Yields a function that scripts the LLM and returns a test client."""
    def scripted(*responses):
        client = ScriptedLLMClient(*responses)
        app.dependency_overrides[get_recommender] = lambda: DestinationRecommender(client, sleep=RecordingSleep())
        return TestClient(app, raise_server_exceptions=False), client

    yield scripted
    app.dependency_overrides.clear()


def test_health():
    response = TestClient(app).get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "destinai"}


def test_recommendations_success(api, valid_response):
    client, llm = api(valid_response)
    response = client.post("/api/recommendations", json=REQUEST)

    assert response.status_code == 200
    body = response.json()
    assert body["schema_version"] == "1.0"
    assert [d["country"] for d in body["destinations"]] == ["Portugal", "Japan", "Canada", "Chile", "New Zealand"]
    assert body["destinations"][1]["relaxed_constraints"] == ["weather"]
    assert "activities: hiking, surfing" in llm.prompts[0]


@pytest.mark.parametrize(
    "override, field",
    [
        ({"who": "family"}, "who"),
        ({"season": "monsoon"}, "season"),
        ({"activities": []}, "activities"),
        ({"activities": ["hiking", "  "]}, "activities"),
    ],
)
def test_invalid_request(api, override, field):
    client, llm = api()
    response = client.post("/api/recommendations", json={**REQUEST, **override})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert body["message"] == "Validation failed."
    assert field in body["field_errors"]
    assert llm.calls == 0


def test_missing_field(api):
    client, _ = api()
    request = {k: v for k, v in REQUEST.items() if k != "budget"}
    response = client.post("/api/recommendations", json=request)
    assert response.status_code == 400
    assert "budget" in response.json()["field_errors"]


def test_timeout_maps_to_504(api):
    client, llm = api(TransportTimeoutError("slow"), TransportTimeoutError("slow"))
    response = client.post("/api/recommendations", json=REQUEST)

    assert response.status_code == 504
    assert response.json() == {
        "error": "llm_timeout",
        "message": GENERIC_FAILURE_MESSAGE,
        "field_errors": None,
    }
    assert llm.calls == 2


@pytest.mark.parametrize(
    "responses",
    [
        (ProviderHTTPError(503, "unavailable"),),
        (TransportError("reset"), TransportError("reset")),
    ],
)
def test_upstream_failure_maps_to_502(api, responses):
    client, _ = api(*responses)
    response = client.post("/api/recommendations", json=REQUEST)

    assert response.status_code == 502
    assert response.json()["error"] == "llm_unavailable"
    assert response.json()["message"] == GENERIC_FAILURE_MESSAGE


def test_validation_failure_maps_to_422(api, duplicate_response):
    client, llm = api(duplicate_response, duplicate_response)
    response = client.post("/api/recommendations", json=REQUEST)

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "llm_validation_failed"
    assert body["message"] == GENERIC_FAILURE_MESSAGE
    assert "Portugal" not in response.text
    assert llm.calls == 2


def test_unexpected_error_maps_to_500(api):
    client, _ = api(RuntimeError("bug"))
    response = client.post("/api/recommendations", json=REQUEST)

    assert response.status_code == 500
    assert response.json()["error"] == "internal_error"
    assert "bug" not in response.text


def test_overly_deep_model_output_maps_to_422(api):
    deep = "[" * 100000 + "]" * 100000
    client, llm = api(deep, deep)
    response = client.post("/api/recommendations", json=REQUEST)

    assert response.status_code == 422
    assert response.json()["error"] == "llm_validation_failed"
    assert llm.calls == 2


def test_log_directory_follows_settings(tmp_path):
    assert Settings(log_dir=str(tmp_path / "logs")).log_dir == str(tmp_path / "logs")
    assert _LOG_DIR == Path(settings.log_dir)
    assert _LOG_DIR.is_dir()
    assert "site-packages" not in str(_LOG_DIR.resolve())
