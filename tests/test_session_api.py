"""
Session API tests through the FastAPI app with an in-memory session store.
"""

import json

import pytest
from fastapi.testclient import TestClient

from apitherapy.adapters.external.recommendation_service_rules import (
    KeywordProtocolRecommendationService,
)
from apitherapy.api.deps import get_recommendation_service, get_session_store
from apitherapy.app import app
from apitherapy.core.config import reset_settings

INTAKE = {
    "fullName": "A",
    "age": 30,
    "condition": "Rheumatoid arthritis",
    "severity": "moderate",
    "allergiesConfirmed": True,
}


@pytest.fixture
def client(store):
    reset_settings()
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_recommendation_service] = KeywordProtocolRecommendationService
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_settings()


def _start(client, protocol_id="p1"):
    assert client.post("/session/patient", json=INTAKE).status_code == 200
    assert client.post("/session/protocol", json={"protocolId": protocol_id}).status_code == 200


def test_get_empty_session(client):
    response = client.get("/session")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["step"] == "intake"
    assert body["data"]["state"] == {"patient": None, "selectedProtocol": None, "appliedPoints": []}
    assert response.headers["X-Request-ID"]


def test_full_treatment_flow(client, repository):
    response = client.post("/session/patient", json=INTAKE)
    assert response.json()["data"]["step"] == "selection"
    assert response.json()["data"]["is_saving"] is True

    recommendation = client.get("/session/recommendation").json()["data"]
    assert recommendation["protocol_id"] == "p1"
    assert recommendation["source"] == "rules"

    response = client.post("/session/protocol", json={"protocolId": "p1"})
    assert response.json()["data"]["step"] == "interactive_map"

    for point_id in ("st36_l", "li4_l", "st36_l"):
        response = client.post(f"/session/points/{point_id}/toggle")
        assert response.status_code == 200
    assert response.json()["data"] == {
        "point_id": "st36_l",
        "applied": False,
        "applied_points": ["li4_l"],
    }
    assert json.loads(repository.raw)["appliedPoints"] == ["li4_l"]

    response = client.post("/session/finalize")
    assert response.status_code == 200
    summary = response.json()["data"]
    assert summary["reference_id"].startswith("ATP-")
    assert summary["sting_count"] == 1

    assert client.get("/session/summary").json()["data"]["reference_id"] == summary["reference_id"]


def test_intake_without_allergy_confirmation_is_rejected(client):
    response = client.post("/session/patient", json={**INTAKE, "allergiesConfirmed": False})
    assert response.status_code == 422
    assert response.json()["error"] == "INVALID_INPUT"
    assert client.get("/session").json()["data"]["step"] == "intake"


@pytest.mark.parametrize(
    "override",
    [{"age": 130}, {"fullName": "   "}, {"severity": "extreme"}, {"age": "old"}],
)
def test_intake_validation(client, override):
    response = client.post("/session/patient", json={**INTAKE, **override})
    assert response.status_code == 422


def test_protocol_before_patient_conflicts(client):
    response = client.post("/session/protocol", json={"protocolId": "p2"})
    assert response.status_code == 409
    assert response.json()["error"] == "PRECONDITION_VIOLATION"


def test_recommendation_before_patient_conflicts(client):
    assert client.get("/session/recommendation").status_code == 409


def test_unknown_protocol_and_point_are_not_found(client):
    client.post("/session/patient", json=INTAKE)
    assert client.post("/session/protocol", json={"protocolId": "p9"}).status_code == 404
    response = client.post("/session/points/zz99/toggle")
    assert response.status_code == 404
    assert response.json()["error"] == "UNKNOWN_POINT"


def test_mutation_after_finalize_conflicts(client):
    _start(client)
    client.post("/session/finalize")
    response = client.post("/session/points/li4_l/toggle")
    assert response.status_code == 409
    assert response.json()["error"] == "SESSION_FINALIZED"


def test_toggle_before_protocol_conflicts(client, repository):
    response = client.post("/session/points/st36_l/toggle")
    assert response.status_code == 409
    assert response.json()["error"] == "PRECONDITION_VIOLATION"

    client.post("/session/patient", json=INTAKE)
    assert client.post("/session/points/st36_l/toggle").status_code == 409
    assert json.loads(repository.raw)["appliedPoints"] == []
    assert client.get("/session").json()["data"]["state"]["appliedPoints"] == []


def test_summary_missing_before_finalize(client):
    assert client.get("/session/summary").status_code == 404


def test_reset_requires_confirmation(client):
    _start(client)
    response = client.post("/session/reset", json={})
    assert response.status_code == 409
    assert response.json()["error"] == "RESET_NOT_CONFIRMED"
    assert client.get("/session").json()["data"]["step"] == "interactive_map"

    response = client.post("/session/reset", json={"confirm": True})
    assert response.status_code == 200
    assert response.json()["data"]["step"] == "intake"
    assert response.json()["data"]["state"]["patient"] is None


def test_view_switch_suspends_autosave(client, repository):
    client.post("/session/patient", json=INTAKE)
    saves = repository.save_count

    response = client.put("/session/view", json={"view": "admin"})
    assert response.json()["data"]["autosave_active"] is False
    client.post("/session/protocol", json={"protocolId": "p2"})
    assert repository.save_count == saves

    response = client.put("/session/view", json={"view": "treatment"})
    assert response.json()["data"]["autosave_active"] is True
    assert repository.save_count == saves + 1


def test_invalid_view_is_rejected(client):
    assert client.put("/session/view", json={"view": "kitchen"}).status_code == 422


def test_export_downloads_snapshot(client, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _start(client, "p3")
    client.post("/session/points/l4/toggle")

    response = client.get("/session/export")
    assert response.status_code == 200
    disposition = response.headers["content-disposition"]
    assert "attachment" in disposition
    assert "apitherapy-dump-" in disposition
    assert response.json()["appliedPoints"] == ["l4"]
    assert list(tmp_path.rglob("apitherapy-dump-*")) == []


def test_catalog_endpoints(client):
    protocols = client.get("/catalog/protocols").json()["data"]
    assert [p["id"] for p in protocols] == ["p1", "p2", "p3"]
    assert protocols[0]["recommendedPoints"] == ["st36_l", "st36_r", "li4_l", "li4_r"]

    points = client.get("/catalog/points").json()["data"]
    assert len(points) == 11
    assert client.get("/catalog/protocols/p2").json()["data"]["name"] == "Immune Modulation Protocol"
    assert client.get("/catalog/protocols/p7").status_code == 404
