import pytest
from fastapi.testclient import TestClient

from conftest import BA_TEXT, SAA_TEXT, MemoryRecorder

from ticket_intel.api import app, get_pipeline
from ticket_intel.pipeline import TicketPipeline


@pytest.fixture
def client():
    pipeline = TicketPipeline(recorder=MemoryRecorder(), llm_enabled=False)
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Request-ID"]


def test_parse_pasted_text(client):
    response = client.post("/parse/text", json={"text": SAA_TEXT})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["method"] == "carrier:SA"
    assert body["ticket"]["airlineLocator"] == "X7K2PQ"
    segment = body["itinerary"]["segments"][0]
    assert segment["flightNumber"] == "SA053"
    assert segment["departure"]["scheduledTime"] == "2025-09-28T20:30:00"


def test_blank_text_is_unprocessable(client):
    response = client.post("/parse/text", json={"text": "  "})
    assert response.status_code == 422
    body = response.json()
    assert body["error"] is True
    assert body["technicalReason"] == "Either text or html content is required"


def test_upload_text_file(client):
    response = client.post("/parse", files={"file": ("receipt.txt", BA_TEXT.encode(), "text/plain")})
    assert response.status_code == 200
    body = response.json()
    assert body["method"] == "carrier:BA"
    assert body["itinerary"]["bookingExtras"]["baggage"] == "2 × 23kg"
    assert body["itinerary"]["bookingExtras"]["extractedFrom"] == "text"


def test_empty_upload_is_rejected(client):
    response = client.post("/parse", files={"file": ("empty.pdf", b"", "application/pdf")})
    assert response.status_code == 400
    assert response.json()["detail"] == "Empty file"
