"""Tests for the lead and chat API endpoints."""

import csv
import io

from support import GIBBERISH_REPLIES, HOT_REPLIES


def _create_lead(client, **overrides):
    payload = {"name": "Asha", "phone": "9876543210", "source": "Facebook"}
    payload.update(overrides)
    resp = client.post("/api/v1/leads", json=payload)
    assert resp.status_code == 200
    return resp.json()


def _send(client, lead_id, message):
    return client.post(f"/api/v1/chat/{lead_id}/message", json={"message": message})


def test_root_endpoint(client):
    resp = client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["service"] == "GrowEasy Realtors"
    assert data["industry"] == "realEstate"
    assert data["questions"] == 4


def test_health_endpoint(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["services"]["session_store"] == "InMemorySessionStore"


def test_create_lead(client):
    data = _create_lead(client, message="Looking for a 2BHK")
    assert data["success"] is True
    assert len(data["initialMessages"]) == 2
    assert "Asha" in data["initialMessages"][0]
    assert data["lead"]["classification"] == "Pending"
    assert data["lead"]["initialMessage"] == "Looking for a 2BHK"


def test_create_lead_requires_phone(client):
    resp = client.post("/api/v1/leads", json={"name": "Asha"})
    assert resp.status_code == 422


def test_create_lead_blank_name(client):
    resp = client.post("/api/v1/leads", json={"name": "   ", "phone": "9876543210"})
    assert resp.status_code == 400


def test_hot_conversation(client):
    lead_id = _create_lead(client)["leadId"]

    for reply in HOT_REPLIES[:-1]:
        data = _send(client, lead_id, reply).json()
        assert data["isComplete"] is False
        assert data["validationResult"]["isValid"] is True

    resp = _send(client, lead_id, HOT_REPLIES[-1])
    assert resp.status_code == 200
    data = resp.json()
    assert data["isComplete"] is True
    assert data["status"] == "complete"
    assert data["currentStep"] == 4
    assert data["classification"]["classification"] == "Hot"

    lead = client.get(f"/api/v1/leads/{lead_id}").json()
    assert lead["classification"] == "Hot"
    assert lead["status"] == "Completed"
    assert lead["metadata"]["budget"] == "₹80L"

    chat = client.get(f"/api/v1/chat/{lead_id}").json()
    assert chat["isComplete"] is True
    assert chat["profile"]["budgetAmount"] == 8_000_000
    assert len(chat["validationHistory"]) == 4


def test_invalid_reply_gets_clarification(client):
    lead_id = _create_lead(client)["leadId"]
    data = _send(client, lead_id, "not sure").json()
    assert data["validationResult"] == {"isValid": False, "reason": "vague-location"}
    assert data["currentStep"] == 0
    assert data["messages"][0].startswith("Could you please specify the city")


def test_escalation_and_closed_conversation(client):
    lead_id = _create_lead(client)["leadId"]
    for reply in GIBBERISH_REPLIES:
        data = _send(client, lead_id, reply).json()

    assert data["status"] == "escalated"
    assert data["classification"]["classification"] == "Invalid"

    resp = _send(client, lead_id, "Pune")
    assert resp.status_code == 409


def test_empty_message(client):
    lead_id = _create_lead(client)["leadId"]
    assert _send(client, lead_id, "").status_code == 400
    assert client.post(f"/api/v1/chat/{lead_id}/message", json={}).status_code == 400


def test_long_message(client):
    lead_id = _create_lead(client)["leadId"]
    assert _send(client, lead_id, "x" * 2001).status_code == 422


def test_unknown_lead(client):
    assert _send(client, "missing", "Pune").status_code == 404
    assert client.get("/api/v1/chat/missing").status_code == 404
    assert client.get("/api/v1/leads/missing").status_code == 404


def test_list_and_filter_leads(client):
    hot_id = _create_lead(client, name="Asha")["leadId"]
    _create_lead(client, name="Ravi", source="Website")
    for reply in HOT_REPLIES:
        _send(client, hot_id, reply)

    data = client.get("/api/v1/leads").json()
    assert data["total"] == 2

    hot = client.get("/api/v1/leads", params={"classification": "Hot"}).json()
    assert [l["id"] for l in hot["leads"]] == [hot_id]

    website = client.get("/api/v1/leads", params={"source": "Website"}).json()
    assert [l["name"] for l in website["leads"]] == ["Ravi"]


def test_export_csv(client):
    lead_id = _create_lead(client)["leadId"]
    for reply in HOT_REPLIES:
        _send(client, lead_id, reply)

    resp = client.get("/api/v1/leads/export")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0] == [
        "Name", "Phone", "Source", "Classification", "Score",
        "Created At", "Location", "Budget", "Timeline",
    ]
    assert rows[1][:5] == ["Asha", "9876543210", "Facebook", "Hot", "10"]
    assert rows[1][6:8] == ["Koramangala, Bangalore", "₹80L"]


def test_reclassify(client):
    lead_id = _create_lead(client)["leadId"]
    assert client.post(f"/api/v1/leads/{lead_id}/reclassify").status_code == 409

    for reply in HOT_REPLIES:
        _send(client, lead_id, reply)
    resp = client.post(f"/api/v1/leads/{lead_id}/reclassify")
    assert resp.status_code == 200
    assert resp.json()["lead"]["classification"] == "Hot"


def test_lead_stats(client):
    lead_id = _create_lead(client)["leadId"]
    _create_lead(client, name="Ravi")
    for reply in HOT_REPLIES:
        _send(client, lead_id, reply)

    stats = client.get("/api/v1/leads/stats/summary").json()
    assert stats["total"] == 2
    assert stats["by_classification"] == {"Hot": 1, "Pending": 1}
    assert stats["average_score"] == 5.0
