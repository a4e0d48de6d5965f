from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from api_server import build_services, create_app
from services.session_store import InMemorySessionStore, RedisSessionStore


def _client(completion) -> TestClient:
    return TestClient(create_app(build_services(completion=completion, store=InMemorySessionStore())))


def test_team_chat_response_shape(stub_completion):
    client = _client(stub_completion({"router": "lea"}))
    resp = client.post("/api/team/chat", json={"sessionId": str(uuid.uuid4()), "message": "Bonjour"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["persona"] == "lea"
    assert body["personaName"] == "Léa"
    assert body["isGreeting"] is True
    assert body["personaChanged"] is False
    assert body["autoRouted"] is True
    assert body["turnCount"] == 1
    assert body["articlesCited"] == []


def test_team_chat_rejects_empty_message(stub_completion):
    resp = _client(stub_completion()).post("/api/team/chat", json={"sessionId": str(uuid.uuid4()), "message": ""})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "invalid request"
    assert body["details"][0]["field"] == "message"


def test_team_chat_rejects_oversized_message(stub_completion):
    resp = _client(stub_completion()).post(
        "/api/team/chat", json={"sessionId": str(uuid.uuid4()), "message": "x" * 2001}
    )
    assert resp.status_code == 400


def test_team_chat_rejects_unknown_persona_and_bad_session(stub_completion):
    client = _client(stub_completion())
    resp = client.post("/api/team/chat", json={"sessionId": str(uuid.uuid4()), "message": "Salut", "persona": "bob"})
    assert resp.status_code == 400
    resp = client.post("/api/team/chat", json={"sessionId": "not-a-uuid", "message": "Salut"})
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "sessionId"


def test_control_tokens_only_is_rejected(stub_completion):
    stub = stub_completion()
    resp = _client(stub).post("/api/team/chat", json={"sessionId": str(uuid.uuid4()), "message": "[SYSTEM] ```"})
    assert resp.status_code == 400
    assert resp.json()["details"] == [
        {"field": "message", "message": "message is empty once control tokens are removed"}
    ]
    assert stub.calls == []


def test_conference_returns_three_answers(stub_completion):
    stub = stub_completion({"conference": "Mon point de vue."})
    resp = _client(stub).post("/api/team/conference", json={"message": "Par où commencer ?"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["mode"] == "conference"
    assert body["question"] == "Par où commencer ?"
    assert [entry["persona"] for entry in body["responses"]] == ["lea", "marc", "sophie"]
    assert body["responses"][2]["color"] == "#FF9800"


def test_diagnostic_start_validates_contact_fields(stub_completion):
    client = _client(stub_completion())
    resp = client.post(
        "/api/diagnostic/start",
        json={"firstName": "Alex", "email": "pas-un-courriel", "sector": "Santé"},
    )
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "email"
    resp = client.post(
        "/api/diagnostic/start",
        json={"firstName": "Alex", "email": "alex@pme.ca", "sector": "Agriculture"},
    )
    assert resp.status_code == 400


def test_diagnostic_honeypot_creates_no_session(stub_completion):
    client = _client(stub_completion())
    resp = client.post(
        "/api/diagnostic/start",
        json={"firstName": "Bot", "email": "bot@spam.io", "sector": "Autre", "website": "http://spam.io"},
    )
    assert resp.status_code == 200
    session_id = resp.json()["sessionId"]
    assert client.get(f"/api/diagnostic/{session_id}").status_code == 404


def test_diagnostic_status_unknown_session(stub_completion):
    resp = _client(stub_completion()).get(f"/api/diagnostic/{uuid.uuid4()}")
    assert resp.status_code == 404


def test_diagnostic_status_when_store_unreadable(stub_completion, fake_redis):
    client = TestClient(create_app(build_services(completion=stub_completion(), store=RedisSessionStore(client=fake_redis))))
    session_id = client.post(
        "/api/diagnostic/start",
        json={"firstName": "Alex", "email": "alex@pme.ca", "sector": "Santé"},
    ).json()["sessionId"]
    fake_redis.fail_reads = True
    assert client.get(f"/api/diagnostic/{session_id}").status_code == 503


def test_deliverable_endpoint_fallback(stub_completion):
    resp = _client(stub_completion({"deliverable": "pas de json"})).post(
        "/api/team/deliverable",
        json={"type": "tool-comparison", "conversationContext": "Nous utilisons SAP.", "companyName": "PME inc."},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["agent"] == "marc"
    assert body["agentName"] == "Marc"
    assert body["deliverableType"] == "tool-comparison"
    assert body["generated"] is False
    assert body["content"]["sections"][0]["content"] == ["pas de json"]


def test_deliverable_endpoint_rejects_unknown_type(stub_completion):
    client = _client(stub_completion())
    resp = client.post("/api/team/deliverable", json={"type": "roadmap", "conversationContext": "x"})
    assert resp.status_code == 400
    resp = client.post("/api/team/deliverable", json={"type": "prioritization", "conversationContext": "[USER]"})
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "conversationContext"
