"""
API Escalation Flow Test

Evaluator intent:
- Triage results reach the client in the body AND the X-Escalation headers
- Cases are built server side; clients cannot set urgency
- Model failures surface as escalations, never as crashes
"""

import base64

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

import api.app as api_app
from api.app import app
from escalation.models import ImageAnalysis
from escalation.roster import DEFAULT_EXPERTS
from escalation.store import CaseStore
from knowledge.knowledge_base import search_knowledge_base
import llm.advisor as advisor


class FakeLLM:
    supports_images = True

    def __init__(self, text="Spray neem oil (3ml per liter) in the evening.", analysis=None):
        self.text = text
        self.analysis = analysis
        self.prompts = []

    def generate(self, system_prompt, user_prompt, temperature=0.7, max_tokens=None):
        self.prompts.append(user_prompt)
        return self.text

    def generate_structured(self, prompt, image_bytes, mime_type, schema, max_tokens=None):
        return self.analysis


@pytest.fixture
def client():
    app.state.cases = CaseStore()
    app.state.llm = FakeLLM()
    yield TestClient(app)
    app.state.llm = None


def _case_payload(**overrides):
    payload = {
        "query": "My coconut trees are dying",
        "category": "disease",
        "farmer_name": "Lakshmi",
        "farmer_phone": "+91-9111111111",
        "location": {"state": "Kerala", "district": "Kollam"},
    }
    payload.update(overrides)
    return payload


# ---------------- TRIAGE ----------------

def test_health(client):
    assert client.get("/").json() == {"status": "ok"}


def test_check_critical_query(client):
    r = client.post("/escalation/check", json={"query": "My crop is dying", "category": "pest"})

    assert r.status_code == 200
    body = r.json()
    assert body["escalation"]["should_escalate"] is True
    assert body["escalation"]["severity"] == "critical"
    assert body["escalation"]["triggers"][0]["keywords"] == ["dying"]
    assert body["urgency_level"] == 5

    assert r.headers["X-Escalation-Required"] == "true"
    assert r.headers["X-Escalation-Severity"] == "critical"


def test_check_quiet_query_has_no_headers(client):
    r = client.post("/escalation/check", json={"query": "Best time to sow wheat?"})

    assert r.json()["escalation"]["should_escalate"] is False
    assert r.json()["urgency_level"] is None
    assert "X-Escalation-Required" not in r.headers


def test_check_with_image_signal(client):
    r = client.post(
        "/escalation/check",
        json={"query": "", "image_analysis": {"confidence": 0.9, "severity": "critical"}},
    )

    assert r.json()["escalation"]["severity"] == "critical"
    assert r.json()["escalation"]["triggers"][0]["type"] == "image_analysis"


# ---------------- CHAT ----------------

def test_chat_grounded_answer_does_not_escalate(client):
    r = client.post("/chat", json={"question": "How to control aphid on my chilli plants?"})

    body = r.json()
    assert body["status"] == "answer"
    assert body["confidence"] == 0.8
    assert body["knowledge_hits"] == ["pest-001"]
    assert body["escalation"]["should_escalate"] is False
    assert "Aphid Infestation Management" in app.state.llm.prompts[0]


def test_chat_model_failure_escalates(client):
    app.state.llm = FakeLLM(text=None)

    r = client.post("/chat", json={"question": "What is wrong with my pepper vines?"})

    body = r.json()
    assert body["confidence"] == 0.0
    assert body["escalation"]["should_escalate"] is True
    assert body["escalation"]["severity"] == "high"
    assert r.headers["X-Escalation-Required"] == "true"


def test_chat_manual_escalation(client):
    r = client.post("/chat", json={"question": "How to control aphid?", "manual": True})

    assert r.json()["escalation"]["triggers"][0]["type"] == "manual"


def test_chat_and_cases_report_the_same_language(client, monkeypatch):
    detected = {"language": "ml", "language_name": "Malayalam", "confidence": 0.99, "is_reliable": True}
    monkeypatch.setattr(api_app, "detect_language", lambda text: detected)

    chat = client.post("/chat", json={"question": "How to control aphid?"}).json()
    case = client.post("/escalations", json=_case_payload()).json()

    assert chat["language"] == "Malayalam"
    assert case["language"] == "Malayalam"


def test_advisor_searches_knowledge_once(monkeypatch):
    calls = []

    def counting_search(query, *args, **kwargs):
        calls.append(query)
        return search_knowledge_base(query, *args, **kwargs)

    monkeypatch.setattr(advisor, "search_knowledge_base", counting_search)
    llm = FakeLLM()

    result = advisor.FarmerAdvisor(llm).answer("How to control aphid on my chilli plants?")

    assert calls == ["How to control aphid on my chilli plants?"]
    assert result["knowledge_hits"] == ["pest-001"]
    assert "**Aphid Infestation Management** (pest)" in llm.prompts[0]


def test_chat_rejects_empty_question(client):
    assert client.post("/chat", json={"question": "   "}).status_code == 400


def test_chat_asks_to_repeat_noisy_voice(client):
    r = client.post(
        "/chat",
        json={"question": "uh", "query_type": "voice", "transcript_confidence": 0.9},
    )

    assert r.json()["status"] == "repeat"
    assert app.state.llm.prompts == []


# ---------------- IMAGES ----------------

def _image_b64():
    ok, encoded = cv2.imencode(".png", np.full((200, 200, 3), 90, dtype=np.uint8))
    assert ok
    return base64.b64encode(encoded.tobytes()).decode()


def test_analyze_image_weak_result_escalates(client):
    app.state.llm = FakeLLM(
        analysis=ImageAnalysis(
            primary_issue="Leaf spot",
            confidence=0.5,
            category="disease",
            severity="medium",
            description="Brown spots on older leaves",
            recommendations=["Remove infected leaves"],
            urgency=False,
        )
    )

    r = client.post("/analyze-image", json={"image": _image_b64(), "filename": "leaf.png"})

    assert r.status_code == 200
    body = r.json()
    assert body["analysis"]["primary_issue"] == "Leaf spot"
    types = [t["type"] for t in body["escalation"]["triggers"]]
    assert types == ["confidence", "image_analysis"]
    assert body["escalation"]["severity"] == "high"


def test_analyze_image_rejects_bad_payloads(client):
    assert client.post("/analyze-image", json={"image": ""}).status_code == 400
    assert client.post("/analyze-image", json={"image": "@@@"}).status_code == 400

    not_an_image = base64.b64encode(b"hello").decode()
    assert client.post("/analyze-image", json={"image": not_an_image}).status_code == 400


def test_analyze_image_model_failure(client):
    r = client.post("/analyze-image", json={"image": _image_b64()})

    assert r.status_code == 502


# ---------------- CASES ----------------

def test_create_and_fetch_case(client):
    r = client.post("/escalations", json=_case_payload(urgency_level=1))

    assert r.status_code == 201
    case = r.json()
    assert case["status"] == "pending"
    assert case["severity"] == "critical"
    assert case["urgency_level"] == 5
    assert case["assigned_expert"] == "expert-001"
    assert case["farmer_contact"] == "+91-9111111111"

    fetched = client.get(f"/escalations/{case['id']}")
    assert fetched.json()["id"] == case["id"]


def test_non_escalating_query_cannot_become_case(client):
    r = client.post("/escalations", json=_case_payload(query="Best time to sow wheat?"))

    assert r.status_code == 422


def test_contact_details_are_required(client):
    r = client.post("/escalations", json=_case_payload(farmer_phone=None))

    assert r.status_code == 422


def test_status_transitions(client):
    case_id = client.post("/escalations", json=_case_payload()).json()["id"]

    r = client.post(f"/escalations/{case_id}/assign", json={"expert_id": "expert-002"})
    assert r.json()["status"] == "assigned"
    assert r.json()["assigned_expert"] == "expert-002"

    r = client.patch(f"/escalations/{case_id}/status", json={"status": "in_review"})
    assert r.json()["status"] == "in_review"

    r = client.patch(f"/escalations/{case_id}/status", json={"status": "pending"})
    assert r.status_code == 409

    r = client.patch("/escalations/missing/status", json={"status": "closed"})
    assert r.status_code == 404

    r = client.post(f"/escalations/{case_id}/assign", json={"expert_id": "nobody"})
    assert r.status_code == 404


def test_status_route_cannot_assign(client):
    app.state.roster = ()
    try:
        case = client.post("/escalations", json=_case_payload()).json()
    finally:
        app.state.roster = DEFAULT_EXPERTS

    assert case["assigned_expert"] is None

    r = client.patch(f"/escalations/{case['id']}/status", json={"status": "assigned"})
    assert r.status_code == 409
    assert client.get(f"/escalations/{case['id']}").json()["status"] == "pending"


def test_second_assignment_is_rejected(client):
    case_id = client.post("/escalations", json=_case_payload()).json()["id"]

    first = client.post(f"/escalations/{case_id}/assign", json={"expert_id": "expert-001"})
    second = client.post(f"/escalations/{case_id}/assign", json={"expert_id": "expert-002"})

    assert first.status_code == 200
    assert second.status_code == 409
    assert client.get(f"/escalations/{case_id}").json()["assigned_expert"] == "expert-001"


def test_list_cases_most_urgent_first(client):
    client.post("/escalations", json=_case_payload(query="Need advice", ai_confidence=0.5))
    client.post("/escalations", json=_case_payload())

    cases = client.get("/escalations").json()
    assert [c["urgency_level"] for c in cases] == [5, 2]

    pending = client.get("/escalations", params={"status": "closed"}).json()
    assert pending == []


# ---------------- EXPERTS ----------------

def test_list_experts(client):
    ids = [e["id"] for e in client.get("/experts").json()]

    assert ids == ["expert-001", "expert-002", "expert-003"]


def test_match_expert(client):
    r = client.post(
        "/experts/match",
        json={"category": "pest", "location": {"state": "Kerala", "district": "Kollam"}},
    )

    body = r.json()
    assert body["expert"]["id"] == "expert-001"
    assert [x["expert"]["id"] for x in body["ranking"]] == ["expert-001", "expert-002"]
    assert body["ranking"][0]["score"] == pytest.approx(49.6)


def test_knowledge_search(client):
    r = client.get("/knowledge/search", params={"q": "aphid"})

    assert [e["id"] for e in r.json()["results"]] == ["pest-001"]
