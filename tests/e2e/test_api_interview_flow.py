"""End-to-end flow through the assembled FastAPI app."""
from __future__ import annotations

import json

from fastapi.testclient import TestClient

import api_server
from api.routes import get_service
from config.settings import settings


USER = "66666666-6666-4666-8666-666666666666"
PROBLEM = "77777777-7777-4777-8777-777777777777"


def test_two_sum_interview_over_http(service, interviewer, evaluator, two_sum):
    interviewer.once = ["Welcome! Let's solve Two Sum."]
    interviewer.replies = ["What would the brute force cost?", "Great, any edge cases?"]
    api_server.app.dependency_overrides[get_service] = lambda: service
    prefix = settings.API_PREFIX
    try:
        client = TestClient(api_server.app)
        started = client.post(
            f"{prefix}/interviews",
            json={"user_id": USER, "problem_id": PROBLEM, "problem_snapshot": two_sum},
        )
        assert started.status_code == 201
        interview_id = started.json()["interview_id"]
        assert started.json()["greeting"] == "Welcome! Let's solve Two Sum."

        client.post(f"{prefix}/interviews/{interview_id}/messages", json={"content": "Two nested loops."})
        client.post(
            f"{prefix}/interviews/{interview_id}/messages",
            json={"content": "Optimized version", "code": "seen = {}", "language": "python"},
        )
        ended = client.post(f"{prefix}/interviews/{interview_id}/end")

        assert ended.status_code == 200
        assert ended.json()["overall_score"] == 8
        history = client.get(f"{prefix}/interviews/{interview_id}/messages").json()
        assert len(history) == 5
        assert "[USER ATTACHED CODE (python)]" in history[3]["content"]
        assert "Two nested loops." in evaluator.once_calls[0]
    finally:
        api_server.app.dependency_overrides.clear()


def test_health_lists_registry_routes(tmp_path, monkeypatch):
    config_path = tmp_path / "app_config.json"
    config_path.write_text(
        json.dumps(
            {
                "llm_routes": {
                    "r1": {"name": "r1", "base_url": "http://x", "endpoint": "/c", "model": "m1", "timeout_s": 1}
                },
                "registry": {"interview.interviewer": "r1", "interview.evaluator": "missing"},
            }
        )
    )
    monkeypatch.setattr(settings, "CONFIG_PATH", str(config_path), raising=False)

    resp = TestClient(api_server.app).get("/health")

    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "llm_routes": [{"module": "interview.interviewer", "route": "r1", "model": "m1"}],
    }
