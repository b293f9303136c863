from __future__ import annotations

from fastapi.testclient import TestClient

from app.main import app
from tests.conftest import auth_header, seed_course, seed_learner

client = TestClient(app)


def test_health_returns_ok() -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_learner_endpoints_reject_missing_token() -> None:
    for path in (
        "/v1/courses",
        "/v1/progress/summary",
        "/v1/readiness/me",
        "/v1/assignments",
    ):
        assert client.get(path).status_code == 401, path


def test_learner_journey_through_one_course() -> None:
    learner = seed_learner()
    headers = auth_header(learner.id)
    course, modules = seed_course(slug="kubernetes-basics", skills=("k8s",))

    listed = client.get("/v1/courses", headers=headers).json()
    assert [c["id"] for c in listed] == [str(course.id)]

    assert client.get("/v1/progress/continue", headers=headers).status_code == 204

    resp = client.post(f"/v1/courses/{course.id}/access", headers=headers, json={})
    assert resp.status_code == 200

    for m in modules:
        resp = client.post(
            f"/v1/courses/{course.id}/modules/{m.id}/complete", headers=headers
        )
        assert resp.status_code == 200

    progress = client.get(f"/v1/progress/courses/{course.id}", headers=headers).json()
    assert progress["percent_complete"] == 100
    assert progress["course_completed"] is True

    summary = client.get("/v1/progress/summary", headers=headers).json()
    assert summary == {
        "completed_courses": 1,
        "in_progress_courses": 0,
        "learning_minutes": 50,
        "skills_gained": ["k8s"],
    }

    readiness = client.get("/v1/readiness/me", headers=headers).json()
    assert readiness["learner_id"] == str(learner.id)
    assert readiness["course_completion_pct"] == 100
