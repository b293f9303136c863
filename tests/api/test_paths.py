from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from app.api import providers
from app.models.course import LearningPath
from tests.conftest import seed_course


def _seed_path() -> tuple[LearningPath, list]:
    a, _ = seed_course(slug="a")
    b, _ = seed_course(slug="b")
    path = LearningPath.new(slug="backend", title="Backend", course_ids=(a.id, b.id))
    providers.catalog.add_path(path)
    return path, [a, b]


def test_enroll_in_path(client: TestClient, learner, learner_headers: dict) -> None:
    path, _ = _seed_path()
    resp = client.post(f"/v1/paths/{path.id}/enroll", headers=learner_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["path_id"] == str(path.id)
    assert body["learner_id"] == str(learner.id)


def test_enroll_twice_keeps_first_enrollment(
    client: TestClient, learner_headers: dict
) -> None:
    path, _ = _seed_path()
    first = client.post(f"/v1/paths/{path.id}/enroll", headers=learner_headers).json()
    second = client.post(f"/v1/paths/{path.id}/enroll", headers=learner_headers).json()
    assert second == first


def test_enroll_unknown_path_is_404(client: TestClient, learner_headers: dict) -> None:
    resp = client.post(f"/v1/paths/{uuid4()}/enroll", headers=learner_headers)
    assert resp.status_code == 404


def test_path_courses_count_toward_readiness(
    client: TestClient, learner_headers: dict
) -> None:
    path, (a, _) = _seed_path()
    client.post(f"/v1/paths/{path.id}/enroll", headers=learner_headers)

    modules = providers.catalog._modules[a.id]
    for m in modules:
        client.post(f"/v1/courses/{a.id}/modules/{m.id}/complete", headers=learner_headers)

    body = client.get("/v1/readiness/me", headers=learner_headers).json()
    # course a at 100%, course b at 0% -> completion 50
    assert body["course_completion_pct"] == 50
    assert body["score"] == 75
