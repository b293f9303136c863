from __future__ import annotations

import asyncio
from uuid import uuid4

from fastapi.testclient import TestClient

from app.api import providers
from app.models.readiness import Assignment
from tests.conftest import auth_header, seed_course, seed_learner


def test_my_readiness_new_learner(client: TestClient, learner_headers: dict) -> None:
    resp = client.get("/v1/readiness/me", headers=learner_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["score"] == 50
    assert body["status"] == "NeedsAttention"
    assert body["course_completion_pct"] == 0


def test_my_readiness_unknown_learner_is_404(client: TestClient) -> None:
    resp = client.get("/v1/readiness/me", headers=auth_header(uuid4()))
    assert resp.status_code == 404


def test_readiness_reflects_completion_and_assignments(
    client: TestClient, learner, learner_headers: dict
) -> None:
    c, modules = seed_course(slug="core", mandatory_orders=(), is_mandatory=True)
    for m in modules:
        client.post(f"/v1/courses/{c.id}/modules/{m.id}/complete", headers=learner_headers)
    asyncio.run(
        providers.assignment_repo.add(Assignment.new(learner_id=learner.id, title="essay"))
    )

    body = client.get("/v1/readiness/me", headers=learner_headers).json()
    # 0.5 * 100 + 0.3 * 0 + 0.2 * 100
    assert body["score"] == 70
    assert body["status"] == "NeedsAttention"
    assert body["mandatory_complete"] == 1
    assert body["mandatory_total"] == 1
    assert body["pending_assignments"] == 1


def test_readiness_is_not_cached(client: TestClient, learner, learner_headers: dict) -> None:
    c, modules = seed_course(slug="one", modules=1, mandatory_orders=())
    client.post(f"/v1/courses/{c.id}/access", json={}, headers=learner_headers)
    assert client.get("/v1/readiness/me", headers=learner_headers).json()["score"] == 50

    client.post(f"/v1/courses/{c.id}/modules/{modules[0].id}/complete", headers=learner_headers)
    assert client.get("/v1/readiness/me", headers=learner_headers).json()["score"] == 100


def test_manager_can_view_any_learner(client: TestClient, learner) -> None:
    resp = client.get(
        f"/v1/readiness/{learner.id}", headers=auth_header(uuid4(), roles=["manager"])
    )
    assert resp.status_code == 200
    assert resp.json()["learner_id"] == str(learner.id)


def test_learner_can_view_self_by_id(client: TestClient, learner, learner_headers: dict) -> None:
    resp = client.get(f"/v1/readiness/{learner.id}", headers=learner_headers)
    assert resp.status_code == 200


def test_learner_cannot_view_someone_else(client: TestClient, learner_headers: dict) -> None:
    other = seed_learner(email="other@example.com")
    resp = client.get(f"/v1/readiness/{other.id}", headers=learner_headers)
    assert resp.status_code == 403


def test_readiness_requires_auth(client: TestClient, learner) -> None:
    assert client.get(f"/v1/readiness/{learner.id}").status_code == 401
