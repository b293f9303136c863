from __future__ import annotations

import asyncio
from dataclasses import replace
from uuid import uuid4

from fastapi.testclient import TestClient

from app.api import providers
from app.models.readiness import Assignment
from tests.conftest import auth_header


def _add(learner_id, title: str = "essay", status: str = "pending") -> Assignment:
    a = replace(Assignment.new(learner_id=learner_id, title=title), status=status)
    asyncio.run(providers.assignment_repo.add(a))
    return a


def test_list_my_assignments(client: TestClient, learner, learner_headers: dict) -> None:
    mine = _add(learner.id)
    _add(uuid4(), title="not mine")

    resp = client.get("/v1/assignments", headers=learner_headers)
    assert resp.status_code == 200
    assert [a["id"] for a in resp.json()] == [str(mine.id)]


def test_submit_marks_assignment_submitted(
    client: TestClient, learner, learner_headers: dict
) -> None:
    a = _add(learner.id)
    resp = client.post(f"/v1/assignments/{a.id}/submit", headers=learner_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "submitted"


def test_submit_lowers_pending_count(
    client: TestClient, learner, learner_headers: dict
) -> None:
    a = _add(learner.id)
    assert client.get("/v1/readiness/me", headers=learner_headers).json()["score"] == 20
    client.post(f"/v1/assignments/{a.id}/submit", headers=learner_headers)
    assert client.get("/v1/readiness/me", headers=learner_headers).json()["score"] == 50


def test_graded_assignment_stays_graded(
    client: TestClient, learner, learner_headers: dict
) -> None:
    a = _add(learner.id, status="graded")
    resp = client.post(f"/v1/assignments/{a.id}/submit", headers=learner_headers)
    assert resp.json()["status"] == "graded"


def test_someone_elses_assignment_is_404(client: TestClient, learner) -> None:
    a = _add(learner.id)
    resp = client.post(f"/v1/assignments/{a.id}/submit", headers=auth_header(uuid4()))
    assert resp.status_code == 404


def test_unknown_assignment_is_404(client: TestClient, learner_headers: dict) -> None:
    resp = client.post(f"/v1/assignments/{uuid4()}/submit", headers=learner_headers)
    assert resp.status_code == 404
