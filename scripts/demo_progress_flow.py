"""Demo: walk a learner through a course using FastAPI TestClient.

Run with:
    python scripts/demo_progress_flow.py
"""

from __future__ import annotations

import asyncio
from uuid import uuid4

from fastapi.testclient import TestClient

from app.api import providers
from app.main import app
from app.models.course import Course, Module
from app.models.learner import Learner
from app.services import token_service


def main() -> None:
    client = TestClient(app)

    # ── Seed data ───────────────────────────────────────────────────
    learner = Learner.new(email="demo@example.com", name="Demo Learner")
    asyncio.run(providers.learner_repo.add(learner))

    course = Course.new(
        slug="secure-coding",
        title="Secure Coding",
        status="published",
        is_mandatory=True,
        skills=("owasp",),
    )
    modules = [
        Module.new(course_id=course.id, order=i, title=f"Module {i}", mandatory=i >= 4)
        for i in range(1, 6)
    ]
    providers.catalog.add_course(course, modules)

    token = token_service.create_access_token(sub=str(learner.id))
    auth = {"Authorization": f"Bearer {token}"}
    base = f"/v1/courses/{course.id}"

    # ── Step 1: module states before any progress ───────────────────
    r = client.get(f"{base}/modules", headers=auth)
    states = [m["state"] for m in r.json()]
    print(f"1. GET  modules             → {r.status_code}  {states}")

    # ── Step 2: skipping ahead is refused ───────────────────────────
    r = client.post(f"{base}/modules/{modules[2].id}/complete", headers=auth)
    print(f"2. POST complete module 3   → {r.status_code}  (locked)")

    # ── Step 3: complete every module in order ──────────────────────
    for m in modules:
        r = client.post(f"{base}/modules/{m.id}/complete", headers=auth)
        body = r.json()
        print(
            f"3. POST complete module {m.order}   → {r.status_code}  "
            f"{body['percent_complete']}% completed={body['course_completed']}"
        )

    # ── Step 4: quiz submissions feed the rolling average ───────────
    for score in (80, 85, 90):
        r = client.post(
            "/v1/quizzes/submissions",
            json={"submission_id": str(uuid4()), "score_percent": score},
            headers=auth,
        )
        body = r.json()
        print(
            f"4. POST quiz {score}             → {r.status_code}  "
            f"avg={body['readiness_score']} count={body['quiz_count']}"
        )

    # ── Step 5: composite readiness ─────────────────────────────────
    r = client.get("/v1/readiness/me", headers=auth)
    body = r.json()
    print(f"5. GET  readiness           → {r.status_code}  {body['score']} {body['status']}")


if __name__ == "__main__":
    main()
