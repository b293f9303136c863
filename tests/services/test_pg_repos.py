"""PostgreSQL repositories against a stub session (no database needed).

The stub reports every write as applied but never returns a row, the
shape a write followed by a concurrent delete would take.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from uuid import uuid4

import pytest

from app.core.errors import ConcurrencyConflict, NotFoundError
from app.models.learner import Learner, QuizSubmission
from app.models.progress import CourseProgress, PathEnrollment
from app.repos.pg_learner_repo import PgLearnerRepo
from app.repos.pg_progress_repo import PgProgressStore


class _Result:
    def __init__(self, rowcount: int) -> None:
        self.rowcount = rowcount

    def scalar_one_or_none(self):
        return None

    def first(self):
        return None


class _StubSession:
    def __init__(self, rowcount: int = 1) -> None:
        self.rowcount = rowcount
        self.statements: list = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        return _Result(self.rowcount)

    async def get(self, *args):
        return None

    def add(self, row) -> None:
        pass

    async def flush(self) -> None:
        pass


def _progress(version: int = 0) -> CourseProgress:
    return CourseProgress(
        learner_id=uuid4(), course_id=uuid4(), total_modules=3, version=version
    )


def test_saved_progress_that_cannot_be_read_back_is_not_found() -> None:
    store = PgProgressStore(_StubSession())
    with pytest.raises(NotFoundError, match="course_progress"):
        asyncio.run(store.save_course_progress(_progress(), expected_version=0))


def test_stale_progress_version_is_a_conflict() -> None:
    store = PgProgressStore(_StubSession(rowcount=0))
    with pytest.raises(ConcurrencyConflict, match="moved past version 2"):
        asyncio.run(store.save_course_progress(_progress(2), expected_version=2))


def test_enrollment_in_missing_path_is_not_found() -> None:
    store = PgProgressStore(_StubSession())
    enrollment = PathEnrollment(learner_id=uuid4(), path_id=uuid4(), enrolled_at=1)
    with pytest.raises(NotFoundError, match="learning path"):
        asyncio.run(store.enroll_in_path(enrollment))


def test_quiz_score_for_vanished_learner_is_not_found() -> None:
    repo = PgLearnerRepo(_StubSession())
    learner = Learner.new(email="gone@example.com")
    submission = QuizSubmission(
        learner_id=learner.id,
        submission_id="s-1",
        score_percent=Decimal("90"),
        recorded_at=1,
    )
    with pytest.raises(NotFoundError, match="learner"):
        asyncio.run(
            repo.apply_quiz_score(learner, expected_version=0, submission=submission)
        )
