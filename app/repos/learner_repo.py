from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from app.core.errors import ConcurrencyConflict, DuplicateSubmission
from app.models.learner import Learner, QuizSubmission


class LearnerRepo(Protocol):
    async def get(self, learner_id: UUID) -> Learner | None: ...
    async def add(self, learner: Learner) -> None: ...
    async def has_submission(self, learner_id: UUID, submission_id: str) -> bool: ...
    async def apply_quiz_score(
        self,
        updated: Learner,
        *,
        expected_version: int,
        submission: QuizSubmission,
    ) -> Learner: ...


class InMemoryLearnerRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Learner] = {}
        self._by_email: dict[str, UUID] = {}
        self._submissions: dict[tuple[UUID, str], QuizSubmission] = {}

    async def get(self, learner_id: UUID) -> Learner | None:
        return self._by_id.get(learner_id)

    async def add(self, learner: Learner) -> None:
        if learner.email in self._by_email:
            raise ValueError("email already exists")
        self._by_id[learner.id] = learner
        self._by_email[learner.email] = learner.id

    async def has_submission(self, learner_id: UUID, submission_id: str) -> bool:
        return (learner_id, submission_id) in self._submissions

    async def apply_quiz_score(
        self,
        updated: Learner,
        *,
        expected_version: int,
        submission: QuizSubmission,
    ) -> Learner:
        """Store the new average and the submission record together, or neither."""
        current = self._by_id.get(updated.id)
        if current is None:
            raise KeyError("learner not found")
        key = (submission.learner_id, submission.submission_id)
        if key in self._submissions:
            raise DuplicateSubmission(submission.submission_id)
        if current.version != expected_version:
            raise ConcurrencyConflict(
                f"learner {updated.id} at version {current.version}, "
                f"expected {expected_version}"
            )
        stored = replace(updated, version=expected_version + 1)
        self._by_id[stored.id] = stored
        self._submissions[key] = submission
        return stored
