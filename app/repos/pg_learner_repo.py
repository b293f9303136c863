"""PostgreSQL implementation of LearnerRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConcurrencyConflict, DuplicateSubmission, NotFoundError
from app.db.tables import LearnerRow, QuizSubmissionRow
from app.models.learner import Learner, QuizSubmission


class PgLearnerRepo:
    """Satisfies the LearnerRepo Protocol using PostgreSQL via SQLAlchemy.

    The rolling-average update is an optimistic compare-and-set on
    ``learners.version``; the submission row is inserted in the same
    transaction, so a duplicate id rolls the average back with it.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, learner_id: UUID) -> Learner | None:
        stmt = (
            select(LearnerRow)
            .where(LearnerRow.id == learner_id)
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_learner(row)

    async def add(self, learner: Learner) -> None:
        self._session.add(
            LearnerRow(
                id=learner.id,
                email=learner.email,
                name=learner.name,
                role=learner.role,
                readiness_score=learner.readiness_score,
                readiness_score_quiz_count=learner.readiness_score_quiz_count,
                readiness_score_updated_at=learner.readiness_score_updated_at,
                version=learner.version,
            )
        )
        await self._session.flush()

    async def has_submission(self, learner_id: UUID, submission_id: str) -> bool:
        stmt = select(QuizSubmissionRow.id).where(
            QuizSubmissionRow.learner_id == learner_id,
            QuizSubmissionRow.submission_id == submission_id,
        )
        return (await self._session.execute(stmt)).first() is not None

    async def apply_quiz_score(
        self,
        updated: Learner,
        *,
        expected_version: int,
        submission: QuizSubmission,
    ) -> Learner:
        if await self.has_submission(submission.learner_id, submission.submission_id):
            raise DuplicateSubmission(submission.submission_id)

        stmt = (
            update(LearnerRow)
            .where(LearnerRow.id == updated.id, LearnerRow.version == expected_version)
            .values(
                readiness_score=updated.readiness_score,
                readiness_score_quiz_count=updated.readiness_score_quiz_count,
                readiness_score_updated_at=updated.readiness_score_updated_at,
                version=expected_version + 1,
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrencyConflict(
                f"learner {updated.id} moved past version {expected_version}"
            )

        self._session.add(
            QuizSubmissionRow(
                learner_id=submission.learner_id,
                submission_id=submission.submission_id,
                score_percent=submission.score_percent,
                recorded_at=submission.recorded_at,
            )
        )
        try:
            await self._session.flush()
        except IntegrityError:
            # a concurrent request recorded the same id first; the
            # request-scoped session rolls the average update back
            raise DuplicateSubmission(submission.submission_id) from None

        stored = await self.get(updated.id)
        if stored is None:
            raise NotFoundError(f"learner {updated.id} not found")
        return stored


def _row_to_learner(row: LearnerRow) -> Learner:
    return Learner(
        id=row.id,
        email=row.email,
        name=row.name or "",
        role=row.role,
        readiness_score=row.readiness_score,
        readiness_score_quiz_count=row.readiness_score_quiz_count,
        readiness_score_updated_at=row.readiness_score_updated_at,
        version=row.version,
    )
