"""Rolling quiz average kept on the learner record.

    new_avg = (old_avg * quiz_count + score) / (quiz_count + 1)

stored at two decimal places (ROUND_HALF_UP), with quiz_count bumped by
one.  Each submission carries a caller-supplied id so a retried request
cannot be counted twice.

Concurrent submissions for one learner are serialized optimistically:
the write is a compare-and-set on the learner's version, and a lost race
re-reads and recomputes (see app.core.errors.retry_on_conflict).
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from uuid import UUID

from app.core.errors import (
    DuplicateSubmission,
    InvalidScore,
    NotFoundError,
    ValidationError,
    retry_on_conflict,
)
from app.core.metrics import QUIZ_SUBMISSIONS
from app.models.learner import (
    MAX_SCORE,
    SCORE_QUANTUM,
    Learner,
    QuizRollingAverage,
    QuizSubmission,
)
from app.repos.learner_repo import LearnerRepo

logger = logging.getLogger(__name__)


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


def validate_score(score_percent: object) -> Decimal:
    if isinstance(score_percent, bool):
        raise InvalidScore(score_percent)
    try:
        score = Decimal(str(score_percent))
    except (InvalidOperation, ValueError):
        raise InvalidScore(score_percent) from None
    if not score.is_finite() or score < 0 or score > MAX_SCORE:
        raise InvalidScore(score_percent)
    return score


def rolling_average(current: Decimal, quiz_count: int, score: Decimal) -> Decimal:
    total = current * quiz_count + score
    avg = total / (quiz_count + 1)
    return min(MAX_SCORE, avg.quantize(SCORE_QUANTUM, rounding=ROUND_HALF_UP))


class QuizScoreAggregator:
    def __init__(
        self, learners: LearnerRepo, *, clock: Callable[[], int] = _now
    ) -> None:
        self._learners = learners
        self._clock = clock

    async def record_quiz_submission(
        self,
        learner_id: UUID,
        score_percent: object,
        submission_id: str,
    ) -> QuizRollingAverage:
        try:
            score = validate_score(score_percent)
        except InvalidScore:
            QUIZ_SUBMISSIONS.labels(result="invalid").inc()
            logger.warning(
                "Rejected quiz score=%r learner=%s", score_percent, learner_id
            )
            raise

        submission_id = (submission_id or "").strip()
        if not submission_id:
            raise ValidationError("submission_id must be non-empty")

        async def _attempt() -> Learner:
            learner = await self._learners.get(learner_id)
            if learner is None:
                raise NotFoundError(f"learner {learner_id} not found")
            if await self._learners.has_submission(learner_id, submission_id):
                raise DuplicateSubmission(submission_id)

            now = self._clock()
            updated = replace(
                learner,
                readiness_score=rolling_average(
                    learner.readiness_score, learner.readiness_score_quiz_count, score
                ),
                readiness_score_quiz_count=learner.readiness_score_quiz_count + 1,
                readiness_score_updated_at=now,
            )
            return await self._learners.apply_quiz_score(
                updated,
                expected_version=learner.version,
                submission=QuizSubmission(
                    learner_id=learner_id,
                    submission_id=submission_id,
                    score_percent=score,
                    recorded_at=now,
                ),
            )

        try:
            stored = await retry_on_conflict(_attempt, name="quiz_submission")
        except DuplicateSubmission:
            QUIZ_SUBMISSIONS.labels(result="duplicate").inc()
            logger.info(
                "Duplicate quiz submission=%s learner=%s ignored",
                submission_id,
                learner_id,
            )
            raise

        QUIZ_SUBMISSIONS.labels(result="accepted").inc()
        logger.info(
            "Quiz average learner=%s score=%s count=%d",
            learner_id,
            stored.readiness_score,
            stored.readiness_score_quiz_count,
            extra={"learner_id": str(learner_id)},
        )
        return QuizRollingAverage.of(stored)
