from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID, uuid4

# NUMERIC(5,2) on the learners table
SCORE_QUANTUM = Decimal("0.01")
MAX_SCORE = Decimal("100.00")


@dataclass(frozen=True, slots=True)
class Learner:
    """A learner and their rolling quiz average.

    ``readiness_score`` is the cumulative mean of every graded quiz
    submission, stored at two decimal places.  It is unrelated to the
    composite ReadinessSnapshot.
    """

    id: UUID
    email: str
    name: str = ""
    role: str = "learner"  # admin|instructor|manager|learner
    readiness_score: Decimal = Decimal("0.00")
    readiness_score_quiz_count: int = 0
    readiness_score_updated_at: int | None = None
    version: int = 0

    @staticmethod
    def new(*, email: str, name: str = "", role: str = "learner") -> Learner:
        return Learner(id=uuid4(), email=email.strip().lower(), name=name, role=role)


@dataclass(frozen=True, slots=True)
class QuizSubmission:
    learner_id: UUID
    submission_id: str
    score_percent: Decimal
    recorded_at: int


@dataclass(frozen=True, slots=True)
class QuizRollingAverage:
    readiness_score: Decimal
    quiz_count: int
    updated_at: int | None

    @staticmethod
    def of(learner: Learner) -> QuizRollingAverage:
        return QuizRollingAverage(
            readiness_score=learner.readiness_score,
            quiz_count=learner.readiness_score_quiz_count,
            updated_at=learner.readiness_score_updated_at,
        )
