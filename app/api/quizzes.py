"""Quiz submission endpoint.

Scores arrive already graded.  Each accepted submission folds into the
learner's rolling average; a repeated submission_id is rejected with
409 and leaves the average untouched.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api.dependencies import require_learner
from app.api.providers import QuizDep
from app.models.principal import Principal

router = APIRouter(prefix="/v1/quizzes", tags=["quizzes"])


class QuizSubmissionIn(BaseModel):
    submission_id: str
    # validated in the aggregator so out-of-range scores map to InvalidScore
    score_percent: float


class QuizAverageOut(BaseModel):
    learner_id: str
    readiness_score: str
    quiz_count: int
    updated_at: int | None


@router.post("/submissions", response_model=QuizAverageOut)
async def submit_quiz(
    body: QuizSubmissionIn,
    principal: Annotated[Principal, Depends(require_learner)],
    aggregator: QuizDep,
) -> QuizAverageOut:
    result = await aggregator.record_quiz_submission(
        principal.learner_id, body.score_percent, body.submission_id
    )
    return QuizAverageOut(
        learner_id=principal.user_id,
        readiness_score=str(result.readiness_score),
        quiz_count=result.quiz_count,
        updated_at=result.updated_at,
    )
