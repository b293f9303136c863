from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from app.api.dependencies import require_learner
from app.api.providers import CompletionDep
from app.models.principal import Principal

router = APIRouter(prefix="/v1/paths", tags=["paths"])


class PathEnrollmentOut(BaseModel):
    learner_id: str
    path_id: str
    enrolled_at: int


@router.post(
    "/{path_id}/enroll",
    response_model=PathEnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_path(
    path_id: UUID,
    principal: Annotated[Principal, Depends(require_learner)],
    service: CompletionDep,
) -> PathEnrollmentOut:
    """Join a learning path.  Enrolling twice returns the original enrollment."""
    enrollment = await service.enroll_in_path(principal.learner_id, path_id)
    return PathEnrollmentOut(
        learner_id=str(enrollment.learner_id),
        path_id=str(enrollment.path_id),
        enrolled_at=enrollment.enrolled_at,
    )
