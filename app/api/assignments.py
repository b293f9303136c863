from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api.dependencies import require_learner
from app.api.providers import RepoDep
from app.core.errors import NotFoundError
from app.models.principal import Principal
from app.models.readiness import Assignment

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/assignments", tags=["assignments"])


class AssignmentOut(BaseModel):
    id: str
    title: str
    course_id: str | None
    status: str
    due_at: int | None

    @staticmethod
    def of(a: Assignment) -> AssignmentOut:
        return AssignmentOut(
            id=str(a.id),
            title=a.title,
            course_id=str(a.course_id) if a.course_id else None,
            status=a.status,
            due_at=a.due_at,
        )


@router.get("", response_model=list[AssignmentOut])
async def list_my_assignments(
    principal: Annotated[Principal, Depends(require_learner)],
    repos: RepoDep,
) -> list[AssignmentOut]:
    assignments = await repos.assignments.list_for_learner(principal.learner_id)
    return [AssignmentOut.of(a) for a in assignments]


@router.post("/{assignment_id}/submit", response_model=AssignmentOut)
async def submit_assignment(
    assignment_id: UUID,
    principal: Annotated[Principal, Depends(require_learner)],
    repos: RepoDep,
) -> AssignmentOut:
    existing = await repos.assignments.get(assignment_id)
    # someone else's assignment is reported as missing, not forbidden
    if existing is None or existing.learner_id != principal.learner_id:
        raise NotFoundError(f"assignment {assignment_id} not found")

    updated = await repos.assignments.mark_submitted(assignment_id)
    if updated is None:
        raise NotFoundError(f"assignment {assignment_id} not found")
    logger.info(
        "Assignment %s status=%s",
        assignment_id,
        updated.status,
        extra={"learner_id": principal.user_id},
    )
    return AssignmentOut.of(updated)
