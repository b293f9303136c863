"""Composite readiness endpoints.

The snapshot is computed on every call from current progress and
assignments; it is never cached or stored.
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.api.dependencies import require_learner, require_user
from app.api.providers import ReadinessDep
from app.models.principal import Principal
from app.models.readiness import ReadinessSnapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/readiness", tags=["readiness"])


class ReadinessOut(BaseModel):
    learner_id: str
    score: int
    status: str
    mandatory_complete: int
    mandatory_total: int
    course_completion_pct: int
    pending_assignments: int
    total_assignments: int
    overdue_mandatory: int

    @staticmethod
    def of(learner_id: UUID, s: ReadinessSnapshot) -> ReadinessOut:
        return ReadinessOut(
            learner_id=str(learner_id),
            score=s.score,
            status=s.status,
            mandatory_complete=s.mandatory_complete,
            mandatory_total=s.mandatory_total,
            course_completion_pct=s.course_completion_pct,
            pending_assignments=s.pending_assignments,
            total_assignments=s.total_assignments,
            overdue_mandatory=s.overdue_mandatory,
        )


@router.get("/me", response_model=ReadinessOut)
async def my_readiness(
    principal: Annotated[Principal, Depends(require_learner)],
    service: ReadinessDep,
) -> ReadinessOut:
    snapshot = await service.compute_for_learner(principal.learner_id)
    return ReadinessOut.of(principal.learner_id, snapshot)


@router.get("/{learner_id}", response_model=ReadinessOut)
async def learner_readiness(
    learner_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    service: ReadinessDep,
) -> ReadinessOut:
    """Managers and admins may view any learner; learners only themselves."""
    if not principal.can_view_learner(learner_id):
        logger.warning(
            "Readiness access denied: user=%s learner=%s",
            principal.user_id,
            learner_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    snapshot = await service.compute_for_learner(learner_id)
    return ReadinessOut.of(learner_id, snapshot)
