"""Learner dashboard reads: per-course progress, summary, continue learning.

GET /v1/progress/courses/{course_id} is read-through cached:
  check cache -> hit: return
              -> miss: load from ProgressStore -> populate -> return
Every progress write deletes the learner/course key, so the next GET
sees fresh data.
"""

from __future__ import annotations

import json
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from app.api.courses import CourseProgressOut
from app.api.dependencies import require_learner
from app.api.providers import CompletionDep, RepoDep
from app.core.config import SETTINGS
from app.models.principal import Principal
from app.services.cache import cache_service, progress_cache_key

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class LearningSummaryOut(BaseModel):
    completed_courses: int
    in_progress_courses: int
    learning_minutes: int
    skills_gained: list[str]


class ContinueLearningOut(BaseModel):
    course_id: str
    course_title: str
    module_id: str | None
    percent_complete: int
    last_accessed_at: int | None


@router.get("/courses/{course_id}", response_model=CourseProgressOut)
async def get_course_progress(
    course_id: UUID,
    principal: Annotated[Principal, Depends(require_learner)],
    service: CompletionDep,
) -> CourseProgressOut:
    cache_key = progress_cache_key(principal.learner_id, course_id)

    cached = await cache_service.get(cache_key)
    if cached is not None:
        return CourseProgressOut(**json.loads(cached))

    progress = await service.get_course_progress(principal.learner_id, course_id)
    out = CourseProgressOut.of(progress)

    if SETTINGS.progress_cache_ttl > 0:
        await cache_service.set(
            cache_key, out.model_dump_json(), SETTINGS.progress_cache_ttl
        )
    return out


@router.get("/summary", response_model=LearningSummaryOut)
async def get_learning_summary(
    principal: Annotated[Principal, Depends(require_learner)],
    service: CompletionDep,
) -> LearningSummaryOut:
    summary = await service.learning_summary(principal.learner_id)
    return LearningSummaryOut(
        completed_courses=summary.completed_courses,
        in_progress_courses=summary.in_progress_courses,
        learning_minutes=summary.learning_minutes,
        skills_gained=list(summary.skills_gained),
    )


@router.get(
    "/continue",
    response_model=ContinueLearningOut,
    responses={204: {"description": "Nothing started yet"}},
)
async def continue_learning(
    principal: Annotated[Principal, Depends(require_learner)],
    service: CompletionDep,
    repos: RepoDep,
):
    """Most recently accessed course and the module the learner left off on."""
    progress = await service.most_recent_course(principal.learner_id)
    if progress is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    course = await repos.catalog.get_course(progress.course_id)
    return ContinueLearningOut(
        course_id=str(progress.course_id),
        course_title=course.title if course is not None else "",
        module_id=(
            str(progress.last_accessed_module_id)
            if progress.last_accessed_module_id
            else None
        ),
        percent_complete=progress.percent_complete,
        last_accessed_at=progress.last_accessed_at,
    )
