"""Course browsing, module gating, and completion endpoints.

Module completion follows this sequence:
  Client -> POST /v1/courses/{course_id}/modules/{module_id}/complete
  -> load modules from the catalog (404 if hidden, 422 if foreign module)
  -> apply completion (409 if the module is still locked)
  -> versioned save of course_progress (retried on conflict)
  -> invalidate cached progress, publish ProgressChanged
  -> 200 with the updated CourseProgress
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.dependencies import require_learner, require_user
from app.api.providers import CompletionDep, RepoDep
from app.models.course import Course
from app.models.principal import Principal
from app.models.progress import CourseProgress

router = APIRouter(prefix="/v1/courses", tags=["courses"])


class CourseOut(BaseModel):
    id: str
    slug: str
    title: str
    status: str
    is_mandatory: bool
    due_at: int | None
    skills: list[str]

    @staticmethod
    def of(c: Course) -> CourseOut:
        return CourseOut(
            id=str(c.id),
            slug=c.slug,
            title=c.title,
            status=c.status,
            is_mandatory=c.is_mandatory,
            due_at=c.due_at,
            skills=list(c.skills),
        )


class ModuleStateOut(BaseModel):
    module_id: str
    order: int
    title: str
    type: str
    mandatory: bool
    state: str
    locked: bool


class CourseProgressOut(BaseModel):
    learner_id: str
    course_id: str
    completed_module_ids: list[str]
    completed_modules: int
    total_modules: int
    percent_complete: int
    course_completed: bool
    last_accessed_module_id: str | None
    last_accessed_at: int | None
    completed_at: int | None

    @staticmethod
    def of(p: CourseProgress) -> CourseProgressOut:
        return CourseProgressOut(
            learner_id=str(p.learner_id),
            course_id=str(p.course_id),
            completed_module_ids=sorted(str(m) for m in p.completed_module_ids),
            completed_modules=p.completed_count,
            total_modules=p.total_modules,
            percent_complete=p.percent_complete,
            course_completed=p.course_completed,
            last_accessed_module_id=(
                str(p.last_accessed_module_id) if p.last_accessed_module_id else None
            ),
            last_accessed_at=p.last_accessed_at,
            completed_at=p.completed_at,
        )


class CourseAccessIn(BaseModel):
    module_id: UUID | None = None


class VideoPositionIn(BaseModel):
    position_seconds: float = Field(ge=0)


class VideoPositionOut(BaseModel):
    module_id: str
    position_seconds: float
    updated_at: int | None


@router.get("", response_model=list[CourseOut])
async def list_courses(
    _principal: Annotated[Principal, Depends(require_user)],
    repos: RepoDep,
) -> list[CourseOut]:
    return [CourseOut.of(c) for c in await repos.catalog.list_visible_courses()]


@router.get("/{course_id}/modules", response_model=list[ModuleStateOut])
async def list_module_states(
    course_id: UUID,
    principal: Annotated[Principal, Depends(require_learner)],
    service: CompletionDep,
) -> list[ModuleStateOut]:
    states = await service.module_states(principal.learner_id, course_id)
    return [
        ModuleStateOut(
            module_id=str(s.module_id),
            order=s.order,
            title=s.title,
            type=s.type,
            mandatory=s.mandatory,
            state=s.state,
            locked=s.locked,
        )
        for s in states
    ]


@router.post("/{course_id}/access", response_model=CourseProgressOut)
async def record_course_access(
    course_id: UUID,
    body: CourseAccessIn,
    principal: Annotated[Principal, Depends(require_learner)],
    service: CompletionDep,
) -> CourseProgressOut:
    progress = await service.record_course_access(
        principal.learner_id, course_id, body.module_id
    )
    return CourseProgressOut.of(progress)


@router.post(
    "/{course_id}/modules/{module_id}/complete",
    response_model=CourseProgressOut,
)
async def complete_module(
    course_id: UUID,
    module_id: UUID,
    principal: Annotated[Principal, Depends(require_learner)],
    service: CompletionDep,
) -> CourseProgressOut:
    progress = await service.mark_module_complete(
        principal.learner_id, course_id, module_id
    )
    return CourseProgressOut.of(progress)


@router.put(
    "/{course_id}/modules/{module_id}/video-position",
    response_model=VideoPositionOut,
)
async def save_video_position(
    course_id: UUID,
    module_id: UUID,
    body: VideoPositionIn,
    principal: Annotated[Principal, Depends(require_learner)],
    service: CompletionDep,
) -> VideoPositionOut:
    checkpoint = await service.save_video_position(
        principal.learner_id, course_id, module_id, body.position_seconds
    )
    return VideoPositionOut(
        module_id=str(checkpoint.module_id),
        position_seconds=checkpoint.position_seconds,
        updated_at=checkpoint.updated_at,
    )


@router.get(
    "/{course_id}/modules/{module_id}/video-position",
    response_model=VideoPositionOut,
)
async def get_video_position(
    course_id: UUID,
    module_id: UUID,
    principal: Annotated[Principal, Depends(require_learner)],
    service: CompletionDep,
) -> VideoPositionOut:
    checkpoint = await service.get_video_position(
        principal.learner_id, course_id, module_id
    )
    if checkpoint is None:
        return VideoPositionOut(
            module_id=str(module_id), position_seconds=0.0, updated_at=None
        )
    return VideoPositionOut(
        module_id=str(checkpoint.module_id),
        position_seconds=checkpoint.position_seconds,
        updated_at=checkpoint.updated_at,
    )
