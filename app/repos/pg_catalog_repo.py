"""PostgreSQL implementation of CourseCatalog (read-only)."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import (
    CourseModuleRow,
    CourseRow,
    LearningPathCourseRow,
    LearningPathRow,
)
from app.models.course import LEARNER_VISIBLE_STATUSES, Course, LearningPath, Module


class PgCourseCatalog:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_course(self, course_id: UUID) -> Course | None:
        row = await self._session.get(CourseRow, course_id)
        return _row_to_course(row) if row is not None else None

    async def get_modules_for_course(self, course_id: UUID) -> list[Module]:
        stmt = (
            select(CourseModuleRow)
            .where(CourseModuleRow.course_id == course_id)
            .order_by(CourseModuleRow.order)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_module(r) for r in rows]

    async def get_mandatory_module_ids(self, course_id: UUID) -> frozenset[UUID]:
        stmt = select(CourseModuleRow.id).where(
            CourseModuleRow.course_id == course_id,
            CourseModuleRow.mandatory.is_(True),
        )
        return frozenset((await self._session.execute(stmt)).scalars().all())

    async def is_course_published(self, course_id: UUID) -> bool:
        stmt = select(CourseRow.status).where(CourseRow.id == course_id)
        status = (await self._session.execute(stmt)).scalar_one_or_none()
        return status in LEARNER_VISIBLE_STATUSES

    async def list_visible_courses(self) -> list[Course]:
        stmt = (
            select(CourseRow)
            .where(CourseRow.status.in_(LEARNER_VISIBLE_STATUSES))
            .order_by(CourseRow.title)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def get_learning_path(self, path_id: UUID) -> LearningPath | None:
        row = await self._session.get(LearningPathRow, path_id)
        if row is None:
            return None
        stmt = (
            select(LearningPathCourseRow.course_id)
            .where(LearningPathCourseRow.path_id == path_id)
            .order_by(LearningPathCourseRow.position)
        )
        course_ids = tuple((await self._session.execute(stmt)).scalars().all())
        return LearningPath(id=row.id, slug=row.slug, title=row.title, course_ids=course_ids)


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        slug=row.slug,
        title=row.title,
        status=row.status,
        is_mandatory=row.is_mandatory,
        due_at=row.due_at,
        skills=tuple(row.skills) if row.skills else (),
        created_by=row.created_by,
    )


def _row_to_module(row: CourseModuleRow) -> Module:
    return Module(
        id=row.id,
        course_id=row.course_id,
        order=row.order,
        title=row.title,
        type=row.type,
        mandatory=row.mandatory,
        duration_minutes=row.duration_minutes,
    )
