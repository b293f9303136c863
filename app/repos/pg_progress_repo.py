"""PostgreSQL implementation of ProgressStore."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConcurrencyConflict, NotFoundError
from app.db.tables import CourseProgressRow, PathEnrollmentRow, VideoCheckpointRow
from app.models.progress import CourseProgress, PathEnrollment, VideoCheckpoint


class PgProgressStore:
    """Satisfies the ProgressStore Protocol using PostgreSQL via SQLAlchemy.

    Version 0 means "no row yet": the first save is an
    INSERT ... ON CONFLICT DO NOTHING, later saves are UPDATEs guarded by
    the expected version.  Either way a lost race shows up as zero rows
    affected and is reported as ConcurrencyConflict, leaving the
    transaction usable for the retry.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_course_progress(
        self, learner_id: UUID, course_id: UUID
    ) -> CourseProgress | None:
        stmt = (
            select(CourseProgressRow)
            .where(
                CourseProgressRow.learner_id == learner_id,
                CourseProgressRow.course_id == course_id,
            )
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_progress(row) if row is not None else None

    async def list_course_progress(self, learner_id: UUID) -> list[CourseProgress]:
        stmt = select(CourseProgressRow).where(
            CourseProgressRow.learner_id == learner_id
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_progress(r) for r in rows]

    async def save_course_progress(
        self, progress: CourseProgress, *, expected_version: int
    ) -> CourseProgress:
        values = {
            "completed_module_ids": sorted(progress.completed_module_ids, key=str),
            "total_modules": progress.total_modules,
            "course_completed": progress.course_completed,
            "last_accessed_module_id": progress.last_accessed_module_id,
            "last_accessed_at": progress.last_accessed_at,
            "completed_at": progress.completed_at,
            "version": expected_version + 1,
        }
        if expected_version == 0:
            stmt = (
                insert(CourseProgressRow)
                .values(
                    learner_id=progress.learner_id,
                    course_id=progress.course_id,
                    **values,
                )
                .on_conflict_do_nothing(index_elements=["learner_id", "course_id"])
            )
        else:
            stmt = (
                update(CourseProgressRow)
                .where(
                    CourseProgressRow.learner_id == progress.learner_id,
                    CourseProgressRow.course_id == progress.course_id,
                    CourseProgressRow.version == expected_version,
                )
                .values(**values)
            )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrencyConflict(
                f"course_progress ({progress.learner_id}, {progress.course_id}) "
                f"moved past version {expected_version}"
            )
        stored = await self.get_course_progress(progress.learner_id, progress.course_id)
        if stored is None:
            raise NotFoundError(
                f"course_progress ({progress.learner_id}, {progress.course_id}) not found"
            )
        return stored

    async def save_video_checkpoint(self, checkpoint: VideoCheckpoint) -> None:
        stmt = insert(VideoCheckpointRow).values(
            learner_id=checkpoint.learner_id,
            course_id=checkpoint.course_id,
            module_id=checkpoint.module_id,
            position_seconds=checkpoint.position_seconds,
            updated_at=checkpoint.updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["learner_id", "course_id", "module_id"],
            set_={
                "position_seconds": stmt.excluded.position_seconds,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self._session.execute(stmt)

    async def get_video_checkpoint(
        self, learner_id: UUID, course_id: UUID, module_id: UUID
    ) -> VideoCheckpoint | None:
        row = await self._session.get(
            VideoCheckpointRow, (learner_id, course_id, module_id)
        )
        if row is None:
            return None
        return VideoCheckpoint(
            learner_id=row.learner_id,
            course_id=row.course_id,
            module_id=row.module_id,
            position_seconds=row.position_seconds,
            updated_at=row.updated_at,
        )

    async def enroll_in_path(self, enrollment: PathEnrollment) -> PathEnrollment:
        stmt = (
            insert(PathEnrollmentRow)
            .values(
                learner_id=enrollment.learner_id,
                path_id=enrollment.path_id,
                enrolled_at=enrollment.enrolled_at,
            )
            .on_conflict_do_nothing(index_elements=["learner_id", "path_id"])
        )
        await self._session.execute(stmt)
        row = await self._session.get(
            PathEnrollmentRow, (enrollment.learner_id, enrollment.path_id)
        )
        if row is None:
            raise NotFoundError(f"learning path {enrollment.path_id} not found")
        return PathEnrollment(
            learner_id=row.learner_id, path_id=row.path_id, enrolled_at=row.enrolled_at
        )

    async def list_path_enrollments(self, learner_id: UUID) -> list[PathEnrollment]:
        stmt = select(PathEnrollmentRow).where(
            PathEnrollmentRow.learner_id == learner_id
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            PathEnrollment(
                learner_id=r.learner_id, path_id=r.path_id, enrolled_at=r.enrolled_at
            )
            for r in rows
        ]


def _row_to_progress(row: CourseProgressRow) -> CourseProgress:
    return CourseProgress(
        learner_id=row.learner_id,
        course_id=row.course_id,
        completed_module_ids=frozenset(row.completed_module_ids or ()),
        total_modules=row.total_modules,
        course_completed=row.course_completed,
        last_accessed_module_id=row.last_accessed_module_id,
        last_accessed_at=row.last_accessed_at,
        completed_at=row.completed_at,
        version=row.version,
    )
