from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from app.core.errors import ConcurrencyConflict
from app.models.progress import CourseProgress, PathEnrollment, VideoCheckpoint


class ProgressStore(Protocol):
    """Durable per-learner progress.  Storage only, no business rules."""

    async def get_course_progress(
        self, learner_id: UUID, course_id: UUID
    ) -> CourseProgress | None: ...
    async def list_course_progress(self, learner_id: UUID) -> list[CourseProgress]: ...
    async def save_course_progress(
        self, progress: CourseProgress, *, expected_version: int
    ) -> CourseProgress: ...
    async def save_video_checkpoint(self, checkpoint: VideoCheckpoint) -> None: ...
    async def get_video_checkpoint(
        self, learner_id: UUID, course_id: UUID, module_id: UUID
    ) -> VideoCheckpoint | None: ...
    async def enroll_in_path(self, enrollment: PathEnrollment) -> PathEnrollment: ...
    async def list_path_enrollments(self, learner_id: UUID) -> list[PathEnrollment]: ...


class InMemoryProgressStore:
    """Dict-backed store with the same versioning contract as PgProgressStore.

    ``save_course_progress`` is a compare-and-set: it only succeeds when
    the stored version (0 for "no row yet") equals ``expected_version``,
    and stores the record with version + 1.
    """

    def __init__(self) -> None:
        self._progress: dict[tuple[UUID, UUID], CourseProgress] = {}
        self._checkpoints: dict[tuple[UUID, UUID, UUID], VideoCheckpoint] = {}
        self._enrollments: dict[tuple[UUID, UUID], PathEnrollment] = {}

    async def get_course_progress(
        self, learner_id: UUID, course_id: UUID
    ) -> CourseProgress | None:
        return self._progress.get((learner_id, course_id))

    async def list_course_progress(self, learner_id: UUID) -> list[CourseProgress]:
        return [p for (lid, _), p in self._progress.items() if lid == learner_id]

    async def save_course_progress(
        self, progress: CourseProgress, *, expected_version: int
    ) -> CourseProgress:
        key = (progress.learner_id, progress.course_id)
        current = self._progress.get(key)
        current_version = current.version if current is not None else 0
        if current_version != expected_version:
            raise ConcurrencyConflict(
                f"course_progress {key} at version {current_version}, "
                f"expected {expected_version}"
            )
        stored = replace(progress, version=expected_version + 1)
        self._progress[key] = stored
        return stored

    async def save_video_checkpoint(self, checkpoint: VideoCheckpoint) -> None:
        key = (checkpoint.learner_id, checkpoint.course_id, checkpoint.module_id)
        self._checkpoints[key] = checkpoint

    async def get_video_checkpoint(
        self, learner_id: UUID, course_id: UUID, module_id: UUID
    ) -> VideoCheckpoint | None:
        return self._checkpoints.get((learner_id, course_id, module_id))

    async def enroll_in_path(self, enrollment: PathEnrollment) -> PathEnrollment:
        key = (enrollment.learner_id, enrollment.path_id)
        return self._enrollments.setdefault(key, enrollment)

    async def list_path_enrollments(self, learner_id: UUID) -> list[PathEnrollment]:
        return [e for (lid, _), e in self._enrollments.items() if lid == learner_id]
