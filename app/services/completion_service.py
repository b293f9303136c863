"""Learner-facing progress operations.

Loads catalog and progress state, runs the pure rules in
completion_engine, and writes the result back with an optimistic
version check.  After a successful write it drops the cached progress
read and publishes a ProgressChanged message; it never calls listeners
directly.  Given an AfterCommit, both wait for the transaction to commit.
"""

from __future__ import annotations

import datetime
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import replace
from uuid import UUID

from app.core.errors import ModuleLocked, NotFoundError, ValidationError, retry_on_conflict
from app.core.metrics import COURSE_COMPLETIONS, MODULE_COMPLETIONS
from app.db.engine import AfterCommit
from app.models.course import Module
from app.models.progress import (
    CourseProgress,
    LearningSummary,
    ModuleState,
    PathEnrollment,
    ProgressChanged,
    VideoCheckpoint,
)
from app.repos.catalog_repo import CourseCatalog
from app.repos.progress_repo import ProgressStore
from app.services import completion_engine as engine
from app.services.cache import CacheService, cache_service, progress_cache_key
from app.services.task_queue import PROGRESS_CHANGED_QUEUE, TaskQueue, task_queue

logger = logging.getLogger(__name__)


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


class CompletionService:
    def __init__(
        self,
        catalog: CourseCatalog,
        store: ProgressStore,
        *,
        queue: TaskQueue | None = None,
        cache: CacheService | None = None,
        clock: Callable[[], int] = _now,
        after_commit: AfterCommit | None = None,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._after_commit = after_commit
        self._queue = queue if queue is not None else task_queue
        self._cache = cache if cache is not None else cache_service
        self._clock = clock

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    async def _load_modules(self, course_id: UUID) -> list[Module]:
        # drafts and unknown ids look the same to a learner
        if not await self._catalog.is_course_published(course_id):
            raise NotFoundError(f"course {course_id} not found")
        return engine.ordered(await self._catalog.get_modules_for_course(course_id))

    async def _defer(self, callback: Callable[[], Awaitable[object]]) -> None:
        if self._after_commit is None:
            await callback()
        else:
            self._after_commit.add(callback)

    async def _invalidate(self, learner_id: UUID, course_id: UUID) -> None:
        key = progress_cache_key(learner_id, course_id)
        await self._defer(lambda: self._cache.delete(key))

    async def _after_write(self, progress: CourseProgress, module_id: UUID | None) -> None:
        await self._invalidate(progress.learner_id, progress.course_id)
        event = ProgressChanged(
            learner_id=progress.learner_id,
            course_id=progress.course_id,
            module_id=module_id,
            percent_complete=progress.percent_complete,
            course_completed=progress.course_completed,
            occurred_at=self._clock(),
        )
        payload = event.to_payload()
        await self._defer(lambda: self._queue.enqueue(PROGRESS_CHANGED_QUEUE, payload))

    # ------------------------------------------------------------------
    # completion
    # ------------------------------------------------------------------

    async def mark_module_complete(
        self, learner_id: UUID, course_id: UUID, module_id: UUID
    ) -> CourseProgress:
        modules = await self._load_modules(course_id)
        module = engine.find_module(course_id, module_id, modules)
        mandatory_ids = await self._catalog.get_mandatory_module_ids(course_id)

        async def _attempt() -> tuple[CourseProgress, bool, bool]:
            current = await self._store.get_course_progress(learner_id, course_id)
            base = current or engine.empty_progress(learner_id, course_id, modules)
            updated = engine.apply_completion(
                base, module_id, modules, now=self._clock(), mandatory_ids=mandatory_ids
            )
            if updated is base:
                return base, False, False
            saved = await self._store.save_course_progress(
                updated, expected_version=base.version
            )
            return saved, True, saved.course_completed and not base.course_completed

        progress, changed, newly_completed = await retry_on_conflict(
            _attempt, name="module_completion"
        )

        if not changed:
            MODULE_COMPLETIONS.labels(result="already_completed").inc()
            return progress

        MODULE_COMPLETIONS.labels(result="completed").inc()
        log_extra = {"learner_id": str(learner_id), "course_id": str(course_id)}
        logger.info(
            "Module %s completed (%d/%d)",
            module_id,
            progress.completed_count,
            progress.total_modules,
            extra=log_extra,
        )
        unlocked = engine.successor(module, modules)
        if unlocked is not None:
            logger.debug("Module %s unlocked", unlocked.id, extra=log_extra)
        if newly_completed:
            COURSE_COMPLETIONS.inc()
            logger.info("Course %s completed", course_id, extra=log_extra)

        await self._after_write(progress, module_id)
        return progress

    async def get_course_progress(
        self, learner_id: UUID, course_id: UUID
    ) -> CourseProgress:
        modules = await self._load_modules(course_id)
        progress = await self._store.get_course_progress(learner_id, course_id)
        if progress is None:
            return engine.empty_progress(learner_id, course_id, modules)
        return progress

    async def module_states(
        self, learner_id: UUID, course_id: UUID
    ) -> list[ModuleState]:
        modules = await self._load_modules(course_id)
        progress = await self._store.get_course_progress(learner_id, course_id)
        return engine.module_states(modules, progress)

    async def can_access_module(
        self, learner_id: UUID, course_id: UUID, module_id: UUID
    ) -> bool:
        modules = await self._load_modules(course_id)
        module = engine.find_module(course_id, module_id, modules)
        progress = await self._store.get_course_progress(learner_id, course_id)
        return engine.can_access_module(module, modules, progress)

    # ------------------------------------------------------------------
    # access tracking
    # ------------------------------------------------------------------

    async def record_course_access(
        self,
        learner_id: UUID,
        course_id: UUID,
        module_id: UUID | None = None,
    ) -> CourseProgress:
        """Create the progress record on first visit and stamp the last position."""
        modules = await self._load_modules(course_id)
        if module_id is not None:
            engine.find_module(course_id, module_id, modules)

        async def _attempt() -> CourseProgress:
            current = await self._store.get_course_progress(learner_id, course_id)
            base = current or engine.empty_progress(learner_id, course_id, modules)
            target = module_id
            if target is None:
                target = base.last_accessed_module_id
            elif not engine.can_access_module(
                engine.find_module(course_id, target, modules), modules, base
            ):
                raise ModuleLocked(target)
            updated = replace(
                base,
                total_modules=len(modules),
                last_accessed_module_id=target,
                last_accessed_at=self._clock(),
            )
            return await self._store.save_course_progress(
                updated, expected_version=base.version
            )

        progress = await retry_on_conflict(_attempt, name="course_access")
        await self._invalidate(learner_id, course_id)
        return progress

    async def save_video_position(
        self,
        learner_id: UUID,
        course_id: UUID,
        module_id: UUID,
        position_seconds: float,
    ) -> VideoCheckpoint:
        if not math.isfinite(position_seconds) or position_seconds < 0:
            raise ValidationError(
                f"position_seconds must be a finite number >= 0 (got {position_seconds!r})"
            )
        modules = await self._load_modules(course_id)
        module = engine.find_module(course_id, module_id, modules)
        progress = await self._store.get_course_progress(learner_id, course_id)
        if not engine.can_access_module(module, modules, progress):
            raise ModuleLocked(module_id)

        checkpoint = VideoCheckpoint(
            learner_id=learner_id,
            course_id=course_id,
            module_id=module_id,
            position_seconds=float(position_seconds),
            updated_at=self._clock(),
        )
        await self._store.save_video_checkpoint(checkpoint)
        return checkpoint

    async def get_video_position(
        self, learner_id: UUID, course_id: UUID, module_id: UUID
    ) -> VideoCheckpoint | None:
        modules = await self._load_modules(course_id)
        engine.find_module(course_id, module_id, modules)
        return await self._store.get_video_checkpoint(learner_id, course_id, module_id)

    async def enroll_in_path(self, learner_id: UUID, path_id: UUID) -> PathEnrollment:
        path = await self._catalog.get_learning_path(path_id)
        if path is None:
            raise NotFoundError(f"learning path {path_id} not found")
        enrollment = await self._store.enroll_in_path(
            PathEnrollment(learner_id=learner_id, path_id=path_id, enrolled_at=self._clock())
        )
        logger.info(
            "Learner enrolled in path %s", path.slug, extra={"learner_id": str(learner_id)}
        )
        return enrollment

    # ------------------------------------------------------------------
    # dashboard reads
    # ------------------------------------------------------------------

    async def most_recent_course(self, learner_id: UUID) -> CourseProgress | None:
        records = [
            p
            for p in await self._store.list_course_progress(learner_id)
            if p.last_accessed_at is not None
        ]
        if not records:
            return None
        return max(records, key=lambda p: p.last_accessed_at or 0)

    async def learning_summary(self, learner_id: UUID) -> LearningSummary:
        completed = 0
        in_progress = 0
        minutes = 0
        skills: set[str] = set()
        for progress in await self._store.list_course_progress(learner_id):
            course = await self._catalog.get_course(progress.course_id)
            if course is None:
                continue
            if progress.course_completed:
                completed += 1
                skills.update(course.skills)
            else:
                in_progress += 1
            modules = await self._catalog.get_modules_for_course(progress.course_id)
            minutes += sum(
                m.duration_minutes
                for m in modules
                if m.id in progress.completed_module_ids
            )
        return LearningSummary(
            completed_courses=completed,
            in_progress_courses=in_progress,
            learning_minutes=minutes,
            skills_gained=tuple(sorted(skills)),
        )
