from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from uuid import UUID

from app.core.errors import NotFoundError
from app.core.metrics import READINESS_COMPUTATIONS
from app.models.progress import CourseProgress
from app.models.readiness import ReadinessSnapshot
from app.repos.assignment_repo import AssignmentRepo
from app.repos.catalog_repo import CourseCatalog
from app.repos.learner_repo import LearnerRepo
from app.repos.progress_repo import ProgressStore
from app.services.readiness import compute_readiness

logger = logging.getLogger(__name__)


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


class ReadinessService:
    """Gathers a learner's inputs and hands them to compute_readiness.

    Enrolled courses are those with a progress record plus every course
    on a learning path the learner joined; a path course never opened
    counts at 0%.  Mandatory courses are the learner-visible courses the
    catalog flags as mandatory, enrolled or not.
    """

    def __init__(
        self,
        catalog: CourseCatalog,
        store: ProgressStore,
        assignments: AssignmentRepo,
        learners: LearnerRepo,
        *,
        clock: Callable[[], int] = _now,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._assignments = assignments
        self._learners = learners
        self._clock = clock

    async def _enrolled_progress(self, learner_id: UUID) -> dict[UUID, CourseProgress]:
        visible = {c.id for c in await self._catalog.list_visible_courses()}
        by_course = {
            p.course_id: p
            for p in await self._store.list_course_progress(learner_id)
            if p.course_id in visible
        }
        for enrollment in await self._store.list_path_enrollments(learner_id):
            path = await self._catalog.get_learning_path(enrollment.path_id)
            if path is None:
                continue
            for course_id in path.course_ids:
                if course_id in visible and course_id not in by_course:
                    by_course[course_id] = CourseProgress(
                        learner_id=learner_id, course_id=course_id
                    )
        return by_course

    async def compute_for_learner(self, learner_id: UUID) -> ReadinessSnapshot:
        if await self._learners.get(learner_id) is None:
            raise NotFoundError(f"learner {learner_id} not found")

        progress_by_course = await self._enrolled_progress(learner_id)
        mandatory = [
            c for c in await self._catalog.list_visible_courses() if c.is_mandatory
        ]
        snapshot = compute_readiness(
            progress_by_course,
            await self._assignments.list_for_learner(learner_id),
            [c.id for c in mandatory],
            due_dates={c.id: c.due_at for c in mandatory},
            as_of=self._clock(),
        )
        READINESS_COMPUTATIONS.labels(status=snapshot.status).inc()
        logger.debug(
            "Readiness score=%d status=%s",
            snapshot.score,
            snapshot.status,
            extra={"learner_id": str(learner_id)},
        )
        return snapshot
