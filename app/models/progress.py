from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class CourseProgress:
    """Per learner x course progress record.

    Created on first access, replaced (never deleted) on every
    completion.  ``version`` backs optimistic locking in the store;
    it is bumped by the store on each successful save.

    Invariants kept by CompletionService:
      completed_module_ids is a subset of the course's module ids
      completed_module_ids never shrinks
      course_completed never flips back to False
    """

    learner_id: UUID
    course_id: UUID
    completed_module_ids: frozenset[UUID] = frozenset()
    total_modules: int = 0
    course_completed: bool = False
    last_accessed_module_id: UUID | None = None
    last_accessed_at: int | None = None
    completed_at: int | None = None
    version: int = 0

    @property
    def completed_count(self) -> int:
        return len(self.completed_module_ids)

    @property
    def percent_complete(self) -> int:
        total = self.total_modules
        if total <= 0:
            return 0
        # integer round-half-up of 100 * completed / total
        return min(100, (200 * self.completed_count + total) // (2 * total))


@dataclass(frozen=True, slots=True)
class ModuleState:
    """A module paired with its derived state for one learner."""

    module_id: UUID
    order: int
    title: str
    type: str
    mandatory: bool
    state: str  # locked|unlocked|completed

    @property
    def locked(self) -> bool:
        return self.state == "locked"


@dataclass(frozen=True, slots=True)
class VideoCheckpoint:
    learner_id: UUID
    course_id: UUID
    module_id: UUID
    position_seconds: float
    updated_at: int


@dataclass(frozen=True, slots=True)
class PathEnrollment:
    learner_id: UUID
    path_id: UUID
    enrolled_at: int


@dataclass(frozen=True, slots=True)
class ProgressChanged:
    """Message published after a learner's course progress moves."""

    learner_id: UUID
    course_id: UUID
    module_id: UUID | None
    percent_complete: int
    course_completed: bool
    occurred_at: int

    def to_payload(self) -> dict:
        return {
            "learner_id": str(self.learner_id),
            "course_id": str(self.course_id),
            "module_id": str(self.module_id) if self.module_id else None,
            "percent_complete": self.percent_complete,
            "course_completed": self.course_completed,
            "occurred_at": self.occurred_at,
        }


@dataclass(frozen=True, slots=True)
class LearningSummary:
    completed_courses: int
    in_progress_courses: int
    learning_minutes: int
    skills_gained: tuple[str, ...]
