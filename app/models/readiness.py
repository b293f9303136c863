from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

ASSIGNMENT_STATUSES = frozenset({"pending", "submitted", "graded"})


@dataclass(frozen=True, slots=True)
class Assignment:
    id: UUID
    learner_id: UUID
    title: str
    course_id: UUID | None = None
    status: str = "pending"  # pending|submitted|graded
    due_at: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"

    @staticmethod
    def new(
        *,
        learner_id: UUID,
        title: str,
        course_id: UUID | None = None,
        due_at: int | None = None,
    ) -> Assignment:
        return Assignment(
            id=uuid4(),
            learner_id=learner_id,
            title=title,
            course_id=course_id,
            due_at=due_at,
        )


@dataclass(frozen=True, slots=True)
class ReadinessSnapshot:
    """Composite readiness, derived on demand and never persisted."""

    score: int
    status: str  # OnTrack|NeedsAttention|AtRisk
    mandatory_complete: int
    mandatory_total: int
    course_completion_pct: int
    pending_assignments: int = 0
    total_assignments: int = 0
    overdue_mandatory: int = 0
