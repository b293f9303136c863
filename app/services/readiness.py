"""Composite learner readiness.

    score = round(0.5 * completion
                  + 0.3 * (100 - pending_assignment_pct)
                  + 0.2 * (100 - overdue_mandatory_pct))

clamped to [0, 100], then bucketed:

    score >= 80        OnTrack
    50 <= score < 80   NeedsAttention
    score < 50         AtRisk

Empty inputs are not errors.  No enrolled courses means completion 0,
no assignments means 0% pending, no mandatory courses means 0% overdue;
a brand-new learner therefore lands on 50 (NeedsAttention), not 100.

The terms are kept as exact fractions until the final rounding, so a
score that is exactly x.5 always rounds up (79.5 is OnTrack, not 79).

``compute_readiness`` is a pure function of its arguments (including
``as_of``) so the UI can call it as often as it likes.
"""

from __future__ import annotations

import math
from collections.abc import Collection, Mapping, Sequence
from fractions import Fraction
from uuid import UUID

from app.models.progress import CourseProgress
from app.models.readiness import Assignment, ReadinessSnapshot

COMPLETION_WEIGHT = Fraction(5, 10)
PENDING_WEIGHT = Fraction(3, 10)
OVERDUE_WEIGHT = Fraction(2, 10)

ON_TRACK_THRESHOLD = 80
NEEDS_ATTENTION_THRESHOLD = 50

ON_TRACK = "OnTrack"
NEEDS_ATTENTION = "NeedsAttention"
AT_RISK = "AtRisk"


def round_half_up(value: Fraction | float | int) -> int:
    return math.floor(Fraction(value) + Fraction(1, 2))


def status_for_score(score: int) -> str:
    if score >= ON_TRACK_THRESHOLD:
        return ON_TRACK
    if score >= NEEDS_ATTENTION_THRESHOLD:
        return NEEDS_ATTENTION
    return AT_RISK


def _is_overdue(
    course_id: UUID,
    progress_by_course: Mapping[UUID, CourseProgress],
    due_dates: Mapping[UUID, int | None],
    as_of: int | None,
) -> bool:
    progress = progress_by_course.get(course_id)
    if progress is not None and progress.course_completed:
        return False
    due_at = due_dates.get(course_id)
    return as_of is not None and due_at is not None and due_at < as_of


def compute_readiness(
    progress_by_course: Mapping[UUID, CourseProgress],
    assignments: Sequence[Assignment],
    mandatory_course_ids: Collection[UUID],
    *,
    due_dates: Mapping[UUID, int | None] | None = None,
    as_of: int | None = None,
) -> ReadinessSnapshot:
    """Fold course progress, assignment state and deadlines into one snapshot.

    A mandatory course is overdue when it is not completed, has a due
    date, and that date is before ``as_of``.  With ``as_of`` left as
    None nothing counts as overdue.
    """
    due_dates = due_dates or {}

    if progress_by_course:
        completion = Fraction(
            sum(p.percent_complete for p in progress_by_course.values()),
            len(progress_by_course),
        )
    else:
        completion = Fraction(0)

    total_assignments = len(assignments)
    pending = sum(1 for a in assignments if a.is_pending)
    pending_pct = Fraction(100 * pending, total_assignments) if total_assignments else Fraction(0)

    mandatory = set(mandatory_course_ids)
    mandatory_total = len(mandatory)
    mandatory_complete = sum(
        1
        for cid in mandatory
        if cid in progress_by_course and progress_by_course[cid].course_completed
    )
    overdue = sum(
        1 for cid in mandatory if _is_overdue(cid, progress_by_course, due_dates, as_of)
    )
    overdue_pct = Fraction(100 * overdue, mandatory_total) if mandatory_total else Fraction(0)

    raw = (
        COMPLETION_WEIGHT * completion
        + PENDING_WEIGHT * (100 - pending_pct)
        + OVERDUE_WEIGHT * (100 - overdue_pct)
    )
    score = max(0, min(100, round_half_up(raw)))

    return ReadinessSnapshot(
        score=score,
        status=status_for_score(score),
        mandatory_complete=mandatory_complete,
        mandatory_total=mandatory_total,
        course_completion_pct=max(0, min(100, round_half_up(completion))),
        pending_assignments=pending,
        total_assignments=total_assignments,
        overdue_mandatory=overdue,
    )
