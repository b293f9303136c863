from __future__ import annotations

from uuid import UUID, uuid4

import pytest

from app.models.progress import CourseProgress
from app.models.readiness import Assignment
from app.services.readiness import (
    AT_RISK,
    NEEDS_ATTENTION,
    ON_TRACK,
    compute_readiness,
    round_half_up,
    status_for_score,
)

LEARNER = uuid4()


def _progress(course_id: UUID, completed: int, total: int, done: bool = False) -> CourseProgress:
    return CourseProgress(
        learner_id=LEARNER,
        course_id=course_id,
        completed_module_ids=frozenset(uuid4() for _ in range(completed)),
        total_modules=total,
        course_completed=done,
    )


def _assignment(status: str = "pending") -> Assignment:
    return Assignment(id=uuid4(), learner_id=LEARNER, title="a", status=status)


# ---- tiers ----


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (100, ON_TRACK),
        (80, ON_TRACK),
        (79, NEEDS_ATTENTION),
        (50, NEEDS_ATTENTION),
        (49, AT_RISK),
        (0, AT_RISK),
    ],
)
def test_status_tier_boundaries(score: int, expected: str) -> None:
    assert status_for_score(score) == expected


def test_round_half_up() -> None:
    assert round_half_up(49.5) == 50
    assert round_half_up(79.4) == 79
    assert round_half_up(0.5) == 1


# ---- defaults ----


def test_new_learner_scores_fifty() -> None:
    snapshot = compute_readiness({}, [], [])
    assert snapshot.score == 50
    assert snapshot.status == NEEDS_ATTENTION
    assert snapshot.course_completion_pct == 0
    assert snapshot.mandatory_total == 0


def test_everything_done_scores_hundred() -> None:
    c = uuid4()
    snapshot = compute_readiness(
        {c: _progress(c, 4, 4, done=True)},
        [_assignment("submitted")],
        [c],
    )
    assert snapshot.score == 100
    assert snapshot.status == ON_TRACK
    assert snapshot.mandatory_complete == 1


def test_score_eighty_is_on_track() -> None:
    # 0.5 * 60 + 0.3 * 100 + 0.2 * 100
    c = uuid4()
    snapshot = compute_readiness({c: _progress(c, 3, 5)}, [], [])
    assert snapshot.score == 80
    assert snapshot.status == ON_TRACK


def test_all_pending_no_progress_is_at_risk() -> None:
    c = uuid4()
    snapshot = compute_readiness(
        {c: _progress(c, 0, 5)}, [_assignment(), _assignment()], []
    )
    # 0 + 0 + 20
    assert snapshot.score == 20
    assert snapshot.status == AT_RISK
    assert snapshot.pending_assignments == 2
    assert snapshot.total_assignments == 2


def test_completion_averages_across_enrolled_courses() -> None:
    a, b = uuid4(), uuid4()
    snapshot = compute_readiness(
        {a: _progress(a, 4, 4, done=True), b: _progress(b, 0, 4)}, [], []
    )
    assert snapshot.course_completion_pct == 50
    # 25 + 30 + 20
    assert snapshot.score == 75


def test_graded_and_submitted_assignments_are_not_pending() -> None:
    snapshot = compute_readiness(
        {}, [_assignment("graded"), _assignment("submitted"), _assignment()], []
    )
    assert snapshot.pending_assignments == 1


# ---- overdue ----


def test_overdue_mandatory_course_lowers_score() -> None:
    c = uuid4()
    snapshot = compute_readiness(
        {c: _progress(c, 5, 5)},
        [],
        [c],
        due_dates={c: 1_000},
        as_of=2_000,
    )
    # 50 + 30 + 0
    assert snapshot.overdue_mandatory == 1
    assert snapshot.score == 80


def test_completed_mandatory_course_is_never_overdue() -> None:
    c = uuid4()
    snapshot = compute_readiness(
        {c: _progress(c, 5, 5, done=True)},
        [],
        [c],
        due_dates={c: 1_000},
        as_of=2_000,
    )
    assert snapshot.overdue_mandatory == 0
    assert snapshot.score == 100


def test_unstarted_mandatory_course_can_be_overdue() -> None:
    c = uuid4()
    snapshot = compute_readiness({}, [], [c], due_dates={c: 10}, as_of=20)
    assert snapshot.overdue_mandatory == 1
    assert snapshot.score == 30


def test_future_due_date_is_not_overdue() -> None:
    c = uuid4()
    snapshot = compute_readiness({}, [], [c], due_dates={c: 30}, as_of=20)
    assert snapshot.overdue_mandatory == 0


def test_without_as_of_nothing_is_overdue() -> None:
    c = uuid4()
    snapshot = compute_readiness({}, [], [c], due_dates={c: 1})
    assert snapshot.overdue_mandatory == 0


# ---- purity ----


def test_identical_inputs_give_identical_snapshots() -> None:
    c = uuid4()
    progress = {c: _progress(c, 2, 5)}
    assignments = [_assignment(), _assignment("submitted")]
    first = compute_readiness(progress, assignments, [c], due_dates={c: 5}, as_of=10)
    second = compute_readiness(progress, assignments, [c], due_dates={c: 5}, as_of=10)
    assert first == second


def test_score_is_always_within_bounds() -> None:
    c = uuid4()
    snapshot = compute_readiness(
        {c: _progress(c, 0, 3)}, [_assignment()], [c], due_dates={c: 0}, as_of=1
    )
    assert snapshot.score == 0
    assert snapshot.status == AT_RISK


# ---- exact half boundaries ----


def test_exact_half_rounds_up_into_on_track() -> None:
    # 0.5*79 + 0.3*(100 - 100/9) + 0.2*(100 - 100/3) is exactly 79.5
    course = uuid4()
    overdue, m2, m3 = uuid4(), uuid4(), uuid4()
    assignments = [_assignment("pending")] + [_assignment("submitted") for _ in range(8)]

    snap = compute_readiness(
        {course: _progress(course, 79, 100)},
        assignments,
        [overdue, m2, m3],
        due_dates={overdue: 5},
        as_of=10,
    )

    assert snap.score == 80
    assert snap.status == ON_TRACK
    assert snap.overdue_mandatory == 1


def test_exact_half_rounds_up_into_needs_attention() -> None:
    # 0.5*33 + 0.3*(100 - 100/3) + 0.2*100 is exactly 56.5; no float drift
    course = uuid4()
    assignments = [_assignment("pending"), _assignment("submitted"), _assignment("graded")]

    snap = compute_readiness({course: _progress(course, 33, 100)}, assignments, [])

    assert snap.score == 57
    assert snap.status == NEEDS_ATTENTION
