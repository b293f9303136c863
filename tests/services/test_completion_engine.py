from __future__ import annotations

from uuid import uuid4

import pytest

from app.core.errors import ModuleLocked, ModuleNotInCourse
from app.models.course import Module
from app.models.progress import CourseProgress
from app.services import completion_engine as engine
from tests.conftest import make_modules

LEARNER = uuid4()
COURSE = uuid4()


def _complete(progress: CourseProgress, modules: list[Module], *orders: int) -> CourseProgress:
    by_order = {m.order: m for m in modules}
    for i, order in enumerate(orders):
        progress = engine.apply_completion(
            progress, by_order[order].id, modules, now=1000 + i
        )
    return progress


@pytest.fixture
def modules() -> list[Module]:
    return make_modules(COURSE, 5, mandatory_orders=(4, 5))


@pytest.fixture
def fresh(modules: list[Module]) -> CourseProgress:
    return engine.empty_progress(LEARNER, COURSE, modules)


# ---- access / state machine ----


def test_first_module_unlocked_rest_locked(modules: list[Module]) -> None:
    states = [s.state for s in engine.module_states(modules, None)]
    assert states == ["unlocked", "locked", "locked", "locked", "locked"]


def test_completing_module_unlocks_successor(
    modules: list[Module], fresh: CourseProgress
) -> None:
    progress = _complete(fresh, modules, 1)
    states = [s.state for s in engine.module_states(modules, progress)]
    assert states == ["completed", "unlocked", "locked", "locked", "locked"]


def test_predecessor_uses_order_not_list_position() -> None:
    mods = make_modules(COURSE, 3)
    shuffled = [mods[2], mods[0], mods[1]]
    assert engine.predecessor(mods[2], shuffled) == mods[1]
    assert engine.predecessor(mods[0], shuffled) is None


def test_predecessor_skips_gaps_in_order() -> None:
    a = Module.new(course_id=COURSE, order=10, title="a")
    b = Module.new(course_id=COURSE, order=30, title="b")
    c = Module.new(course_id=COURSE, order=20, title="c")
    assert engine.predecessor(b, [a, b, c]) == c
    assert engine.successor(a, [a, b, c]) == c


def test_access_recomputed_from_completed_set(
    modules: list[Module], fresh: CourseProgress
) -> None:
    assert engine.can_access_module(modules[1], modules, fresh) is False
    progress = _complete(fresh, modules, 1)
    assert engine.can_access_module(modules[1], modules, progress) is True
    # the original record is untouched
    assert engine.can_access_module(modules[1], modules, fresh) is False


def test_completing_locked_module_raises(
    modules: list[Module], fresh: CourseProgress
) -> None:
    with pytest.raises(ModuleLocked):
        engine.apply_completion(fresh, modules[2].id, modules, now=1)


def test_foreign_module_raises_module_not_in_course(
    modules: list[Module], fresh: CourseProgress
) -> None:
    with pytest.raises(ModuleNotInCourse):
        engine.apply_completion(fresh, uuid4(), modules, now=1)


# ---- completion ----


def test_completion_is_idempotent(modules: list[Module], fresh: CourseProgress) -> None:
    once = _complete(fresh, modules, 1)
    again = engine.apply_completion(once, modules[0].id, modules, now=9999)
    assert again is once
    assert again.completed_count == 1


def test_mandatory_scenario_first_three_not_complete(
    modules: list[Module], fresh: CourseProgress
) -> None:
    progress = _complete(fresh, modules, 1, 2, 3)
    assert progress.course_completed is False
    assert progress.completed_at is None
    assert progress.percent_complete == 60


def test_mandatory_scenario_all_five_complete(
    modules: list[Module], fresh: CourseProgress
) -> None:
    progress = _complete(fresh, modules, 1, 2, 3, 4, 5)
    assert progress.course_completed is True
    assert progress.percent_complete == 100
    assert progress.completed_at is not None


def test_course_completed_as_soon_as_mandatory_set_is_covered() -> None:
    mods = make_modules(COURSE, 4, mandatory_orders=(2,))
    progress = _complete(engine.empty_progress(LEARNER, COURSE, mods), mods, 1, 2)
    assert progress.course_completed is True
    assert progress.completed_at == 1001


def test_course_completed_never_reverts() -> None:
    mods = make_modules(COURSE, 3, mandatory_orders=(1,))
    progress = _complete(engine.empty_progress(LEARNER, COURSE, mods), mods, 1)
    assert progress.course_completed is True
    first_completed_at = progress.completed_at

    # the author adds a new mandatory module later
    extra = Module.new(course_id=COURSE, order=4, title="new", mandatory=True)
    progress = engine.apply_completion(progress, mods[1].id, [*mods, extra], now=5000)
    assert progress.course_completed is True
    assert progress.completed_at == first_completed_at


def test_without_mandatory_modules_every_module_is_required() -> None:
    mods = make_modules(COURSE, 3)
    progress = _complete(engine.empty_progress(LEARNER, COURSE, mods), mods, 1, 2)
    assert progress.course_completed is False
    progress = _complete(progress, mods, 3)
    assert progress.course_completed is True


def test_completion_stamps_last_access(
    modules: list[Module], fresh: CourseProgress
) -> None:
    progress = _complete(fresh, modules, 1, 2)
    assert progress.last_accessed_module_id == modules[1].id
    assert progress.last_accessed_at == 1001


def test_empty_progress_counts_modules(modules: list[Module]) -> None:
    progress = engine.empty_progress(LEARNER, COURSE, modules)
    assert progress.total_modules == 5
    assert progress.percent_complete == 0
    assert progress.version == 0


@pytest.mark.parametrize(
    ("completed", "total", "expected"),
    [(0, 0, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (3, 3, 100)],
)
def test_percent_complete_rounds_half_up(completed: int, total: int, expected: int) -> None:
    progress = CourseProgress(
        learner_id=LEARNER,
        course_id=COURSE,
        completed_module_ids=frozenset(uuid4() for _ in range(completed)),
        total_modules=total,
    )
    assert progress.percent_complete == expected


def test_required_ids_prefer_explicit_mandatory_set() -> None:
    course_id = uuid4()
    mods = make_modules(course_id, 3, mandatory_orders=(3,))
    assert engine.required_module_ids(mods) == {mods[2].id}
    assert engine.required_module_ids(mods, frozenset({mods[0].id})) == {mods[0].id}
    # an empty catalog answer still means every module is required
    assert engine.required_module_ids(mods, frozenset()) == {m.id for m in mods}
