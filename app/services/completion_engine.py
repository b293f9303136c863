"""Sequential module gating and course completion rules.

Pure functions over a course's module list and one learner's
CourseProgress.  Nothing here touches storage; CompletionService loads
state, calls in, and saves what comes back.

Per module, per learner, the states are:

    locked ──(predecessor completed)──> unlocked ──(completion event)──> completed

The first module by ``order`` starts unlocked.  Nothing ever leaves
``completed``.  "Locked" is recomputed from the completed set on every
call and is never stored.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from uuid import UUID

from app.core.errors import ModuleLocked, ModuleNotInCourse
from app.models.course import Module
from app.models.progress import CourseProgress, ModuleState


def ordered(modules: Sequence[Module]) -> list[Module]:
    return sorted(modules, key=lambda m: m.order)


def predecessor(module: Module, modules: Sequence[Module]) -> Module | None:
    """The module with the greatest ``order`` below this one, if any."""
    earlier = [m for m in modules if m.order < module.order]
    if not earlier:
        return None
    return max(earlier, key=lambda m: m.order)


def successor(module: Module, modules: Sequence[Module]) -> Module | None:
    later = [m for m in modules if m.order > module.order]
    if not later:
        return None
    return min(later, key=lambda m: m.order)


def required_module_ids(
    modules: Sequence[Module], mandatory_ids: frozenset[UUID] | None = None
) -> frozenset[UUID]:
    """Modules that must be completed for the course to count as completed.

    The mandatory modules, or every module when the author flagged none.
    ``mandatory_ids`` is the catalog's answer; without it the flags on
    ``modules`` are used.
    """
    if mandatory_ids is None:
        mandatory = frozenset(m.id for m in modules if m.mandatory)
    else:
        mandatory = mandatory_ids
    if mandatory:
        return mandatory
    return frozenset(m.id for m in modules)


def _completed(progress: CourseProgress | None) -> frozenset[UUID]:
    return progress.completed_module_ids if progress is not None else frozenset()


def can_access_module(
    module: Module,
    modules: Sequence[Module],
    progress: CourseProgress | None,
) -> bool:
    prev = predecessor(module, modules)
    if prev is None:
        return True
    return prev.id in _completed(progress)


def module_state(
    module: Module,
    modules: Sequence[Module],
    progress: CourseProgress | None,
) -> str:
    if module.id in _completed(progress):
        return "completed"
    if can_access_module(module, modules, progress):
        return "unlocked"
    return "locked"


def module_states(
    modules: Sequence[Module], progress: CourseProgress | None
) -> list[ModuleState]:
    return [
        ModuleState(
            module_id=m.id,
            order=m.order,
            title=m.title,
            type=m.type,
            mandatory=m.mandatory,
            state=module_state(m, modules, progress),
        )
        for m in ordered(modules)
    ]


def find_module(
    course_id: UUID, module_id: UUID, modules: Sequence[Module]
) -> Module:
    for m in modules:
        if m.id == module_id:
            return m
    raise ModuleNotInCourse(course_id, module_id)


def empty_progress(
    learner_id: UUID, course_id: UUID, modules: Sequence[Module]
) -> CourseProgress:
    return CourseProgress(
        learner_id=learner_id,
        course_id=course_id,
        total_modules=len(modules),
    )


def apply_completion(
    progress: CourseProgress,
    module_id: UUID,
    modules: Sequence[Module],
    *,
    now: int,
    mandatory_ids: frozenset[UUID] | None = None,
) -> CourseProgress:
    """Return ``progress`` with ``module_id`` completed.

    Completing an already-completed module returns ``progress`` itself,
    unchanged.  A module outside the course raises ModuleNotInCourse; a
    module whose predecessor is not yet completed raises ModuleLocked.
    """
    module = find_module(progress.course_id, module_id, modules)
    if module_id in progress.completed_module_ids:
        return progress
    if not can_access_module(module, modules, progress):
        raise ModuleLocked(module_id)

    completed = progress.completed_module_ids | {module_id}
    course_completed = progress.course_completed or required_module_ids(
        modules, mandatory_ids
    ) <= completed
    completed_at = progress.completed_at
    if course_completed and not progress.course_completed:
        completed_at = now

    return replace(
        progress,
        completed_module_ids=completed,
        total_modules=len(modules),
        course_completed=course_completed,
        completed_at=completed_at,
        last_accessed_module_id=module_id,
        last_accessed_at=now,
    )
