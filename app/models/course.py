from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

MODULE_TYPES = frozenset({"video", "quiz", "assignment", "reading"})
LEARNER_VISIBLE_STATUSES = frozenset({"published", "archived"})


@dataclass(frozen=True, slots=True)
class Module:
    """One unit of a course.

    There is no ``locked`` field: access is derived from the
    learner's completion history every time it is asked for
    (see app/services/completion_engine.py).
    """

    id: UUID
    course_id: UUID
    order: int
    title: str
    type: str = "video"  # video|quiz|assignment|reading
    mandatory: bool = False
    duration_minutes: int = 0

    @staticmethod
    def new(
        *,
        course_id: UUID,
        order: int,
        title: str,
        type: str = "video",
        mandatory: bool = False,
        duration_minutes: int = 0,
    ) -> Module:
        if type not in MODULE_TYPES:
            raise ValueError(f"unknown module type {type!r}")
        return Module(
            id=uuid4(),
            course_id=course_id,
            order=order,
            title=title,
            type=type,
            mandatory=mandatory,
            duration_minutes=duration_minutes,
        )


@dataclass(frozen=True, slots=True)
class Course:
    id: UUID
    slug: str
    title: str
    status: str = "draft"  # draft|published|archived
    is_mandatory: bool = False
    due_at: int | None = None  # epoch seconds; only meaningful when mandatory
    skills: tuple[str, ...] = ()
    created_by: UUID | None = None

    @property
    def visible_to_learners(self) -> bool:
        return self.status in LEARNER_VISIBLE_STATUSES

    @staticmethod
    def new(
        *,
        slug: str,
        title: str,
        status: str = "draft",
        is_mandatory: bool = False,
        due_at: int | None = None,
        skills: tuple[str, ...] = (),
        created_by: UUID | None = None,
    ) -> Course:
        return Course(
            id=uuid4(),
            slug=slug,
            title=title,
            status=status,
            is_mandatory=is_mandatory,
            due_at=due_at,
            skills=skills,
            created_by=created_by,
        )


@dataclass(frozen=True, slots=True)
class LearningPath:
    id: UUID
    slug: str
    title: str
    course_ids: tuple[UUID, ...] = ()

    @staticmethod
    def new(*, slug: str, title: str, course_ids: tuple[UUID, ...] = ()) -> LearningPath:
        return LearningPath(id=uuid4(), slug=slug, title=title, course_ids=course_ids)
