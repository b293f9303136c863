from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.models.course import Course, LearningPath, Module


class CourseCatalog(Protocol):
    """Read side of the authoring system.  The engines never write here."""

    async def get_course(self, course_id: UUID) -> Course | None: ...
    async def get_modules_for_course(self, course_id: UUID) -> list[Module]: ...
    async def get_mandatory_module_ids(self, course_id: UUID) -> frozenset[UUID]: ...
    async def is_course_published(self, course_id: UUID) -> bool: ...
    async def list_visible_courses(self) -> list[Course]: ...
    async def get_learning_path(self, path_id: UUID) -> LearningPath | None: ...


class InMemoryCourseCatalog:
    def __init__(self) -> None:
        self._courses: dict[UUID, Course] = {}
        self._modules: dict[UUID, list[Module]] = {}
        self._paths: dict[UUID, LearningPath] = {}

    # --- seeding (authoring side) ---

    def add_course(self, course: Course, modules: list[Module] | None = None) -> None:
        if course.id in self._courses:
            raise ValueError("course already exists")
        for m in modules or []:
            if m.course_id != course.id:
                raise ValueError(f"module {m.id} belongs to another course")
        self._courses[course.id] = course
        self._modules[course.id] = sorted(modules or [], key=lambda m: m.order)

    def add_path(self, path: LearningPath) -> None:
        self._paths[path.id] = path

    # --- CourseCatalog ---

    async def get_course(self, course_id: UUID) -> Course | None:
        return self._courses.get(course_id)

    async def get_modules_for_course(self, course_id: UUID) -> list[Module]:
        return list(self._modules.get(course_id, []))

    async def get_mandatory_module_ids(self, course_id: UUID) -> frozenset[UUID]:
        return frozenset(m.id for m in self._modules.get(course_id, []) if m.mandatory)

    async def is_course_published(self, course_id: UUID) -> bool:
        course = self._courses.get(course_id)
        return course is not None and course.visible_to_learners

    async def list_visible_courses(self) -> list[Course]:
        return [c for c in self._courses.values() if c.visible_to_learners]

    async def get_learning_path(self, path_id: UUID) -> LearningPath | None:
        return self._paths.get(path_id)
