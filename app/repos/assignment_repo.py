from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from app.models.readiness import Assignment


class AssignmentRepo(Protocol):
    async def list_for_learner(self, learner_id: UUID) -> list[Assignment]: ...
    async def get(self, assignment_id: UUID) -> Assignment | None: ...
    async def add(self, assignment: Assignment) -> None: ...
    async def mark_submitted(self, assignment_id: UUID) -> Assignment | None: ...


class InMemoryAssignmentRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Assignment] = {}

    async def list_for_learner(self, learner_id: UUID) -> list[Assignment]:
        return [a for a in self._by_id.values() if a.learner_id == learner_id]

    async def get(self, assignment_id: UUID) -> Assignment | None:
        return self._by_id.get(assignment_id)

    async def add(self, assignment: Assignment) -> None:
        if assignment.id in self._by_id:
            raise ValueError("assignment already exists")
        self._by_id[assignment.id] = assignment

    async def mark_submitted(self, assignment_id: UUID) -> Assignment | None:
        a = self._by_id.get(assignment_id)
        if a is None:
            return None
        # graded stays graded
        if a.status == "pending":
            a = replace(a, status="submitted")
            self._by_id[assignment_id] = a
        return a
