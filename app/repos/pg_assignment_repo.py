"""PostgreSQL implementation of AssignmentRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import AssignmentRow
from app.models.readiness import Assignment


class PgAssignmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_learner(self, learner_id: UUID) -> list[Assignment]:
        stmt = select(AssignmentRow).where(AssignmentRow.learner_id == learner_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_assignment(r) for r in rows]

    async def get(self, assignment_id: UUID) -> Assignment | None:
        row = await self._session.get(AssignmentRow, assignment_id)
        return _row_to_assignment(row) if row is not None else None

    async def add(self, assignment: Assignment) -> None:
        self._session.add(
            AssignmentRow(
                id=assignment.id,
                learner_id=assignment.learner_id,
                course_id=assignment.course_id,
                title=assignment.title,
                status=assignment.status,
                due_at=assignment.due_at,
            )
        )
        await self._session.flush()

    async def mark_submitted(self, assignment_id: UUID) -> Assignment | None:
        stmt = (
            update(AssignmentRow)
            .where(AssignmentRow.id == assignment_id, AssignmentRow.status == "pending")
            .values(status="submitted")
            .execution_options(synchronize_session="fetch")
        )
        await self._session.execute(stmt)
        return await self.get(assignment_id)


def _row_to_assignment(row: AssignmentRow) -> Assignment:
    return Assignment(
        id=row.id,
        learner_id=row.learner_id,
        course_id=row.course_id,
        title=row.title,
        status=row.status,
        due_at=row.due_at,
    )
