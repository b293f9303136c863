from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

READINESS_VIEWER_ROLES = frozenset({"manager", "admin"})


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller, built from a verified bearer token.

    ``user_id`` is the JWT subject; for learners it is their learner id.
    """

    user_id: str
    roles: frozenset[str]

    @property
    def learner_id(self) -> UUID:
        return UUID(self.user_id)

    def has_any_role(self, roles: set[str] | frozenset[str]) -> bool:
        return bool(self.roles & roles)

    def can_view_learner(self, learner_id: UUID) -> bool:
        if self.has_any_role(READINESS_VIEWER_ROLES):
            return True
        try:
            return self.learner_id == learner_id
        except ValueError:
            return False
