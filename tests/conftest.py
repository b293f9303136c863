from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from app.api import providers
from app.main import app
from app.models.course import Course, Module
from app.models.learner import Learner
from app.services import token_service
from app.services.cache import cache_service
from app.services.task_queue import task_queue

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_catalog() -> None:
    providers.catalog._courses.clear()
    providers.catalog._modules.clear()
    providers.catalog._paths.clear()


@pytest.fixture(autouse=True)
def reset_progress_store() -> None:
    providers.progress_store._progress.clear()
    providers.progress_store._checkpoints.clear()
    providers.progress_store._enrollments.clear()


@pytest.fixture(autouse=True)
def reset_learners() -> None:
    providers.learner_repo._by_id.clear()
    providers.learner_repo._by_email.clear()
    providers.learner_repo._submissions.clear()


@pytest.fixture(autouse=True)
def reset_assignments() -> None:
    providers.assignment_repo._by_id.clear()


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    """Clear task queues between tests."""
    if hasattr(task_queue, "_queues"):
        task_queue._queues.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    sub: UUID | str | None = None,
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(
        sub=str(sub if sub is not None else uuid4()), roles=roles
    )


def auth_header(sub: UUID | str | None = None, roles: list[str] | None = None) -> dict:
    return {"Authorization": f"Bearer {mint_token(sub, roles)}"}


# ---------------------------------------------------------------------------
# Seed helpers (write straight into the shared in-memory repos)
# ---------------------------------------------------------------------------


def make_modules(
    course_id: UUID,
    count: int = 5,
    mandatory_orders: tuple[int, ...] = (),
    duration_minutes: int = 10,
) -> list[Module]:
    return [
        Module.new(
            course_id=course_id,
            order=i,
            title=f"Module {i}",
            mandatory=i in mandatory_orders,
            duration_minutes=duration_minutes,
        )
        for i in range(1, count + 1)
    ]


def seed_course(
    *,
    slug: str = "intro",
    modules: int = 5,
    mandatory_orders: tuple[int, ...] = (4, 5),
    status: str = "published",
    is_mandatory: bool = False,
    due_at: int | None = None,
    skills: tuple[str, ...] = (),
) -> tuple[Course, list[Module]]:
    course = Course.new(
        slug=slug,
        title=slug.replace("-", " ").title(),
        status=status,
        is_mandatory=is_mandatory,
        due_at=due_at,
        skills=skills,
    )
    mods = make_modules(course.id, modules, mandatory_orders)
    providers.catalog.add_course(course, mods)
    return course, mods


def seed_learner(email: str = "learner@example.com", role: str = "learner") -> Learner:
    learner = Learner.new(email=email, role=role)
    asyncio.run(providers.learner_repo.add(learner))
    return learner


@pytest.fixture
def learner() -> Learner:
    return seed_learner()


@pytest.fixture
def learner_headers(learner: Learner) -> dict:
    return auth_header(learner.id)


@pytest.fixture
def course() -> tuple[Course, list[Module]]:
    """Published five-module course; modules 4 and 5 are mandatory."""
    return seed_course()
