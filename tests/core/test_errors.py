from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import (
    ConcurrencyConflict,
    ConcurrencyError,
    DuplicateSubmission,
    InvalidScore,
    ModuleLocked,
    ModuleNotInCourse,
    NotFoundError,
    ProgressError,
    ValidationError,
    register_error_handlers,
    retry_on_conflict,
)
from app.core.metrics import OPTIMISTIC_LOCK_RETRIES


class _Flaky:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConcurrencyConflict("stale version")
        return "saved"


def test_retry_succeeds_after_conflicts() -> None:
    op = _Flaky(failures=2)
    before = OPTIMISTIC_LOCK_RETRIES.labels(operation="unit")._value.get()
    assert asyncio.run(retry_on_conflict(op, name="unit", attempts=3)) == "saved"
    assert op.calls == 3
    assert OPTIMISTIC_LOCK_RETRIES.labels(operation="unit")._value.get() - before == 2


def test_retry_gives_up_after_budget() -> None:
    op = _Flaky(failures=10)
    with pytest.raises(ConcurrencyError, match="after 3 attempts"):
        asyncio.run(retry_on_conflict(op, name="unit", attempts=3))
    assert op.calls == 3


def test_retry_does_not_swallow_other_errors() -> None:
    async def op() -> None:
        raise NotFoundError("learner gone")

    with pytest.raises(NotFoundError):
        asyncio.run(retry_on_conflict(op, name="unit"))


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (ValidationError("bad"), 422),
        (ModuleNotInCourse("c", "m"), 422),
        (InvalidScore(101), 422),
        (ModuleLocked("m"), 409),
        (DuplicateSubmission("s1"), 409),
        (NotFoundError("missing"), 404),
        (ConcurrencyError("busy"), 503),
        (ProgressError("boom"), 500),
    ],
)
def test_error_handler_maps_status(exc: ProgressError, status: int) -> None:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/boom")
    async def boom() -> None:
        raise exc

    resp = TestClient(app).get("/boom")
    assert resp.status_code == status
    assert resp.json() == {"detail": str(exc), "error": type(exc).__name__}
