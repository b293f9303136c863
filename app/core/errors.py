"""Domain error taxonomy for the progress service.

Services raise these; each class carries its HTTP status, which is read
in exactly one place (``register_error_handlers``).

  ValidationError      bad input (unknown module, bad score), never retried
  NotFoundError        unknown learner / course / path
  DuplicateSubmission  quiz submission id already applied
  ConcurrencyConflict  optimistic-lock version mismatch, retried internally
  ConcurrencyError     retries exhausted, surfaced to the caller
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.config import SETTINGS
from app.core.metrics import OPTIMISTIC_LOCK_RETRIES

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProgressError(Exception):
    """Root of every error raised by the progress engines."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ValidationError(ProgressError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ModuleNotInCourse(ValidationError):
    def __init__(self, course_id: object, module_id: object) -> None:
        super().__init__(f"module {module_id} does not belong to course {course_id}")
        self.course_id = course_id
        self.module_id = module_id


class ModuleLocked(ValidationError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, module_id: object) -> None:
        super().__init__(f"module {module_id} is locked")
        self.module_id = module_id


class InvalidScore(ValidationError):
    def __init__(self, score: object) -> None:
        super().__init__(f"score must be a finite number in [0, 100] (got {score!r})")
        self.score = score


class NotFoundError(ProgressError):
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateSubmission(ProgressError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, submission_id: str) -> None:
        super().__init__(f"submission {submission_id!r} was already recorded")
        self.submission_id = submission_id


class ConcurrencyConflict(ProgressError):
    """A versioned write lost the race.  Internal; see retry_on_conflict."""


class ConcurrencyError(ProgressError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


async def retry_on_conflict(
    operation: Callable[[], Awaitable[T]],
    *,
    name: str,
    attempts: int | None = None,
) -> T:
    """Run a read-modify-write closure, re-running it on ConcurrencyConflict.

    The closure must re-read current state on every call; nothing is
    carried over between attempts.
    """
    budget = attempts if attempts is not None else SETTINGS.write_retry_attempts
    for attempt in range(1, budget + 1):
        try:
            return await operation()
        except ConcurrencyConflict:
            OPTIMISTIC_LOCK_RETRIES.labels(operation=name).inc()
            logger.warning(
                "Version conflict on %s (attempt %d/%d)", name, attempt, budget
            )
    raise ConcurrencyError(f"{name} failed after {budget} attempts")


async def _handle_progress_error(_request: Request, exc: Exception) -> JSONResponse:
    status_code = getattr(exc, "status_code", status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProgressError, _handle_progress_error)
