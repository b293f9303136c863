"""Background worker: consumes ProgressChanged messages.

RUN:  python -m app.worker

Same image as the API, different command:
  api:    uvicorn app.main:app --host 0.0.0.0 --port 8000
  worker: python -m app.worker

The API deletes the cached progress read as part of every write.  A
read that started before the write can still repopulate the old value
afterwards, so the worker deletes the key a second time once the
message arrives.  It also logs completions for downstream tooling.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from app.core.config import SETTINGS
from app.core.logging import setup_logging
from app.services.cache import cache_service, progress_cache_key
from app.services.task_queue import PROGRESS_CHANGED_QUEUE, task_queue

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("worker")

HANDLERS: dict[str, TaskHandler] = {}


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


@register_handler(PROGRESS_CHANGED_QUEUE)
async def handle_progress_changed(payload: dict) -> None:
    learner_id = payload["learner_id"]
    course_id = payload["course_id"]
    await cache_service.delete(progress_cache_key(learner_id, course_id))

    log_extra = {"learner_id": learner_id, "course_id": course_id}
    logger.info(
        "Progress changed module=%s percent=%s",
        payload.get("module_id"),
        payload.get("percent_complete"),
        extra=log_extra,
    )
    if payload.get("course_completed"):
        logger.info("Course completed", extra=log_extra)


async def process_one(queue_name: str, timeout: int = 1) -> bool:
    """Dequeue and handle a single message.  Returns False when the queue was empty."""
    task = await task_queue.dequeue(queue_name, timeout=timeout)
    if task is None:
        return False

    handler = HANDLERS[queue_name]
    try:
        await handler(task.payload)
        logger.info("Task %s on [%s] completed", task.id, queue_name)
    except Exception:
        # at-most-once: a failed message is logged and dropped
        logger.exception("Task %s on [%s] failed", task.id, queue_name)
    return True


async def run_worker() -> None:
    """Poll all registered queues round-robin, forever."""
    queues = list(HANDLERS.keys())
    logger.info("Worker started, listening on queues: %s", queues)

    while True:
        for queue_name in queues:
            await process_one(queue_name)


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
