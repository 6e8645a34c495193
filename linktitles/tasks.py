import asyncio
import functools
import logging
from typing import Awaitable, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


def _log_failure(log: logging.Logger, task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.error("Unhandled task exception in %s", task.get_name(), exc_info=exc)


def create_task(coro: Awaitable, *, name: Optional[str] = None,
                task_group: Optional[asyncio.TaskGroup] = None,
                logger: logging.Logger = logger) -> asyncio.Task:
    """Schedule *coro* and log its exception, if any, once it finishes.

    With a *task_group* the task joins the group, so the group's exit still
    sees the failure.
    """
    spawn = task_group.create_task if task_group is not None else asyncio.create_task
    task = spawn(coro, name=name)
    task.add_done_callback(functools.partial(_log_failure, logger))
    return task


def dispatch_each(jobs: Iterable[Tuple[str, Awaitable]]) -> list:
    """Start one independent task per ``(name, coroutine)`` pair.

    Tasks are neither ordered nor serialized against each other.
    """
    return [create_task(coro, name=name) for name, coro in jobs]
