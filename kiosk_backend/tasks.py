import asyncio
from typing import Awaitable, Set

import structlog

logger = structlog.get_logger(__name__)


class TaskRunner:
    """Fire-and-forget coroutines that must never fail the request that started them.

    ``spawn`` returns the task so callers (and tests) can await completion.
    Exceptions are logged and swallowed inside the task.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable, name: str) -> asyncio.Task:
        task = asyncio.create_task(self._guard(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, coro: Awaitable, name: str) -> bool:
        try:
            await coro
        except asyncio.CancelledError:
            logger.warning("background_task_cancelled", task=name)
            raise
        except Exception as e:
            logger.exception("background_task_failed", task=name, error=str(e))
            return False
        return True

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: float = 10.0) -> None:
        if not self._tasks:
            return
        tasks = list(self._tasks)
        logger.info("draining_background_tasks", count=len(tasks))
        done, still_running = await asyncio.wait(tasks, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning("background_tasks_cancelled", count=len(still_running))
