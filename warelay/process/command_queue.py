"""Process-wide FIFO gate for external commands.

Only one command runs at a time, across every conversation. Tasks run in
arrival order; a failing task settles its own caller and the queue moves on.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

TaskFactory = Callable[[], Awaitable[Any]]
WaitCallback = Callable[[float, int], None]

DEFAULT_WARN_AFTER = 2.0


@dataclass
class _QueuedTask:
    task: TaskFactory
    future: asyncio.Future
    warn_after: float
    on_wait: WaitCallback | None = None
    enqueued_at: float = field(default_factory=time.monotonic)


class CommandQueue:
    """Serializes command execution; exposes ``enqueue`` only."""

    def __init__(self):
        self._tasks: deque[_QueuedTask] = deque()
        self._active = False

    @property
    def pending(self) -> int:
        """Number of tasks waiting or running."""
        return len(self._tasks) + (1 if self._active else 0)

    async def enqueue(
        self,
        task: TaskFactory,
        *,
        warn_after: float = DEFAULT_WARN_AFTER,
        on_wait: WaitCallback | None = None,
    ) -> Any:
        """Queue ``task`` and wait for its result.

        ``task`` is a zero-argument callable returning an awaitable; it is
        only called once the task reaches the head of the queue. Exceptions
        raised by it are re-raised here.
        """
        loop = asyncio.get_running_loop()
        entry = _QueuedTask(
            task=task,
            future=loop.create_future(),
            warn_after=warn_after,
            on_wait=on_wait,
        )
        self._tasks.append(entry)
        self._pump()
        return await entry.future

    def _pump(self) -> None:
        if self._active or not self._tasks:
            return
        entry = self._tasks.popleft()
        self._active = True
        asyncio.get_running_loop().create_task(self._run(entry))

    async def _run(self, entry: _QueuedTask) -> None:
        try:
            if entry.future.cancelled():
                return
            waited = time.monotonic() - entry.enqueued_at
            if waited >= entry.warn_after:
                logger.warning(
                    "Command waited %.1fs in queue (%d more behind it)", waited, len(self._tasks)
                )
                if entry.on_wait:
                    entry.on_wait(waited, len(self._tasks))
            result = await entry.task()
        except Exception as e:
            if not entry.future.done():
                entry.future.set_exception(e)
        else:
            if not entry.future.done():
                entry.future.set_result(result)
        finally:
            self._active = False
            self._pump()


_default_queue = CommandQueue()


def get_command_queue() -> CommandQueue:
    """Get the process-wide command queue."""
    return _default_queue


async def enqueue_command(
    task: TaskFactory,
    *,
    warn_after: float = DEFAULT_WARN_AFTER,
    on_wait: WaitCallback | None = None,
) -> Any:
    """Run ``task`` on the process-wide command queue."""
    return await _default_queue.enqueue(task, warn_after=warn_after, on_wait=on_wait)
