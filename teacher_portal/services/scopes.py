"""
Cancellation scopes for navigation-triggered fetches.

Every navigation node owns a FetchScope. Fetches run as tasks inside the
scope of the node they fill; when the user navigates away from that node
the scope is closed, its tasks are cancelled, and anything they would still
have written is dropped. The latest navigation always wins over a late
response.
"""

import asyncio
import logging
from typing import Any, Awaitable, Coroutine, Optional, Set, TypeVar


logger = logging.getLogger(__name__)


T = TypeVar("T")


class StaleResult(Exception):
    """A fetch finished for a scope that has since been closed or reset."""


class FetchScope:
    """Group of in-flight tasks owned by one navigation node."""

    def __init__(self, name: str):
        self.name = name
        self.generation = 0
        self.closed = False
        self._tasks: Set[asyncio.Task] = set()

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"gen={self.generation}"
        return f"<FetchScope {self.name} {state} tasks={len(self._tasks)}>"

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def is_current(self, generation: int) -> bool:
        return not self.closed and generation == self.generation

    def spawn(self, coro: Coroutine[Any, Any, T]) -> "asyncio.Task[T]":
        """Start ``coro`` as a task owned by this scope."""
        if self.closed:
            coro.close()
            raise StaleResult(f"{self.name} is closed")
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """
        Run ``coro`` in this scope and return its result.
        
        Raises:
            StaleResult: If the scope was closed or reset before the result
                arrived. Errors raised by ``coro`` propagate unchanged.
        """
        generation = self.generation
        task = self.spawn(coro)
        # asyncio.wait does not propagate the task's own cancellation to us
        await asyncio.wait({task})
        if task.cancelled() or not self.is_current(generation):
            logger.debug("Discarding stale result in %r", self)
            raise StaleResult(self.name)
        return task.result()

    def reset(self) -> None:
        """Cancel current work but keep the scope usable."""
        self._cancel_all()
        self.generation += 1

    def close(self) -> None:
        """Cancel current work and refuse further tasks."""
        self._cancel_all()
        self.closed = True

    def _cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    async def wait(self) -> None:
        """Wait until every task of this scope has finished."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))
