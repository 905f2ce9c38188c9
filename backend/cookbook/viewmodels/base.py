"""
View-model base: a task scope tied to one screen session.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Coroutine, Dict, Hashable, Optional, Set

from cookbook.state import MutableState

logger = logging.getLogger(__name__)


class ViewModel:
    """
    Owns the tasks a screen starts.

    launch() under a key replaces (cancels) whatever was running under that
    key, so each state slot has at most one active producer. close() cancels
    everything; call it when the screen goes away.
    """

    def __init__(self):
        self._keyed: Dict[Hashable, asyncio.Task] = {}
        self._tasks: Set[asyncio.Task] = set()
        self.closed = False

    def launch(self, coro: Coroutine[Any, Any, Any], key: Optional[Hashable] = None) -> asyncio.Task:
        if self.closed:
            coro.close()
            raise RuntimeError(f"{type(self).__name__} is closed")

        if key is not None:
            previous = self._keyed.pop(key, None)
            if previous is not None and not previous.done():
                previous.cancel()

        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        if key is not None:
            self._keyed[key] = task
        task.add_done_callback(lambda t: self._finished(t, key))
        return task

    def _finished(self, task: asyncio.Task, key: Optional[Hashable]) -> None:
        self._tasks.discard(task)
        if key is not None and self._keyed.get(key) is task:
            del self._keyed[key]
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"{type(self).__name__} task {key or ''} failed",
                exc_info=task.exception(),
            )

    def is_active(self, key: Hashable) -> bool:
        task = self._keyed.get(key)
        return task is not None and not task.done()

    @property
    def active_task_count(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def collect_into(self, flow: AsyncIterator[Any], state: MutableState) -> None:
        """Forward every emission of a stream into a state slot."""
        async with aclosing(flow) as stream:
            async for value in stream:
                state.set(value)

    async def close(self) -> None:
        """Cancel every task and wait for them to unwind."""
        self.closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._keyed.clear()
        self._tasks.clear()
