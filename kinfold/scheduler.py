"""Delayed-task schedulers driving the cascading reveal."""

from __future__ import annotations

import asyncio
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

Task = Callable[[], None]


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Task) -> None:
        ...


@dataclass(order=True)
class _Pending:
    due: float
    seq: int
    callback: Task = field(compare=False)


class ManualScheduler:
    """A queue of delayed tasks advanced explicitly by the caller.

    Nothing runs until :meth:`advance` or :meth:`run_all` is called, which
    makes staged behaviour testable without wall-clock waits.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[_Pending] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Task) -> None:
        heapq.heappush(self._queue, _Pending(self.now + max(0.0, delay), next(self._counter), callback))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def next_due(self) -> Optional[float]:
        return self._queue[0].due if self._queue else None

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every task that falls due."""

        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0].due <= target:
            task = heapq.heappop(self._queue)
            self.now = task.due
            task.callback()
            ran += 1
        self.now = target
        return ran

    def run_all(self, limit: int = 10_000) -> int:
        ran = 0
        while self._queue and ran < limit:
            task = heapq.heappop(self._queue)
            self.now = task.due
            task.callback()
            ran += 1
        return ran


class AsyncioScheduler:
    """Cooperative timers on an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Task) -> None:
        self.loop.call_later(max(0.0, delay), callback)


__all__ = ["Scheduler", "ManualScheduler", "AsyncioScheduler", "Task"]
