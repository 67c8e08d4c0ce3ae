"""
Cancellable scheduled tasks.

Health checks, progress ticks, hard timeouts and grace delays are expressed
as ScheduledTask handles with stop(). AsyncioScheduler runs them on the
event loop; VirtualScheduler runs them against a manually advanced clock.

Dependencies: asyncio, heapq (stdlib)
System role: Timer abstraction for the session controller and health monitor
"""

import asyncio
import heapq
import itertools
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[None]]


class ScheduledTask(Protocol):
    @property
    def active(self) -> bool: ...

    def stop(self) -> None: ...


class Scheduler(Protocol):
    def now_ms(self) -> int: ...

    def call_later(self, delay: float, callback: TimerCallback) -> ScheduledTask: ...

    def call_every(self, interval: float, callback: TimerCallback) -> ScheduledTask: ...

    async def sleep(self, seconds: float) -> None: ...


async def _run_callback(callback: TimerCallback) -> None:
    try:
        await callback()
    except Exception as e:
        logger.error(f"{__name__}:_run_callback - Scheduled callback failed: {e}", exc_info=True)


class AsyncioTask:
    """ScheduledTask backed by an asyncio.Task."""

    def __init__(self, delay: float, callback: TimerCallback, repeat: bool) -> None:
        self._stopped = False
        self._task = asyncio.create_task(self._run(delay, callback, repeat))

    @property
    def active(self) -> bool:
        return not self._stopped and not self._task.done()

    async def _run(self, delay: float, callback: TimerCallback, repeat: bool) -> None:
        while not self._stopped:
            await asyncio.sleep(delay)
            if self._stopped:
                break
            await _run_callback(callback)
            if not repeat:
                break
        self._stopped = True

    def stop(self) -> None:
        self._stopped = True
        # A callback that stops its own timer must be allowed to finish
        if self._task is not asyncio.current_task():
            self._task.cancel()


class AsyncioScheduler:
    """Wall-clock scheduler on the running event loop."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def call_later(self, delay: float, callback: TimerCallback) -> AsyncioTask:
        return AsyncioTask(delay, callback, repeat=False)

    def call_every(self, interval: float, callback: TimerCallback) -> AsyncioTask:
        return AsyncioTask(interval, callback, repeat=True)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class VirtualTask:
    """ScheduledTask registered with a VirtualScheduler."""

    def __init__(self, callback: TimerCallback, interval: float | None) -> None:
        self.callback = callback
        self.interval = interval
        self._stopped = False

    @property
    def active(self) -> bool:
        return not self._stopped

    def stop(self) -> None:
        self._stopped = True


class VirtualScheduler:
    """
    Deterministic scheduler for tests.

    Time only moves through advance() and sleep(). advance() fires every
    timer that falls due inside the advanced span in due order, awaiting
    each callback. sleep() moves the clock without firing timers; those
    fire on the next advance().
    """

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self._now_ms = start_ms
        self._queue: list[tuple[int, int, VirtualTask]] = []
        self._sequence = itertools.count()

    def now_ms(self) -> int:
        return self._now_ms

    def _push(self, due_ms: int, task: VirtualTask) -> None:
        heapq.heappush(self._queue, (due_ms, next(self._sequence), task))

    def call_later(self, delay: float, callback: TimerCallback) -> VirtualTask:
        task = VirtualTask(callback, interval=None)
        self._push(self._now_ms + int(delay * 1000), task)
        return task

    def call_every(self, interval: float, callback: TimerCallback) -> VirtualTask:
        task = VirtualTask(callback, interval=interval)
        self._push(self._now_ms + int(interval * 1000), task)
        return task

    @property
    def pending(self) -> int:
        """Number of active timers."""
        return sum(1 for _, _, task in self._queue if task.active)

    async def sleep(self, seconds: float) -> None:
        self._now_ms += int(seconds * 1000)
        await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self._now_ms + int(seconds * 1000)
        while self._queue and self._queue[0][0] <= target:
            due_ms, _, task = heapq.heappop(self._queue)
            if not task.active:
                continue
            self._now_ms = max(self._now_ms, due_ms)
            if task.interval is None:
                task.stop()
            else:
                self._push(due_ms + int(task.interval * 1000), task)
            await _run_callback(task.callback)
            await asyncio.sleep(0)
        self._now_ms = max(self._now_ms, target)
        await asyncio.sleep(0)
