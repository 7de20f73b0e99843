"""Clock abstraction: timers and off-loop calls for the session."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], None]
ResultCallback = Callable[[Any, "BaseException | None"], None]


class TimerHandle(Protocol):
    """Handle returned by Clock.call_later."""

    def cancel(self) -> None:
        """Stop the timer if it has not fired yet."""
        ...


class Clock(Protocol):
    """Protocol for clocks driving the session."""

    def now(self) -> float:
        """Current time in milliseconds."""
        ...

    def call_later(self, delay_ms: float, callback: Callback) -> TimerHandle:
        """Run callback once after delay_ms."""
        ...

    def submit(self, func: Callable[[], Any], callback: ResultCallback) -> None:
        """Run a blocking func off the loop, then callback(result, error) on it."""
        ...


class VirtualTimer:
    """Timer owned by a VirtualClock."""

    def __init__(self, callback: Callback):
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock:
    """Deterministic clock that only moves when advanced.

    Intended for tests: timers fire in deadline order (FIFO for equal
    deadlines) and submitted calls run synchronously, with their result
    delivered after ``latency_ms`` of virtual time.
    """

    def __init__(self, start: float = 0.0, latency_ms: float = 0.0):
        self._now = start
        self._queue: list[tuple[float, int, VirtualTimer]] = []
        self._seq = itertools.count()
        self.latency_ms = latency_ms

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callback) -> VirtualTimer:
        timer = VirtualTimer(callback)
        deadline = self._now + max(0.0, delay_ms)
        heapq.heappush(self._queue, (deadline, next(self._seq), timer))
        return timer

    def submit(self, func: Callable[[], Any], callback: ResultCallback) -> None:
        try:
            result, error = func(), None
        except Exception as e:
            result, error = None, e
        self.call_later(self.latency_ms, lambda: callback(result, error))

    def advance(self, ms: float) -> None:
        """Move time forward by ms, firing every timer that falls due."""
        target = self._now + ms
        while self._queue and self._queue[0][0] <= target:
            deadline, _, timer = heapq.heappop(self._queue)
            self._now = max(self._now, deadline)
            if not timer.cancelled:
                timer.callback()
        self._now = target

    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)


class AsyncioClock:
    """Clock backed by an asyncio event loop.

    Without an explicit loop it must be created inside a running one.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as e:
                raise RuntimeError(
                    "AsyncioClock needs a running event loop; pass loop= or use VirtualClock"
                ) from e
        self.loop = loop

    def now(self) -> float:
        return self.loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback: Callback) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay_ms) / 1000.0, callback)

    def submit(self, func: Callable[[], Any], callback: ResultCallback) -> None:
        future = self.loop.run_in_executor(None, func)

        def _done(fut: asyncio.Future) -> None:
            if fut.cancelled():
                return
            error = fut.exception()
            callback(None if error else fut.result(), error)

        future.add_done_callback(_done)


class TimerGroup:
    """Tracks timers so that they can all be cancelled together.

    Once cancelled, the group ignores new timers and drops results of
    calls submitted through it.
    """

    def __init__(self, clock: Clock):
        self.clock = clock
        self.closed = False
        self._handles: set = set()

    def call_later(self, delay_ms: float, callback: Callback) -> TimerHandle | None:
        if self.closed:
            logger.debug("Ignoring timer on a cancelled group")
            return None
        handle = None

        def _fire() -> None:
            self._handles.discard(handle)
            if not self.closed:
                callback()

        handle = self.clock.call_later(delay_ms, _fire)
        self._handles.add(handle)
        return handle

    def call_every(self, interval_ms: float, callback: Callback) -> None:
        """Run callback every interval_ms until the group is cancelled."""

        def _tick() -> None:
            callback()
            self.call_later(interval_ms, _tick)

        self.call_later(interval_ms, _tick)

    def submit(self, func: Callable[[], Any], callback: ResultCallback) -> None:
        def _deliver(result: Any, error: BaseException | None) -> None:
            if self.closed:
                logger.debug("Dropping result delivered to a cancelled group")
                return
            callback(result, error)

        self.clock.submit(func, _deliver)

    def cancel_all(self) -> None:
        self.closed = True
        for handle in list(self._handles):
            handle.cancel()
        self._handles.clear()

    def __len__(self) -> int:
        return len(self._handles)
