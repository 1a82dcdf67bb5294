"""Clock + delayed-callback schedulers for the upload job simulator.

All schedulers expose ``now()`` and ``call_later(delay, callback)``; the
returned handle has ``cancel()``. ``VirtualScheduler`` only moves when told
to, which makes stage progression deterministic in tests.
"""
from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def now(self) -> datetime: ...
    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle: ...


def _run_callback(callback: Callable[[], None]) -> None:
    try:
        callback()
    except Exception:
        logger.exception("Scheduled callback failed")


# ── Virtual ────────────────────────────────────────────────────────────

class _VirtualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler:
    """Manually advanced clock. Callbacks fire in due-time order."""

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._queue: list[tuple[datetime, int, _VirtualHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def now(self) -> datetime:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> _VirtualHandle:
        handle = _VirtualHandle()
        due = self._now + timedelta(seconds=max(delay, 0))
        heapq.heappush(self._queue, (due, next(self._seq), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h, _ in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every callback that comes due.

        Returns the number of callbacks run.
        """
        target = self._now + timedelta(seconds=seconds)
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self._now = due
            if handle.cancelled:
                continue
            _run_callback(callback)
            fired += 1
        self._now = target
        return fired

    def run_all(self) -> int:
        """Fire everything still queued, advancing the clock as needed."""
        fired = 0
        while self._queue:
            due = self._queue[0][0]
            fired += self.advance(max((due - self._now).total_seconds(), 0))
        return fired


# ── Wall clock ─────────────────────────────────────────────────────────

class AsyncioScheduler:
    """Runs callbacks on the server's event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, _run_callback, callback)


class ThreadScheduler:
    """Runs callbacks on ``threading.Timer`` threads (no event loop needed)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, _run_callback, args=(callback,))
        timer.daemon = True
        timer.start()
        return timer
