"""Sliding-log rate limiters for client-side pacing.

Provides a thread-safe synchronous :class:`SlidingWindowLimiter` and an
async :class:`AsyncSlidingWindowLimiter`.  Both keep the timestamps of the
calls issued inside the rolling window in a :class:`CallLog`.  While fewer
than *max_calls* timestamps remain, a call proceeds immediately; otherwise
the caller waits until the oldest timestamp leaves the window (plus a small
random jitter so that waiters do not wake in lock-step) and re-checks.

A sync and an async limiter built over the same :class:`CallLog` draw from
one budget.
"""

from __future__ import annotations

import asyncio
import random
import threading
import time
from collections import deque


def _validate(max_calls: int, window_seconds: float, jitter_seconds: float) -> None:
    if max_calls < 1:
        raise ValueError(f"max_calls must be >= 1, got {max_calls}")
    if window_seconds <= 0:
        raise ValueError(f"window_seconds must be > 0, got {window_seconds}")
    if jitter_seconds < 0:
        raise ValueError(f"jitter_seconds must be >= 0, got {jitter_seconds}")


def _admit(calls: deque[float], max_calls: int, window: float, jitter: float) -> float | None:
    """Record a call if the window has room, else return the wait.

    Returns ``None`` when the call was admitted (its timestamp appended).
    """
    now = time.monotonic()
    while calls and now - calls[0] >= window:
        calls.popleft()

    if len(calls) < max_calls:
        calls.append(now)
        return None

    wait = window - (now - calls[0])
    if jitter:
        wait += random.uniform(0, jitter)
    return max(wait, 0.0)


class CallLog:
    """Timestamps of admitted calls, guarded by a thread lock.

    :meth:`admit` never blocks while holding the lock, so one log can be
    shared by threads and coroutines alike.
    """

    __slots__ = ("calls", "lock")

    def __init__(self) -> None:
        self.calls: deque[float] = deque()
        self.lock = threading.Lock()

    def admit(self, max_calls: int, window: float, jitter: float) -> float | None:
        with self.lock:
            return _admit(self.calls, max_calls, window, jitter)

    def __len__(self) -> int:
        return len(self.calls)


class SlidingWindowLimiter:
    """Thread-safe sliding-log limiter for synchronous callers.

    Parameters
    ----------
    max_calls:
        Calls allowed inside one rolling window.
    window_seconds:
        Length of the rolling window.
    jitter_seconds:
        Upper bound of the random delay added to every wait.
    log:
        Optional :class:`CallLog` to share with other limiters.  A fresh
        log is created when omitted.
    """

    __slots__ = ("_calls", "_log", "jitter", "max_calls", "window")

    def __init__(
        self,
        max_calls: int = 8,
        window_seconds: float = 1.0,
        jitter_seconds: float = 0.025,
        *,
        log: CallLog | None = None,
    ) -> None:
        _validate(max_calls, window_seconds, jitter_seconds)
        self.max_calls: int = max_calls
        self.window: float = window_seconds
        self.jitter: float = jitter_seconds
        self._log = log if log is not None else CallLog()
        self._calls = self._log.calls

    def acquire(self) -> float:
        """Block until one more call fits in the window.

        Returns the total number of seconds the caller waited.
        """
        waited = 0.0
        while True:
            wait = self._log.admit(self.max_calls, self.window, self.jitter)
            if wait is None:
                return waited
            time.sleep(wait)
            waited += wait

    def __len__(self) -> int:
        return len(self._log)


class AsyncSlidingWindowLimiter:
    """Sliding-log limiter for coroutines.

    Mirrors :class:`SlidingWindowLimiter`.  The log's lock is only held
    inside :meth:`CallLog.admit`, never across an ``await``.
    """

    __slots__ = ("_calls", "_log", "jitter", "max_calls", "window")

    def __init__(
        self,
        max_calls: int = 8,
        window_seconds: float = 1.0,
        jitter_seconds: float = 0.025,
        *,
        log: CallLog | None = None,
    ) -> None:
        _validate(max_calls, window_seconds, jitter_seconds)
        self.max_calls: int = max_calls
        self.window: float = window_seconds
        self.jitter: float = jitter_seconds
        self._log = log if log is not None else CallLog()
        self._calls = self._log.calls

    async def acquire(self) -> float:
        """Await until one more call fits in the window.

        Returns the total number of seconds the caller waited.
        """
        waited = 0.0
        while True:
            wait = self._log.admit(self.max_calls, self.window, self.jitter)
            if wait is None:
                return waited
            await asyncio.sleep(wait)
            waited += wait

    def __len__(self) -> int:
        return len(self._log)
