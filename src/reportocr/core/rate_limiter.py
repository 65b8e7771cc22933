"""
Per-caller sliding-window rate limiter.

Each caller id owns a log of the monotonic timestamps of its admitted
requests. On every check the entries older than the window are evicted first;
the request is admitted (and logged) only while fewer than ``max_requests``
entries remain. A rejected request leaves no trace.

Concurrency
-----------
Documents of one batch may call :meth:`RateLimiter.try_request` for the same
caller from several worker threads at once. Eviction, the limit check and the
append happen under a single lock, so concurrent callers can never be
admitted past the limit.

Memory
------
A caller whose whole log has expired is dropped lazily the next time it is
checked, and :meth:`RateLimiter.sweep` reclaims every idle caller. ``sweep``
also runs automatically every ``sweep_interval`` admissions so that a large
population of one-off callers cannot accumulate.

The limiter is a plain object with an explicit lifecycle: build one per
process and inject it. Swapping in a distributed implementation only requires
the same ``try_request`` method.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Protocol


class RequestGate(Protocol):
    """Anything that can admit or reject a request for a caller id."""

    def try_request(self, caller_id: str) -> bool: ...


class RateLimiter:
    """
    In-process sliding-window limiter.

    Parameters
    ----------
    window_seconds : float
        Length of the rolling window.
    max_requests : int
        Admissions allowed per caller inside one window.
    clock : Callable[[], float]
        Monotonic time source; injectable for tests.
    sweep_interval : int
        Run :meth:`sweep` after this many admissions (0 disables it).
    """

    __slots__ = (
        "window_seconds",
        "max_requests",
        "_clock",
        "_sweep_interval",
        "_admitted_since_sweep",
        "_log",
        "_lock",
    )

    def __init__(
        self,
        window_seconds: float = 60.0,
        max_requests: int = 10,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: int = 1000,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._admitted_since_sweep = 0
        self._log: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    @classmethod
    def per_minute(
        cls,
        requests_per_minute: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> RateLimiter:
        """Build a limiter with a 60 second window."""
        return cls(60.0, requests_per_minute, clock=clock)

    # ----------------------------------------------------------------- API

    def try_request(self, caller_id: str) -> bool:
        """Admit and record a request for ``caller_id``, or return False."""
        with self._lock:
            now = self._clock()
            stamps = self._log.get(caller_id)
            if stamps is not None:
                self._evict(stamps, now)
            if stamps is not None and len(stamps) >= self.max_requests:
                return False
            if stamps is None:
                stamps = self._log[caller_id] = deque()
            stamps.append(now)

            self._admitted_since_sweep += 1
            if self._sweep_interval and self._admitted_since_sweep >= self._sweep_interval:
                self._sweep_locked(now)
            return True

    def remaining(self, caller_id: str) -> int:
        """Return how many more requests ``caller_id`` may make right now."""
        with self._lock:
            stamps = self._log.get(caller_id)
            if stamps is None:
                return self.max_requests
            self._evict(stamps, self._clock())
            if not stamps:
                del self._log[caller_id]
                return self.max_requests
            return max(0, self.max_requests - len(stamps))

    def sweep(self) -> int:
        """Drop every caller whose window has fully elapsed; return how many."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def reset(self, caller_id: str | None = None) -> None:
        """Forget one caller, or every caller when ``caller_id`` is None."""
        with self._lock:
            if caller_id is None:
                self._log.clear()
                self._admitted_since_sweep = 0
            else:
                self._log.pop(caller_id, None)

    def tracked_callers(self) -> int:
        """Return the number of caller entries currently held in memory."""
        with self._lock:
            return len(self._log)

    # ------------------------------------------------------------ internal

    def _evict(self, stamps: deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while stamps and stamps[0] <= cutoff:
            stamps.popleft()

    def _sweep_locked(self, now: float) -> int:
        stale = []
        for caller_id, stamps in self._log.items():
            self._evict(stamps, now)
            if not stamps:
                stale.append(caller_id)
        for caller_id in stale:
            del self._log[caller_id]
        self._admitted_since_sweep = 0
        return len(stale)


__all__ = ["RateLimiter", "RequestGate"]
