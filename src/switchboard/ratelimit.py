"""Sliding-window rate limiter keyed by caller and provider.

Each (caller, provider) pair may make ``max_requests`` calls within any
window of ``decay_minutes``. RateLimiter keeps its hits in memory and is
thread-safe. FileRateLimiter persists them to a JSON file so separate
processes (one per CLI invocation) share one window. Limiters are
applied by outer surfaces, not by the dispatch core.
"""

from __future__ import annotations

import json
import math
import threading
import time
from collections.abc import Callable
from pathlib import Path
from uuid import uuid4

from switchboard.models.config import RateLimitConfig

KEY_PREFIX = "switchboard"


class RateLimiter:
    """Count hits per key and refuse them once the window is full."""

    def __init__(
        self,
        max_requests: int = 60,
        decay_minutes: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window = decay_minutes * 60
        self._clock = clock
        self._events: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: RateLimitConfig) -> RateLimiter:
        return cls(max_requests=config.max_requests, decay_minutes=config.decay_minutes)

    @staticmethod
    def key(caller: str, provider: str) -> str:
        return f"{KEY_PREFIX}|{caller}|{provider}"

    # Persistence hooks, called with the lock held.
    def _load(self) -> None:
        pass

    def _save(self) -> None:
        pass

    def _live_events(self, key: str, now: float) -> list[float]:
        events = [stamp for stamp in self._events.get(key, []) if now - stamp < self.window]
        if events:
            self._events[key] = events
        else:
            self._events.pop(key, None)
        return events

    def hit(self, caller: str, provider: str) -> bool:
        """Record one request. Returns False, without recording, when over the limit."""
        key = self.key(caller, provider)
        with self._lock:
            self._load()
            now = self._clock()
            events = self._live_events(key, now)
            if len(events) >= self.max_requests:
                self._save()
                return False
            events.append(now)
            self._events[key] = events
            self._save()
            return True

    def remaining(self, caller: str, provider: str) -> int:
        """Requests still allowed in the current window."""
        key = self.key(caller, provider)
        with self._lock:
            self._load()
            events = self._live_events(key, self._clock())
            return max(self.max_requests - len(events), 0)

    def available_in(self, caller: str, provider: str) -> int:
        """Seconds until the next request would be allowed (0 if it already is)."""
        key = self.key(caller, provider)
        with self._lock:
            self._load()
            now = self._clock()
            events = self._live_events(key, now)
            if len(events) < self.max_requests:
                return 0
            return max(math.ceil(events[0] + self.window - now), 0)

    def reset(self, caller: str, provider: str) -> None:
        with self._lock:
            self._load()
            self._events.pop(self.key(caller, provider), None)
            self._save()


class FileRateLimiter(RateLimiter):
    """RateLimiter whose hits live in a JSON file.

    The file maps limiter keys to lists of wall-clock hit timestamps and
    is re-read before and rewritten (atomically) after every change.
    A missing or unreadable file starts an empty window.

    Args:
        path: State file, usually ``.switchboard/ratelimit.json``.
        clock: Wall-clock time source in seconds; injectable for tests.
    """

    def __init__(
        self,
        path: Path,
        max_requests: int = 60,
        decay_minutes: int = 1,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(max_requests, decay_minutes, clock)
        self.path = path

    def _load(self) -> None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            data = {}
        if not isinstance(data, dict):
            data = {}
        self._events = {
            key: [float(stamp) for stamp in stamps if isinstance(stamp, (int, float))]
            for key, stamps in data.items()
            if isinstance(stamps, list)
        }

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.{uuid4().hex}.tmp")
        tmp_path.write_text(json.dumps(self._events), encoding="utf-8")
        tmp_path.replace(self.path)
