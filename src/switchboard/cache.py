"""Response cache collaborators for the dispatch facade.

ResponseCache is the interface the facade depends on. InMemoryCache is
a thread-safe TTL cache that evicts the oldest entry once ``max_size``
is reached. FileCache keeps JSON entries under the project's
.switchboard/cache/ directory so hits survive across processes.

Both hand out copies: a caller changing a returned value never changes
what later hits see.
"""

from __future__ import annotations

import copy
import hashlib
import json
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
from uuid import uuid4

__all__ = ["FileCache", "InMemoryCache", "ResponseCache"]


@runtime_checkable
class ResponseCache(Protocol):
    """Key/value store for finished responses, keyed by fingerprint."""

    def has(self, key: str) -> bool: ...

    def get(self, key: str) -> Any: ...

    def put(self, key: str, value: Any, ttl_minutes: int) -> None: ...


class InMemoryCache:
    """Thread-safe in-process TTL cache.

    Args:
        max_size: Entries kept before the oldest is evicted.
        clock: Monotonic time source in seconds; injectable for tests.
    """

    def __init__(
        self,
        max_size: int = 2048,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_size = max_size
        self._clock = clock
        # key -> (stored_at, expires_at, value)
        self._store: dict[str, tuple[float, float, Any]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def _live_entry(self, key: str) -> tuple[float, float, Any] | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._clock() >= entry[1]:
            # expired
            del self._store[key]
            return None
        return entry

    def has(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def get(self, key: str) -> Any:
        """Return a copy of the cached value, or None when missing or expired."""
        with self._lock:
            entry = self._live_entry(key)
            return copy.deepcopy(entry[2]) if entry is not None else None

    def put(self, key: str, value: Any, ttl_minutes: int) -> None:
        stored = copy.deepcopy(value)
        now = self._clock()
        with self._lock:
            if key not in self._store and len(self._store) >= self._max_size:
                # Evict oldest
                oldest_key = min(self._store.items(), key=lambda kv: kv[1][0])[0]
                self._store.pop(oldest_key, None)
            self._store[key] = (now, now + ttl_minutes * 60, stored)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


class FileCache:
    """TTL cache persisted as one JSON file per key.

    File layout:
        {directory}/
            {md5(key)}.json    # {"key", "expires_at", "value"}

    Values must be JSON-serializable. Writes are atomic (write to a
    uniquely named .tmp, then rename). Expiry uses wall-clock time so
    entries written by one process are honored by the next. Unreadable
    entries count as misses.

    Args:
        directory: Where entry files live; created on first write.
        clock: Wall-clock time source in seconds; injectable for tests.
    """

    def __init__(
        self,
        directory: Path,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.directory = directory
        self._clock = clock

    def _path(self, key: str) -> Path:
        return self.directory / f"{hashlib.md5(key.encode('utf-8')).hexdigest()}.json"

    def _read(self, key: str) -> dict[str, Any] | None:
        path = self._path(key)
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        if not isinstance(entry, dict) or entry.get("key") != key:
            return None
        expires_at = entry.get("expires_at")
        if not isinstance(expires_at, (int, float)) or self._clock() >= expires_at:
            path.unlink(missing_ok=True)
            return None
        return entry

    def has(self, key: str) -> bool:
        return self._read(key) is not None

    def get(self, key: str) -> Any:
        """Return the cached value, or None when missing or expired."""
        entry = self._read(key)
        return entry["value"] if entry is not None else None

    def put(self, key: str, value: Any, ttl_minutes: int) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        content = json.dumps(
            {"key": key, "expires_at": self._clock() + ttl_minutes * 60, "value": value},
            ensure_ascii=False,
        )
        path = self._path(key)
        tmp_path = self.directory / f"{path.name}.{uuid4().hex}.tmp"
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(path)

    def clear(self) -> None:
        if not self.directory.exists():
            return
        for path in self.directory.glob("*.json"):
            path.unlink(missing_ok=True)
