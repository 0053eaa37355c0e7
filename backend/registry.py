"""Registry store — filename → ordered list of embedding ids.

The registry entry for a filename is the single source of truth for which
vector ids belong to that file.  It also provides the per-filename lock
that serializes replace and delete for one file.

Backends (REGISTRY_BACKEND):
  - ``redis``   values stored as JSON arrays under ``{REGISTRY_PREFIX}{filename}``;
                locks are redis-py ``Lock`` objects with an expiry so a
                crashed worker cannot wedge a filename forever.
  - ``memory``  a dict plus one ``threading.Lock`` per filename.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class Registry(ABC):
    """Abstract filename → id-list store."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def get(self, filename: str) -> list[str] | None:
        """Return the registered ids, or None when the filename is unknown."""
        ...

    @abstractmethod
    def put(self, filename: str, ids: list[str]) -> None:
        ...

    @abstractmethod
    def delete(self, filename: str) -> None:
        ...

    @abstractmethod
    def lock(self, filename: str):
        """Context manager held while a filename's generation is replaced."""
        ...


class _FileLock:
    """A filename's lock plus the number of threads holding or awaiting it."""

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class InMemoryRegistry(Registry):
    def __init__(self):
        self._entries: dict[str, list[str]] = {}
        self._locks: dict[str, _FileLock] = {}
        self._guard = threading.Lock()

    @property
    def name(self) -> str:
        return "memory"

    def get(self, filename: str) -> list[str] | None:
        ids = self._entries.get(filename)
        return list(ids) if ids is not None else None

    def put(self, filename: str, ids: list[str]) -> None:
        self._entries[filename] = list(ids)

    def delete(self, filename: str) -> None:
        self._entries.pop(filename, None)

    @contextmanager
    def lock(self, filename: str) -> Iterator[None]:
        with self._guard:
            file_lock = self._locks.setdefault(filename, _FileLock())
            file_lock.users += 1
        try:
            with file_lock.lock:
                yield
        finally:
            # Dropped once nobody holds or waits on it.
            with self._guard:
                file_lock.users -= 1
                if file_lock.users == 0:
                    del self._locks[filename]


class RedisRegistry(Registry):
    def __init__(self, url: str, prefix: str = "notes:", lock_timeout: float = 30.0, client=None):
        if client is None:
            import redis as _redis_lib  # type: ignore[import-untyped]

            client = _redis_lib.from_url(url, decode_responses=True)
            client.ping()
            logger.info("Redis registry connected")
        self._redis = client
        self._prefix = prefix
        self._lock_timeout = lock_timeout

    @property
    def name(self) -> str:
        return "redis"

    def _key(self, filename: str) -> str:
        return f"{self._prefix}{filename}"

    def get(self, filename: str) -> list[str] | None:
        raw = self._redis.get(self._key(filename))
        if not raw:
            return None
        try:
            ids = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Corrupt registry entry for {filename!r} — treating as empty")
            return None
        return [str(i) for i in ids] if isinstance(ids, list) else None

    def put(self, filename: str, ids: list[str]) -> None:
        self._redis.set(self._key(filename), json.dumps(list(ids)))

    def delete(self, filename: str) -> None:
        self._redis.delete(self._key(filename))

    @contextmanager
    def lock(self, filename: str) -> Iterator[None]:
        with self._redis.lock(
            f"{self._prefix}lock:{filename}",
            timeout=self._lock_timeout,
            blocking_timeout=self._lock_timeout,
        ):
            yield


def load_registry(settings) -> Registry:
    """Instantiate the configured registry."""
    name = settings.REGISTRY_BACKEND.lower()

    if name == "memory":
        logger.info("Registry: in-memory (non-persistent)")
        return InMemoryRegistry()
    elif name == "redis":
        return RedisRegistry(
            settings.REDIS_URL,
            prefix=settings.REGISTRY_PREFIX,
            lock_timeout=settings.REGISTRY_LOCK_TIMEOUT,
        )
    else:
        raise ValueError(
            f"Unknown REGISTRY_BACKEND: '{name}'.  "
            f"Supported: redis, memory"
        )
