"""Expiring key-value stores the response cache writes through.

:class:`CacheStore` is the contract: ``contains``, ``get`` and ``set``
with an absolute expiry, plus ``open``/``close`` for lifecycle. Two
implementations are provided:

* :class:`MemoryCacheStore` -- a process-local :class:`cachetools.TLRUCache`
  guarded by a lock. Expired entries are dropped on access or by :meth:`sweep`.
* :class:`DiskCacheStore` -- a :mod:`diskcache` directory, usable when
  several worker processes on one host should share captured responses.

Stores are responsible for their own thread safety; the response cache
performs no locking.
"""

from __future__ import annotations

import abc
import logging
import math
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional

import diskcache
from cachetools import TLRUCache

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CacheStore(abc.ABC):
    """Abstract expiring key-value store.

    Expiry times are absolute POSIX timestamps (seconds). A key whose expiry
    has passed behaves exactly like a key that was never stored.
    """

    def open(self) -> None:
        """Acquire any resources the store needs. Safe to call more than once."""

    def close(self) -> None:
        """Release resources held by the store. Safe to call more than once."""

    @abc.abstractmethod
    def contains(self, key: str) -> bool:
        """Return ``True`` if *key* holds an unexpired value."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the unexpired value for *key*, or ``None``."""

    @abc.abstractmethod
    def set(self, key: str, value: Any, expires_at: float) -> None:
        """Store *value* under *key* until the absolute time *expires_at*."""

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key* if present."""

    @abc.abstractmethod
    def clear(self) -> None:
        """Remove every entry."""

    @abc.abstractmethod
    def __len__(self) -> int:
        """Number of entries currently held, expired or not."""

    def __enter__(self) -> CacheStore:
        self.open()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _expires_at(_key: str, entry: tuple[Any, float], _now: float) -> float:
    """``ttu`` callback for :class:`cachetools.TLRUCache`: entries carry their own expiry."""
    return entry[1]


class MemoryCacheStore(CacheStore):
    """In-process store backed by :class:`cachetools.TLRUCache`.

    Each entry is stored as ``(value, expires_at)`` and the cache's
    time-to-use callback returns that absolute expiry. ``cachetools`` is not
    thread-safe, so every access goes through a :class:`threading.Lock`.

    Args:
        clock: Returns the current POSIX time. Tests inject a fake clock to
            move time forward without sleeping.
        maxsize: Upper bound on entries; least recently used entries are
            evicted beyond it. Unbounded by default.
    """

    def __init__(self, clock: Clock = time.time, maxsize: float = math.inf) -> None:
        self._clock = clock
        self._cache: TLRUCache[str, tuple[Any, float]] = TLRUCache(
            maxsize=maxsize, ttu=_expires_at, timer=clock
        )
        self._lock = threading.Lock()

    def contains(self, key: str) -> bool:
        with self._lock:
            self._cache.expire()
            return key in self._cache

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            self._cache.expire()
            entry = self._cache.get(key)
        return entry[0] if entry is not None else None

    def set(self, key: str, value: Any, expires_at: float) -> None:
        with self._lock:
            self._cache[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def close(self) -> None:
        self.clear()

    def sweep(self) -> int:
        """Drop all expired entries and return how many were removed."""
        with self._lock:
            expired = self._cache.expire()
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


class DiskCacheStore(CacheStore):
    """Store backed by a :class:`diskcache.Cache` directory.

    :mod:`diskcache` takes relative expiry, so absolute times are converted
    at write time using *clock*. Writes that would already be expired are
    dropped.

    Args:
        directory: Cache directory. ``None`` lets :mod:`diskcache` create a
            temporary directory.
        clear_on_open: Empty the directory when the store is opened, so
            captured responses do not survive a process restart.
        clock: Returns the current POSIX time.
    """

    def __init__(
        self,
        directory: str | Path | None = None,
        clear_on_open: bool = True,
        clock: Clock = time.time,
    ) -> None:
        self._directory = Path(directory) if directory is not None else None
        self._clear_on_open = clear_on_open
        self._clock = clock
        self._cache: Optional[diskcache.Cache] = None

    @property
    def directory(self) -> Optional[Path]:
        """The directory backing the store once opened."""
        if self._cache is not None:
            return Path(self._cache.directory)
        return self._directory

    def open(self) -> None:
        if self._cache is not None:
            return
        self._cache = diskcache.Cache(str(self._directory) if self._directory else None)
        if self._clear_on_open:
            self._cache.clear()
        logger.debug("Opened disk cache store at %s", self._cache.directory)

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    def contains(self, key: str) -> bool:
        return key in self._require()

    def get(self, key: str) -> Optional[Any]:
        return self._require().get(key)

    def set(self, key: str, value: Any, expires_at: float) -> None:
        expire = expires_at - self._clock()
        if expire <= 0:
            return
        self._require().set(key, value, expire=expire)

    def delete(self, key: str) -> None:
        self._require().delete(key)

    def clear(self) -> None:
        self._require().clear()

    def __len__(self) -> int:
        return len(self._require())

    def _require(self) -> diskcache.Cache:
        if self._cache is None:
            self.open()
        assert self._cache is not None
        return self._cache
