"""Write-once response capture on top of a :class:`CacheStore`.

Each captured response occupies two store entries sharing one expiry:

* ``<key>`` -- the response body.
* ``<key>:response-ct`` -- the response content type.

The body entry is authoritative. If its content-type partner is missing,
the type is recovered from the accept segment embedded in the key (see
:func:`~outputcache.keys.media_type_from_key`).

Writes are first-writer-wins: a key that is already present is never
overwritten and its expiry is never extended. There is no single-flight
protection, so concurrent misses for one key may all run the endpoint;
only the first completed write is kept.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from outputcache.cache.store import CacheStore, Clock, MemoryCacheStore
from outputcache.keys import media_type_from_key
from outputcache.models import CachedResponse

logger = logging.getLogger(__name__)

CONTENT_TYPE_SUFFIX = ":response-ct"


class ResponseCache:
    """Store and replay captured response bodies and content types.

    Args:
        store: The expiring store to write through. Defaults to a fresh
            :class:`MemoryCacheStore`.
        clock: Returns the current POSIX time, used to compute absolute
            expiry at write time.

    Example::

        cache = ResponseCache(MemoryCacheStore())
        cache.store("/items?page=1:application/json", '{"items": []}', "application/json", 10)
        hit = cache.lookup("/items?page=1:application/json")
    """

    def __init__(self, store: Optional[CacheStore] = None, clock: Clock = time.time) -> None:
        self._store = store if store is not None else MemoryCacheStore(clock=clock)
        self._clock = clock
        self._store.open()

    @property
    def backend(self) -> CacheStore:
        """The underlying store."""
        return self._store

    def contains(self, key: str) -> bool:
        """Return ``True`` if a body is cached under *key*."""
        return self._store.contains(key)

    def lookup(self, key: str) -> Optional[CachedResponse]:
        """Return the cached response for *key*, or ``None`` on a miss."""
        if not self._store.contains(key):
            return None
        body = self._store.get(key)
        if not isinstance(body, str):
            # Expired between contains() and get(), or foreign data.
            return None

        content_type = self._store.get(key + CONTENT_TYPE_SUFFIX)
        if not content_type:
            content_type = media_type_from_key(key)
            logger.debug("Content type for %s missing; using %s from key", key, content_type)
        return CachedResponse(body=body, content_type=content_type)

    def store(self, key: str, body: str, content_type: Optional[str], ttl_seconds: int) -> bool:
        """Capture *body* and *content_type* under *key* for *ttl_seconds*.

        Returns:
            ``True`` if the entry was written, ``False`` if *key* was already
            present or *ttl_seconds* is not positive.
        """
        if ttl_seconds <= 0:
            return False
        if self._store.contains(key):
            return False

        expires_at = self._clock() + ttl_seconds
        self._store.set(key, body, expires_at)
        if content_type:
            self._store.set(key + CONTENT_TYPE_SUFFIX, content_type, expires_at)
        logger.debug("Stored response for %s (ttl=%ss)", key, ttl_seconds)
        return True

    def invalidate(self, key: str) -> None:
        """Remove the body and content-type entries for *key*."""
        self._store.delete(key)
        self._store.delete(key + CONTENT_TYPE_SUFFIX)

    def clear(self) -> None:
        """Remove all entries from the underlying store."""
        self._store.clear()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``backend`` (store class name) and ``entries``
            (physical entry count, two per captured response).
        """
        return {
            "backend": type(self._store).__name__,
            "entries": len(self._store),
        }

    def close(self) -> None:
        """Close the underlying store and release its resources."""
        self._store.close()
