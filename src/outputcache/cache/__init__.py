"""Response capture and the expiring stores behind it.

:class:`ResponseCache` stores a body and content type per cache key with
write-once semantics. It writes through any :class:`CacheStore`;
:class:`MemoryCacheStore` and the :mod:`diskcache`-backed
:class:`DiskCacheStore` are provided.
"""

from outputcache.cache.cache import ResponseCache
from outputcache.cache.store import CacheStore, DiskCacheStore, MemoryCacheStore

__all__ = ["CacheStore", "DiskCacheStore", "MemoryCacheStore", "ResponseCache"]
