"""outputcache -- Per-endpoint HTTP output caching for Starlette and FastAPI.

Repeated GET requests to a cached endpoint are answered from a previously
captured body and content type instead of running the endpoint again.
Each endpoint gets its own policy, set inline or taken from a named
profile, with separate server-side and client-side (``Cache-Control``)
lifetimes.

Typical usage::

    from outputcache import OutputCache, OutputCacheMiddleware

    app.add_middleware(
        OutputCacheMiddleware,
        policies={r"/items": OutputCache(duration=10, anonymous_only=True)},
    )

Modules:
    interceptor: The per-endpoint policy and its pipeline hooks.
    middleware: Starlette binding that runs the hooks around an app.
    cache: Write-once response capture and the stores behind it.
    config: Settings loading (profiles, debug mode).
    models: Pydantic settings models and request-scoped dataclasses.
    exceptions: Exception hierarchy.
"""

from outputcache.cache import DiskCacheStore, MemoryCacheStore, ResponseCache
from outputcache.interceptor import OutputCache
from outputcache.middleware import OutputCacheMiddleware

__version__ = "0.1.0"

__all__ = [
    "DiskCacheStore",
    "MemoryCacheStore",
    "OutputCache",
    "OutputCacheMiddleware",
    "ResponseCache",
]
