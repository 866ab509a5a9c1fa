"""Decide whether caching applies to a request."""

from __future__ import annotations


def is_cacheable(
    ttl_seconds: int | None,
    method: str,
    is_authenticated: bool,
    anonymous_only: bool,
) -> bool:
    """Return ``True`` if a response may be cached for *ttl_seconds*.

    Called once with the server duration to gate lookup and store, and
    once with the client duration to gate the ``Cache-Control`` header.

    Args:
        ttl_seconds: Lifetime to cache for. ``None`` or non-positive
            disables caching.
        method: HTTP method; only ``GET`` is cacheable.
        is_authenticated: Whether the current caller is authenticated.
        anonymous_only: Whether the policy caches for anonymous callers only.
    """
    if ttl_seconds is None or ttl_seconds <= 0:
        return False
    if method.upper() != "GET":
        return False
    if anonymous_only and is_authenticated:
        return False
    return True
