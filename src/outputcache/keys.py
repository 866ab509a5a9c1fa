"""Deterministic cache keys for captured responses.

A key is ``<path+query>:<accept media type>`` for anonymous-only policies
and anonymous callers, and ``<path+query>:<accept media type>:<identity>``
when a per-user policy serves an authenticated caller. The shape difference
keeps per-user entries apart from shared ones.

Each component is escaped before joining (``%`` becomes ``%25``, ``:``
becomes ``%3A``), so a query string or ``Accept`` value containing the
delimiter cannot reproduce another request's key.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import unquote

KEY_DELIMITER = ":"

DEFAULT_MEDIA_TYPE = "text/plain"
"""Content type replayed when neither the stored type nor the key supplies one."""


def escape_component(value: str) -> str:
    """Escape ``%`` and the key delimiter inside a single key component."""
    return value.replace("%", "%25").replace(KEY_DELIMITER, "%3A")


def unescape_component(value: str) -> str:
    """Invert :func:`escape_component`."""
    return unquote(value)


def first_media_type(accept: Optional[str]) -> str:
    """Return the first media range of an ``Accept`` header, without parameters.

    ``"application/json; q=0.9, text/html"`` yields ``"application/json"``.
    A missing or blank header yields ``""``.
    """
    if not accept:
        return ""
    first = accept.split(",", 1)[0]
    return first.split(";", 1)[0].strip()


def path_and_query(path: str, query: str = "") -> str:
    """Join *path* and *query* the way they appear on the request line."""
    return f"{path}?{query}" if query else path


def build_key(
    path: str,
    query: str,
    accept: Optional[str],
    identity: Optional[str],
    anonymous_only: bool,
) -> str:
    """Build the cache key for a request.

    Args:
        path: Request path, e.g. ``"/items"``.
        query: Raw query string without the leading ``?``.
        accept: The ``Accept`` header value, or ``None`` if absent.
        identity: The authenticated caller's name, or ``None`` when the
            caller is anonymous.
        anonymous_only: Whether the policy caches for anonymous callers only.

    Returns:
        The composite key. Identity is appended only when *anonymous_only*
        is false and the caller is authenticated.
    """
    parts = [path_and_query(path, query), first_media_type(accept)]
    if not anonymous_only and identity is not None:
        parts.append(identity)
    return KEY_DELIMITER.join(escape_component(part) for part in parts)


def media_type_from_key(key: str) -> str:
    """Recover the accept media type embedded in *key*.

    Used when a body entry outlived its paired content-type entry.
    """
    parts = key.split(KEY_DELIMITER)
    if len(parts) > 1 and parts[1]:
        return unescape_component(parts[1])
    return DEFAULT_MEDIA_TYPE
