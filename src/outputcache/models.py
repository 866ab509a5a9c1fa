"""Canonical data shapes shared across all outputcache modules.

The models fall into two groups:

**Configuration models** -- loaded once from the settings file and treated
as read-only afterwards:
    :class:`CacheProfile` and :class:`OutputCacheSettings`.

**Request-scoped values** -- created per request by the pipeline binding and
threaded through the interceptor hooks:
    :class:`Caller`, :class:`RequestContext`, :class:`HandlerResponse`, and
    :class:`CachedResponse`.

Configuration models use Pydantic v2 and are frozen; request-scoped values
are plain dataclasses because they are built and mutated on the hot path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# --- Configuration ---


class CacheProfile(BaseModel):
    """A named bundle of cache settings reusable across endpoints.

    Example::

        CacheProfile(name="Short", duration=30, enabled=True)
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Profile name, matched case-insensitively")
    duration: int = Field(ge=0, description="Cache lifetime in seconds")
    enabled: bool = Field(default=True, description="Whether caching is enabled")


class OutputCacheSettings(BaseModel):
    """Process-wide settings loaded by :func:`~outputcache.config.load_settings`.

    ``profiles`` is ``None`` when the settings source has no profile table at
    all. That is distinct from an empty list: requesting a profile against
    a missing table raises :class:`~outputcache.exceptions.ConfigurationMissing`,
    while an empty table raises :class:`~outputcache.exceptions.ProfileNotFound`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    debug: bool = Field(
        default=False,
        description="Non-production mode; policies with disable_in_debug are bypassed",
    )
    profiles: Optional[tuple[CacheProfile, ...]] = Field(
        default=None,
        validation_alias=AliasChoices("profiles", "outputCacheProfiles"),
    )

    def find_profile(self, name: str) -> Optional[CacheProfile]:
        """Return the profile whose name matches *name* case-insensitively, if any."""
        wanted = name.lower()
        for profile in self.profiles or ():
            if profile.name.lower() == wanted:
                return profile
        return None


# --- Request-scoped values ---


@dataclass(frozen=True)
class Caller:
    """Authentication facts for the current request.

    Attributes:
        is_authenticated: Whether the caller presented valid credentials.
        name: The caller's identity string; empty for anonymous callers.
    """

    is_authenticated: bool = False
    name: str = ""

    @property
    def identity(self) -> Optional[str]:
        """The identity to key on, or ``None`` for anonymous callers."""
        return self.name if self.is_authenticated else None


@dataclass
class RequestContext:
    """State for a single request travelling through the interceptor hooks.

    ``cache_key`` is written by the pre-execution hook and read back by the
    post-execution hook. It lives here rather than on the interceptor because
    one interceptor instance serves many concurrent requests.
    """

    method: str
    path: str
    query: str = ""
    accept: Optional[str] = None
    caller: Caller = field(default_factory=Caller)
    cache_key: Optional[str] = None


@dataclass
class HandlerResponse:
    """The response produced by live execution of an endpoint.

    ``headers`` holds headers the interceptor adds on the way out; the
    endpoint's own headers stay with the host framework's response.
    """

    body: str
    content_type: Optional[str] = None
    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CachedResponse:
    """A body and content type replayed from the cache."""

    body: str
    content_type: str
