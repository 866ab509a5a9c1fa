"""Per-endpoint output cache policy and its pipeline hooks.

:class:`OutputCache` is attached to one endpoint (or a group of paths) and
decides, per request, whether to replay a captured response or let the
endpoint run and capture what it returns.

Lifecycle of one request::

    before_handler(ctx)
        disabled?              -> None (endpoint runs)
        not cacheable (server) -> None (endpoint runs)
        hit                    -> CachedResponse (endpoint is skipped)
        miss                   -> None (endpoint runs), ctx.cache_key set
    after_handler(ctx, response)       # only when the endpoint ran
        capture body + content type if ctx.cache_key is new
        add Cache-Control if cacheable (client)

Responses replayed from the cache never reach ``after_handler`` and so never
carry a fresh ``Cache-Control`` header.

All per-request state travels in the :class:`~outputcache.models.RequestContext`;
the policy object itself is shared by concurrent requests and only holds
configuration.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from outputcache.cache import ResponseCache
from outputcache.config import get_settings
from outputcache.eligibility import is_cacheable
from outputcache.exceptions import InvalidDuration, NullRequestContext
from outputcache.keys import build_key
from outputcache.models import (
    CachedResponse,
    CacheProfile,
    HandlerResponse,
    OutputCacheSettings,
    RequestContext,
)
from outputcache.profiles import CacheFragment, merge_profile, resolve_profile

logger = logging.getLogger(__name__)

_default_cache: Optional[ResponseCache] = None
_default_cache_lock = threading.Lock()


def get_default_cache() -> ResponseCache:
    """Return the process-wide cache used by policies created without one."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = ResponseCache()
        return _default_cache


def reset_default_cache() -> None:
    """Close and forget the process-wide default cache."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is not None:
            _default_cache.close()
        _default_cache = None


def cache_control_value(max_age: int) -> str:
    """Format the ``Cache-Control`` directive sent to clients."""
    return f"max-age={max_age}, must-revalidate"


class OutputCache:
    """Cache policy for an endpoint.

    Args:
        duration: Seconds a captured response is served from the server
            cache. Must be positive when given.
        client_duration: ``max-age`` advertised to clients. Defaults to
            *duration*. Must be positive when given.
        anonymous_only: Only cache for unauthenticated callers. When false,
            authenticated callers get per-user entries.
        disabled: Explicit kill switch. ``None`` defers to the profile.
        disable_in_debug: Bypass caching when settings have ``debug`` on.
        cache_profile: Name of a profile to take unset values from.
        cache: The response cache to use. Defaults to the process-wide one.
        settings: Settings to resolve profiles and debug mode from. Defaults
            to :func:`~outputcache.config.get_settings`.

    Raises:
        InvalidDuration: If *duration* or *client_duration* is not positive.
        ConfigurationMissing: If *cache_profile* is given but no profile
            table is configured.
        ProfileNotFound: If *cache_profile* names no configured profile.
    """

    def __init__(
        self,
        duration: Optional[int] = None,
        client_duration: Optional[int] = None,
        anonymous_only: bool = False,
        disabled: Optional[bool] = None,
        disable_in_debug: bool = False,
        cache_profile: Optional[str] = None,
        cache: Optional[ResponseCache] = None,
        settings: Optional[OutputCacheSettings] = None,
    ) -> None:
        self._duration: Optional[int] = None
        self._client_duration: Optional[int] = None
        self._disabled: Optional[bool] = None
        self._profile: Optional[CacheProfile] = None
        self._cache = cache
        self._settings = settings
        self.anonymous_only = anonymous_only
        self.disable_in_debug = disable_in_debug

        if duration is not None:
            self.duration = duration
        if client_duration is not None:
            self.client_duration = client_duration
        if disabled is not None:
            self.disabled = disabled
        if cache_profile is not None:
            self.cache_profile = cache_profile

    def __repr__(self) -> str:
        return (
            f"OutputCache(duration={self._duration!r}, client_duration={self._client_duration!r}, "
            f"anonymous_only={self.anonymous_only!r}, disabled={self._disabled!r}, "
            f"cache_profile={self.cache_profile!r})"
        )

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @property
    def duration(self) -> Optional[int]:
        """Server-side cache lifetime in seconds, or ``None`` if unset."""
        return self._duration

    @duration.setter
    def duration(self, value: int) -> None:
        if value <= 0:
            raise InvalidDuration("duration", value)
        self._duration = value

    @property
    def client_duration(self) -> Optional[int]:
        """Client ``max-age`` in seconds; falls back to :attr:`duration`."""
        if self._client_duration is not None:
            return self._client_duration
        return self._duration

    @client_duration.setter
    def client_duration(self, value: int) -> None:
        if value <= 0:
            raise InvalidDuration("client_duration", value)
        self._client_duration = value

    @property
    def disabled(self) -> Optional[bool]:
        """Explicit kill switch; ``None`` when neither set nor taken from a profile."""
        return self._disabled

    @disabled.setter
    def disabled(self, value: bool) -> None:
        self._disabled = bool(value)

    @property
    def cache_profile(self) -> Optional[str]:
        """Name of the profile merged into this policy, if any."""
        return self._profile.name if self._profile is not None else None

    @cache_profile.setter
    def cache_profile(self, name: str) -> None:
        if self._profile is not None and self._profile.name.lower() == name.lower():
            return

        profile = resolve_profile(self.settings, name)
        merged = merge_profile(
            CacheFragment(
                duration=self._duration,
                client_duration=self._client_duration,
                disabled=self._disabled,
            ),
            profile,
        )
        self._duration = merged.duration
        self._client_duration = merged.client_duration
        self._disabled = merged.disabled
        self._profile = profile
        logger.debug("Applied cache profile %r: %r", profile.name, self)

    @property
    def settings(self) -> OutputCacheSettings:
        """Settings this policy resolves profiles and debug mode from."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def cache(self) -> ResponseCache:
        """The response cache this policy reads and writes."""
        if self._cache is None:
            self._cache = get_default_cache()
        return self._cache

    @cache.setter
    def cache(self, value: ResponseCache) -> None:
        self._cache = value

    @property
    def has_cache(self) -> bool:
        """Whether a cache was bound explicitly."""
        return self._cache is not None

    @property
    def is_disabled(self) -> bool:
        """Whether caching is switched off, explicitly or by debug mode."""
        if self._disabled:
            return True
        return self.disable_in_debug and self.settings.debug

    # ------------------------------------------------------------------ #
    # Pipeline hooks
    # ------------------------------------------------------------------ #

    def before_handler(self, ctx: Optional[RequestContext]) -> Optional[CachedResponse]:
        """Look up a captured response before the endpoint runs.

        Returns:
            The cached response to send instead of running the endpoint, or
            ``None`` to let the endpoint run.

        Raises:
            NullRequestContext: If *ctx* is ``None``.
        """
        if ctx is None:
            raise NullRequestContext("before_handler")

        ctx.cache_key = None
        if self.is_disabled:
            return None

        caller = ctx.caller
        if not is_cacheable(self._duration, ctx.method, caller.is_authenticated, self.anonymous_only):
            return None

        ctx.cache_key = build_key(
            ctx.path, ctx.query, ctx.accept, caller.identity, self.anonymous_only
        )
        hit = self.cache.lookup(ctx.cache_key)
        if hit is not None:
            logger.debug("Cache hit: %s", ctx.cache_key)
        else:
            logger.debug("Cache miss: %s", ctx.cache_key)
        return hit

    def after_handler(
        self, ctx: Optional[RequestContext], response: HandlerResponse
    ) -> HandlerResponse:
        """Capture the live response and annotate it for client caching.

        Only 2xx responses are captured. The ``Cache-Control`` header is
        added whenever the client duration passes the eligibility gate.

        Raises:
            NullRequestContext: If *ctx* is ``None``.
        """
        if ctx is None:
            raise NullRequestContext("after_handler")
        if self.is_disabled:
            return response

        key = ctx.cache_key
        if key and self._duration and 200 <= response.status_code < 300:
            if not self.cache.contains(key):
                self.cache.store(key, response.body, response.content_type, self._duration)

        client_duration = self.client_duration
        if is_cacheable(
            client_duration, ctx.method, ctx.caller.is_authenticated, self.anonymous_only
        ):
            response.headers["Cache-Control"] = cache_control_value(client_duration)
        return response
