"""Starlette/FastAPI binding for :class:`~outputcache.interceptor.OutputCache`.

:class:`OutputCacheMiddleware` maps request paths to cache policies and runs
the policy hooks around the downstream application::

    app = FastAPI()
    app.add_middleware(
        OutputCacheMiddleware,
        policies={
            r"/items": OutputCache(duration=10),
            r"/me/.*": OutputCache(cache_profile="PerUser"),
        },
    )

Caller identity is read from ``request.scope["user"]`` as populated by
Starlette's ``AuthenticationMiddleware``; install that middleware outside
this one, or pass ``caller_resolver`` to source identity elsewhere.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from outputcache.cache import ResponseCache
from outputcache.interceptor import OutputCache
from outputcache.models import Caller, HandlerResponse, RequestContext

logger = logging.getLogger(__name__)

CallerResolver = Callable[[Request], Caller]


def caller_from_scope(request: Request) -> Caller:
    """Build a :class:`Caller` from the Starlette ``user`` scope entry.

    Requests without a ``user`` entry, or whose user is not authenticated,
    are treated as anonymous.
    """
    user = request.scope.get("user")
    if user is None or not getattr(user, "is_authenticated", False):
        return Caller()
    return Caller(is_authenticated=True, name=getattr(user, "display_name", "") or "")


def request_context(request: Request, caller: Caller) -> RequestContext:
    """Build the per-request context the policy hooks operate on."""
    return RequestContext(
        method=request.method,
        path=request.url.path,
        query=request.url.query,
        accept=request.headers.get("accept"),
        caller=caller,
    )


class OutputCacheMiddleware(BaseHTTPMiddleware):
    """Serve repeated GET requests from captured responses.

    Parameters
    ----------
    app:
        The ASGI application to wrap.
    policies:
        Mapping of path regex to policy. Patterns must match the whole
        path; the first matching pattern wins. Paths with no match pass
        through untouched.
    cache:
        Response cache bound to every policy that was created without one.
    caller_resolver:
        Returns the :class:`Caller` for a request. Defaults to
        :func:`caller_from_scope`.
    """

    def __init__(
        self,
        app: object,
        policies: Mapping[str, OutputCache],
        cache: Optional[ResponseCache] = None,
        caller_resolver: Optional[CallerResolver] = None,
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._policies: list[tuple[re.Pattern[str], OutputCache]] = []
        for pattern, policy in policies.items():
            if cache is not None and not policy.has_cache:
                policy.cache = cache
            self._policies.append((re.compile(pattern), policy))
        self._caller_resolver = caller_resolver or caller_from_scope

    def policy_for(self, path: str) -> Optional[OutputCache]:
        """Return the policy whose pattern matches *path*, if any."""
        for pattern, policy in self._policies:
            if pattern.fullmatch(path):
                return policy
        return None

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        policy = self.policy_for(request.url.path)
        if policy is None:
            return await call_next(request)

        ctx = request_context(request, self._caller_resolver(request))
        hit = policy.before_handler(ctx)
        if hit is not None:
            return Response(content=hit.body, media_type=hit.content_type)

        response = await call_next(request)
        if ctx.cache_key is None:
            # Nothing will be stored; stream the response through untouched.
            annotated = policy.after_handler(
                ctx,
                HandlerResponse(
                    body="",
                    content_type=response.headers.get("content-type"),
                    status_code=response.status_code,
                ),
            )
            for name, value in annotated.headers.items():
                response.headers[name] = value
            return response

        body = b""
        async for chunk in response.body_iterator:  # type: ignore[attr-defined]
            body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")

        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Not capturing non-text response for %s", ctx.cache_key)
            ctx.cache_key = None
            text = ""

        annotated = policy.after_handler(
            ctx,
            HandlerResponse(
                body=text,
                content_type=response.headers.get("content-type"),
                status_code=response.status_code,
            ),
        )

        replay = Response(content=body, status_code=response.status_code)
        replay.raw_headers = list(response.raw_headers)
        for name, value in annotated.headers.items():
            replay.headers[name] = value
        return replay
