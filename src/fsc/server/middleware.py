"""Request logging and CORS handling.

CORS headers are attached from an on_response_prepare hook rather than a
middleware, because streamed downloads send their headers before the
handler returns.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable

from aiohttp import hdrs, web

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

ALLOWED_METHODS = "GET, POST, OPTIONS"
EXPOSED_HEADERS = "Content-Disposition, Content-Length"
PREFLIGHT_MAX_AGE = "600"


@web.middleware
async def request_logging_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """Log one line per request: method, path, status and duration."""
    start = time.monotonic()
    try:
        response = await handler(request)
    except web.HTTPException as e:
        _log_request(request, e.status, start)
        raise
    except Exception:
        # aiohttp turns this into a 500 after we re-raise
        _log_request(request, 500, start)
        raise
    _log_request(request, response.status, start)
    return response


def _log_request(request: web.Request, status: int, start: float) -> None:
    elapsed_ms = (time.monotonic() - start) * 1000
    logger.info(
        "%s %s -> %d (%.1fms)", request.method, request.path, status, elapsed_ms
    )


class CorsPolicy:
    """Origin allowlist. The entry "*" allows every origin."""

    def __init__(self, allowed_origins: Iterable[str]) -> None:
        self._origins = frozenset(o.rstrip("/") for o in allowed_origins)
        self._allow_all = "*" in self._origins

    def is_allowed(self, origin: str | None) -> bool:
        if not origin:
            return False
        return self._allow_all or origin.rstrip("/") in self._origins

    def apply(self, request: web.Request, response: web.StreamResponse) -> None:
        origin = request.headers.get(hdrs.ORIGIN)
        if not self.is_allowed(origin):
            return
        response.headers[hdrs.ACCESS_CONTROL_ALLOW_ORIGIN] = origin
        response.headers[hdrs.ACCESS_CONTROL_EXPOSE_HEADERS] = EXPOSED_HEADERS
        response.headers.add(hdrs.VARY, hdrs.ORIGIN)


def create_cors_middleware(policy: CorsPolicy) -> Callable:
    """Create middleware answering CORS preflight requests.

    Preflights from allowed origins get a 204 with the allowed methods;
    from other origins a bare 204, which browsers treat as a refusal.
    """

    @web.middleware
    async def cors_preflight_middleware(
        request: web.Request, handler: Handler
    ) -> web.StreamResponse:
        is_preflight = (
            request.method == hdrs.METH_OPTIONS
            and hdrs.ACCESS_CONTROL_REQUEST_METHOD in request.headers
        )
        if not is_preflight:
            return await handler(request)

        response = web.Response(status=204)
        if policy.is_allowed(request.headers.get(hdrs.ORIGIN)):
            response.headers[hdrs.ACCESS_CONTROL_ALLOW_METHODS] = ALLOWED_METHODS
            requested = request.headers.get(hdrs.ACCESS_CONTROL_REQUEST_HEADERS)
            if requested:
                response.headers[hdrs.ACCESS_CONTROL_ALLOW_HEADERS] = requested
            response.headers[hdrs.ACCESS_CONTROL_MAX_AGE] = PREFLIGHT_MAX_AGE
        else:
            logger.debug(
                "Rejected CORS preflight from origin %s",
                request.headers.get(hdrs.ORIGIN),
            )
        return response

    return cors_preflight_middleware


def create_cors_prepare_hook(
    policy: CorsPolicy,
) -> Callable[[web.Request, web.StreamResponse], Awaitable[None]]:
    """Create an on_response_prepare hook adding CORS response headers."""

    async def add_cors_headers(
        request: web.Request, response: web.StreamResponse
    ) -> None:
        policy.apply(request, response)

    return add_cors_headers
