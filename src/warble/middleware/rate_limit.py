"""Fixed-window rate limiting middleware.

Counts requests per client key in an in-memory table. The first request
from a key opens a window of ``window_seconds``; once it has passed the
next request opens a fresh one. Requests past ``max_requests`` within a
window are answered 429 without reaching the route.

State lives on the middleware instance and is only touched inside a
single synchronous ``before``/``after`` call, so it needs no lock on a
single event loop.
"""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from warble.http.request import Request
from warble.http.response import Response, json_response
from warble.middleware.protocol import MiddlewareContext


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Configuration for the fixed-window limiter."""

    max_requests: int = 100
    window_seconds: float = 60.0


@dataclass(slots=True)
class _Window:
    count: int
    reset_at: float


def client_key(request: Request) -> str:
    """Identify the client: first ``x-forwarded-for`` hop, then
    ``x-real-ip``, then the ASGI client address.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # Standard comma-separated proxy chain, first hop is the client.
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client:
        return request.client[0]
    return "unknown"


class RateLimitMiddleware:
    """In-memory per-client fixed-window limiter.

    Usage::

        app.middleware("throttle", RateLimitMiddleware(RateLimitConfig(
            max_requests=5, window_seconds=60,
        )))
        app.post("/login", Login, middleware=["throttle"])
    """

    __slots__ = ("_clock", "_config", "_windows")

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or RateLimitConfig()
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    def _limit_headers(self, window: _Window) -> dict[str, str]:
        limit = self._config.max_requests
        return {
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": str(max(0, limit - window.count)),
            "X-RateLimit-Reset": str(math.ceil(window.reset_at)),
        }

    def before(self, ctx: MiddlewareContext) -> Response | None:
        key = client_key(ctx.request)
        now = self._clock()

        window = self._windows.get(key)
        if window is None or now > window.reset_at:
            window = _Window(count=0, reset_at=now + self._config.window_seconds)
            self._windows[key] = window

        window.count += 1
        if window.count <= self._config.max_requests:
            return None

        retry_after = max(1, math.ceil(window.reset_at - now))
        return (
            json_response(
                {"success": False, "message": "Too many requests", "retryAfter": retry_after},
                429,
            )
            .with_header("Retry-After", str(retry_after))
            .with_headers(self._limit_headers(window))
        )

    def after(self, ctx: MiddlewareContext) -> Response | None:
        window = self._windows.get(client_key(ctx.request))
        if window is None or ctx.response is None:
            return None
        response = ctx.response
        for name, value in self._limit_headers(window).items():
            response = response.with_header_set(name, value)
        return response

    def reset(self, key: str | None = None) -> None:
        """Forget the window for *key*, or every window."""
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)
