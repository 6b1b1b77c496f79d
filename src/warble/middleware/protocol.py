"""Middleware protocol — an object with optional before/after hooks.

A middleware is any object that defines ``before``, ``after``, or both::

    class Timing:
        def before(self, ctx: MiddlewareContext) -> Response | None:
            g.started = time.monotonic()
            return None                      # continue

        def after(self, ctx: MiddlewareContext) -> Response:
            elapsed = time.monotonic() - g.started
            return ctx.response.with_header("X-Response-Time", f"{elapsed:.3f}")

No base class required. The chain checks the shape, not the lineage:
a missing hook is skipped. Hooks may be ``def`` or ``async def``.

``before`` returns a ``Response`` to short-circuit the pipeline, or
``None`` to let the request continue. ``after`` returns the response
the next middleware (or the client) receives; returning ``None`` leaves
it unchanged.

For one-off middleware built from plain functions, use ``hooks()``::

    app.use(hooks(before=reject_without_api_key))
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol, TypeAlias

from warble.http.request import Request
from warble.http.response import Response


@dataclass(frozen=True, slots=True)
class MiddlewareContext:
    """What a hook sees. ``response`` is ``None`` during the before phase."""

    request: Request
    response: Response | None = None


BeforeHook: TypeAlias = Callable[[MiddlewareContext], Response | None | Awaitable[Response | None]]
AfterHook: TypeAlias = Callable[[MiddlewareContext], Response | None | Awaitable[Response | None]]


class Middleware(Protocol):
    """Structural type for middleware.

    Both methods are optional at runtime; the protocol lists them for
    documentation and type checkers. Stateful middleware (rate limiters,
    caches) keeps its state on the instance.
    """

    def before(self, ctx: MiddlewareContext) -> Response | None | Awaitable[Response | None]: ...

    def after(self, ctx: MiddlewareContext) -> Response | None | Awaitable[Response | None]: ...


@dataclass(frozen=True, slots=True)
class HookMiddleware:
    """Middleware assembled from plain functions. Either hook may be None."""

    before: BeforeHook | None = None
    after: AfterHook | None = None


def hooks(*, before: BeforeHook | None = None, after: AfterHook | None = None) -> HookMiddleware:
    """Build a middleware from a ``before`` and/or ``after`` function."""
    if before is None and after is None:
        msg = "hooks() needs at least one of 'before' or 'after'"
        raise TypeError(msg)
    return HookMiddleware(before=before, after=after)
