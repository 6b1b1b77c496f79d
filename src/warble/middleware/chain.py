"""Middleware chain executor — global and named tiers.

Global middleware applies to every request. Named middleware is
registered under a key and opted into per route (``middleware=["auth"]``).

Ordering is forward in both phases. Given global ``[a, b]``::

    a.before → b.before → (routing) → a.after → b.after

The after phase is *not* an onion unwind of the before phase. The first
``before`` that returns a response short-circuits the rest of its tier.
"""

from collections.abc import Iterable, Sequence
from typing import Any

from warble._internal.invoke import invoke
from warble.errors import MiddlewareNotFound
from warble.http.request import Request
from warble.http.response import Response
from warble.middleware.protocol import Middleware, MiddlewareContext


class MiddlewareChain:
    """Ordered global middleware plus a name → middleware registry."""

    __slots__ = ("_global", "_named")

    def __init__(self) -> None:
        self._global: list[Middleware] = []
        self._named: dict[str, Middleware] = {}

    # -- Registration --

    def add_global(self, middleware: Middleware) -> None:
        """Append *middleware* to the global tier."""
        self._global.append(middleware)

    def prepend_global(self, middleware: Middleware) -> None:
        """Insert *middleware* ahead of every global middleware."""
        self._global.insert(0, middleware)

    def register(self, name: str, middleware: Middleware) -> None:
        """Register *middleware* under *name* (replacing any previous entry)."""
        self._named[name] = middleware

    def get(self, name: str) -> Middleware | None:
        """Return the middleware registered under *name*, if any."""
        return self._named.get(name)

    @property
    def globals(self) -> tuple[Middleware, ...]:
        """Global middleware in registration order."""
        return tuple(self._global)

    @property
    def names(self) -> tuple[str, ...]:
        """Registered middleware names."""
        return tuple(self._named)

    def __contains__(self, name: object) -> bool:
        return name in self._named

    # -- Execution --

    async def run_global_before(self, request: Request) -> Response | None:
        """Run every global ``before`` until one returns a response."""
        return await _run_before(request, self._global)

    async def run_global_after(self, request: Request, response: Response) -> Response:
        """Thread *response* through every global ``after``."""
        return await _run_after(request, response, self._global)

    async def run_route_before(self, request: Request, names: Sequence[str]) -> Response | None:
        """Run the named middleware's ``before`` hooks in the order given.

        Raises ``MiddlewareNotFound`` if any name is unregistered; no hook
        runs in that case.
        """
        return await _run_before(request, self._resolve(names))

    async def run_route_after(
        self,
        request: Request,
        response: Response,
        names: Sequence[str],
    ) -> Response:
        """Thread *response* through the named middleware's ``after`` hooks."""
        return await _run_after(request, response, self._resolve(names))

    def _resolve(self, names: Iterable[str]) -> list[Middleware]:
        resolved: list[Middleware] = []
        for name in names:
            middleware = self._named.get(name)
            if middleware is None:
                raise MiddlewareNotFound(name)
            resolved.append(middleware)
        return resolved


async def _run_before(request: Request, middleware: Iterable[Any]) -> Response | None:
    ctx = MiddlewareContext(request)
    for mw in middleware:
        hook = getattr(mw, "before", None)
        if hook is None:
            continue
        result = await invoke(hook, ctx)
        if result is not None:
            return result
    return None


async def _run_after(request: Request, response: Response, middleware: Iterable[Any]) -> Response:
    current = response
    for mw in middleware:
        hook = getattr(mw, "after", None)
        if hook is None:
            continue
        result = await invoke(hook, MiddlewareContext(request, current))
        if result is not None:
            current = result
    return current
