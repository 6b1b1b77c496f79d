"""Router — route registration, groups, and per-request dispatch.

Routes are registered during setup and frozen by ``compile()`` when the
app freezes. Matching scans routes in registration order and returns
the first whose method and pattern both match, so an earlier
``/users/:id`` shadows a later ``/users/me``.

Groups compose a path prefix, named middleware, and a validation
schema for the routes declared inside them::

    with router.group("/api", middleware=["auth"]):
        with router.group("/v1", middleware=["rate"]):
            router.get("/users", ListUsers)     # /api/v1/users, ["auth", "rate"]

Or with a body callable::

    router.group("/admin", lambda r: r.get("/stats", stats), middleware=["auth"])
"""

import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from warble._internal.invoke import invoke
from warble.container import Container
from warble.context import RequestContext
from warble.controller import is_controller
from warble.errors import RouteNotFound
from warble.http.forms import parse_body
from warble.http.request import Request
from warble.http.response import Response, not_found, to_response, validation_error
from warble.middleware.chain import MiddlewareChain
from warble.routing.route import Route, compile_path, normalize_path
from warble.validation import Schema, validate

logger = logging.getLogger("warble.routing")

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True, slots=True)
class _GroupScope:
    """Accumulated prefix, middleware, and schema of the enclosing groups."""

    prefix: str = ""
    middleware: tuple[str, ...] = ()
    validation: Schema | None = None


class Router:
    """Ordered route table with group scoping and a request pipeline."""

    __slots__ = ("_compiled", "_container", "_parse_bodies", "_routes", "_scope")

    def __init__(self, *, container: Container | None = None, parse_bodies: bool = True) -> None:
        self._routes: list[Route] = []
        self._scope = _GroupScope()
        self._container = container
        self._parse_bodies = parse_bodies
        self._compiled = False

    # -- Registration --

    def add(
        self,
        method: str,
        path: str,
        target: Any,
        *,
        middleware: Sequence[str] | None = None,
        validation: Schema | None = None,
    ) -> Route:
        """Register a route under the current group scope.

        *target* is a ``Controller`` subclass (instantiated per request)
        or any callable taking a ``RequestContext``.
        """
        if self._compiled:
            msg = f"Cannot add route {method} {path!r}: router is compiled."
            raise RuntimeError(msg)
        method = method.upper()
        if method not in HTTP_METHODS:
            msg = f"Unsupported HTTP method {method!r}"
            raise ValueError(msg)

        scope = self._scope
        full_path = normalize_path(scope.prefix + "/" + path)
        schema = validation if validation is not None else scope.validation
        names = scope.middleware + tuple(middleware or ())
        canonical, pattern, param_names = compile_path(full_path)

        route = Route(
            method=method,
            path=canonical,
            pattern=pattern,
            param_names=param_names,
            handler=_capability(target, schema),
            middleware=names,
            schema=schema,
        )
        self._routes.append(route)
        logger.debug("route %s %s middleware=%s", method, canonical, list(names))
        return route

    def get(self, path: str, target: Any, **options: Any) -> Route:
        return self.add("GET", path, target, **options)

    def post(self, path: str, target: Any, **options: Any) -> Route:
        return self.add("POST", path, target, **options)

    def put(self, path: str, target: Any, **options: Any) -> Route:
        return self.add("PUT", path, target, **options)

    def patch(self, path: str, target: Any, **options: Any) -> Route:
        return self.add("PATCH", path, target, **options)

    def delete(self, path: str, target: Any, **options: Any) -> Route:
        return self.add("DELETE", path, target, **options)

    def group(
        self,
        prefix: str,
        body: Callable[["Router"], Any] | None = None,
        *,
        middleware: Sequence[str] | None = None,
        validation: Schema | None = None,
    ) -> Any:
        """Declare routes under a shared prefix, middleware, and schema.

        With *body*, calls ``body(self)`` inside the group and returns its
        result. Without, returns a context manager. The enclosing scope is
        restored on exit even if the body raises.

        Middleware accumulates outer-first. A group's schema replaces the
        parent's; a route's own schema replaces the group's.
        """
        scope = self._enter(prefix, middleware, validation)
        if body is None:
            return scope
        with scope:
            return body(self)

    @contextmanager
    def _enter(
        self,
        prefix: str,
        middleware: Sequence[str] | None,
        validation: Schema | None,
    ) -> Iterator["Router"]:
        parent = self._scope
        self._scope = _GroupScope(
            prefix=normalize_path(parent.prefix + "/" + prefix),
            middleware=parent.middleware + tuple(middleware or ()),
            validation=validation if validation is not None else parent.validation,
        )
        try:
            yield self
        finally:
            self._scope = parent

    def compile(self) -> None:
        """Freeze the route table. Further ``add()`` calls raise."""
        self._compiled = True

    @property
    def routes(self) -> tuple[Route, ...]:
        """Registered routes in registration order."""
        return tuple(self._routes)

    # -- Matching --

    def match(self, method: str, path: str) -> Route | None:
        """Return the first route matching *method* and *path*, or ``None``."""
        method = method.upper()
        path = normalize_path(path)
        for route in self._routes:
            if route.matches(method, path):
                return route
        return None

    def lookup(self, method: str, path: str) -> Route:
        """Like ``match()`` but raises ``RouteNotFound`` on a miss."""
        route = self.match(method, path)
        if route is None:
            raise RouteNotFound(normalize_path(path), method.upper())
        return route

    @staticmethod
    def extract_params(route: Route, path: str) -> dict[str, str]:
        """Map the route's parameter names to the captured segments."""
        found = route.pattern.match(normalize_path(path))
        if found is None:
            return {}
        return {name: value or "" for name, value in zip(route.param_names, found.groups(), strict=False)}

    # -- Dispatch --

    async def handle(self, request: Request, chain: MiddlewareChain) -> Response:
        """Run the route-level pipeline for *request*.

        Match → extract params → parse body → build context → route
        middleware ``before`` → handler → route middleware ``after``.
        An unmatched path produces the 404 envelope. Global middleware is
        the caller's concern.
        """
        path = normalize_path(request.path)
        try:
            route = self.lookup(request.method, path)
        except RouteNotFound as exc:
            logger.debug("no route for %s %s", request.method, exc.path)
            return not_found(exc.path)

        params = self.extract_params(route, path)
        body = await parse_body(request) if self._parse_bodies else None
        ctx = RequestContext(
            request=request,
            params=params,
            query=request.query.flat(),
            body=body,
            services=self._container,
        )

        short = await chain.run_route_before(request, route.middleware)
        if short is not None:
            return short

        response = to_response(await invoke(route.handler, ctx))
        return await chain.run_route_after(request, response, route.middleware)

    def __repr__(self) -> str:
        return f"<Router routes={len(self._routes)} compiled={self._compiled}>"


def _capability(target: Any, schema: Schema | None) -> Callable[[RequestContext], Any]:
    """Wrap *target* into a single ``ctx -> result`` callable.

    Validation runs first when *schema* is set; a failing body answers
    422 before the target is touched. Controller classes get a fresh
    instance per request.
    """
    if is_controller(target):

        async def run(ctx: RequestContext) -> Any:
            return await target().execute(ctx)

    elif callable(target):

        async def run(ctx: RequestContext) -> Any:
            return await invoke(target, ctx)

    else:
        msg = f"Route target must be a Controller subclass or callable, got {target!r}"
        raise TypeError(msg)

    if schema is None:
        return run

    async def validated(ctx: RequestContext) -> Any:
        result = validate(ctx.body, schema)
        if not result:
            return validation_error(result.errors)
        return await run(ctx)

    return validated
