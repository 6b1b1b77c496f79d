"""Warble application class.

Mutable during setup (services, middleware, routes, lifecycle hooks).
Frozen when the first request or lifespan event arrives.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from http import HTTPStatus
from typing import Any

from warble._internal.asgi import Receive, Scope, Send
from warble._internal.invoke import invoke
from warble._internal.types import Factory, Hook
from warble.config import AppConfig
from warble.container import Container
from warble.context import g, request_var
from warble.errors import HTTPError, LogWriteError
from warble.http.request import Request
from warble.http.response import Response, json_response, server_error
from warble.http.sender import send_response
from warble.logs import LogSink
from warble.middleware.chain import MiddlewareChain
from warble.middleware.cors import CORSMiddleware
from warble.middleware.protocol import Middleware
from warble.routing.route import Route
from warble.routing.router import Router
from warble.validation import Schema

logger = logging.getLogger("warble.server")


class App:
    """The warble application.

    Owns the service container, the middleware chain and the router, and
    runs the request pipeline::

        global before → route match → route before → handler
                      → route after → global after

    Usage::

        app = App(AppConfig(cors=True))
        app.singleton("users", UserStore)
        app.middleware("auth", AuthMiddleware(authenticate))

        with app.group("/api", middleware=["auth"]):
            app.get("/users/:id", ShowUser)
            app.post("/users", CreateUser, validation=USER_SCHEMA)

    The app is an ASGI 3.0 callable; serve it with any ASGI server.

    Thread safety:
        Setup is single-threaded. The freeze transition uses a Lock +
        double-check so exactly one thread compiles the app when several
        workers hit ``__call__()`` on their first request.
    """

    __slots__ = (
        "_container",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "log",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        container: Container | None = None,
        log: LogSink | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.log: LogSink = log or LogSink.to_stdlib("warble.server", self.config.log_level)
        self._container = container if container is not None else Container()
        self._middleware = MiddlewareChain()
        self._router = Router(container=self._container, parse_bodies=self.config.body_parser)
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        self._container.singleton("router", lambda: self._router)
        self._container.singleton("config", lambda: self.config)
        self._container.singleton("middleware", lambda: self._middleware)
        self._container.singleton("log", lambda: self.log)

    # -- Accessors --

    @property
    def router(self) -> Router:
        return self._router

    @property
    def container(self) -> Container:
        return self._container

    @property
    def middleware_chain(self) -> MiddlewareChain:
        return self._middleware

    # -- Services --

    def singleton(self, name: str, factory: Factory) -> None:
        """Register a service built once on first resolve."""
        self._check_not_frozen()
        self._container.singleton(name, factory)

    def bind(self, name: str, factory: Factory) -> None:
        """Register a service built anew on every resolve."""
        self._check_not_frozen()
        self._container.bind(name, factory)

    def resolve(self, name: str) -> Any:
        return self._container.resolve(name)

    def has(self, name: str) -> bool:
        return self._container.has(name)

    # -- Middleware --

    def use(self, middleware: Middleware) -> None:
        """Append a global middleware. Runs for every request."""
        self._check_not_frozen()
        self._middleware.add_global(middleware)

    add_middleware = use

    def middleware(self, name: str, middleware: Middleware) -> None:
        """Register a named middleware that routes opt into by name."""
        self._check_not_frozen()
        self._middleware.register(name, middleware)

    # -- Routes --

    def route(
        self,
        method: str,
        path: str,
        target: Any = None,
        *,
        middleware: Sequence[str] | None = None,
        validation: Schema | None = None,
    ) -> Any:
        """Register a route, or return a decorator when *target* is omitted.

        Usage::

            app.route("GET", "/health", health)

            @app.get("/users/:id")
            async def show(ctx):
                return {"id": ctx.params["id"]}
        """
        self._check_not_frozen()
        if target is None:

            def decorator(func: Any) -> Any:
                self._router.add(method, path, func, middleware=middleware, validation=validation)
                return func

            return decorator

        return self._router.add(method, path, target, middleware=middleware, validation=validation)

    def get(self, path: str, target: Any = None, **options: Any) -> Any:
        return self.route("GET", path, target, **options)

    def post(self, path: str, target: Any = None, **options: Any) -> Any:
        return self.route("POST", path, target, **options)

    def put(self, path: str, target: Any = None, **options: Any) -> Any:
        return self.route("PUT", path, target, **options)

    def patch(self, path: str, target: Any = None, **options: Any) -> Any:
        return self.route("PATCH", path, target, **options)

    def delete(self, path: str, target: Any = None, **options: Any) -> Any:
        return self.route("DELETE", path, target, **options)

    def group(
        self,
        prefix: str,
        body: Callable[["App"], Any] | None = None,
        *,
        middleware: Sequence[str] | None = None,
        validation: Schema | None = None,
    ) -> Any:
        """Scope routes under a prefix, middleware and schema.

        Use as a context manager, or pass *body* which receives the app.
        """
        self._check_not_frozen()
        inner = None if body is None else (lambda _router: body(self))
        return self._router.group(prefix, inner, middleware=middleware, validation=validation)

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._router.routes

    # -- Lifecycle hooks --

    def on_startup(self, func: Hook) -> Hook:
        """Register a sync or async startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Hook) -> Hook:
        """Register a sync or async shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Request pipeline --

    async def dispatch(self, request: Request) -> Response:
        """Run the full pipeline for *request* and return the response.

        Never raises for request-level failures: ``HTTPError`` becomes its
        JSON envelope, anything else the 500 envelope.
        """
        self._ensure_frozen()
        token = request_var.set(request)
        try:
            short = await self._middleware.run_global_before(request)
            if short is not None:
                return short

            response = await self._router.handle(request, self._middleware)
            return await self._middleware.run_global_after(request, response)
        except HTTPError as exc:
            logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
            return _http_error_response(exc)
        except Exception as exc:
            await self._log_internal_error(request, exc)
            return server_error(str(exc))
        finally:
            g._reset()
            request_var.reset(token)

    async def _log_internal_error(self, request: Request, exc: Exception) -> None:
        try:
            await self.log.error(
                f"Request error: {request.method} {request.path}",
                exc,
                {"method": request.method, "path": request.path},
            )
        except LogWriteError:
            logger.exception("500 %s %s", request.method, request.path)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point: ``lifespan`` and ``http`` scopes."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        if scope["type"] != "http":
            msg = f"Unsupported ASGI scope type {scope['type']!r}"
            raise RuntimeError(msg)

        request = Request.from_asgi(scope, receive)
        response = await self.dispatch(request)
        await send_response(response, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup, then runs the registered hooks and
        signals completion back to the server.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    logger.exception("startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                try:
                    for hook in self._shutdown_hooks:
                        await invoke(hook)
                except Exception as exc:
                    logger.exception("shutdown hook failed")
                    await send({"type": "lifespan.shutdown.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its runtime state.

        MUST only be called while holding _freeze_lock.
        """
        if self.config.cors:
            self._middleware.prepend_global(CORSMiddleware())
        self._router.compile()
        self._frozen = True
        logger.debug(
            "app frozen: %d routes, %d global middleware, named=%s",
            len(self._router.routes),
            len(self._middleware.globals),
            list(self._middleware.names),
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register services, middleware, and routes before the first request."
            )
            raise RuntimeError(msg)


def _http_error_response(exc: HTTPError) -> Response:
    try:
        reason = HTTPStatus(exc.status).phrase
    except ValueError:
        reason = "Error"
    response = json_response({"error": reason, "message": exc.detail or reason}, exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response
