"""Warble — a small web application framework over ASGI.

Routes, route groups, named and global middleware, a service container,
declarative request validation, and controllers with lifecycle hooks.

Basic usage::

    from warble import App, Controller

    app = App()

    class Hello(Controller):
        def handle(self, ctx):
            return self.success({"hello": ctx.params["name"]})

    app.get("/hello/:name", Hello)

Serve ``app`` with any ASGI server.
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "AuthMiddleware",
    "CORSConfig",
    "CORSMiddleware",
    "ConfigurationError",
    "Container",
    "Controller",
    "HTTPError",
    "LogSink",
    "Middleware",
    "MiddlewareNotFound",
    "RateLimitConfig",
    "RateLimitMiddleware",
    "Request",
    "RequestContext",
    "Response",
    "RouteNotFound",
    "Router",
    "Rule",
    "ServiceNotFound",
    "WarbleError",
    "g",
    "get_request",
    "hooks",
    "validate",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import warble`` fast while providing a clean top-level API.
    """
    if name == "App":
        from warble.app import App

        return App

    if name == "AppConfig":
        from warble.config import AppConfig

        return AppConfig

    if name == "Container":
        from warble.container import Container

        return Container

    if name == "Controller":
        from warble.controller import Controller

        return Controller

    if name == "LogSink":
        from warble.logs import LogSink

        return LogSink

    if name == "Router":
        from warble.routing import Router

        return Router

    if name == "Request":
        from warble.http.request import Request

        return Request

    if name == "Response":
        from warble.http.response import Response

        return Response

    if name in ("Rule", "validate"):
        from warble import validation as _validation

        return getattr(_validation, name)

    if name in (
        "AuthMiddleware",
        "CORSConfig",
        "CORSMiddleware",
        "Middleware",
        "RateLimitConfig",
        "RateLimitMiddleware",
        "hooks",
    ):
        from warble import middleware as _mw

        return getattr(_mw, name)

    if name in ("RequestContext", "g", "get_request"):
        from warble import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "ConfigurationError",
        "HTTPError",
        "MiddlewareNotFound",
        "RouteNotFound",
        "ServiceNotFound",
        "WarbleError",
    ):
        from warble import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
