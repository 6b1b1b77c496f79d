"""Controller — the per-request handler lifecycle.

A controller is instantiated once per matched request and runs::

    before_handle(ctx)  →  handle(ctx)  →  after_handle(ctx, result)

``before_handle`` may return a response to stop early. ``after_handle``
receives whatever ``handle`` produced and returns the final result.
Both hooks are optional; ``handle`` is required. Any of them may be
``async``.

The request context is passed into every hook instead of being stored
on ``self``, so a controller carries no hidden per-request state::

    class ShowUser(Controller):
        async def handle(self, ctx):
            users = ctx.resolve("users")
            user = await users.find(ctx.params["id"])
            if user is None:
                return self.error("User not found", 404)
            return self.success(user)

``handle`` may return a ``Response`` (sent as-is) or a raw value: a
``str`` becomes ``text/plain``, anything else is serialized as JSON.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from warble._internal.invoke import invoke
from warble.context import RequestContext
from warble.http import response as _responses
from warble.http.response import Response
from warble.logs import LogSink
from warble.validation import Schema, validate


class Controller(ABC):
    """Base class for route handlers with lifecycle hooks.

    Subclasses implement ``handle``. Override ``before_handle`` and/or
    ``after_handle`` to add per-controller pre/post processing; the
    defaults are no-ops.
    """

    _log: LogSink | None = None

    async def execute(self, ctx: RequestContext) -> Any:
        """Run the lifecycle for one request. Called by the router."""
        early = await invoke(self.before_handle, ctx)
        if early is not None:
            return early

        result = await invoke(self.handle, ctx)

        return await invoke(self.after_handle, ctx, result)

    @abstractmethod
    def handle(self, ctx: RequestContext) -> Any:
        """Produce the result for this request. May be ``async``."""

    def before_handle(self, ctx: RequestContext) -> Response | None:
        """Return a response to short-circuit ``handle``. No-op by default."""
        return None

    def after_handle(self, ctx: RequestContext, result: Any) -> Any:
        """Transform the ``handle`` result. Identity by default."""
        return result

    # -- Response helpers --

    def json(self, data: Any, status: int = 200) -> Response:
        return _responses.json_response(data, status)

    def success(self, data: Any = None, message: str | None = None) -> Response:
        return _responses.success(data, message)

    def error(self, message: str, status: int = 400, errors: Any = None) -> Response:
        return _responses.error(message, status, errors)

    def validation_error(self, errors: Iterable[Any]) -> Response:
        return _responses.validation_error(errors)

    def redirect(self, url: str, status: int = 302) -> Response:
        return _responses.redirect(url, status)

    def text(self, content: str, status: int = 200) -> Response:
        return _responses.text(content, status)

    def html(self, content: str, status: int = 200) -> Response:
        return _responses.html(content, status)

    def validate(self, ctx: RequestContext, schema: Schema) -> Response | None:
        """Validate ``ctx.body`` in-line.

        Returns the 422 response on failure, ``None`` when the body is
        valid::

            if (failed := self.validate(ctx, schema)) is not None:
                return failed
        """
        result = validate(ctx.body, schema)
        if not result:
            return self.validation_error(result.errors)
        return None

    @property
    def log(self) -> LogSink:
        """A structured logger for this controller.

        Created on first use, writing to stdlib ``logging`` under the
        controller's module name. Add destinations with
        ``self.log.add_destination(...)``.
        """
        if self._log is None:
            self._log = LogSink.to_stdlib(type(self).__module__)
        return self._log


def is_controller(target: Any) -> bool:
    """True if *target* is a ``Controller`` subclass (not an instance)."""
    return isinstance(target, type) and issubclass(target, Controller)
