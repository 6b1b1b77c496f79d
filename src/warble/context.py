"""Per-request context.

Provides:

- ``RequestContext``: the value the router builds for a matched request
  and threads through validation and the controller lifecycle.
- ``request_var``: the current ``Request`` for this task.
- ``g``: a mutable namespace scoped to the current request (auth
  middleware stores the principal on ``g.user``).

``request_var`` and ``g`` are set by ``App.dispatch()`` and reset after
each request. ``ContextVar`` is task-local under asyncio, so concurrent
requests never see each other's values.
"""

from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from warble.http.request import Request

if TYPE_CHECKING:
    from warble.container import Container


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Everything a handler needs about one matched request.

    Built once by the router right after a route matches; read-only
    from then on.

    ``body`` is the content-type-driven parse of the request body (JSON,
    URL-encoded, or multipart), or ``None``.
    """

    request: Request
    params: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    services: Container | None = None

    def resolve(self, name: str) -> Any:
        """Resolve a service from the application container."""
        if self.services is None:
            msg = "No container is attached to this request context"
            raise LookupError(msg)
        return self.services.resolve(name)


# -- Request context --

request_var: ContextVar[Request] = ContextVar("warble_request")
"""The current request. Set by ``App.dispatch()`` before the pipeline runs."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


# -- Request-scoped namespace --


class _RequestGlobals:
    """A mutable namespace scoped to the current request.

    Stores arbitrary attributes via a per-request dict held in a ContextVar.

    Usage::

        from warble.context import g

        # In middleware
        g.user = principal

        # In a controller
        name = g.user.name
    """

    __slots__ = ("_store",)

    def __init__(self) -> None:
        object.__setattr__(self, "_store", ContextVar("warble_g", default=None))

    def _get_dict(self) -> dict[str, Any]:
        store: ContextVar[dict[str, Any] | None] = object.__getattribute__(self, "_store")
        d = store.get()
        if d is None:
            d = {}
            store.set(d)
        return d

    def _reset(self) -> None:
        """Drop every attribute. Called by ``App.dispatch()`` after each request."""
        store: ContextVar[dict[str, Any] | None] = object.__getattribute__(self, "_store")
        store.set(None)

    def __getattr__(self, name: str) -> Any:
        d = self._get_dict()
        try:
            return d[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._get_dict()[name] = value

    def __delattr__(self, name: str) -> None:
        d = self._get_dict()
        try:
            del d[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __contains__(self, name: str) -> bool:
        return name in self._get_dict()

    def get(self, name: str, default: Any = None) -> Any:
        """Get an attribute with a default value."""
        return self._get_dict().get(name, default)

    def __repr__(self) -> str:
        return f"<g {self._get_dict()!r}>"


g = _RequestGlobals()
"""Request-scoped namespace. Stores arbitrary per-request data."""
