"""Authentication middleware.

Delegates identity to an ``authenticate(request)`` capability (sync or
async) returning a principal or ``None``. The principal is stored on
``g.user`` for the rest of the request.

Usage::

    async def authenticate(request):
        token = bearer_token(request)
        return await tokens.verify(token) if token else None

    app.middleware("auth", AuthMiddleware(authenticate))
    app.middleware("maybe-auth", AuthMiddleware(authenticate, optional=True))

    app.get("/me", Me, middleware=["auth"])

    # In a controller:
    user = g.user
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias

from warble._internal.invoke import invoke
from warble.context import g
from warble.http.request import Request
from warble.http.response import Response, error
from warble.middleware.protocol import MiddlewareContext

Authenticate: TypeAlias = Callable[[Request], Any | Awaitable[Any]]


def bearer_token(request: Request, scheme: str = "Bearer") -> str | None:
    """Extract the token from an ``Authorization: <scheme> <token>`` header."""
    header = request.headers.get("authorization")
    if header is None:
        return None

    prefix = f"{scheme} "
    if not header.startswith(prefix):
        return None

    token = header[len(prefix) :].strip()
    return token if token else None


class AuthMiddleware:
    """Reject unauthenticated requests, or just identify them.

    Required mode (the default) answers 401
    ``{"success": false, "message": "Unauthorized"}`` when *authenticate*
    returns ``None``. Optional mode always lets the request through and
    sets ``g.user`` to the principal or ``None``.
    """

    __slots__ = ("_authenticate", "optional")

    def __init__(self, authenticate: Authenticate, *, optional: bool = False) -> None:
        self._authenticate = authenticate
        self.optional = optional

    async def before(self, ctx: MiddlewareContext) -> Response | None:
        user = await invoke(self._authenticate, ctx.request)
        g.user = user
        if user is None and not self.optional:
            return error("Unauthorized", 401)
        return None
