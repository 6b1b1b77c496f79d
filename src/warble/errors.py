"""Warble exception hierarchy.

Shared across Container, Router, the middleware chain, and App so every
module raises and catches the same types.

Validation failures are not exceptions: they are ``ValidationResult``
values consumed by the route handler to build a 422 response.
"""

from dataclasses import dataclass


class WarbleError(Exception):
    """Base for all warble-specific errors."""


class ConfigurationError(WarbleError):
    """Raised when the application is wired incorrectly.

    Indicates a deployment defect (e.g. a route referencing middleware
    that was never registered), not a per-request condition.
    """


class MiddlewareNotFound(ConfigurationError):  # noqa: N818
    """A route references a named middleware that was never registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Middleware "{name}" not found')


class NotFoundError(WarbleError, LookupError):
    """Base for lookups that found nothing."""


class ServiceNotFound(NotFoundError):  # noqa: N818
    """``Container.resolve()`` was called with an unregistered name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Service "{name}" not found in container')


class RouteNotFound(NotFoundError):  # noqa: N818
    """No registered route matches the request method and path.

    ``Router.handle()`` recovers this into the 404 JSON envelope.
    """

    def __init__(self, path: str, method: str = "") -> None:
        self.path = path
        self.method = method
        target = f"{method} {path!r}" if method else repr(path)
        super().__init__(f"No route matches {target}")


@dataclass(frozen=True, slots=True)
class HTTPError(WarbleError):
    """An error that maps directly to an HTTP status code.

    Application code may raise this from a controller or middleware.
    ``App.dispatch()`` converts it to a JSON error envelope.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class LogWriteError(WarbleError):
    """Every destination of a ``LogSink`` failed to accept an entry."""

    def __init__(self, failures: list[BaseException]) -> None:
        self.failures = failures
        super().__init__(f"All {len(failures)} log destinations failed to write")
