"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Immutable by convention,
built incrementally by design.

The module-level helpers build the JSON envelopes every warble endpoint
speaks::

    success(data, message="Created")   # {"success": true, "message": ..., "data": ...}
    error("Nope", 409)                 # {"success": false, "message": "Nope"}
    validation_error(result.errors)    # 422 {"success": false, "message": "Validation failed", ...}
"""

from __future__ import annotations

import json as json_module
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, is_dataclass, replace
from typing import Any

JSON_TYPE = "application/json"
TEXT_TYPE = "text/plain; charset=utf-8"
HTML_TYPE = "text/html; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = TEXT_TYPE
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        new = tuple(headers.items())
        return replace(self, headers=(*self.headers, *new))

    def with_header_set(self, name: str, value: str) -> Response:
        """Return a new Response where *name* has exactly one value."""
        lower = name.lower()
        kept = tuple(h for h in self.headers if h[0].lower() != lower)
        return replace(self, headers=(*kept, (name, value)))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    # -- Accessors --

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the last value set for header *name* (case-insensitive)."""
        lower = name.lower()
        if lower == "content-type":
            return self.content_type
        for key, value in reversed(self.headers):
            if key.lower() == lower:
                return value
        return default

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json_module.loads(self.body_bytes)


# ---------------------------------------------------------------------------
# Construction helpers
# ---------------------------------------------------------------------------


def json_response(data: Any, status: int = 200) -> Response:
    """Serialize *data* as a JSON response."""
    return Response(
        body=json_module.dumps(data, default=_json_default),
        status=status,
        content_type=JSON_TYPE,
    )


def success(data: Any = None, message: str | None = None, status: int = 200) -> Response:
    """Success envelope: ``{"success": true, "message"?, "data"}``."""
    payload: dict[str, Any] = {"success": True}
    if message is not None:
        payload["message"] = message
    payload["data"] = data
    return json_response(payload, status)


def error(message: str, status: int = 400, errors: Any = None) -> Response:
    """Error envelope: ``{"success": false, "message", "errors"?}``."""
    payload: dict[str, Any] = {"success": False, "message": message}
    if errors is not None:
        payload["errors"] = errors
    return json_response(payload, status)


def validation_error(errors: Iterable[Any]) -> Response:
    """The 422 envelope for failed schema validation."""
    items = [e.to_dict() if hasattr(e, "to_dict") else e for e in errors]
    return error("Validation failed", 422, items)


def not_found(path: str) -> Response:
    """The 404 envelope for unmatched routes."""
    return json_response({"error": "Not Found", "path": path}, 404)


def server_error(message: str) -> Response:
    """The 500 envelope for unhandled failures."""
    return json_response({"error": "Internal Server Error", "message": message}, 500)


def redirect(url: str, status: int = 302) -> Response:
    """A redirect with an empty body and a ``Location`` header."""
    return Response(body=b"", status=status).with_header("Location", url)


def text(content: str, status: int = 200) -> Response:
    """A plain-text response."""
    return Response(body=content, status=status, content_type=TEXT_TYPE)


def html(content: str, status: int = 200) -> Response:
    """An HTML response."""
    return Response(body=content, status=status, content_type=HTML_TYPE)


def to_response(result: Any) -> Response:
    """Convert a handler's return value into a Response.

    ``Response`` passes through untouched, ``str`` becomes plain text,
    anything else is serialized as JSON.
    """
    if isinstance(result, Response):
        return result
    if isinstance(result, str):
        return text(result)
    return json_response(result)


def _json_default(value: Any) -> Any:
    """Serialize the few non-JSON types handlers commonly return."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, set | frozenset):
        return list(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)
