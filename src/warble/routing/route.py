"""Route definition and path compilation."""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from warble.validation import Schema

_PARAM_RE = re.compile(r":(\w+)")


def normalize_path(path: str) -> str:
    """Collapse a path to its canonical form.

    Empty segments are dropped and the rest joined with single slashes::

        "users//42/"  -> "/users/42"
        ""            -> "/"
    """
    segments = [segment for segment in path.split("/") if segment]
    return "/" + "/".join(segments)


def compile_path(path: str) -> tuple[str, re.Pattern[str], tuple[str, ...]]:
    r"""Compile a route path into (canonical path, regex, param names).

    ``:name`` segments capture one run of non-slash characters; every
    other segment matches literally. The regex is anchored at both ends.

    Examples::

        "/users"             -> ^/users\Z                 ()
        "/users/:id"         -> ^/users/([^/]+)\Z         ("id",)
        "/a/:x/b/:y"         -> ^/a/([^/]+)/b/([^/]+)\Z   ("x", "y")
    """
    canonical = normalize_path(path)
    names: list[str] = []
    parts: list[str] = []
    for segment in canonical.split("/")[1:]:
        param = _PARAM_RE.fullmatch(segment)
        if param is not None:
            names.append(param.group(1))
            parts.append("([^/]+)")
        else:
            parts.append(re.escape(segment))
    pattern = "^/" + "/".join(parts) + r"\Z"
    return canonical, re.compile(pattern), tuple(names)


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route. Immutable once created.

    ``handler`` is the capability the router invokes with a
    ``RequestContext``; for routes registered through ``get()``/``post()``
    it already wraps schema validation and the controller lifecycle.
    """

    method: str
    path: str
    pattern: re.Pattern[str]
    param_names: tuple[str, ...]
    handler: Callable[..., Any]
    middleware: tuple[str, ...] = ()
    schema: Schema | None = None

    def matches(self, method: str, path: str) -> bool:
        """True if *method* equals and *path* (normalized) matches."""
        return self.method == method and self.pattern.match(path) is not None
