"""Declarative validation rules and type checks.

A schema maps field names to ``Rule`` objects::

    schema = {
        "name": Rule(required=True, type="string", max_length=100),
        "age": Rule(type="number", min=0),
        "role": Rule(enum=("admin", "member")),
    }

Plain dicts with the same keys work anywhere a ``Rule`` does and are
converted with ``Rule.coerce()``::

    schema = {"name": {"required": True, "type": "string"}}

Nested values carry their own schema. For ``type="object"`` it is the
field schema of the nested record; for ``type="array"`` it is the
schema every element is validated against::

    "profile": Rule(type="object", schema={"bio": Rule(max_length=500)}),
    "items": Rule(type="array", schema={"name": Rule(required=True)}),
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass, fields
from typing import Any, Literal, TypeAlias
from urllib.parse import urlsplit

TypeTag: TypeAlias = Literal["string", "number", "boolean", "email", "url", "array", "object"]

# A custom predicate returns True to pass, or an error message.
# It must be synchronous; validate() never awaits.
CustomCheck: TypeAlias = Callable[[Any], bool | str | None]

Schema: TypeAlias = Mapping[str, "Rule | Mapping[str, Any]"]


@dataclass(frozen=True, slots=True)
class Rule:
    """Validation rules for a single field. All fields are optional."""

    required: bool = False
    type: TypeTag | None = None
    min: float | None = None
    max: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | re.Pattern[str] | None = None
    enum: Collection[Any] | None = None
    custom: CustomCheck | None = None
    schema: Schema | None = None

    @classmethod
    def coerce(cls, value: Rule | Mapping[str, Any]) -> Rule:
        """Return *value* as a ``Rule``, converting dicts.

        Accepts both snake_case keys and the camelCase ``minLength`` /
        ``maxLength`` spellings used by JSON schemas.
        """
        if isinstance(value, Rule):
            return value
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, item in value.items():
            name = _CAMEL_ALIASES.get(key, key)
            if name not in known:
                msg = f"Unknown validation rule {key!r}"
                raise TypeError(msg)
            kwargs[name] = item
        return cls(**kwargs)


_CAMEL_ALIASES = {"minLength": "min_length", "maxLength": "max_length"}


# ---------------------------------------------------------------------------
# Type checks
# ---------------------------------------------------------------------------

# local@domain.tld shape only
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")


def is_number(value: Any) -> bool:
    """int or float, excluding bool and NaN."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def is_array(value: Any) -> bool:
    return isinstance(value, list | tuple)


def is_object(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_email(value: Any) -> bool:
    return isinstance(value, str) and _EMAIL_RE.fullmatch(value) is not None


def is_url(value: Any) -> bool:
    """An absolute URL: a scheme plus a host or path, no whitespace."""
    if not isinstance(value, str) or not value or any(c.isspace() for c in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme or not _SCHEME_RE.fullmatch(parts.scheme):
        return False
    return bool(parts.netloc or parts.path)


# (predicate, article + noun used in the error message)
TYPE_CHECKS: dict[str, tuple[Callable[[Any], bool], str]] = {
    "string": (lambda v: isinstance(v, str), "a string"),
    "number": (is_number, "a number"),
    "boolean": (lambda v: isinstance(v, bool), "a boolean"),
    "email": (is_email, "a valid email"),
    "url": (is_url, "a valid URL"),
    "array": (is_array, "an array"),
    "object": (is_object, "an object"),
}


def check_type(field: str, value: Any, type_tag: str) -> str | None:
    """Return an error message if *value* is not of *type_tag*."""
    entry = TYPE_CHECKS.get(type_tag)
    if entry is None:
        return f"Unknown type: {type_tag}"
    predicate, noun = entry
    if predicate(value):
        return None
    return f"{field} must be {noun}"


def strict_member(value: Any, choices: Collection[Any]) -> bool:
    """Membership without Python's ``True == 1`` coercion."""
    for choice in choices:
        if isinstance(choice, bool) != isinstance(value, bool):
            continue
        if choice == value:
            return True
    return False
