"""Dependency container — name → factory registry with two lifetimes.

Singletons are created lazily on first resolution and cached until the
binding is replaced or removed. Transients are created fresh on every
resolution.

Usage::

    container = Container()
    container.singleton("db", lambda: Database(url))
    container.bind("clock", Clock)

    db = container.resolve("db")      # created once
    clock = container.resolve("clock")  # new instance every call

Factories take no arguments. A factory that needs another service
resolves it itself, closing over the container. There is no cycle
detection: a factory that resolves its own (not yet cached) name
recurses until ``RecursionError``.
"""

import enum
from dataclasses import dataclass
from typing import Any

from warble._internal.types import Factory
from warble.errors import ServiceNotFound


class Lifetime(enum.StrEnum):
    """How long a resolved instance lives."""

    SINGLETON = "singleton"
    TRANSIENT = "transient"


@dataclass(slots=True)
class Binding:
    """A registered factory. Mutable only to cache the singleton instance."""

    factory: Factory
    lifetime: Lifetime
    instance: Any = None
    resolved: bool = False


class Container:
    """Process-scoped service registry.

    Owned by ``App`` (created at startup, cleared at shutdown). Not
    request-scoped: the singleton cache is shared by every in-flight
    request and filled by whichever request resolves a name first.
    """

    __slots__ = ("_bindings",)

    def __init__(self) -> None:
        self._bindings: dict[str, Binding] = {}

    def singleton(self, name: str, factory: Factory) -> None:
        """Register *factory* under *name*, run at most once per binding."""
        self._bindings[name] = Binding(factory, Lifetime.SINGLETON)

    def bind(self, name: str, factory: Factory) -> None:
        """Register *factory* under *name*, run on every ``resolve()``."""
        self._bindings[name] = Binding(factory, Lifetime.TRANSIENT)

    def resolve(self, name: str) -> Any:
        """Return the instance bound to *name*.

        Raises ``ServiceNotFound`` if nothing is registered under *name*.
        """
        binding = self._bindings.get(name)
        if binding is None:
            raise ServiceNotFound(name)

        if binding.lifetime is Lifetime.TRANSIENT:
            return binding.factory()

        if not binding.resolved:
            # Cache before returning; a None result is cached too
            binding.instance = binding.factory()
            binding.resolved = True
        return binding.instance

    def has(self, name: str) -> bool:
        """True if a binding exists for *name*."""
        return name in self._bindings

    def remove(self, name: str) -> None:
        """Drop the binding for *name* (and any cached instance)."""
        self._bindings.pop(name, None)

    def lifetime(self, name: str) -> Lifetime:
        """Return the lifetime of the binding registered under *name*."""
        binding = self._bindings.get(name)
        if binding is None:
            raise ServiceNotFound(name)
        return binding.lifetime

    def names(self) -> list[str]:
        """Registered names in registration order."""
        return list(self._bindings)

    def clear(self) -> None:
        """Remove every binding."""
        self._bindings.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"Container({self.names()!r})"
