"""Shared type aliases used across warble modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Container factory: zero-argument callable producing a service instance
Factory: TypeAlias = Callable[[], Any]

# Lifespan hook: sync or async, no arguments
Hook: TypeAlias = Callable[[], Any]
