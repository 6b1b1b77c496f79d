"""Case-insensitive request header lookup.

Raw ASGI byte pairs are decoded once, at construction, into a
lowercase name -> values index. Repeated headers keep every value in
arrival order; ``get`` answers with the first.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping


class Headers:
    __slots__ = ("_index",)

    def __init__(self, raw: Iterable[tuple[bytes, bytes]] = ()) -> None:
        index: dict[str, list[str]] = {}
        for name, value in raw:
            index.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
        self._index: dict[str, tuple[str, ...]] = {k: tuple(v) for k, v in index.items()}

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> Headers:
        """Build headers from a plain ``str -> str`` mapping (tests, tooling)."""
        return cls((name.encode("latin-1"), value.encode("latin-1")) for name, value in headers.items())

    def get(self, name: str, default: str | None = None) -> str | None:
        values = self._index.get(name.lower())
        return values[0] if values else default

    def get_list(self, name: str) -> list[str]:
        return list(self._index.get(name.lower(), ()))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._index

    def __repr__(self) -> str:
        return f"Headers({self._index!r})"
