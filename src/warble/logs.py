"""Structured logging for controllers and the application.

A ``LogSink`` fans ``LogEntry`` records out to destinations. Anything
with a ``write(entry)`` method (sync or async) is a destination::

    log = LogSink().to_stdlib("myapp").to_file("logs/app.log")
    await log.info("user created", {"id": user.id})
    await log.error("payment failed", exc, {"order": order.id})

``StdlibDestination`` forwards into the standard ``logging`` module, so
handlers and formatting stay under the host application's control.
"""

from __future__ import annotations

import enum
import json
import logging
import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from warble._internal.invoke import invoke
from warble.errors import LogWriteError

logger = logging.getLogger("warble.server")


class LogLevel(enum.StrEnum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def stdlib(self) -> int:
        """The matching ``logging`` level number."""
        return _STDLIB_LEVELS[self]


_RANKS = {LogLevel.DEBUG: 0, LogLevel.INFO: 1, LogLevel.WARN: 2, LogLevel.ERROR: 3}
_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One log record as handed to every destination."""

    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    context: dict[str, Any] | None = None
    error: BaseException | None = None

    def format_line(self) -> str:
        """Single-line rendering used by ``FileDestination``."""
        line = f"[{self.timestamp.isoformat()}] {self.level.upper():<5} {self.message}"
        if self.context:
            line += f" | Context: {json.dumps(self.context, default=str)}"
        if self.error is not None:
            line += f" | Error: {self.error}"
            stack = "".join(traceback.format_exception(self.error)).strip()
            line += f" | Stack: {stack!r}"
        return line


class LogDestination(Protocol):
    def write(self, entry: LogEntry) -> Any: ...


class StdlibDestination:
    """Forward entries to a ``logging.Logger``.

    Context is attached as ``extra={"context": ...}``; errors travel as
    ``exc_info`` so the logger's handlers render the traceback.
    """

    __slots__ = ("logger",)

    def __init__(self, name_or_logger: str | logging.Logger = "warble") -> None:
        if isinstance(name_or_logger, logging.Logger):
            self.logger = name_or_logger
        else:
            self.logger = logging.getLogger(name_or_logger)

    def write(self, entry: LogEntry) -> None:
        exc_info = None
        if entry.error is not None:
            exc_info = (type(entry.error), entry.error, entry.error.__traceback__)
        self.logger.log(
            entry.level.stdlib,
            entry.message,
            exc_info=exc_info,
            extra={"context": entry.context or {}},
        )


class FileDestination:
    """Append one formatted line per entry to a file.

    Parent directories are created on construction.
    """

    __slots__ = ("path",)

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(entry.format_line() + "\n")


class LogSink:
    """Level-filtered fan-out of log entries to destinations.

    Destinations are written sequentially in the order added. A failing
    destination is reported to the ``warble.server`` logger and skipped;
    if every destination fails, ``LogWriteError`` is raised.
    """

    __slots__ = ("destinations", "min_level")

    def __init__(self, min_level: LogLevel | str = LogLevel.DEBUG) -> None:
        self.destinations: list[LogDestination] = []
        self.min_level = LogLevel(min_level)

    @classmethod
    def to_stdlib(cls, name: str = "warble", min_level: LogLevel | str = LogLevel.DEBUG) -> LogSink:
        """A sink with a single ``StdlibDestination`` for logger *name*."""
        return cls(min_level).add_destination(StdlibDestination(name))

    def add_destination(self, destination: LogDestination) -> LogSink:
        self.destinations.append(destination)
        return self

    def set_min_level(self, level: LogLevel | str) -> LogSink:
        self.min_level = LogLevel(level)
        return self

    def to_file(self, path: str | Path) -> LogSink:
        return self.add_destination(FileDestination(path))

    def enabled(self, level: LogLevel) -> bool:
        return level.rank >= self.min_level.rank

    async def log(
        self,
        level: LogLevel | str,
        message: str,
        context: dict[str, Any] | None = None,
        error: BaseException | None = None,
    ) -> None:
        level = LogLevel(level)
        if not self.enabled(level):
            return

        entry = LogEntry(level=level, message=message, context=context, error=error)
        failures: list[BaseException] = []
        for destination in self.destinations:
            try:
                await invoke(destination.write, entry)
            except Exception as exc:
                logger.exception("log destination %s failed", type(destination).__name__)
                failures.append(exc)

        if failures and len(failures) == len(self.destinations):
            raise LogWriteError(failures)

    async def debug(self, message: str, context: dict[str, Any] | None = None) -> None:
        await self.log(LogLevel.DEBUG, message, context)

    async def info(self, message: str, context: dict[str, Any] | None = None) -> None:
        await self.log(LogLevel.INFO, message, context)

    async def warn(self, message: str, context: dict[str, Any] | None = None) -> None:
        await self.log(LogLevel.WARN, message, context)

    async def error(
        self,
        message: str,
        error: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        await self.log(LogLevel.ERROR, message, context, error)

    def __repr__(self) -> str:
        return f"<LogSink destinations={len(self.destinations)} min_level={self.min_level}>"
