"""Tests for the structured LogSink and its destinations."""

import logging

import pytest

from warble.errors import LogWriteError
from warble.logs import FileDestination, LogEntry, LogLevel, LogSink, StdlibDestination


class Capture:
    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def write(self, entry: LogEntry) -> None:
        self.entries.append(entry)


class AsyncCapture(Capture):
    async def write(self, entry: LogEntry) -> None:
        self.entries.append(entry)


class Broken:
    def write(self, entry: LogEntry) -> None:
        raise OSError("unwritable")


class TestLogSink:
    @pytest.mark.anyio
    async def test_fans_out_to_every_destination(self) -> None:
        first, second = Capture(), AsyncCapture()
        sink = LogSink().add_destination(first).add_destination(second)

        await sink.info("hello", {"user": 1})

        for capture in (first, second):
            [entry] = capture.entries
            assert entry.level is LogLevel.INFO
            assert entry.message == "hello"
            assert entry.context == {"user": 1}

    @pytest.mark.anyio
    async def test_min_level_filters(self) -> None:
        capture = Capture()
        sink = LogSink("warn").add_destination(capture)

        await sink.debug("d")
        await sink.info("i")
        await sink.warn("w")
        await sink.error("e")

        assert [e.message for e in capture.entries] == ["w", "e"]

    @pytest.mark.anyio
    async def test_error_carries_exception(self) -> None:
        capture = Capture()
        sink = LogSink().add_destination(capture)
        exc = ValueError("bad")

        await sink.error("failed", exc, {"id": 7})

        [entry] = capture.entries
        assert entry.error is exc
        assert entry.context == {"id": 7}

    @pytest.mark.anyio
    async def test_one_failing_destination_is_tolerated(self) -> None:
        capture = Capture()
        sink = LogSink().add_destination(Broken()).add_destination(capture)
        await sink.info("still delivered")
        assert [e.message for e in capture.entries] == ["still delivered"]

    @pytest.mark.anyio
    async def test_all_failing_destinations_raise(self) -> None:
        sink = LogSink().add_destination(Broken()).add_destination(Broken())
        with pytest.raises(LogWriteError) as info:
            await sink.info("lost")
        assert len(info.value.failures) == 2

    @pytest.mark.anyio
    async def test_no_destinations_is_a_noop(self) -> None:
        await LogSink().error("nowhere")

    def test_set_min_level(self) -> None:
        sink = LogSink().set_min_level(LogLevel.ERROR)
        assert not sink.enabled(LogLevel.WARN)
        assert sink.enabled(LogLevel.ERROR)


class TestDestinations:
    @pytest.mark.anyio
    async def test_stdlib_destination(self, caplog) -> None:
        sink = LogSink().add_destination(StdlibDestination("warble.test"))

        with caplog.at_level(logging.DEBUG, logger="warble.test"):
            await sink.warn("careful", {"k": "v"})

        [record] = caplog.records
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "careful"
        assert record.context == {"k": "v"}

    @pytest.mark.anyio
    async def test_stdlib_destination_passes_exc_info(self, caplog) -> None:
        sink = LogSink.to_stdlib("warble.test")
        try:
            raise KeyError("missing")
        except KeyError as exc:
            error = exc

        with caplog.at_level(logging.ERROR, logger="warble.test"):
            await sink.error("lookup failed", error)

        [record] = caplog.records
        assert record.exc_info is not None
        assert record.exc_info[1] is error

    @pytest.mark.anyio
    async def test_file_destination(self, tmp_path) -> None:
        path = tmp_path / "nested" / "app.log"
        sink = LogSink().to_file(path)

        await sink.info("first", {"n": 1})
        await sink.error("second", RuntimeError("boom"))

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert "INFO  first | Context: {\"n\": 1}" in lines[0]
        assert "ERROR second | Error: boom" in lines[1]
        assert isinstance(FileDestination(path).path, type(path))
