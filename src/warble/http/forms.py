"""Request body parsing — JSON, URL-encoded, and multipart.

``parse_body()`` runs once per matched request and produces the value
handlers see as ``ctx.body``. The content type decides the parser:

- ``application/json`` → the decoded JSON value
- ``application/x-www-form-urlencoded`` → flat ``dict[str, str]``
- ``multipart/form-data`` → flat ``dict[str, str | UploadFile]``
- anything else, or no content type → ``None``

Form encodings are flattened: when a key repeats, the later value wins.

A body that fails to parse is logged and treated as absent. Clients get
a normal response (usually a 422 from the route's schema), never a
parser traceback.

Multipart parsing uses ``python-multipart``. URL-encoded forms use
stdlib ``urllib.parse``.
"""

from __future__ import annotations

import json as json_module
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl

from python_multipart.multipart import MultipartParser, parse_options_header

from warble.http.request import Request

logger = logging.getLogger("warble.routing")


@dataclass(frozen=True, slots=True)
class UploadFile:
    """An uploaded file from a multipart form submission.

    The file content is held in memory as bytes (suitable for typical
    API uploads). For large payloads, read ``request.stream()`` directly
    and disable the body parser in ``AppConfig``.
    """

    filename: str
    content_type: str
    size: int
    _content: bytes

    async def read(self) -> bytes:
        """Return the file content as bytes."""
        return self._content

    async def save(self, path: Path) -> None:
        """Write the file content to disk. Parent directories must exist."""
        path.write_bytes(self._content)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly metadata (content is omitted)."""
        return {"filename": self.filename, "content_type": self.content_type, "size": self.size}

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


async def parse_body(request: Request) -> Any:
    """Parse the request body according to its content type.

    Returns ``None`` when there is no parseable body. Never raises for
    malformed input; the failure goes to the ``warble.routing`` logger.
    """
    content_type = request.content_type
    if not content_type:
        return None

    media_type = content_type.lower().split(";")[0].strip()

    try:
        if "application/json" in media_type:
            return json_module.loads(await request.body())
        if media_type == "application/x-www-form-urlencoded":
            return parse_urlencoded(await request.body())
        if media_type == "multipart/form-data":
            return parse_multipart(await request.body(), content_type)
    except (ValueError, UnicodeDecodeError):
        # json.JSONDecodeError and multipart parse errors are ValueErrors
        logger.warning(
            "Could not parse %s body for %s %s",
            media_type,
            request.method,
            request.path,
            exc_info=True,
        )
    return None


def parse_urlencoded(body: bytes) -> dict[str, str]:
    """Parse URL-encoded form data into a flat dict (last value wins)."""
    return dict(parse_qsl(body.decode("utf-8"), keep_blank_values=True, strict_parsing=False))


def parse_multipart(body: bytes, content_type: str) -> dict[str, str | UploadFile]:
    """Parse multipart form data into a flat dict (last value wins).

    Text parts decode as UTF-8; parts with a ``filename`` become
    ``UploadFile`` instances.
    """
    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    fields: dict[str, str | UploadFile] = {}

    # Per-part state, reset in on_part_begin
    part_headers: dict[str, str] = {}
    header_field = bytearray()
    header_value = bytearray()
    part_data = bytearray()

    def on_part_begin() -> None:
        part_headers.clear()
        part_data.clear()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        part_data.extend(chunk[start:end])

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        header_field.extend(chunk[start:end])

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        header_value.extend(chunk[start:end])

    def on_header_end() -> None:
        name = header_field.decode("latin-1").lower()
        part_headers[name] = header_value.decode("latin-1")
        header_field.clear()
        header_value.clear()

    def on_part_end() -> None:
        disposition = part_headers.get("content-disposition")
        if disposition is None:
            return
        _, params = parse_options_header(disposition.encode("latin-1"))
        raw_name = params.get(b"name")
        if raw_name is None:
            return
        name = raw_name.decode("utf-8")

        raw_filename = params.get(b"filename")
        if raw_filename is not None:
            content = bytes(part_data)
            fields[name] = UploadFile(
                filename=raw_filename.decode("utf-8"),
                content_type=part_headers.get("content-type", "application/octet-stream"),
                size=len(content),
                _content=content,
            )
        else:
            fields[name] = part_data.decode("utf-8", errors="replace")

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
    }

    parser = MultipartParser(boundary, callbacks)
    parser.write(body)
    parser.finalize()
    return fields
