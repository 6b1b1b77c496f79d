"""Tests for Response, the JSON envelopes, and the ASGI sender."""

from dataclasses import dataclass

import pytest

from warble.http.response import (
    JSON_TYPE,
    Response,
    not_found,
    server_error,
    success,
    to_response,
    validation_error,
)
from warble.http.sender import send_response
from warble.validation import ValidationError


class TestResponse:
    def test_with_methods_return_new_instances(self) -> None:
        original = Response("hi")
        changed = original.with_status(201).with_header("X-A", "1")
        assert original.status == 200
        assert original.headers == ()
        assert changed.status == 201
        assert changed.header("x-a") == "1"

    def test_with_header_set_replaces(self) -> None:
        response = Response("").with_header("X-A", "1").with_header("x-a", "2")
        replaced = response.with_header_set("X-A", "3")
        assert replaced.headers == (("X-A", "3"),)

    def test_body_accessors(self) -> None:
        response = Response('{"a": 1}')
        assert response.body_bytes == b'{"a": 1}'
        assert response.json() == {"a": 1}
        assert Response(b"bytes").text == "bytes"


class TestEnvelopes:
    def test_validation_error_shape(self) -> None:
        response = validation_error([ValidationError("age", "age is required")])
        assert response.status == 422
        assert response.content_type == JSON_TYPE
        assert response.json() == {
            "success": False,
            "message": "Validation failed",
            "errors": [{"field": "age", "message": "age is required"}],
        }

    def test_not_found_and_server_error(self) -> None:
        assert not_found("/x").json() == {"error": "Not Found", "path": "/x"}
        response = server_error("boom")
        assert response.status == 500
        assert response.json() == {"error": "Internal Server Error", "message": "boom"}

    def test_success_status(self) -> None:
        assert success({"id": 1}, status=201).status == 201


class TestToResponse:
    def test_response_passes_through(self) -> None:
        response = Response("x", status=202)
        assert to_response(response) is response

    def test_string_becomes_text(self) -> None:
        response = to_response("hello")
        assert response.text == "hello"
        assert response.content_type.startswith("text/plain")

    def test_dataclasses_and_sets_serialize(self) -> None:
        @dataclass
        class Point:
            x: int
            y: int

        assert to_response({"p": Point(1, 2)}).json() == {"p": {"x": 1, "y": 2}}
        assert to_response({"s": {1}}).json() == {"s": [1]}

    def test_unserializable_raises(self) -> None:
        with pytest.raises(TypeError):
            to_response({"o": object()})


class TestSender:
    @pytest.mark.anyio
    async def test_sends_start_and_body(self) -> None:
        sent: list[dict] = []

        async def send(message):
            sent.append(message)

        await send_response(Response("hi", status=201).with_header("X-A", "1"), send)

        start, body = sent
        assert start["status"] == 201
        assert (b"x-a", b"1") in start["headers"]
        assert (b"content-length", b"2") in start["headers"]
        assert body == {"type": "http.response.body", "body": b"hi"}

    @pytest.mark.anyio
    async def test_no_body_for_204(self) -> None:
        sent: list[dict] = []

        async def send(message):
            sent.append(message)

        await send_response(Response("ignored", status=204), send)
        assert sent[1]["body"] == b""
        assert (b"content-length", b"0") in sent[0]["headers"]
