"""Tests for Request construction and the request context."""

import pytest

from warble.config import AppConfig
from warble.container import Container
from warble.context import RequestContext
from warble.http.headers import Headers
from warble.http.request import Request


class TestRequest:
    def test_from_asgi(self) -> None:
        scope = {
            "type": "http",
            "method": "post",
            "path": "/items",
            "query_string": b"a=1&a=2",
            "headers": [(b"content-type", b"application/json"), (b"x-multi", b"1"), (b"x-multi", b"2")],
            "client": ["10.0.0.1", 5000],
        }

        async def receive():
            return {"type": "http.request", "body": b"", "more_body": False}

        request = Request.from_asgi(scope, receive)

        assert request.method == "POST"
        assert request.content_type == "application/json"
        assert request.headers.get_list("X-Multi") == ["1", "2"]
        assert request.query.get_list("a") == ["1", "2"]
        assert request.query.flat() == {"a": "2"}
        assert request.client == ("10.0.0.1", 5000)
        assert request.url == "/items?a=1&a=2"

    @pytest.mark.anyio
    async def test_body_is_cached(self) -> None:
        chunks = iter(
            [
                {"type": "http.request", "body": b'{"a"', "more_body": True},
                {"type": "http.request", "body": b": 1}", "more_body": False},
            ]
        )

        async def receive():
            return next(chunks)

        request = Request.from_asgi({"type": "http", "method": "POST", "path": "/"}, receive)

        assert await request.json() == {"a": 1}
        assert await request.body() == b'{"a": 1}'

    def test_build_splits_query(self) -> None:
        request = Request.build("get", "/search?q=warble")
        assert request.method == "GET"
        assert request.path == "/search"
        assert request.query["q"] == "warble"


class TestHeaders:
    def test_lookup_is_case_insensitive(self) -> None:
        headers = Headers([(b"Content-Type", b"text/plain"), (b"x-tag", b"a"), (b"X-Tag", b"b")])
        assert headers.get("content-type") == "text/plain"
        assert headers.get("X-TAG") == "a"
        assert headers.get_list("x-tag") == ["a", "b"]
        assert "CONTENT-TYPE" in headers

    def test_missing(self) -> None:
        headers = Headers.from_dict({"Origin": "https://a.test"})
        assert headers.get("authorization") is None
        assert headers.get("authorization", "") == ""
        assert headers.get_list("authorization") == []
        assert "authorization" not in headers


class TestRequestContext:
    def test_resolve_without_container(self) -> None:
        ctx = RequestContext(Request.build("GET", "/"))
        with pytest.raises(LookupError, match="No container"):
            ctx.resolve("anything")

    def test_resolve_with_container(self) -> None:
        container = Container()
        container.singleton("db", lambda: "conn")
        ctx = RequestContext(Request.build("GET", "/"), services=container)
        assert ctx.resolve("db") == "conn"
        assert ctx.params == {}
        assert ctx.body is None


class TestAppConfig:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert (config.host, config.port) == ("localhost", 3000)
        assert config.body_parser is True
        assert config.cors is False
        assert config.log_level == "debug"

    def test_frozen(self) -> None:
        config = AppConfig()
        with pytest.raises(AttributeError):
            config.port = 1  # type: ignore[misc]
