"""Tests for the middleware chain executor."""

import pytest

from warble.errors import ConfigurationError, MiddlewareNotFound
from warble.http.request import Request
from warble.http.response import Response
from warble.middleware import MiddlewareChain, MiddlewareContext, hooks


class Recorder:
    """Middleware that logs its hook calls into a shared list."""

    def __init__(self, name: str, log: list[str]) -> None:
        self.name = name
        self.log = log

    def before(self, ctx: MiddlewareContext) -> None:
        self.log.append(f"{self.name}.before")

    def after(self, ctx: MiddlewareContext) -> Response:
        self.log.append(f"{self.name}.after")
        return ctx.response.with_header("X-Seen", self.name)


def _request() -> Request:
    return Request.build("GET", "/")


class TestGlobalTier:
    @pytest.mark.anyio
    async def test_before_and_after_run_in_forward_order(self) -> None:
        log: list[str] = []
        chain = MiddlewareChain()
        chain.add_global(Recorder("a", log))
        chain.add_global(Recorder("b", log))

        request = _request()
        assert await chain.run_global_before(request) is None
        response = await chain.run_global_after(request, Response("ok"))

        assert log == ["a.before", "b.before", "a.after", "b.after"]
        assert [v for k, v in response.headers if k == "X-Seen"] == ["a", "b"]

    @pytest.mark.anyio
    async def test_first_response_short_circuits(self) -> None:
        log: list[str] = []
        blocked = Response("blocked", status=403)
        chain = MiddlewareChain()
        chain.add_global(Recorder("a", log))
        chain.add_global(hooks(before=lambda ctx: blocked))
        chain.add_global(Recorder("c", log))

        result = await chain.run_global_before(_request())

        assert result is blocked
        assert log == ["a.before"]

    @pytest.mark.anyio
    async def test_async_hooks_are_awaited(self) -> None:
        async def before(ctx: MiddlewareContext) -> Response:
            return Response("async", status=418)

        chain = MiddlewareChain()
        chain.add_global(hooks(before=before))

        result = await chain.run_global_before(_request())
        assert result is not None
        assert result.status == 418

    @pytest.mark.anyio
    async def test_missing_hooks_are_skipped(self) -> None:
        log: list[str] = []

        class OnlyAfter:
            def after(self, ctx: MiddlewareContext) -> Response:
                log.append("after")
                return ctx.response

        chain = MiddlewareChain()
        chain.add_global(OnlyAfter())
        request = _request()
        assert await chain.run_global_before(request) is None
        await chain.run_global_after(request, Response("ok"))
        assert log == ["after"]

    @pytest.mark.anyio
    async def test_after_returning_none_keeps_response(self) -> None:
        chain = MiddlewareChain()
        chain.add_global(hooks(after=lambda ctx: None))
        original = Response("ok")
        assert await chain.run_global_after(_request(), original) is original

    @pytest.mark.anyio
    async def test_prepend_global(self) -> None:
        log: list[str] = []
        chain = MiddlewareChain()
        chain.add_global(Recorder("b", log))
        chain.prepend_global(Recorder("a", log))
        await chain.run_global_before(_request())
        assert log == ["a.before", "b.before"]


class TestNamedTier:
    @pytest.mark.anyio
    async def test_runs_in_given_order(self) -> None:
        log: list[str] = []
        chain = MiddlewareChain()
        chain.register("x", Recorder("x", log))
        chain.register("y", Recorder("y", log))

        request = _request()
        await chain.run_route_before(request, ["y", "x"])
        await chain.run_route_after(request, Response("ok"), ["y", "x"])

        assert log == ["y.before", "x.before", "y.after", "x.after"]

    @pytest.mark.anyio
    async def test_unknown_name_raises_before_any_hook(self) -> None:
        log: list[str] = []
        chain = MiddlewareChain()
        chain.register("x", Recorder("x", log))

        with pytest.raises(MiddlewareNotFound, match='Middleware "nope" not found'):
            await chain.run_route_before(_request(), ["x", "nope"])
        assert log == []

    def test_middleware_not_found_is_configuration_error(self) -> None:
        assert issubclass(MiddlewareNotFound, ConfigurationError)

    def test_registry_accessors(self) -> None:
        chain = MiddlewareChain()
        mw = hooks(before=lambda ctx: None)
        chain.register("m", mw)
        assert "m" in chain
        assert chain.get("m") is mw
        assert chain.get("other") is None
        assert chain.names == ("m",)

    def test_re_register_replaces(self) -> None:
        chain = MiddlewareChain()
        first = hooks(before=lambda ctx: None)
        second = hooks(before=lambda ctx: None)
        chain.register("m", first)
        chain.register("m", second)
        assert chain.get("m") is second


class TestHooksFactory:
    def test_requires_a_hook(self) -> None:
        with pytest.raises(TypeError):
            hooks()
