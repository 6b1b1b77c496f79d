"""Tests for the auth, CORS, and rate-limit middleware."""

import pytest

from warble import App, g
from warble.http.request import Request
from warble.middleware import (
    AuthMiddleware,
    CORSConfig,
    CORSMiddleware,
    MiddlewareContext,
    RateLimitConfig,
    RateLimitMiddleware,
    bearer_token,
    client_key,
)
from warble.testing import TestClient

TOKENS = {"secret": {"id": 1, "name": "Ada"}}


async def authenticate(request: Request):
    token = bearer_token(request)
    return TOKENS.get(token) if token else None


def whoami(ctx):
    return {"user": g.user}


class TestAuth:
    @pytest.mark.anyio
    async def test_required_rejects_anonymous(self) -> None:
        app = App()
        app.middleware("auth", AuthMiddleware(authenticate))
        app.get("/me", whoami, middleware=["auth"])

        async with TestClient(app) as client:
            response = await client.get("/me")

        assert response.status == 401
        assert response.json() == {"success": False, "message": "Unauthorized"}

    @pytest.mark.anyio
    async def test_principal_stored_on_g(self) -> None:
        app = App()
        app.middleware("auth", AuthMiddleware(authenticate))
        app.get("/me", whoami, middleware=["auth"])

        async with TestClient(app) as client:
            response = await client.get("/me", headers={"Authorization": "Bearer secret"})

        assert response.status == 200
        assert response.json() == {"user": {"id": 1, "name": "Ada"}}

    @pytest.mark.anyio
    async def test_optional_lets_anonymous_through(self) -> None:
        app = App()
        app.middleware("maybe", AuthMiddleware(lambda request: None, optional=True))
        app.get("/me", whoami, middleware=["maybe"])

        async with TestClient(app) as client:
            response = await client.get("/me")

        assert response.status == 200
        assert response.json() == {"user": None}

    @pytest.mark.parametrize(
        ("header", "token"),
        [
            ("Bearer abc", "abc"),
            ("Bearer   abc  ", "abc"),
            ("Basic abc", None),
            ("Bearer ", None),
        ],
    )
    def test_bearer_token(self, header: str, token: str | None) -> None:
        request = Request.build("GET", "/", headers={"Authorization": header})
        assert bearer_token(request) == token

    def test_bearer_token_missing_header(self) -> None:
        assert bearer_token(Request.build("GET", "/")) is None


class TestCORS:
    @pytest.mark.anyio
    async def test_preflight(self) -> None:
        app = App()
        app.use(CORSMiddleware(CORSConfig(allow_origins=("https://a.test",), max_age=60)))

        async with TestClient(app) as client:
            response = await client.options(
                "/users",
                headers={"Origin": "https://a.test", "Access-Control-Request-Method": "POST"},
            )

        assert response.status == 204
        assert response.body == b""
        assert response.header("access-control-allow-origin") == "https://a.test"
        assert response.header("vary") == "Origin"
        assert "POST" in response.header("access-control-allow-methods")
        assert response.header("access-control-allow-headers") == "Content-Type, Authorization"
        assert response.header("access-control-max-age") == "60"

    @pytest.mark.anyio
    async def test_actual_request_gets_headers(self) -> None:
        app = App()
        app.use(CORSMiddleware(CORSConfig(expose_headers=("X-Total",), allow_credentials=True)))
        app.get("/items", lambda ctx: [])

        async with TestClient(app) as client:
            response = await client.get("/items", headers={"Origin": "https://b.test"})

        assert response.status == 200
        # Credentials forbid the wildcard, so the origin is echoed.
        assert response.header("access-control-allow-origin") == "https://b.test"
        assert response.header("access-control-allow-credentials") == "true"
        assert response.header("access-control-expose-headers") == "X-Total"

    @pytest.mark.anyio
    async def test_disallowed_origin_gets_no_allow_origin(self) -> None:
        app = App()
        app.use(CORSMiddleware(CORSConfig(allow_origins=("https://a.test",))))
        app.get("/items", lambda ctx: [])

        async with TestClient(app) as client:
            response = await client.get("/items", headers={"Origin": "https://evil.test"})

        assert response.status == 200
        assert response.header("access-control-allow-origin") is None

    @pytest.mark.anyio
    async def test_default_config_is_wildcard(self) -> None:
        app = App()
        app.use(CORSMiddleware())
        app.get("/items", lambda ctx: [])

        async with TestClient(app) as client:
            response = await client.get("/items")

        assert response.header("access-control-allow-origin") == "*"


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestRateLimit:
    @pytest.mark.anyio
    async def test_blocks_after_max_requests(self) -> None:
        clock = FakeClock()
        app = App()
        app.use(RateLimitMiddleware(RateLimitConfig(max_requests=2, window_seconds=60), clock=clock))
        app.get("/", lambda ctx: "ok")

        headers = {"x-forwarded-for": "1.2.3.4, 10.0.0.1"}
        async with TestClient(app) as client:
            r1 = await client.get("/", headers=headers)
            r2 = await client.get("/", headers=headers)
            r3 = await client.get("/", headers=headers)

        assert r1.status == 200
        assert r1.header("x-ratelimit-limit") == "2"
        assert r1.header("x-ratelimit-remaining") == "1"
        assert r2.header("x-ratelimit-remaining") == "0"

        assert r3.status == 429
        assert r3.json() == {"success": False, "message": "Too many requests", "retryAfter": 60}
        assert r3.header("retry-after") == "60"
        assert r3.header("x-ratelimit-remaining") == "0"
        assert r3.header("x-ratelimit-reset") == "1060"

    @pytest.mark.anyio
    async def test_window_resets(self) -> None:
        clock = FakeClock()
        app = App()
        app.use(RateLimitMiddleware(RateLimitConfig(max_requests=1, window_seconds=10), clock=clock))
        app.get("/", lambda ctx: "ok")

        async with TestClient(app) as client:
            assert (await client.get("/")).status == 200
            assert (await client.get("/")).status == 429
            clock.now += 11
            assert (await client.get("/")).status == 200

    @pytest.mark.anyio
    async def test_limit_is_per_client(self) -> None:
        app = App()
        app.use(RateLimitMiddleware(RateLimitConfig(max_requests=1)))
        app.get("/", lambda ctx: "ok")

        async with TestClient(app) as client:
            a = await client.get("/", headers={"x-real-ip": "5.5.5.5"})
            b = await client.get("/", headers={"x-real-ip": "6.6.6.6"})
            a_again = await client.get("/", headers={"x-real-ip": "5.5.5.5"})

        assert a.status == 200
        assert b.status == 200
        assert a_again.status == 429

    def test_reset(self) -> None:
        limiter = RateLimitMiddleware(RateLimitConfig(max_requests=1))
        ctx = MiddlewareContext(Request.build("GET", "/"))
        assert limiter.before(ctx) is None
        assert limiter.before(ctx) is not None
        limiter.reset()
        assert limiter.before(ctx) is None

    def test_client_key_precedence(self) -> None:
        assert client_key(Request.build("GET", "/", headers={"x-forwarded-for": "1.1.1.1"})) == "1.1.1.1"
        assert client_key(Request.build("GET", "/", headers={"x-real-ip": "2.2.2.2"})) == "2.2.2.2"
        assert client_key(Request.build("GET", "/")) == "unknown"
