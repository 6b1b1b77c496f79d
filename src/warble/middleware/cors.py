"""CORS middleware.

Answers preflight ``OPTIONS`` requests in ``before`` (204 with the full
set of CORS headers) and decorates every other response in ``after``.
"""

from dataclasses import dataclass

from warble.http.response import Response
from warble.middleware.protocol import MiddlewareContext


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS middleware configuration.

    The defaults are permissive (any origin, the common methods, JSON and
    bearer-token headers). Narrow what you need::

        CORSConfig(
            allow_origins=("https://example.com",),
            allow_credentials=True,
        )
    """

    allow_origins: tuple[str, ...] = ("*",)
    allow_methods: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")
    allow_headers: tuple[str, ...] = ("Content-Type", "Authorization")
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 86400  # 24 hours


class CORSMiddleware:
    """Cross-origin resource sharing.

    Usage::

        app.use(CORSMiddleware(CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST"),
        )))

    ``AppConfig(cors=True)`` installs one with default settings ahead of
    all other global middleware.
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    def _allowed_origin(self, origin: str | None) -> str | None:
        """The ``Access-Control-Allow-Origin`` value, or None to omit it."""
        cfg = self.config
        if "*" in cfg.allow_origins:
            # Credentialed requests cannot use the wildcard.
            if cfg.allow_credentials and origin:
                return origin
            return "*"
        if origin and origin in cfg.allow_origins:
            return origin
        return None

    def _add_cors_headers(self, response: Response, origin: str | None) -> Response:
        cfg = self.config

        allowed = self._allowed_origin(origin)
        if allowed is not None:
            response = response.with_header_set("Access-Control-Allow-Origin", allowed)
            if allowed != "*":
                response = response.with_header_set("Vary", "Origin")

        if cfg.expose_headers:
            response = response.with_header_set(
                "Access-Control-Expose-Headers",
                ", ".join(cfg.expose_headers),
            )

        if cfg.allow_credentials:
            response = response.with_header_set("Access-Control-Allow-Credentials", "true")

        return response

    def _preflight_response(self, origin: str | None) -> Response:
        cfg = self.config
        response = self._add_cors_headers(Response(body="", status=204), origin)
        response = response.with_header("Access-Control-Allow-Methods", ", ".join(cfg.allow_methods))
        if cfg.allow_headers:
            response = response.with_header(
                "Access-Control-Allow-Headers",
                ", ".join(cfg.allow_headers),
            )
        return response.with_header("Access-Control-Max-Age", str(cfg.max_age))

    def before(self, ctx: MiddlewareContext) -> Response | None:
        request = ctx.request
        if request.method != "OPTIONS":
            return None
        return self._preflight_response(request.headers.get("origin"))

    def after(self, ctx: MiddlewareContext) -> Response | None:
        if ctx.response is None:
            return None
        return self._add_cors_headers(ctx.response, ctx.request.headers.get("origin"))
