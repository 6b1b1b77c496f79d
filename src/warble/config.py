"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=8080, cors=True)

    ``host`` and ``port`` are advisory: warble is an ASGI application and
    the server that hosts it decides where to listen. They are exposed
    through the container (``app.resolve("config")``) for code that needs
    to build absolute URLs.
    """

    # Server
    host: str = "localhost"
    port: int = 3000
    debug: bool = False

    # Request bodies are parsed by content type before route middleware runs.
    # Disable to leave ``ctx.body`` as None and read ``ctx.request`` directly.
    body_parser: bool = True

    # Add a permissive CORSMiddleware as the first global middleware
    cors: bool = False

    # Minimum level for the application LogSink ("debug", "info", "warn", "error")
    log_level: str = "debug"
