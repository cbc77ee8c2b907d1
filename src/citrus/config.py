"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

ENV_PRODUCTION = "production"
ENV_DEVELOPMENT = "development"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(env="development", secret_key="s3cr3t")
    """

    # Runtime mode. Notices are rendered into responses only when
    # debug is on and env is "development".
    env: Literal["production", "development"] = ENV_PRODUCTION
    debug: bool = True

    # Output
    encoding: str = "utf-8"
    signature: str | None = "citrus"  # X-Citrus header value; None hides it

    # Sessions and flash messages
    secret_key: str = ""
    session_cookie: str = "citrus"

    # Templates
    template_dir: str | Path = "views"
    layout: str | None = None  # default layout for render() and html() when none is given
    error_layout: str | None = None  # template wrapping the built-in error pages
    autoescape: bool = True

    # Static files
    static_dir: str | Path | None = "public"
    static_url: str = "/public"
    chunk_size: int = 1024 * 1024  # bytes per chunk when streaming files

    # URLs built by url_for() are prefixed with base_uri
    base_uri: str = "/"

    # Module imported the first time a route names an undefined handler
    controllers: str | None = None

    # Method override for clients that can only send GET and POST
    method_override_field: str = "_method"
    method_override_header: str = "X-HTTP-Method-Override"

    # Built-in asset routes (/_citrus_css/*.css, /_citrus_public/**)
    builtin_routes: bool = True

    @property
    def is_development(self) -> bool:
        return self.debug and self.env == ENV_DEVELOPMENT
