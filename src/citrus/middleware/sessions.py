"""Session middleware: signed cookie sessions.

Session data is serialized as JSON and signed using ``itsdangerous``.
The session object is stored in a ContextVar, accessible via
``get_session()`` from any handler, hook or middleware.

The app installs this middleware itself when ``AppConfig.secret_key`` is
set; flash messages are kept in the session.
"""

import logging
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from citrus.config import AppConfig
from citrus.errors import ConfigurationError
from citrus.http.request import Request
from citrus.middleware.protocol import AnyResponse, Next

logger = logging.getLogger("citrus.server")

_session_var: ContextVar[dict[str, Any] | None] = ContextVar("citrus_session", default=None)


def get_session() -> dict[str, Any]:
    """Return the current session dict.

    Raises ``LookupError`` if called outside a request with
    ``SessionMiddleware`` active.
    """
    session = _session_var.get()
    if session is None:
        msg = (
            "No active session. Set AppConfig.secret_key or add "
            "SessionMiddleware to the app before accessing the session."
        )
        raise LookupError(msg)
    return session


def has_session() -> bool:
    """True while a session is active for the current request."""
    return _session_var.get() is not None


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration.

    ``secret_key`` is required; sessions are signed, not encrypted.
    """

    secret_key: str
    cookie_name: str = "citrus"
    salt: str = "citrus.session"
    max_age: int = 86400
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    @classmethod
    def from_app_config(cls, config: AppConfig) -> "SessionConfig":
        return cls(secret_key=config.secret_key, cookie_name=config.session_cookie)


class SessionMiddleware:
    """Signed cookie session middleware.

    Reads the session cookie, verifies the signature, makes the session
    dict available via ``get_session()``, then writes it back as a
    Set-Cookie header on the response.

    Usage::

        app.add_middleware(SessionMiddleware(SessionConfig(secret_key="s3cr3t")))

        @app.dispatch_get("/visits")
        def visits():
            session = get_session()
            session["visits"] = session.get("visits", 0) + 1
            return f"Visits: {session['visits']}"
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt=config.salt)

    @property
    def config(self) -> SessionConfig:
        return self._config

    def _load_session(self, request: Request) -> dict[str, Any]:
        cookie_value = request.cookies.get(self._config.cookie_name)
        if not cookie_value:
            return {}
        try:
            data = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadSignature:
            logger.debug("Discarding session cookie with a bad or expired signature")
            return {}
        return data if isinstance(data, dict) else {}

    def _save_session(self, response: AnyResponse, session: dict[str, Any]) -> AnyResponse:
        cfg = self._config
        return response.with_cookie(
            name=cfg.cookie_name,
            value=self._serializer.dumps(session),
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Load the session, dispatch, then save the session on the response."""
        had_cookie = self._config.cookie_name in request.cookies
        session = self._load_session(request)
        token = _session_var.set(session)
        try:
            response = await next(request)
        finally:
            _session_var.reset(token)

        # A visitor without a session and with nothing stored gets no cookie
        if not session and not had_cookie:
            return response
        return self._save_session(response, session)
