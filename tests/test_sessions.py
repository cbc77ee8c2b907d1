"""Tests for signed cookie sessions and flash messages."""

import pytest

from citrus.app import App
from citrus.config import AppConfig
from citrus.errors import ConfigurationError
from citrus.flashes import SESSION_KEY, flash, flash_now
from citrus.middleware.sessions import (
    SessionConfig,
    SessionMiddleware,
    get_session,
    has_session,
)
from citrus.testing import TestClient


def _session_app(**overrides: object) -> App:
    return App(AppConfig(secret_key="test-secret", **overrides))


class TestSessionConfig:
    def test_defaults(self) -> None:
        config = SessionConfig(secret_key="secret")
        assert config.cookie_name == "citrus"
        assert config.max_age == 86400
        assert config.httponly is True
        assert config.samesite == "lax"

    def test_from_app_config(self) -> None:
        config = SessionConfig.from_app_config(AppConfig(secret_key="k", session_cookie="sid"))
        assert (config.secret_key, config.cookie_name) == ("k", "sid")

    def test_empty_secret_key_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="secret_key must not be empty"):
            SessionMiddleware(SessionConfig(secret_key=""))


class TestGetSession:
    def test_outside_request_raises(self) -> None:
        assert not has_session()
        with pytest.raises(LookupError, match="No active session"):
            get_session()


class TestSessionMiddleware:
    async def test_installed_from_secret_key(self) -> None:
        app = _session_app()

        @app.dispatch("/visits")
        def visits():
            session = get_session()
            session["visits"] = session.get("visits", 0) + 1
            return f"Visits: {session['visits']}"

        async with TestClient(app) as client:
            assert (await client.get("/visits")).text == "Visits: 1"
            assert (await client.get("/visits")).text == "Visits: 2"
            assert "citrus" in client.cookies

    async def test_empty_session_sets_no_cookie(self) -> None:
        app = _session_app()
        app.dispatch("/", lambda: "plain")

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.header("set-cookie") is None

    async def test_tampered_cookie_is_discarded(self) -> None:
        app = _session_app()

        @app.dispatch("/")
        def index():
            return str(get_session().get("user", "nobody"))

        async with TestClient(app) as client:
            client.cookies["citrus"] = "forged.value.signature"
            assert (await client.get("/")).text == "nobody"

    async def test_explicit_middleware_is_not_duplicated(self) -> None:
        app = App(AppConfig(secret_key="k"))
        app.add_middleware(SessionMiddleware(SessionConfig(secret_key="k", cookie_name="mine")))

        @app.dispatch("/")
        def index():
            get_session()["x"] = 1
            return "ok"

        async with TestClient(app) as client:
            response = await client.get("/")
            cookies = [v for k, v in response.headers if k == "set-cookie"]
            assert len(cookies) == 1
            assert cookies[0].startswith("mine=")

    async def test_no_session_without_secret_key(self) -> None:
        app = App()

        @app.dispatch("/")
        def index():
            return str(has_session())

        async with TestClient(app) as client:
            assert (await client.get("/")).text == "False"


class TestFlash:
    async def test_message_available_on_next_request_only(self) -> None:
        app = _session_app()

        @app.dispatch("/save")
        def save():
            flash("notice", "Saved")
            return f"now={flash_now('notice')}"

        @app.dispatch("/show")
        def show():
            return f"now={flash_now('notice')}"

        async with TestClient(app) as client:
            assert (await client.get("/save")).text == "now=None"
            assert (await client.get("/show")).text == "now=Saved"
            assert (await client.get("/show")).text == "now=None"

    async def test_non_html_response_does_not_consume_messages(self) -> None:
        app = _session_app()

        @app.dispatch("/save")
        def save():
            flash("notice", "Saved")
            return "ok"

        app.dispatch("/api", lambda: {"data": 1})
        app.dispatch("/show", lambda: f"now={flash_now('notice')}")

        async with TestClient(app) as client:
            await client.get("/save")
            await client.get("/api")
            assert (await client.get("/show")).text == "now=Saved"

    async def test_flash_now_without_name(self) -> None:
        app = _session_app()

        @app.dispatch("/save")
        def save():
            flash("a", 1)
            flash("b", 2)
            return "ok"

        app.dispatch("/all", lambda: str(sorted(flash_now().items())))

        async with TestClient(app) as client:
            await client.get("/save")
            assert (await client.get("/all")).text == "[('a', 1), ('b', 2)]"

    async def test_flash_stored_under_session_key(self) -> None:
        app = _session_app()
        stored = []

        @app.dispatch("/save")
        def save():
            flash("notice", "hi")
            return "ok"

        @app.dispatch("/peek")
        def peek():
            stored.append(dict(get_session().get(SESSION_KEY, {})))
            return "ok"

        async with TestClient(app) as client:
            await client.get("/save")
            await client.get("/peek")
        assert stored == [{"notice": "hi"}]

    async def test_flash_without_sessions_records_notice(self) -> None:
        app = App(AppConfig(env="development"))

        @app.dispatch("/")
        def index():
            flash("notice", "lost")
            return "page"

        async with TestClient(app) as client:
            text = (await client.get("/")).text
            assert "USER WARNING" in text
            assert "sessions are not enabled" in text
            assert text.endswith("page")

    def test_flash_now_outside_request(self) -> None:
        assert flash_now() == {}
        assert flash_now("x", "default") == "default"
