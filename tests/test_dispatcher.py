"""Tests for citrus.server.dispatcher — the request lifecycle end to end."""

import warnings

import pytest

from citrus.app import App
from citrus.conditions import ANY_ERROR, ANY_HTTP_STATUS, NOTICE, USER_ERROR, USER_WARNING
from citrus.config import AppConfig
from citrus.context import g, get_request, params
from citrus.errors import NotFound
from citrus.http.response import Response
from citrus.server.cascade import halt
from citrus.testing import TestClient


def _dev_app(**overrides: object) -> App:
    return App(AppConfig(env="development", **overrides))


class TestRouting:
    async def test_handler_receives_bound_params(self) -> None:
        app = App()

        @app.dispatch("/users/:id/posts/:post")
        def show(user_id, post_id):
            return f"{user_id}:{post_id}"

        async with TestClient(app) as client:
            response = await client.get("/users/3/posts/9")
            assert response.status == 200
            assert response.text == "3:9"

    async def test_params_accessor(self) -> None:
        app = App()

        @app.dispatch("/posts/:id", params={"format": "html"})
        def show(*args):
            return f"{params('format')}-{params('id')}-{params('missing', 'none')}"

        async with TestClient(app) as client:
            assert (await client.get("/posts/5")).text == "html-5-none"

    async def test_wildcards(self) -> None:
        app = App()

        @app.dispatch("/files/**")
        def files(path):
            return f"path={path}"

        @app.dispatch("/tags/*")
        def tags(tag):
            return f"tag={tag}"

        async with TestClient(app) as client:
            assert (await client.get("/files/a/b/c.txt")).text == "path=a/b/c.txt"
            assert (await client.get("/tags")).text == "tag=None"

    async def test_first_match_wins(self) -> None:
        app = App()
        app.dispatch("/users/new", lambda: "form")
        app.dispatch("/users/:id", lambda user_id: f"user {user_id}")

        async with TestClient(app) as client:
            assert (await client.get("/users/new")).text == "form"
            assert (await client.get("/users/7")).text == "user 7"

    async def test_case_insensitive_and_trailing_slash(self) -> None:
        app = App()
        app.dispatch("/users/:id", lambda user_id: f"user {user_id}")

        async with TestClient(app) as client:
            assert (await client.get("/USERS/7/")).text == "user 7"

    async def test_route_from_query_parameter(self) -> None:
        app = App()
        app.dispatch("/users/:id", lambda user_id: f"user {user_id}")

        async with TestClient(app) as client:
            assert (await client.get("/index.py?uri=/users/12")).text == "user 12"

    async def test_async_handler(self) -> None:
        app = App()

        @app.dispatch("/")
        async def index():
            return "async"

        async with TestClient(app) as client:
            assert (await client.get("/")).text == "async"

    async def test_request_available_in_handler(self) -> None:
        app = App()

        @app.dispatch("/who")
        def who():
            return get_request().headers.get("x-name", "anon")

        async with TestClient(app) as client:
            assert (await client.get("/who", headers={"X-Name": "ana"})).text == "ana"


class TestMethods:
    async def test_head_has_no_body(self) -> None:
        app = App()
        app.dispatch("/", lambda: "hello")

        async with TestClient(app) as client:
            response = await client.head("/")
            assert response.status == 200
            assert response.body == b""
            assert response.header("content-length") == "5"

    async def test_method_override_form_field(self) -> None:
        app = App()
        app.dispatch_put("/items/:id", lambda item_id: f"put {item_id}")

        async with TestClient(app) as client:
            response = await client.post("/items/4", form={"_method": "PUT"})
            assert response.text == "put 4"

    async def test_method_override_header(self) -> None:
        app = App()
        app.dispatch_delete("/items/:id", lambda item_id: f"deleted {item_id}")

        async with TestClient(app) as client:
            response = await client.post(
                "/items/4", json={}, headers={"X-HTTP-Method-Override": "DELETE"}
            )
            assert response.text == "deleted 4"

    async def test_unsupported_method_is_501(self) -> None:
        app = App()
        app.dispatch("/", lambda: "hello")

        async with TestClient(app) as client:
            response = await client.request("PATCH", "/")
            assert response.status == 501
            assert "PATCH" in response.text

    async def test_wrong_method_is_404(self) -> None:
        app = App()
        app.dispatch_post("/submit", lambda: "ok")

        async with TestClient(app) as client:
            response = await client.get("/submit")
            assert response.status == 404
            assert "(GET) /submit" in response.text


class TestNotFound:
    async def test_default_page_names_path(self) -> None:
        app = App()

        async with TestClient(app) as client:
            response = await client.get("/missing/page")
            assert response.status == 404
            assert "text/html" in response.content_type
            assert "Page not found" in response.text
            assert "/missing/page" in response.text

    async def test_path_is_escaped(self) -> None:
        app = App()

        async with TestClient(app) as client:
            response = await client.get("/%3Cscript%3E")
            assert "<script>" not in response.text
            assert "&lt;script&gt;" in response.text

    async def test_route_missing_hook(self) -> None:
        app = App()

        @app.route_missing
        def missing(method, path):
            return (f"no {method} {path}", 404)

        async with TestClient(app) as client:
            response = await client.get("/nowhere")
            assert response.status == 404
            assert response.text == "no GET /nowhere"

    async def test_halt_404_defaults_to_route_path(self) -> None:
        app = App()

        @app.dispatch("/things/:id")
        def thing(thing_id):
            halt(404)

        async with TestClient(app) as client:
            response = await client.get("/things/9")
            assert response.status == 404
            assert "/things/9" in response.text

    async def test_raising_not_found(self) -> None:
        app = App()

        @app.dispatch("/reports/:id")
        def report(report_id):
            raise NotFound(f"report {report_id}")

        async with TestClient(app) as client:
            response = await client.get("/reports/3")
            assert response.status == 404
            assert "report 3" in response.text

    async def test_not_found_override_by_name(self) -> None:
        app = App()

        @app.define()
        def not_found(errno, message, file, line):
            return f"custom: {message}"

        async with TestClient(app) as client:
            response = await client.get("/gone")
            assert response.status == 404
            assert response.text == "custom: (GET) /gone"


class TestErrors:
    async def test_halt_with_status(self) -> None:
        app = App()

        @app.dispatch("/admin")
        def admin():
            halt(403, "Members only")

        async with TestClient(app) as client:
            response = await client.get("/admin")
            assert response.status == 403
            assert "Forbidden" in response.text
            assert "Members only" in response.text

    async def test_internal_condition_answers_500(self) -> None:
        app = App()

        @app.dispatch("/")
        def index():
            halt(USER_ERROR, "broken invariant")

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 500
            assert "USER ERROR" in response.text

    async def test_uncaught_exception_is_500(self) -> None:
        app = App()

        @app.dispatch("/")
        def index():
            raise ValueError("secret detail")

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 500
            assert "secret detail" not in response.text

    async def test_development_page_shows_details(self) -> None:
        app = _dev_app()

        @app.dispatch("/")
        def index():
            raise ValueError("secret detail")

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 500
            assert "ValueError: secret detail" in response.text
            assert "test_dispatcher.py" in response.text
            assert "GET /" in response.text

    async def test_development_page_shows_halt_context(self) -> None:
        app = _dev_app()

        @app.dispatch("/")
        def index():
            halt(500, "db down", "SELECT 1")

        async with TestClient(app) as client:
            response = await client.get("/")
            assert "db down" in response.text
            assert "SELECT 1" in response.text

    async def test_production_page_hides_context(self) -> None:
        app = App()

        @app.dispatch("/")
        def index():
            halt(500, "db down", "SELECT 1")

        async with TestClient(app) as client:
            response = await client.get("/")
            assert "SELECT 1" not in response.text

    async def test_error_handlers_in_registration_order(self) -> None:
        app = App()

        @app.error(404)
        def not_found(errno, message, file, line):
            return "exact"

        @app.error(ANY_HTTP_STATUS)
        def http(errno, message, file, line):
            return f"http {errno}"

        @app.error(ANY_ERROR)
        def anything(errno, message, file, line):
            return f"any {errno}"

        @app.dispatch("/forbidden")
        def forbidden():
            halt(403)

        @app.dispatch("/crash")
        def crash():
            raise RuntimeError("x")

        async with TestClient(app) as client:
            assert (await client.get("/nope")).text == "exact"
            response = await client.get("/forbidden")
            assert (response.status, response.text) == (403, "http 403")
            response = await client.get("/crash")
            assert (response.status, response.text) == (500, "any 1")

    async def test_error_handler_response_keeps_status(self) -> None:
        app = App()

        @app.error(404)
        def gone(errno, message, file, line):
            return Response("gone", status=410)

        async with TestClient(app) as client:
            assert (await client.get("/old")).status == 410

    async def test_error_handler_response_can_choose_200(self) -> None:
        app = App()

        @app.error(404)
        def fallback(errno, message, file, line):
            return Response("served anyway")

        async with TestClient(app) as client:
            response = await client.get("/old")
            assert (response.status, response.text) == (200, "served anyway")

    async def test_error_handler_tuple_sets_status(self) -> None:
        app = App()

        @app.error(404)
        def teapot(errno, message, file, line):
            return "short and stout", 418

        async with TestClient(app) as client:
            response = await client.get("/old")
            assert (response.status, response.text) == (418, "short and stout")

    async def test_failing_error_handler_falls_back(self) -> None:
        app = App()

        @app.error(404)
        def broken(errno, message, file, line):
            raise RuntimeError("handler bug")

        async with TestClient(app) as client:
            response = await client.get("/missing")
            assert response.status == 500
            assert response.text == "Internal Server Error"

    async def test_server_error_override_by_name(self) -> None:
        app = App()

        @app.define()
        def server_error(errno, message, file, line):
            return f"oops {errno}"

        @app.dispatch("/")
        def index():
            halt(USER_ERROR, "x")

        async with TestClient(app) as client:
            response = await client.get("/")
            assert (response.status, response.text) == (500, f"oops {USER_ERROR}")

    async def test_undefined_named_handler(self) -> None:
        app = App()
        app.dispatch("/", "does_not_exist")

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 500
            assert "undefined function" in response.text
            assert "does_not_exist" in response.text

    async def test_middleware_error_is_answered(self) -> None:
        app = App()
        app.dispatch("/", lambda: "ok")

        async def explode(request, next):
            raise RuntimeError("middleware bug")

        app.add_middleware(explode)
        async with TestClient(app) as client:
            assert (await client.get("/")).status == 500


class TestHooks:
    async def test_before_receives_match(self) -> None:
        app = App()
        seen = []

        @app.before
        def before(match):
            seen.append(match.route.path)
            g.title = "from before"

        @app.dispatch("/users/:id")
        def show(user_id):
            return g.title

        async with TestClient(app) as client:
            assert (await client.get("/users/1")).text == "from before"
        assert seen == ["/users/:id"]

    async def test_after_can_replace_body(self) -> None:
        app = App()

        @app.after
        def after(body, match):
            return body.upper()

        app.dispatch("/", lambda: "quiet")
        async with TestClient(app) as client:
            assert (await client.get("/")).text == "QUIET"

    async def test_after_returning_none_keeps_response(self) -> None:
        app = App()
        bodies = []

        @app.after
        def after(body, match):
            bodies.append(body)

        app.dispatch("/", lambda: "kept")
        async with TestClient(app) as client:
            assert (await client.get("/")).text == "kept"
        assert bodies == ["kept"]

    async def test_autorender_when_handler_returns_none(self) -> None:
        app = App()

        @app.autorender
        def autorender(match):
            return f"auto {match.route.path}"

        app.dispatch("/page", lambda: None)
        async with TestClient(app) as client:
            assert (await client.get("/page")).text == "auto /page"

    async def test_none_without_autorender_is_empty(self) -> None:
        app = App()
        app.dispatch("/page", lambda: None)
        async with TestClient(app) as client:
            response = await client.get("/page")
            assert (response.status, response.text) == (200, "")

    async def test_before_exit_runs_after_errors(self) -> None:
        app = App()
        calls = []

        @app.before_exit
        async def done():
            calls.append("exit")

        @app.dispatch("/")
        def index():
            raise RuntimeError("boom")

        async with TestClient(app) as client:
            await client.get("/")
            await client.get("/missing")
        assert calls == ["exit", "exit"]

    async def test_failing_before_exit_does_not_break_response(self) -> None:
        app = App()

        @app.before_exit
        def done():
            raise RuntimeError("cleanup failed")

        app.dispatch("/", lambda: "fine")
        async with TestClient(app) as client:
            assert (await client.get("/")).text == "fine"

    async def test_before_halt_skips_handler(self) -> None:
        app = App()
        called = []

        @app.before
        def guard(match):
            halt(401, "Login first")

        @app.dispatch("/")
        def index():
            called.append(True)
            return "secret"

        async with TestClient(app) as client:
            assert (await client.get("/")).status == 401
        assert called == []


class TestNotices:
    async def test_notices_prepended_in_development(self) -> None:
        app = _dev_app()

        @app.dispatch("/")
        def index():
            halt(NOTICE, "Slow query")
            return "<p>body</p>"

        async with TestClient(app) as client:
            text = (await client.get("/")).text
            assert text.startswith('<div class="citrus-notices">')
            assert "Slow query" in text
            assert text.endswith("<p>body</p>")

    async def test_notices_hidden_in_production(self) -> None:
        app = App()

        @app.dispatch("/")
        def index():
            halt(NOTICE, "Slow query")
            return "<p>body</p>"

        async with TestClient(app) as client:
            assert (await client.get("/")).text == "<p>body</p>"

    async def test_notices_not_added_to_json(self) -> None:
        app = _dev_app()

        @app.dispatch("/api")
        def api():
            halt(NOTICE, "Slow query")
            return {"ok": True}

        async with TestClient(app) as client:
            assert (await client.get("/api")).text == '{"ok": true}'

    async def test_repeated_notice_reported_on_every_request(self) -> None:
        app = _dev_app()

        @app.dispatch("/")
        def index():
            halt(USER_WARNING, "deprecated helper")
            return "done"

        async with TestClient(app) as client:
            for _ in range(2):
                text = (await client.get("/")).text
                assert "USER WARNING" in text
                assert "deprecated helper" in text

    async def test_python_warnings_are_not_intercepted(self) -> None:
        app = _dev_app()
        showwarning = warnings.showwarning

        @app.dispatch("/")
        def index():
            warnings.warn("left alone", UserWarning, stacklevel=1)
            return "done"

        async with TestClient(app) as client:
            with pytest.warns(UserWarning, match="left alone"):
                text = (await client.get("/")).text
        assert text == "done"
        assert warnings.showwarning is showwarning

    async def test_notices_do_not_leak_between_requests(self) -> None:
        app = _dev_app()
        app.dispatch("/noisy", lambda: halt(NOTICE, "noise") or "noisy")
        app.dispatch("/quiet", lambda: "quiet")

        async with TestClient(app) as client:
            assert "noise" in (await client.get("/noisy")).text
            assert (await client.get("/quiet")).text == "quiet"

    async def test_notices_shown_on_error_page(self) -> None:
        app = _dev_app()

        @app.dispatch("/")
        def index():
            halt(NOTICE, "before failing")
            halt(403)

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 403
            assert "before failing" in response.text


class TestOutput:
    async def test_signature_header(self) -> None:
        app = App()
        app.dispatch("/", lambda: "x")
        async with TestClient(app) as client:
            assert (await client.get("/")).header("x-citrus") == "citrus"

    async def test_signature_can_be_disabled(self) -> None:
        app = App(AppConfig(signature=None))
        app.dispatch("/", lambda: "x")
        async with TestClient(app) as client:
            assert (await client.get("/")).header("x-citrus") is None

    async def test_encoding(self) -> None:
        app = App(AppConfig(encoding="iso-8859-1"))
        app.dispatch("/", lambda: "café")
        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.content_type == "text/html; charset=iso-8859-1"
            assert response.body == "café".encode("latin-1")
