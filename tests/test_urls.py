"""Tests for citrus.urls — url_for() and h()."""

from citrus.app import App
from citrus.config import AppConfig
from citrus.testing import TestClient
from citrus.urls import h, is_absolute_url, url_for


class TestUrlFor:
    def test_joins_parts(self) -> None:
        assert url_for("users", 42, "edit") == "/users/42/edit"

    def test_root(self) -> None:
        assert url_for() == "/"

    def test_slashes_inside_parts(self) -> None:
        assert url_for("/users/", "/42/") == "/users/42"

    def test_pieces_are_encoded(self) -> None:
        assert url_for("a b", "ü") == "/a%20b/%C3%BC"

    def test_fragment_kept(self) -> None:
        assert url_for("page#top") == "/page#top"

    def test_query_arguments(self) -> None:
        assert url_for("search", q="a b") == "/search?q=a%20b"

    def test_absolute_url_untouched(self) -> None:
        assert url_for("https://example.com/x") == "https://example.com/x"
        assert url_for("https://example.com/", "docs") == "https://example.com/docs"

    def test_is_absolute_url(self) -> None:
        assert is_absolute_url("http://example.com")
        assert not is_absolute_url("/local")

    async def test_base_uri_inside_request(self) -> None:
        app = App(AppConfig(base_uri="/app/"))
        app.dispatch("/", lambda: url_for("users", 3))

        async with TestClient(app) as client:
            assert (await client.get("/")).text == "/app/users/3"


class TestEscape:
    def test_escapes_markup(self) -> None:
        assert h("<b>&</b>") == "&lt;b&gt;&amp;&lt;/b&gt;"

    def test_quotes_kept_by_default(self) -> None:
        assert h("it's \"x\"") == "it's \"x\""

    def test_quote_attrs(self) -> None:
        assert h("it's \"x\"", quote_attrs=True) == "it&#x27;s &quot;x&quot;"

    def test_non_string(self) -> None:
        assert h(42) == "42"
