"""Tests for citrus.http.request and the request-side helpers."""

from typing import Any

import pytest

from citrus.http.cookies import parse_cookies
from citrus.http.forms import parse_form_data
from citrus.http.maps import Headers, QueryParams
from citrus.http.request import Request


def _request(
    method: str = "GET",
    path: str = "/",
    *,
    query: bytes = b"",
    headers: list[tuple[bytes, bytes]] | None = None,
    body: bytes = b"",
) -> Request:
    scope: dict[str, Any] = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query,
        "headers": headers or [],
        "http_version": "1.1",
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 1234),
    }
    calls = 0

    async def receive() -> dict[str, Any]:
        nonlocal calls
        calls += 1
        if calls == 1:
            return {"type": "http.request", "body": body, "more_body": False}
        return {"type": "http.disconnect"}

    return Request.from_asgi(scope, receive)


MULTIPART_BODY = (
    b"--XyZ\r\n"
    b'Content-Disposition: form-data; name="title"\r\n'
    b"\r\n"
    b"Hello\r\n"
    b"--XyZ\r\n"
    b'Content-Disposition: form-data; name="upload"; filename="notes.txt"\r\n'
    b"Content-Type: text/plain\r\n"
    b"\r\n"
    b"file body\r\n"
    b"--XyZ--\r\n"
)


class TestFromAsgi:
    def test_basic_fields(self) -> None:
        req = _request("get", "/users", query=b"page=2")
        assert req.method == "GET"
        assert req.path == "/users"
        assert req.query["page"] == "2"
        assert req.url == "/users?page=2"
        assert req.client == ("127.0.0.1", 1234)

    def test_headers_case_insensitive(self) -> None:
        req = _request(headers=[(b"Content-Type", b"text/plain")])
        assert req.headers["content-type"] == "text/plain"
        assert req.content_type == "text/plain"

    def test_cookies(self) -> None:
        req = _request(headers=[(b"cookie", b"a=1; b=two")])
        assert req.cookies == {"a": "1", "b": "two"}

    def test_is_head(self) -> None:
        assert _request("HEAD").is_head
        assert not _request("GET").is_head


class TestRoutePath:
    def test_plain_path(self) -> None:
        assert _request(path="/users/5").route_path == "/users/5"

    def test_trailing_slash_removed(self) -> None:
        assert _request(path="/users/").route_path == "/users"

    def test_root(self) -> None:
        assert _request(path="/").route_path == "/"

    def test_query_parameter_takes_precedence(self) -> None:
        assert _request(path="/index", query=b"uri=/users/5").route_path == "/users/5"
        assert _request(path="/index", query=b"u=posts").route_path == "/posts"

    def test_percent_decoded(self) -> None:
        assert _request(path="/caf%C3%A9").route_path == "/café"


class TestMethodOverride:
    async def test_get_is_not_overridden(self) -> None:
        req = _request("GET", headers=[(b"x-http-method-override", b"DELETE")])
        assert await req.effective_method() == "GET"

    async def test_form_field(self) -> None:
        req = _request(
            "POST",
            headers=[(b"content-type", b"application/x-www-form-urlencoded")],
            body=b"_method=put&name=x",
        )
        assert await req.effective_method() == "PUT"
        # The body is still readable afterwards
        form = await req.form()
        assert form["name"] == "x"

    async def test_header(self) -> None:
        req = _request(
            "POST",
            headers=[
                (b"content-type", b"application/json"),
                (b"x-http-method-override", b"delete"),
            ],
            body=b"{}",
        )
        assert await req.effective_method() == "DELETE"

    async def test_form_field_wins_over_header(self) -> None:
        req = _request(
            "POST",
            headers=[
                (b"content-type", b"application/x-www-form-urlencoded"),
                (b"x-http-method-override", b"DELETE"),
            ],
            body=b"_method=PUT",
        )
        assert await req.effective_method() == "PUT"

    async def test_plain_post(self) -> None:
        req = _request("POST", body=b"a=1")
        assert await req.effective_method() == "POST"

    async def test_custom_field_name(self) -> None:
        req = _request("POST", body=b"verb=delete")
        assert await req.effective_method(field_name="verb") == "DELETE"


class TestBody:
    async def test_body_is_cached(self) -> None:
        req = _request("POST", body=b"payload")
        assert await req.body() == b"payload"
        assert await req.body() == b"payload"

    async def test_text_and_json(self) -> None:
        req = _request("POST", body=b'{"a": 1}')
        assert await req.text() == '{"a": 1}'
        assert await req.json() == {"a": 1}

    async def test_urlencoded_form(self) -> None:
        req = _request(
            "PUT",
            headers=[(b"content-type", b"application/x-www-form-urlencoded")],
            body=b"tag=a&tag=b&empty=",
        )
        form = await req.form()
        assert form.get_list("tag") == ["a", "b"]
        assert form["empty"] == ""

    async def test_multipart_form(self) -> None:
        req = _request(
            "POST",
            headers=[(b"content-type", b"multipart/form-data; boundary=XyZ")],
            body=MULTIPART_BODY,
        )
        form = await req.form()
        assert form["title"] == "Hello"
        upload = form.files["upload"]
        assert upload.filename == "notes.txt"
        assert upload.content_type == "text/plain"
        assert upload.content == b"file body"

    def test_other_media_type_yields_empty_form(self) -> None:
        assert len(parse_form_data(b"{}", "application/json")) == 0

    def test_multipart_without_boundary(self) -> None:
        with pytest.raises(ValueError, match="boundary"):
            parse_form_data(b"", "multipart/form-data")


class TestAccepts:
    def test_missing_header_accepts_all(self) -> None:
        assert _request().accepts("text/html")

    def test_exact_and_extension(self) -> None:
        req = _request(headers=[(b"accept", b"application/json")])
        assert req.accepts("json")
        assert not req.accepts("text/html")

    def test_wildcard_subtype(self) -> None:
        assert _request(headers=[(b"accept", b"text/*")]).accepts("text/css")


class TestMaps:
    def test_query_multi_values(self) -> None:
        query = QueryParams(b"a=1&a=2&b=")
        assert query["a"] == "1"
        assert query.get_list("a") == ["1", "2"]
        assert query["b"] == ""
        assert query.get("missing", "x") == "x"
        assert query.raw == "a=1&a=2&b="

    def test_maps_are_immutable(self) -> None:
        headers = Headers([("X-A", "1")])
        with pytest.raises(AttributeError):
            headers.extra = 1  # type: ignore[attr-defined]

    def test_header_lookup(self) -> None:
        headers = Headers.from_raw([(b"X-Token", b"abc")])
        assert "x-token" in headers
        assert headers["X-TOKEN"] == "abc"

    def test_parse_cookies_empty(self) -> None:
        assert parse_cookies("") == {}
