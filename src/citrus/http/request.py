"""Immutable HTTP request built from an ASGI scope.

Metadata is frozen at creation; the body is read lazily and cached, so
the method-override check and the handler can both call ``form()``.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import unquote

from citrus._internal.asgi import Receive, Scope
from citrus.http.cookies import parse_cookies
from citrus.http.forms import URLENCODED, MULTIPART, media_type, parse_form_data
from citrus.http.maps import FormData, Headers, QueryParams

# Query parameters that carry the routed path when URL rewriting is off.
ROUTE_QUERY_KEYS: tuple[str, ...] = ("uri", "u")


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``method`` is the method the client sent; the dispatcher works with
    ``await request.effective_method()`` which honours method override.
    ``path_params`` is filled in once a route has matched.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    cookies: Mapping[str, str]
    path_params: Mapping[str | int, str | None] = field(default_factory=dict)
    http_version: str = "1.1"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None
    root_path: str = ""

    _receive: Receive | None = field(default=None, repr=False, compare=False)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        headers = Headers.from_raw(scope.get("headers", ()))
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookies(headers.get("cookie", "")),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            root_path=scope.get("root_path", ""),
            _receive=receive,
        )

    def with_path_params(self, params: Mapping[str | int, str | None]) -> Request:
        """Copy of this request carrying *params*. Shares the body cache."""
        return replace(self, path_params=params)

    # -- Routing --

    @property
    def route_path(self) -> str:
        """The path compared with routes.

        A ``uri`` (or ``u``) query parameter takes precedence over the
        request path. The result is percent-decoded, starts with ``/``
        and has no trailing slash (the root stays ``/``).
        """
        raw = self.path
        for key in ROUTE_QUERY_KEYS:
            value = self.query.get(key)
            if value is not None:
                raw = value
                break
        uri = unquote(raw).rstrip("/")
        if not uri:
            return "/"
        return uri if uri.startswith("/") else "/" + uri

    async def effective_method(
        self,
        *,
        field_name: str = "_method",
        header_name: str = "x-http-method-override",
    ) -> str:
        """The request method after method override.

        Only POST can be overridden, either by a form field or by an
        override header. The form field wins when both are present.
        """
        if self.method != "POST":
            return self.method
        if media_type(self.content_type) in ("", URLENCODED, MULTIPART):
            form = await self.form()
            override = form.get(field_name)
            if override:
                return override.upper()
        override = self.headers.get(header_name)
        if override:
            return override.upper()
        return self.method

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw}"
        return self.path

    @property
    def is_head(self) -> bool:
        return self.method == "HEAD"

    def accepts(self, media: str) -> bool:
        """True if the ``Accept`` header admits *media* (``text/html`` or ``html``).

        A missing ``Accept`` header or ``*/*`` accepts everything.
        """
        from citrus.http.mime import mime_type

        accept = self.headers.get("accept")
        if not accept or accept.strip() == "*/*":
            return True
        if "/" not in media:
            media = mime_type(media) or media
        if media in accept:
            return True
        return media.split("/", 1)[0] + "/*" in accept

    # -- Body access --

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield the body chunk by chunk straight from the server."""
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def body(self) -> bytes:
        if "body" not in self._cache:
            self._cache["body"] = b"".join([chunk async for chunk in self.stream()])
        return self._cache["body"]

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        return json_module.loads(await self.body())

    async def form(self) -> FormData:
        """Parse the body as form data (cached)."""
        if "form" not in self._cache:
            self._cache["form"] = parse_form_data(await self.body(), self.content_type)
        return self._cache["form"]
