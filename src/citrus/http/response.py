"""HTTP responses with a chainable ``.with_*()`` API.

Each transformation returns a new object, so hooks and middleware can
adjust status and headers without mutating what a handler returned.
"""

from collections.abc import AsyncIterable, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Self

from citrus.http.cookies import SetCookie


@dataclass(frozen=True, slots=True, kw_only=True)
class _ResponseBase:
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    def with_status(self, status: int) -> Self:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Self:
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Self:
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_content_type(self, content_type: str) -> Self:
        return replace(self, content_type=content_type)

    def with_cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        path: str = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: str = "lax",
    ) -> Self:
        cookie = SetCookie(
            name=name,
            value=value,
            max_age=max_age,
            path=path,
            domain=domain,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )
        return replace(self, cookies=(*self.cookies, cookie))

    def without_cookie(self, name: str, path: str = "/") -> Self:
        """Expire cookie *name* on the client (``Max-Age=0``)."""
        expired = SetCookie(name=name, value="", max_age=0, path=path)
        return replace(self, cookies=(*self.cookies, expired))

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), if set."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    @property
    def is_html(self) -> bool:
        return self.content_type.split(";", 1)[0].strip().lower() == "text/html"

    @property
    def charset(self) -> str:
        """Charset declared in the content type, ``utf-8`` when absent."""
        for part in self.content_type.split(";")[1:]:
            key, _, value = part.partition("=")
            if key.strip().lower() == "charset" and value.strip():
                return value.strip().strip('"')
        return "utf-8"


@dataclass(frozen=True, slots=True)
class Response(_ResponseBase):
    """A complete in-memory response.

    Construct with a body, then chain ``.with_*()`` calls::

        Response("created").with_status(201).with_header("Location", "/users/3")
    """

    body: str | bytes = ""

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode(self.charset)
        return self.body

    @property
    def text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode(self.charset, errors="replace")
        return self.body

    def with_body(self, body: str | bytes) -> Self:
        return replace(self, body=body)


@dataclass(frozen=True, slots=True)
class StreamingResponse(_ResponseBase):
    """A response whose body is sent chunk by chunk as it is produced.

    Used for file downloads so large files never sit in memory.
    """

    chunks: Iterable[bytes | str] | AsyncIterable[bytes | str] = ()
    content_length: int | None = None


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect return value, turned into a response by the dispatcher."""

    url: str
    status: int = 302

    def to_response(self) -> Response:
        return Response(body="", status=self.status).with_header("Location", self.url)
