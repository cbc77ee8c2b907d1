"""URL building and HTML escaping helpers.

Both are registered as template globals, so templates can write
``{{ url_for("users", user.id) }}``.
"""

import html
from typing import Any
from urllib.parse import quote, urlsplit

from citrus.context import current_dispatch


def is_absolute_url(value: str) -> bool:
    parts = urlsplit(value)
    return bool(parts.scheme and parts.netloc)


def _base_uri() -> str:
    ctx = current_dispatch()
    return ctx.config.base_uri if ctx is not None else "/"


def url_for(*parts: Any, **query: Any) -> str:
    """Build a URL under ``AppConfig.base_uri``.

    Each part is split on ``/`` and every piece is percent-encoded
    (``#`` is kept so fragments survive). Absolute URLs pass through
    untouched. Keyword arguments become the query string::

        url_for("users", 42, "edit")       # "/users/42/edit"
        url_for("search", q="a b")         # "/search?q=a%20b"
        url_for("https://example.com/x")   # "https://example.com/x"
    """
    paths: list[str] = []
    for part in parts:
        text = str(part)
        if is_absolute_url(text):
            paths.append(text.rstrip("/"))
            continue
        paths.extend(quote(piece, safe="#") for piece in text.split("/") if piece)

    path = "/".join(paths).rstrip("/")
    if not is_absolute_url(path):
        path = _base_uri().rstrip("/") + "/" + path.lstrip("/")

    if query:
        separator = "&" if "?" in path else "?"
        path += separator + "&".join(
            f"{quote(str(key), safe='')}={quote(str(value), safe='')}"
            for key, value in query.items()
        )
    return path


def h(value: Any, *, quote_attrs: bool = False) -> str:
    """Escape *value* for HTML. Quotes are only escaped with ``quote_attrs``."""
    return html.escape(str(value), quote=quote_attrs)
