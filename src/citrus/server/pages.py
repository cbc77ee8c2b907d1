"""Built-in error and notice pages.

The pages are kida templates compiled once in a private environment with
autoescaping always on, so messages echoing the request path are safe
even when the app turns autoescaping off. An app can wrap them in its own
layout with ``AppConfig.error_layout``; the layout receives the page as
``content`` plus ``title``.
"""

import functools
from collections.abc import Iterable
from typing import Any
from urllib.parse import unquote

from kida import Environment
from kida.utils.html import Markup

from citrus.conditions import condition_name
from citrus.http.status import is_valid_status, reason_phrase
from citrus.notices import Notice
from citrus.templating.integration import Renderer

NOT_FOUND_SOURCE = """\
<h1>Page not found:</h1>
<p><code>{{ message }}</code></p>
"""

SERVER_ERROR_SOURCE = """\
<h1>{{ title }}</h1>
{% if is_http_error %}
<p class="message">{{ message }}</p>
{% end %}
{% if development %}
<div class="debug">
  {% if not is_http_error %}<p class="message">{{ message }}</p>{% end %}
  {% if file %}<p>In <code>{{ file }}</code> line <code>{{ line }}</code></p>{% end %}
  {% if request_line %}<h2>Request</h2><p><code>{{ request_line }}</code></p>{% end %}
  {% if debug_context %}<h2>Context</h2><pre>{{ debug_context }}</pre>{% end %}
</div>
{% end %}
"""

NOTICES_SOURCE = """\
<div class="citrus-notices">
{% for notice in notices %}
  <div class="citrus-notice">
    <h3>{{ notice.label }}</h3>
    <p>{{ notice.message }}</p>
    {% if notice.file %}<p class="origin">In <code>{{ notice.file }}</code> line <code>{{ notice.line }}</code></p>{% end %}
  </div>
{% end %}
</div>
"""

LAYOUT_SOURCE = """\
<!DOCTYPE html>
<html>
<head>
  <meta charset="{{ encoding }}">
  <title>{{ title }}</title>
  {% if stylesheet %}<link rel="stylesheet" href="{{ stylesheet }}" media="screen">{% end %}
</head>
<body>
  <div id="citrus">{{ content }}</div>
</body>
</html>
"""


@functools.cache
def _environment() -> Environment:
    return Environment(autoescape=True)


def _render(source: str, context: dict[str, Any]) -> str:
    return _environment().from_string(source).render(context)


def _stylesheet(renderer: Renderer) -> str | None:
    config = renderer.config
    if not config.builtin_routes:
        return None
    return config.base_uri.rstrip("/") + "/_citrus_css/screen.css"


def _layout(renderer: Renderer, title: str, html: str) -> str:
    if renderer.config.error_layout:
        context = renderer.context({"title": title})
        return renderer.wrap(renderer.config.error_layout, html, context)
    return _render(
        LAYOUT_SOURCE,
        {
            "title": title,
            "content": Markup(html),
            "encoding": renderer.config.encoding,
            "stylesheet": _stylesheet(renderer),
        },
    )


def render_not_found(renderer: Renderer, message: str) -> str:
    """Full not-found page for *message* (usually the requested path)."""
    html = _render(NOT_FOUND_SOURCE, {"message": unquote(message)})
    return _layout(renderer, "Page not found", html)


def render_server_error(
    renderer: Renderer,
    errno: int,
    message: str,
    file: str | None = None,
    line: int | None = None,
    *,
    request_line: str | None = None,
    debug_context: Any = None,
) -> str:
    """Full error page. Origin and debug context only show in development."""
    is_http_error = is_valid_status(errno)
    title = reason_phrase(errno) if is_http_error else condition_name(errno)
    html = _render(
        SERVER_ERROR_SOURCE,
        {
            "title": title,
            "message": message,
            "is_http_error": is_http_error,
            "development": renderer.config.is_development,
            "file": file,
            "line": line,
            "request_line": request_line,
            "debug_context": debug_context,
        },
    )
    return _layout(renderer, title, html)


def render_notices(notices: Iterable[Notice]) -> str:
    """Notice list rendered in front of development responses."""
    notices = list(notices)
    if not notices:
        return ""
    return _render(NOTICES_SOURCE, {"notices": notices})
