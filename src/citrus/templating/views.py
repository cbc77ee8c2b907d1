"""View helpers for handlers.

``html()``, ``txt()``, ``css()``, ``js()`` and ``xml()`` render content
(a template name or template source) and return a ``Response`` with the
matching content type and the configured charset::

    @app.dispatch_get("/users/:id")
    def show_user(id):
        return html("users/show.html", "layout.html", id=id)

    @app.dispatch_get("/robots.txt")
    def robots():
        return txt("User-agent: *\\nDisallow:")

``render()`` and ``partial()`` return the rendered string only.

``render()`` and ``html()`` wrap their output in the default layout when
no layout is passed (``AppConfig.layout``, or the one chosen for the
current request with ``layout()``). ``partial()`` and the other content
types only use a layout they are given.
"""

import json as json_module
from typing import Any

from citrus.context import current_dispatch
from citrus.http.mime import mime_type
from citrus.http.response import Response
from citrus.templating.integration import current_renderer


def layout(name: str | None = None) -> str | None:
    """Set the default layout for the rest of this request and return it.

    Without an argument, return the current default. ``layout("")``
    turns the default layout off for this request::

        @app.before
        def admin_layout(match):
            if match.route.path.startswith("/admin"):
                layout("admin.html")
    """
    ctx = current_dispatch()
    if name is not None:
        if ctx is None:
            msg = "layout() can only choose a layout while a request is dispatched."
            raise LookupError(msg)
        ctx.layout = name
    return current_renderer().default_layout()


def render(content: str, layout: str | None = None, **context: Any) -> str:
    """Render *content* with *context*, wrapped in *layout* or the default layout."""
    return current_renderer().render(content, layout, context)


def partial(content: str, **context: Any) -> str:
    """Render *content* without a layout."""
    return current_renderer().render(content, "", context)


def _typed(ext: str, content: str, layout: str | None, context: dict[str, Any]) -> Response:
    renderer = current_renderer()
    if layout is None and ext != "html":
        layout = ""
    body = renderer.render(content, layout, context)
    return Response(body=body, content_type=content_type_for(ext, renderer.config.encoding))


def content_type_for(ext: str, encoding: str = "utf-8") -> str:
    """Content type for extension *ext*, with a charset for text types."""
    media = mime_type(ext) or "text/plain"
    if media.startswith("text/") or media in ("application/xml", "application/json"):
        return f"{media}; charset={encoding}"
    return media


def html(content: str, layout: str | None = None, **context: Any) -> Response:
    return _typed("html", content, layout, context)


def txt(content: str, layout: str | None = None, **context: Any) -> Response:
    return _typed("txt", content, layout, context)


def css(content: str, layout: str | None = None, **context: Any) -> Response:
    return _typed("css", content, layout, context)


def js(content: str, layout: str | None = None, **context: Any) -> Response:
    return _typed("js", content, layout, context)


def xml(content: str, layout: str | None = None, **context: Any) -> Response:
    return _typed("xml", content, layout, context)


def json(data: Any, **dumps_options: Any) -> Response:
    """Serialize *data* as a JSON response."""
    renderer = current_renderer()
    dumps_options.setdefault("default", str)
    return Response(
        body=json_module.dumps(data, **dumps_options),
        content_type=content_type_for("json", renderer.config.encoding),
    )
