"""Kida environment setup and rendering.

Creates a kida Environment from citrus's AppConfig. The environment is
created once during ``App._freeze()`` and reached by the request
pipeline through the ``Renderer`` stored on each dispatch.
"""

from collections.abc import Callable, Mapping
from pathlib import PurePath
from typing import Any

from kida import Environment, FileSystemLoader
from kida.utils.html import Markup

from citrus.config import AppConfig
from citrus.context import current_dispatch
from citrus.templating.returns import InlineTemplate, Template

# A string ending in one of these (and free of markup) names a template file.
TEMPLATE_SUFFIXES: frozenset[str] = frozenset(
    {".html", ".htm", ".txt", ".css", ".js", ".xml", ".json", ".kida"}
)


def create_environment(
    config: AppConfig,
    filters: Mapping[str, Callable[..., Any]] | None = None,
    globals_: Mapping[str, Any] | None = None,
) -> Environment:
    """Create a kida Environment from app configuration.

    Called once during ``App._freeze()``. The returned environment is
    immutable for the lifetime of the app.
    """
    env = Environment(
        loader=FileSystemLoader(str(config.template_dir)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )
    if filters:
        env.update_filters(dict(filters))
    for name, value in (globals_ or {}).items():
        env.add_global(name, value)
    return env


def is_template_name(content: str) -> bool:
    """True if *content* looks like a template file name rather than source."""
    if not content or "\n" in content or "{" in content or "<" in content:
        return False
    return PurePath(content).suffix.lower() in TEMPLATE_SUFFIXES


class Renderer:
    """Renders templates with the dispatch-scoped context.

    The context passed to every template is, in increasing precedence:
    the ``g`` namespace of the current dispatch, ``flash`` (messages
    available to this request), then the caller's locals. Layouts also
    get the rendered page as ``content``, already marked safe.

    A layout of ``None`` means the default layout: the one set for this
    request with ``views.layout()``, else ``AppConfig.layout``. Pass
    ``""`` to render without one. ``before_render(content, layout,
    locals)`` may return a replacement ``(content, layout, locals)``
    triple; it is called synchronously before every render.
    """

    __slots__ = ("before_render", "config", "env")

    def __init__(
        self,
        env: Environment,
        config: AppConfig,
        before_render: Callable[..., Any] | None = None,
    ) -> None:
        self.env = env
        self.config = config
        self.before_render = before_render

    def default_layout(self) -> str | None:
        ctx = current_dispatch()
        if ctx is not None and ctx.layout is not None:
            return ctx.layout
        return self.config.layout

    def prepare(
        self,
        content: str,
        layout: str | None,
        locals_: Mapping[str, Any] | None,
    ) -> tuple[str, str | None, Mapping[str, Any] | None]:
        """Resolve the default layout and apply the ``before_render`` hook."""
        if layout is None:
            layout = self.default_layout()
        if self.before_render is None:
            return content, layout, locals_
        return self.before_render(content, layout, dict(locals_ or {}))

    def context(self, locals_: Mapping[str, Any] | None = None) -> dict[str, Any]:
        ctx = current_dispatch()
        merged: dict[str, Any] = {}
        if ctx is not None:
            merged.update(ctx.vars)
            merged["flash"] = dict(ctx.flash.now) if ctx.flash is not None else {}
        if locals_:
            merged.update(locals_)
        return merged

    def render(
        self,
        content: str,
        layout: str | None = None,
        locals_: Mapping[str, Any] | None = None,
    ) -> str:
        """Render *content* (a template name or template source).

        Source without locals is returned as-is, so plain strings and
        stylesheets pass through untouched.
        """
        content, layout, locals_ = self.prepare(content, layout, locals_)
        context = self.context(locals_)
        if is_template_name(content):
            html = self.env.get_template(content).render(context)
        elif locals_:
            html = self.env.from_string(content).render(context)
        else:
            html = content
        return self.wrap(layout, html, context)

    def render_template(self, tpl: Template) -> str:
        name, layout, locals_ = self.prepare(tpl.name, tpl.layout, tpl.context)
        context = self.context(locals_)
        html = self.env.get_template(name).render(context)
        return self.wrap(layout, html, context)

    def render_inline(self, tpl: InlineTemplate) -> str:
        source, layout, locals_ = self.prepare(tpl.source, tpl.layout, tpl.context)
        context = self.context(locals_)
        html = self.env.from_string(source).render(context)
        return self.wrap(layout, html, context)

    def wrap(self, layout: str | None, html: str, context: Mapping[str, Any]) -> str:
        """Render *layout* around *html*, or return *html* when there is no layout."""
        if not layout:
            return html
        return self.env.get_template(layout).render({**context, "content": Markup(html)})


def current_renderer() -> Renderer:
    """The renderer of the current dispatch.

    Outside a dispatch (or before the app is frozen) a bare environment
    is used, so inline templates still render during prototyping.
    """
    ctx = current_dispatch()
    if ctx is not None and ctx.renderer is not None:
        return ctx.renderer
    return Renderer(Environment(), AppConfig())
