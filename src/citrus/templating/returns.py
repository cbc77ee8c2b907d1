"""Template and InlineTemplate return types.

Frozen dataclasses that handlers return. The negotiation layer renders
them through the app's kida environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Template:
    """Render a kida template file, wrapped in *layout* or the default layout.

    Usage::

        return Template("users/show.html", user=user)
        return Template("users/show.html", "layout.html", user=user)

    The layout receives the rendered page as ``content`` alongside the
    same context.
    """

    name: str
    layout: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, name: str, /, layout: str | None = None, **context: Any) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "layout", layout)
        object.__setattr__(self, "context", context)

    @staticmethod
    def inline(source: str, /, layout: str | None = None, **context: Any) -> InlineTemplate:
        """Create a template from a string.

        Usage::

            return Template.inline("<h1>{{ title }}</h1>", title="Hello")
        """
        return InlineTemplate(source, layout, **context)


@dataclass(frozen=True, slots=True)
class InlineTemplate:
    """A template rendered from a string source."""

    source: str
    layout: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, source: str, /, layout: str | None = None, **context: Any) -> None:
        object.__setattr__(self, "source", source)
        object.__setattr__(self, "layout", layout)
        object.__setattr__(self, "context", context)
