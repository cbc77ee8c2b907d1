"""Dispatch-scoped state via ContextVar.

Provides:
- ``DispatchContext``: per-request state owned by one dispatch (request,
  matched route, parameter bindings, notice log, template variables).
- ``get_request()`` / ``params()``: accessors for handlers and collaborators.
- ``g``: a mutable namespace scoped to the current dispatch; its values
  are also passed to templates.

Routes and error handlers are shared by the whole app; everything here is
private to one request, so concurrent requests never see each other's
bindings or notices.
"""

from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any

from citrus.config import AppConfig
from citrus.http.request import Request
from citrus.notices import NoticeLog
from citrus.routing.route import Bindings, RouteMatch


@dataclass(slots=True)
class DispatchContext:
    """Everything one request lifecycle owns."""

    request: Request
    config: AppConfig = field(default_factory=AppConfig)
    method: str | None = None
    match: RouteMatch | None = None
    params: Bindings = field(default_factory=dict)
    notices: NoticeLog = field(default_factory=NoticeLog)
    vars: dict[str, Any] = field(default_factory=dict)
    debug_context: Any = None
    flash: Any = None  # citrus.flashes.FlashMessages, loaded when the dispatch starts
    renderer: Any = None  # citrus.templating.integration.Renderer
    layout: str | None = None  # default layout for this request, see views.layout()


dispatch_var: ContextVar[DispatchContext] = ContextVar("citrus_dispatch")
"""The current dispatch. Set by the ASGI handler for each request."""


def current_dispatch() -> DispatchContext | None:
    """The active dispatch context, or ``None`` outside a request."""
    return dispatch_var.get(None)


def enter_dispatch(ctx: DispatchContext) -> Token[DispatchContext]:
    return dispatch_var.set(ctx)


def exit_dispatch(token: Token[DispatchContext]) -> None:
    dispatch_var.reset(token)


def _require() -> DispatchContext:
    ctx = dispatch_var.get(None)
    if ctx is None:
        msg = "No active request. This helper only works while a request is dispatched."
        raise LookupError(msg)
    return ctx


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request.
    """
    return _require().request


def params(name: str | int | None = None, default: Any = None) -> Any:
    """Return all bindings of the current route, or the one named *name*."""
    bindings = _require().params
    if name is None:
        return dict(bindings)
    return bindings.get(name, default)


class _DispatchGlobals:
    """Attribute access to the current dispatch's ``vars`` dict.

    Usage::

        from citrus.context import g

        g.title = "Users"   # in a before hook
        # templates rendered in this request see {{ title }}
    """

    __slots__ = ()

    def __getattr__(self, name: str) -> Any:
        try:
            return _require().vars[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        _require().vars[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del _require().vars[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __contains__(self, name: str) -> bool:
        return name in _require().vars

    def get(self, name: str, default: Any = None) -> Any:
        return _require().vars.get(name, default)

    def set_default(self, name: str, value: Any, default: Any) -> Any:
        """Store *value*, or *default* when *value* is empty, and return it."""
        stored = value if value else default
        _require().vars[name] = stored
        return stored

    def __repr__(self) -> str:
        ctx = dispatch_var.get(None)
        return f"<g {ctx.vars if ctx else {}!r}>"


g = _DispatchGlobals()
"""Dispatch-scoped namespace. Values are visible to templates."""
