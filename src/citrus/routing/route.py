"""Route, RouteOptions and RouteMatch frozen dataclasses."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from citrus.routing.pattern import CompiledPattern, ParamName

type HandlerRef = Callable[..., Any] | str
type Bindings = dict[ParamName, str | None]

HTTP_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "HEAD")


@dataclass(frozen=True, slots=True)
class RouteOptions:
    """Per-route options.

    ``params`` are default bindings; captured path values override them.
    """

    params: Mapping[ParamName, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True, slots=True)
class Route:
    """A compiled route definition.

    Built once during app setup and never modified. ``handler`` is either
    a callable or the name of a handler resolved at dispatch time.
    """

    method: str
    pattern: CompiledPattern
    handler: HandlerRef
    options: RouteOptions = field(default_factory=RouteOptions)

    @property
    def path(self) -> str:
        """The template the route was declared with."""
        return self.pattern.template

    @property
    def names(self) -> tuple[ParamName, ...]:
        return self.pattern.names

    @property
    def handler_name(self) -> str:
        if isinstance(self.handler, str):
            return self.handler
        return getattr(self.handler, "__qualname__", None) or repr(self.handler)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route lookup."""

    route: Route
    params: Bindings

    @property
    def args(self) -> tuple[str | None, ...]:
        """Bound values in declared-name order, used to call the handler."""
        return tuple(self.params.values())
