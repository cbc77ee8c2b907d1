"""Citrus exception hierarchy.

Shared across the router, dispatcher, cascade and middleware so every
module raises and catches the same types.

Fatal conditions travel as ``Halt`` exceptions until the dispatcher hands
them to the error cascade. Non-fatal conditions never become exceptions;
they are recorded as notices (see ``citrus.server.cascade``).
"""

from typing import Any


class CitrusError(Exception):
    """Base for all citrus-specific errors."""


class ConfigurationError(CitrusError):
    """Raised when app setup is invalid.

    Typically raised while registering routes (an invalid raw pattern)
    or during ``App._freeze()``.
    """


class RouteWarning(UserWarning):
    """Recoverable problem with a route declaration.

    Issued through ``warnings.warn`` so the route is still stored.
    """


class Halt(CitrusError):
    """A fatal condition raised by the application or the framework.

    ``code`` is either an HTTP status or an internal condition number
    (see ``citrus.conditions``). ``context`` carries extra debug data
    shown on the development error page. ``file`` and ``line`` point at
    the code that raised the condition.
    """

    def __init__(
        self,
        code: int = 500,
        message: str = "",
        context: Any = None,
        *,
        file: str | None = None,
        line: int | None = None,
    ) -> None:
        super().__init__(code, message)
        self.code = code
        self.message = message
        self.context = context
        self.file = file
        self.line = line

    def __str__(self) -> str:
        if self.message:
            return f"{self.code}: {self.message}"
        return str(self.code)


class ClientRoutingError(Halt):
    """The request could not be routed (unknown path or unsupported method)."""


class NotFound(ClientRoutingError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, message: str = "", context: Any = None, **origin: Any) -> None:
        super().__init__(404, message, context, **origin)


class MethodNotImplemented(ClientRoutingError):  # noqa: N818
    """501 — the request method is not one of the supported verbs."""

    def __init__(self, method: str, **origin: Any) -> None:
        message = f"The requested method '{method}' is not implemented"
        super().__init__(501, message, **origin)
        self.method = method


class HandlerBindingError(Halt):
    """500 — the matched route's handler cannot be resolved or called."""

    def __init__(self, handler: object, context: Any = None, **origin: Any) -> None:
        name = handler if isinstance(handler, str) else getattr(handler, "__name__", repr(handler))
        super().__init__(500, f"Routing error: undefined function '{name}'", context, **origin)
        self.handler = handler
