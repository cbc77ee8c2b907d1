"""Default error handler, consulted after every handler registered with ``app.error()``.

Answers any fatal condition with its HTTP status (500 for internal
condition numbers) and a built-in page: the not-found page for 404, the
diagnostic server-error page otherwise. Defining handlers named
``not_found`` or ``server_error`` replaces those pages. A returned body
is sent with the condition's status; return a ``Response`` or
``(body, status)`` to choose another::

    @app.define()
    def not_found(errno, message, file, line):
        return render("404.html", path=message)
"""

import logging
from typing import Any

from citrus._internal.invoke import invoke
from citrus.conditions import NOT_FOUND, http_status_for
from citrus.context import current_dispatch
from citrus.http.response import Response
from citrus.routing.symbols import HandlerTable
from citrus.server.pages import render_not_found, render_server_error
from citrus.templating.integration import current_renderer

logger = logging.getLogger("citrus.server")

NOT_FOUND_HANDLER = "not_found"
SERVER_ERROR_HANDLER = "server_error"


class DefaultErrorHandler:
    """The catch-all entry at the end of the error cascade."""

    __slots__ = ("_handlers",)

    def __init__(self, handlers: HandlerTable) -> None:
        self._handlers = handlers

    async def __call__(
        self,
        errno: int,
        message: str,
        file: str | None = None,
        line: int | None = None,
    ) -> Any:
        status = http_status_for(errno)
        name = NOT_FOUND_HANDLER if status == NOT_FOUND else SERVER_ERROR_HANDLER
        override = self._handlers.get(name)
        if override is not None:
            return await invoke(override, errno, message, file, line)

        renderer = current_renderer()
        if status == NOT_FOUND:
            body = render_not_found(renderer, message)
        else:
            ctx = current_dispatch()
            body = render_server_error(
                renderer,
                errno,
                message,
                file,
                line,
                request_line=f"{ctx.request.method} {ctx.request.url}" if ctx else None,
                debug_context=ctx.debug_context if ctx else None,
            )
        content_type = f"text/html; charset={renderer.config.encoding}"
        return Response(body=body, content_type=content_type, status=status)
