"""Error cascade: ordered error handlers plus notice accumulation.

Maps fatal conditions (``Halt`` exceptions, uncaught exceptions) to
Response objects through the handlers registered with ``app.error()``,
and records non-fatal conditions as notices on the current dispatch.

Resolution walks the registry in registration order and calls the first
entry whose code set contains the condition number, or ``ANY_ERROR``, or
``ANY_HTTP_STATUS`` when the number is a valid HTTP status. The default
handler is always consulted last, so every condition gets an answer.
"""

import logging
import sys
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from citrus._internal.invoke import invoke
from citrus._internal.types import ErrorHandler
from citrus.conditions import (
    ANY_ERROR,
    ANY_HTTP_STATUS,
    NOT_FOUND,
    RUNTIME_ERROR,
    SERVER_ERROR,
    condition_name,
    http_status_for,
    is_fatal,
)
from citrus.context import current_dispatch
from citrus.errors import ConfigurationError, Halt
from citrus.http.response import Redirect, Response, StreamingResponse
from citrus.http.status import is_valid_status
from citrus.notices import Notice

logger = logging.getLogger("citrus.cascade")

type Coerce = Callable[[Any], Response | StreamingResponse]


@dataclass(frozen=True, slots=True)
class ErrorHandlerEntry:
    """Association of condition numbers with one handler."""

    codes: frozenset[int]
    handler: ErrorHandler

    def accepts(self, number: int) -> bool:
        if number in self.codes or ANY_ERROR in self.codes:
            return True
        return ANY_HTTP_STATUS in self.codes and is_valid_status(number)


class ErrorCascade:
    """Ordered registry of error handlers.

    Usage::

        cascade = ErrorCascade(default_handler)
        cascade.register([404], not_found_page)
        entry = cascade.resolve(404)
    """

    __slots__ = ("_default", "_entries", "_frozen")

    def __init__(self, default: ErrorHandler) -> None:
        self._entries: list[ErrorHandlerEntry] = []
        self._default = ErrorHandlerEntry(codes=frozenset({ANY_ERROR}), handler=default)
        self._frozen = False

    def register(self, codes: Iterable[int], handler: ErrorHandler) -> ErrorHandlerEntry:
        if self._frozen:
            msg = "Cannot register error handlers after the app has started serving."
            raise ConfigurationError(msg)
        entry = ErrorHandlerEntry(codes=frozenset(codes), handler=handler)
        if not entry.codes:
            msg = "An error handler needs at least one condition number."
            raise ConfigurationError(msg)
        self._entries.append(entry)
        return entry

    def reset(self) -> None:
        self._entries.clear()
        self._frozen = False

    def freeze(self) -> None:
        self._frozen = True

    @property
    def entries(self) -> tuple[ErrorHandlerEntry, ...]:
        """Registered entries in resolution order, the default last."""
        return (*self._entries, self._default)

    def __iter__(self) -> Iterator[ErrorHandlerEntry]:
        return iter(self.entries)

    def resolve(self, number: int) -> ErrorHandlerEntry:
        """Return the first entry that accepts *number*."""
        for entry in self._entries:
            if entry.accepts(number):
                return entry
        return self._default

    async def handle(
        self,
        number: int,
        message: str,
        file: str | None,
        line: int | None,
        *,
        coerce: Coerce,
    ) -> Response | StreamingResponse:
        """Run the matching handler and turn its return value into a response.

        A handler may return a body or a full response. A body is answered
        with the HTTP status derived from *number*; a ``Response``, a
        ``Redirect`` or a ``(body, status)`` tuple keeps the status it names.
        """
        entry = self.resolve(number)
        result = await invoke(entry.handler, number, message, file, line)
        response = coerce(result)
        if not _chooses_status(result):
            response = response.with_status(http_status_for(number))
        return response


def _chooses_status(value: Any) -> bool:
    if isinstance(value, Response | StreamingResponse | Redirect):
        return True
    return isinstance(value, tuple) and len(value) > 1 and isinstance(value[1], int)


# -- Halting --


def halt(*args: Any) -> None:
    """Stop the current dispatch with an error condition.

    Accepts ``halt()``, ``halt(code)``, ``halt(code, message)``,
    ``halt(message)``, ``halt(message, code)`` and any extra arguments,
    which are kept as debug context for the error page::

        halt(404)                       # message defaults to the request path
        halt(403, "Members only")
        halt("Database unavailable")    # 500
        halt(NOTICE, "Slow query")      # recorded, execution continues

    A non-fatal condition number records a notice and returns.
    Everything else raises ``Halt``.
    """
    code, message, context = _normalize_halt_args(args)
    frame = sys._getframe(1)
    file, line = frame.f_code.co_filename, frame.f_lineno

    if not is_fatal(code):
        record_notice(code, message, file=file, line=line)
        return

    if not message and code == NOT_FOUND:
        ctx = current_dispatch()
        if ctx is not None:
            message = ctx.request.route_path
    raise Halt(code, message, context, file=file, line=line)


def _normalize_halt_args(args: tuple[Any, ...]) -> tuple[int, str, Any]:
    rest = list(args)
    first = rest.pop(0) if rest else None
    if isinstance(first, str):
        message = first
        second = rest.pop(0) if rest else None
        code = second if isinstance(second, int) and second else SERVER_ERROR
    else:
        code = first if isinstance(first, int) and first else SERVER_ERROR
        message = rest.pop(0) if rest else ""
    if message is None:
        message = ""
    context: Any = None
    if len(rest) == 1:
        context = rest[0]
    elif rest:
        context = tuple(rest)
    return code, str(message), context


# -- Notices --


def record_notice(
    number: int,
    message: str,
    *,
    file: str | None = None,
    line: int | None = None,
) -> Notice:
    """Append a notice to the current dispatch.

    Outside a dispatch there is no log to append to; the notice is only
    logged.
    """
    notice = Notice(number=number, message=message, file=file, line=line)
    logger.warning(
        "%s: %s%s",
        condition_name(number),
        message,
        f" ({file}:{line})" if file else "",
    )
    ctx = current_dispatch()
    if ctx is not None:
        ctx.notices.append(notice)
    return notice


def condition_of(exc: BaseException) -> tuple[int, str, str | None, int | None]:
    """Condition number, message and origin for an exception reaching the cascade."""
    if isinstance(exc, Halt):
        return exc.code, exc.message, exc.file, exc.line
    tb = exc.__traceback__
    file = line = None
    while tb is not None:
        file, line = tb.tb_frame.f_code.co_filename, tb.tb_lineno
        tb = tb.tb_next
    message = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
    return RUNTIME_ERROR, message, file, line
