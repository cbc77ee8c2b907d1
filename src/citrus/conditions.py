"""Condition numbers understood by the error cascade.

A condition is either an HTTP status (``404``, ``500``...) or one of the
internal numbers below. The numbering follows the classic error-level
bitmask so handlers written against it read naturally::

    @app.error(404, 410)
    def gone(errno, message, file, line): ...

    @app.error(ANY_HTTP_STATUS)
    def any_http(errno, message, file, line): ...

Two numbers are *markers*, only meaningful inside an ``app.error()`` code
set: ``ANY_ERROR`` matches every fatal condition and ``ANY_HTTP_STATUS``
matches every condition that is a valid HTTP status.
"""

from citrus.http.status import is_valid_status

RUNTIME_ERROR = 1
"""Pseudo-code for an uncaught exception raised by application code."""

WARNING = 2
NOTICE = 8
USER_ERROR = 256
USER_WARNING = 512
USER_NOTICE = 1024
DEPRECATED = 8192
USER_DEPRECATED = 16384

ANY_HTTP_STATUS = 32768
FRAMEWORK_DEPRECATED = 35000
ANY_ERROR = 65536

NOT_FOUND = 404
SERVER_ERROR = 500
NOT_IMPLEMENTED = 501

NON_FATAL: frozenset[int] = frozenset(
    {
        WARNING,
        NOTICE,
        USER_WARNING,
        USER_NOTICE,
        DEPRECATED,
        USER_DEPRECATED,
        FRAMEWORK_DEPRECATED,
    }
)

_NAMES: dict[int, str] = {
    RUNTIME_ERROR: "RUNTIME ERROR",
    WARNING: "WARNING",
    NOTICE: "NOTICE",
    USER_ERROR: "USER ERROR",
    USER_WARNING: "USER WARNING",
    USER_NOTICE: "USER NOTICE",
    DEPRECATED: "DEPRECATED WARNING",
    USER_DEPRECATED: "USER DEPRECATED WARNING",
    FRAMEWORK_DEPRECATED: "CITRUS DEPRECATED WARNING",
}


def is_fatal(number: int) -> bool:
    """True if *number* stops the current dispatch."""
    return number not in NON_FATAL


def condition_name(number: int) -> str:
    """Human-readable label used by the diagnostic pages."""
    if number in _NAMES:
        return _NAMES[number]
    if is_valid_status(number):
        return f"HTTP {number}"
    return f"ERROR {number}"


def http_status_for(number: int) -> int:
    """The HTTP status a condition is answered with."""
    return number if is_valid_status(number) else SERVER_ERROR
