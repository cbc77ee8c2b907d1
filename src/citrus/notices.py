"""Non-fatal diagnostics collected during a dispatch.

Warnings, deprecations and user notices never stop a request. They are
appended to the dispatch's ``NoticeLog`` and, in development mode,
rendered in front of the response body.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from citrus.conditions import condition_name


@dataclass(frozen=True, slots=True)
class Notice:
    """One recorded non-fatal condition."""

    number: int
    message: str
    file: str | None = None
    line: int | None = None

    @property
    def label(self) -> str:
        return condition_name(self.number)


class NoticeLog:
    """Append-only notice list. Only ``clear()`` removes entries."""

    __slots__ = ("_notices",)

    def __init__(self) -> None:
        self._notices: list[Notice] = []

    def append(self, notice: Notice) -> None:
        self._notices.append(notice)

    def clear(self) -> None:
        self._notices.clear()

    def drain(self) -> list[Notice]:
        """Return every notice and empty the log."""
        notices = list(self._notices)
        self._notices.clear()
        return notices

    def __iter__(self) -> Iterator[Notice]:
        return iter(tuple(self._notices))

    def __len__(self) -> int:
        return len(self._notices)

    def __bool__(self) -> bool:
        return bool(self._notices)
