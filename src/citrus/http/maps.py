"""Read-only multi-valued maps for request data.

``Headers``, ``QueryParams`` and ``FormData`` share one base: each key may
carry several values, ``m[key]`` returns the first, ``get_list(key)``
returns all of them. Header keys are case-insensitive.
"""

from collections.abc import Iterable, Iterator, Mapping
from urllib.parse import parse_qsl


class MultiMap(Mapping[str, str]):
    """Immutable mapping of ``str`` keys to one or more ``str`` values."""

    __slots__ = ("_data",)

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        data: dict[str, list[str]] = {}
        for key, value in items:
            data.setdefault(self._key(key), []).append(value)
        object.__setattr__(self, "_data", data)

    @staticmethod
    def _key(key: str) -> str:
        return key

    def __setattr__(self, name: str, value: object) -> None:
        msg = f"{type(self).__name__} is immutable"
        raise AttributeError(msg)

    def __getitem__(self, key: str) -> str:
        return self._data[self._key(key)][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._key(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.multi_items()!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._data.get(self._key(key))
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        return list(self._data.get(self._key(key), ()))

    def multi_items(self) -> list[tuple[str, str]]:
        return [(key, value) for key, values in self._data.items() for value in values]


class Headers(MultiMap):
    """Case-insensitive request headers decoded from ASGI byte pairs."""

    __slots__ = ()

    @staticmethod
    def _key(key: str) -> str:
        return key.lower()

    @classmethod
    def from_raw(cls, raw: Iterable[tuple[bytes, bytes]]) -> "Headers":
        return cls((name.decode("latin-1"), value.decode("latin-1")) for name, value in raw)


class QueryParams(MultiMap):
    """Parsed query string. ``raw`` keeps the original bytes."""

    __slots__ = ("raw",)

    def __init__(self, query_string: bytes | str = b"") -> None:
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        super().__init__(parse_qsl(query_string, keep_blank_values=True))
        object.__setattr__(self, "raw", query_string)


class FormData(MultiMap):
    """Parsed form body. Uploaded files are kept apart in ``files``."""

    __slots__ = ("files",)

    def __init__(
        self,
        items: Iterable[tuple[str, str]] = (),
        files: Mapping[str, "UploadFile"] | None = None,
    ) -> None:
        super().__init__(items)
        object.__setattr__(self, "files", dict(files or {}))


class UploadFile:
    """A file received in a multipart body, held in memory."""

    __slots__ = ("content", "content_type", "filename")

    def __init__(self, filename: str, content_type: str, content: bytes) -> None:
        self.filename = filename
        self.content_type = content_type
        self.content = content

    @property
    def size(self) -> int:
        return len(self.content)

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"
