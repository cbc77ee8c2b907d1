"""Form body parsing — URL-encoded and multipart.

URL-encoded bodies use stdlib ``urllib.parse``. Multipart bodies are
parsed with ``python-multipart``, imported on first use.

PUT and DELETE bodies are decoded the same way, so handlers read
``await request.form()`` regardless of the method.
"""

from typing import Any
from urllib.parse import parse_qsl

from citrus.errors import ConfigurationError
from citrus.http.maps import FormData, UploadFile

URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"


def media_type(content_type: str | None) -> str:
    """The bare media type of a Content-Type value, lower-cased."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def parse_form_data(body: bytes, content_type: str | None) -> FormData:
    """Parse a request body into ``FormData``.

    A missing content type is treated as URL-encoded. Any other non-form
    media type yields an empty ``FormData``.
    """
    kind = media_type(content_type) or URLENCODED
    if kind == URLENCODED:
        return FormData(parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True))
    if kind == MULTIPART:
        return _parse_multipart(body, content_type or "")
    return FormData()


class _PartCollector:
    """Accumulates multipart parser callbacks into fields and files."""

    def __init__(self, parse_options_header: Any) -> None:
        self._parse_options = parse_options_header
        self.fields: list[tuple[str, str]] = []
        self.files: dict[str, UploadFile] = {}
        self._begin()

    def _begin(self) -> None:
        self._header_name = b""
        self._headers: dict[bytes, bytes] = {}
        self._buffer = bytearray()

    def callbacks(self) -> dict[str, Any]:
        return {
            "on_part_begin": self._begin,
            "on_part_data": lambda data, start, end: self._buffer.extend(data[start:end]),
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_part_end": self._on_part_end,
        }

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_name = data[start:end].lower()

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._headers[self._header_name] = data[start:end]

    def _on_part_end(self) -> None:
        disposition = self._headers.get(b"content-disposition")
        if disposition is None:
            return
        _, options = self._parse_options(disposition)
        name = options.get(b"name")
        if name is None:
            return
        field = name.decode("utf-8")
        filename = options.get(b"filename")
        if filename is None:
            self.fields.append((field, self._buffer.decode("utf-8", errors="replace")))
            return
        content_type = self._headers.get(b"content-type", b"application/octet-stream")
        self.files[field] = UploadFile(
            filename=filename.decode("utf-8"),
            content_type=content_type.decode("latin-1"),
            content=bytes(self._buffer),
        )


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    try:
        from python_multipart.multipart import MultipartParser, parse_options_header
    except ImportError:
        msg = (
            "Multipart form parsing requires the 'python-multipart' package. "
            "Install it with: pip install python-multipart"
        )
        raise ConfigurationError(msg) from None

    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    collector = _PartCollector(parse_options_header)
    parser = MultipartParser(boundary, collector.callbacks())
    parser.write(body)
    parser.finalize()
    return FormData(collector.fields, collector.files)
