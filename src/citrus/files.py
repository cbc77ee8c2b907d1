"""File responses and the framework's built-in asset routes.

``send_file()`` streams a file in fixed-size chunks, so serving a large
file never holds more than one chunk in memory::

    @app.dispatch_get("/downloads/:name")
    def download(name):
        return send_file(Path("downloads") / name, root="downloads")
"""

from collections.abc import Iterator
from pathlib import Path

from citrus.context import current_dispatch
from citrus.http.mime import is_text, mime_content_type
from citrus.http.response import StreamingResponse
from citrus.routing.router import Router
from citrus.server.cascade import halt

DEFAULT_CHUNK_SIZE = 1024 * 1024

PUBLIC_DIR = Path(__file__).parent / "public"

CSS_ROUTE = ("^/_citrus_css/(.+)\\.css$", ["name"])
PUBLIC_ROUTE = ("^/_citrus_public/(.+)$", ["path"])


def _chunk_size() -> int:
    ctx = current_dispatch()
    return ctx.config.chunk_size if ctx is not None else DEFAULT_CHUNK_SIZE


def _encoding() -> str:
    ctx = current_dispatch()
    return ctx.config.encoding if ctx is not None else "utf-8"


def iter_file(path: Path, chunk_size: int) -> Iterator[bytes]:
    """Yield the contents of *path* in chunks of *chunk_size* bytes."""
    with path.open("rb") as fh:
        while chunk := fh.read(chunk_size):
            yield chunk


def send_file(
    path: str | Path,
    *,
    root: str | Path | None = None,
    content_type: str | None = None,
    chunk_size: int | None = None,
) -> StreamingResponse:
    """Stream the file at *path*.

    ``../`` sequences are removed from *path*; with *root* the resolved
    file must also lie inside that directory. A missing file halts with
    404. Text files get a ``charset`` parameter in their content type.
    """
    cleaned = Path(str(path).replace("../", ""))
    file_path = cleaned.resolve()
    if root is not None:
        base = Path(root).resolve()
        if not file_path.is_relative_to(base):
            halt(404, f"unknown filename {cleaned}")
    if not file_path.is_file():
        halt(404, f"unknown filename {cleaned}")

    if content_type is None:
        content_type = mime_content_type(file_path)
        if is_text(file_path):
            content_type = f"{content_type}; charset={_encoding()}"

    return StreamingResponse(
        chunks=iter_file(file_path, chunk_size or _chunk_size()),
        content_type=content_type,
        content_length=file_path.stat().st_size,
    )


def builtin_css(name: str) -> StreamingResponse:
    return send_file(PUBLIC_DIR / "css" / f"{name}.css", root=PUBLIC_DIR / "css")


def builtin_public(path: str) -> StreamingResponse:
    return send_file(PUBLIC_DIR / path, root=PUBLIC_DIR)


def register_builtin_routes(router: Router) -> None:
    """Serve the framework's stylesheets and public assets."""
    router.register("GET", CSS_ROUTE, builtin_css)
    router.register("GET", PUBLIC_ROUTE, builtin_public)
