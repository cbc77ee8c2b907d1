"""Static file serving middleware.

Serves files from a directory for matching URL prefixes, streaming them
in chunks. Falls through to the next handler for non-matching paths.
"""

from pathlib import Path

from citrus.files import send_file
from citrus.http.request import Request
from citrus.middleware.protocol import AnyResponse, Next
from citrus.server.cascade import halt


class StaticFiles:
    """Middleware that serves static files from a directory.

    Files are served for paths matching the configured prefix.
    Non-matching paths, and files that do not exist, fall through to the
    next handler, so routes can share the prefix.

    Security: resolves symlinks and verifies the final path is within the
    configured directory; anything outside it halts with 403 through the
    error cascade.

    Usage::

        app.add_middleware(StaticFiles(directory="./public", prefix="/public"))
    """

    __slots__ = ("_cache_control", "_directory", "_index", "_prefix")

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/public",
        *,
        index: str = "index.html",
        cache_control: str = "public, max-age=3600",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control

        # Root prefix "/" normalizes to "" (every path is a candidate)
        stripped = "/" + prefix.strip("/")
        self._prefix = stripped if stripped != "/" else ""

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Serve a static file or fall through."""
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        path = request.path
        if self._prefix:
            if not path.startswith(self._prefix + "/") and path != self._prefix:
                return await next(request)
            relative = path[len(self._prefix) :].lstrip("/")
        else:
            relative = path.lstrip("/")

        file_path = (self._directory / relative).resolve() if relative else self._directory
        if not file_path.is_relative_to(self._directory):
            halt(403, f"Forbidden: {path}")

        if file_path.is_dir():
            file_path = file_path / self._index
        if not file_path.is_file():
            return await next(request)

        response = send_file(file_path, root=self._directory)
        return response.with_header("Cache-Control", self._cache_control)
