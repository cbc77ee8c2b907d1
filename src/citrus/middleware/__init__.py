"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    SessionMiddleware -- Signed cookie sessions (itsdangerous)
    StaticFiles -- Serve static files from a directory
"""

from citrus.middleware.protocol import AnyResponse, Middleware, Next
from citrus.middleware.sessions import SessionConfig, SessionMiddleware, get_session
from citrus.middleware.static import StaticFiles

__all__ = [
    "AnyResponse",
    "Middleware",
    "Next",
    "SessionConfig",
    "SessionMiddleware",
    "StaticFiles",
    "get_session",
]
