"""Citrus — a small routing and dispatch framework.

Declare routes against path templates, return strings, templates or
responses from handlers, and let the error cascade turn failures into
pages.

Basic usage::

    from citrus import App, halt

    app = App()

    @app.dispatch("/")
    def index():
        return "Hello, World!"

    @app.dispatch("/users/:id")
    def show_user(user_id):
        if user_id == "0":
            halt(404, "No such user")
        return f"User {user_id}"
"""

__version__ = "0.1.0-dev"
__all__ = [
    "ANY_ERROR",
    "ANY_HTTP_STATUS",
    "App",
    "AppConfig",
    "CitrusError",
    "ConfigurationError",
    "Halt",
    "InlineTemplate",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "StreamingResponse",
    "Template",
    "css",
    "flash",
    "flash_now",
    "g",
    "get_request",
    "h",
    "halt",
    "html",
    "js",
    "json",
    "layout",
    "params",
    "partial",
    "render",
    "send_file",
    "txt",
    "url_for",
    "xml",
]

_VIEWS = ("css", "html", "js", "json", "layout", "partial", "render", "txt", "xml")
_ERRORS = ("CitrusError", "ConfigurationError", "Halt", "NotFound")


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import citrus`` fast while providing a clean top-level API.
    """
    if name == "App":
        from citrus.app import App

        return App

    if name == "AppConfig":
        from citrus.config import AppConfig

        return AppConfig

    if name == "Request":
        from citrus.http.request import Request

        return Request

    if name in ("Response", "Redirect", "StreamingResponse"):
        from citrus.http import response as _resp

        return getattr(_resp, name)

    if name in ("Template", "InlineTemplate"):
        from citrus.templating import returns as _tmpl

        return getattr(_tmpl, name)

    if name in _VIEWS:
        from citrus.templating import views as _views

        return getattr(_views, name)

    if name in ("g", "get_request", "params"):
        from citrus import context as _ctx

        return getattr(_ctx, name)

    if name == "halt":
        from citrus.server.cascade import halt

        return halt

    if name in ("flash", "flash_now"):
        from citrus import flashes as _flashes

        return getattr(_flashes, name)

    if name in ("url_for", "h"):
        from citrus import urls as _urls

        return getattr(_urls, name)

    if name == "send_file":
        from citrus.files import send_file

        return send_file

    if name in ("ANY_ERROR", "ANY_HTTP_STATUS"):
        from citrus import conditions as _conditions

        return getattr(_conditions, name)

    if name in _ERRORS:
        from citrus import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
