"""Citrus application class.

Mutable during setup (route declarations, error handlers, hooks,
middleware). Frozen at runtime when ``__call__()`` is first invoked.
"""

import inspect
import logging
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from citrus._internal.asgi import Receive, Scope, Send
from citrus._internal.types import ErrorHandler, Handler, Hook
from citrus.config import AppConfig
from citrus.errors import ConfigurationError
from citrus.files import register_builtin_routes
from citrus.middleware.protocol import Middleware, Next
from citrus.middleware.sessions import SessionConfig, SessionMiddleware
from citrus.middleware.static import StaticFiles
from citrus.routing.pattern import ParamName
from citrus.routing.route import HandlerRef, Route
from citrus.routing.router import Router
from citrus.routing.symbols import HandlerTable
from citrus.server.cascade import ErrorCascade
from citrus.server.dispatcher import Dispatcher, Hooks
from citrus.server.errors import DefaultErrorHandler
from citrus.server.handler import build_chain, handle_request
from citrus.templating.integration import Renderer, create_environment
from citrus.urls import h, url_for

logger = logging.getLogger("citrus.server")

type PathOrPair = str | Sequence[object]


class App:
    """The citrus application.

    Usage::

        app = App(AppConfig(env="development"))

        @app.dispatch("/")
        def index():
            return "Hello"

        @app.dispatch_get("/users/:id")
        def show_user(id):
            return f"User {id}"

        app.dispatch_post("/users", "create_user")   # resolved by name later

    Routes are matched in declaration order and the first match wins.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread builds the runtime state, even when several ASGI workers
        receive their first request at the same time.
    """

    __slots__ = (
        "_cascade",
        "_chain",
        "_dispatcher",
        "_freeze_lock",
        "_frozen",
        "_handlers",
        "_hooks",
        "_middleware_list",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "_template_filters",
        "_template_globals",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._freeze_lock: threading.Lock = threading.Lock()
        self._setup_registries()

    def _setup_registries(self) -> None:
        self._router = Router()
        self._handlers = HandlerTable(autoload=self.config.controllers)
        self._cascade = ErrorCascade(DefaultErrorHandler(self._handlers))
        self._hooks = Hooks()
        self._middleware_list: list[Middleware] = []
        self._template_filters: dict[str, Callable[..., Any]] = {}
        self._template_globals: dict[str, Any] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen = False

        # Runtime state, built by _freeze()
        self._dispatcher: Dispatcher | None = None
        self._chain: Next | None = None

    # -- Route declaration --

    def route(
        self,
        path_or_pair: PathOrPair,
        handler: HandlerRef | None = None,
        *,
        methods: Iterable[str] = ("GET",),
        params: Mapping[ParamName, Any] | None = None,
    ) -> Any:
        """Declare a route for one or more methods.

        With *handler* (a callable or a handler name) the routes are added
        and returned. Without it, ``route`` works as a decorator::

            @app.route("/articles/:slug", methods=["GET", "POST"])
            def article(slug): ...

        *path_or_pair* is a template (``"/files/**"``), a raw pattern
        (``"^/legacy/(\\\\d+)$"``) or a ``(pattern, names)`` pair. *params*
        are default bindings; captured values override them.
        """
        if handler is None:

            def decorator(func: Handler) -> Handler:
                self._add_routes(methods, path_or_pair, func, params)
                return func

            return decorator
        return self._add_routes(methods, path_or_pair, handler, params)

    def dispatch(
        self,
        path_or_pair: PathOrPair,
        handler: HandlerRef | None = None,
        *,
        params: Mapping[ParamName, Any] | None = None,
    ) -> Any:
        """Declare a GET (and HEAD) route. Alias of ``dispatch_get``."""
        return self.route(path_or_pair, handler, methods=("GET",), params=params)

    def dispatch_get(
        self,
        path_or_pair: PathOrPair,
        handler: HandlerRef | None = None,
        *,
        params: Mapping[ParamName, Any] | None = None,
    ) -> Any:
        return self.route(path_or_pair, handler, methods=("GET",), params=params)

    def dispatch_post(
        self,
        path_or_pair: PathOrPair,
        handler: HandlerRef | None = None,
        *,
        params: Mapping[ParamName, Any] | None = None,
    ) -> Any:
        return self.route(path_or_pair, handler, methods=("POST",), params=params)

    def dispatch_put(
        self,
        path_or_pair: PathOrPair,
        handler: HandlerRef | None = None,
        *,
        params: Mapping[ParamName, Any] | None = None,
    ) -> Any:
        return self.route(path_or_pair, handler, methods=("PUT",), params=params)

    def dispatch_delete(
        self,
        path_or_pair: PathOrPair,
        handler: HandlerRef | None = None,
        *,
        params: Mapping[ParamName, Any] | None = None,
    ) -> Any:
        return self.route(path_or_pair, handler, methods=("DELETE",), params=params)

    def _add_routes(
        self,
        methods: Iterable[str],
        path_or_pair: PathOrPair,
        handler: HandlerRef,
        params: Mapping[ParamName, Any] | None,
    ) -> list[Route]:
        self._check_not_frozen()
        if isinstance(methods, str):
            methods = (methods,)
        added: list[Route] = []
        for method in methods:
            added.extend(self._router.register(method, path_or_pair, handler, params))
        return added

    @property
    def routes(self) -> tuple[Route, ...]:
        """Declared routes in match priority order."""
        return self._router.routes

    # -- Named handlers --

    def define(
        self,
        name: str | None = None,
        handler: Callable[..., Any] | None = None,
    ) -> Any:
        """Define a handler that routes can reference by name.

        Usage::

            app.dispatch("/users", "list_users")

            @app.define()
            def list_users(): ...

            app.define("show_user", show_user)
        """
        if handler is not None:
            if name is None:
                name = handler.__name__
            self._handlers.define(name, handler)
            return handler

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._handlers.define(name or func.__name__, func)
            return func

        return decorator

    @property
    def handlers(self) -> HandlerTable:
        return self._handlers

    # -- Error handlers --

    def error(self, *codes: int) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler for one or more condition numbers.

        Handlers are consulted in registration order and called with
        ``(errno, message, file, line)``::

            @app.error(404)
            def not_found(errno, message, file, line):
                return html("404.html", path=message)

            @app.error(ANY_HTTP_STATUS)
            def http_errors(errno, message, file, line): ...
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._cascade.register(codes, func)
            return func

        return decorator

    @property
    def error_handlers(self) -> ErrorCascade:
        return self._cascade

    # -- Dispatch hooks --

    def before(self, func: Hook) -> Hook:
        """Run ``func(match)`` after routing, before the handler."""
        self._check_not_frozen()
        self._hooks.before = func
        return func

    def after(self, func: Hook) -> Hook:
        """Run ``func(body, match)`` on the handler's output; a return value replaces it."""
        self._check_not_frozen()
        self._hooks.after = func
        return func

    def autorender(self, func: Hook) -> Hook:
        """Run ``func(match)`` when a handler returns ``None``; its return value is the output."""
        self._check_not_frozen()
        self._hooks.autorender = func
        return func

    def route_missing(self, func: Hook) -> Hook:
        """Run ``func(method, path)`` when no route matches. Defaults to a 404."""
        self._check_not_frozen()
        self._hooks.route_missing = func
        return func

    def before_exit(self, func: Hook) -> Hook:
        """Run ``func()`` at the end of every dispatch, even a failed one."""
        self._check_not_frozen()
        self._hooks.before_exit = func
        return func

    def before_render(self, func: Hook) -> Hook:
        """Run ``func(content, layout, locals)`` before each render; return the triple to use."""
        self._check_not_frozen()
        self._hooks.before_render = func
        return func

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Template integration --

    def template_filter(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template filter."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_filters[name or func.__name__] = func
            return func

        return decorator

    def template_global(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template global."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_globals[name or func.__name__] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()
        assert self._dispatcher is not None
        assert self._chain is not None
        await handle_request(scope, receive, send, dispatcher=self._dispatcher, chain=self._chain)

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first HTTP request), then
        runs the startup/shutdown hooks and signals completion back to
        the server.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def reset(self) -> None:
        """Discard every route, handler, hook and middleware.

        Returns the app to its freshly constructed state, so a test
        harness can declare a new application on the same instance.
        """
        with self._freeze_lock:
            self._setup_registries()

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Build the runtime state.

        MUST only be called while holding _freeze_lock.
        """
        config = self.config

        # 1. Framework routes go last so app routes always win
        if config.builtin_routes:
            register_builtin_routes(self._router)
        self._router.freeze()
        self._cascade.freeze()

        # 2. Middleware: sessions outermost, then static files, then the app's own
        middleware: list[Middleware] = []
        if config.secret_key and not any(
            isinstance(mw, SessionMiddleware) for mw in self._middleware_list
        ):
            middleware.append(SessionMiddleware(SessionConfig.from_app_config(config)))
        if config.static_dir is not None and Path(config.static_dir).is_dir():
            middleware.append(StaticFiles(config.static_dir, config.static_url))
        middleware.extend(self._middleware_list)

        # 3. Kida environment
        template_globals = {"url_for": url_for, "h": h, **self._template_globals}
        env = create_environment(config, self._template_filters, template_globals)
        renderer = Renderer(env, config, before_render=self._hooks.before_render)

        self._dispatcher = Dispatcher(
            router=self._router,
            handlers=self._handlers,
            cascade=self._cascade,
            hooks=self._hooks,
            renderer=renderer,
            config=config,
        )
        self._chain = build_chain(self._dispatcher, tuple(middleware))
        self._frozen = True
        logger.debug("App frozen with %d routes", len(self._router))

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Declare routes, hooks and middleware before the first request."
            )
            raise ConfigurationError(msg)
