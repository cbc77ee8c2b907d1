"""Late-bound handler table.

Routes may name their handler instead of referencing it, so an app can
declare its routes before the module implementing them is imported::

    app.dispatch("/users/:id", "show_user")

    # controllers.py, imported on first use
    @app.define()
    def show_user(id): ...

Names are resolved just before invocation. When a name is unknown and an
autoload module is configured, the module is imported once and the
lookup retried. Dotted ``"package.module:function"`` references are
imported directly.
"""

import importlib
import logging
import threading
from collections.abc import Callable
from typing import Any

from citrus.routing.route import HandlerRef

logger = logging.getLogger("citrus.routing")


class HandlerTable:
    """Name-keyed registry of handlers, resolved lazily."""

    __slots__ = ("_autoload", "_autoloaded", "_handlers", "_lock")

    def __init__(self, autoload: str | None = None) -> None:
        self._handlers: dict[str, Callable[..., Any]] = {}
        self._autoload = autoload
        self._autoloaded = False
        self._lock = threading.Lock()

    def define(self, name: str, handler: Callable[..., Any]) -> None:
        """Bind *name* to *handler*, replacing any earlier definition."""
        self._handlers[name] = handler

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def get(self, name: str) -> Callable[..., Any] | None:
        """Return the handler defined under *name* without autoloading."""
        return self._handlers.get(name)

    def clear(self) -> None:
        self._handlers.clear()
        self._autoloaded = False

    def resolve(self, ref: HandlerRef) -> Callable[..., Any] | None:
        """Resolve *ref* to a callable, or ``None`` if it cannot be found."""
        if not isinstance(ref, str):
            return ref if callable(ref) else None

        handler = self._handlers.get(ref)
        if handler is not None:
            return handler

        if ":" in ref:
            return _import_reference(ref)

        if self._autoload_once():
            return self._handlers.get(ref)
        return None

    def _autoload_once(self) -> bool:
        """Import the autoload module on first miss. True if it was imported now."""
        if self._autoload is None or self._autoloaded:
            return False
        with self._lock:
            if self._autoloaded:
                return False
            self._autoloaded = True
            logger.debug("Autoloading handlers from %s", self._autoload)
            importlib.import_module(self._autoload)
        return True


def _import_reference(ref: str) -> Callable[..., Any] | None:
    module_path, _, attr = ref.partition(":")
    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError:
        logger.debug("Handler module %s not found", module_path)
        return None
    handler = getattr(module, attr, None)
    return handler if callable(handler) else None
