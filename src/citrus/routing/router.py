"""Ordered route table with first-match-wins lookup.

Routes are appended during setup and scanned in registration order, so
the earliest matching declaration always wins. The scan is linear in the
number of routes, which keeps precedence obvious from the source order.
"""

import logging
import warnings
from collections.abc import Mapping, Sequence
from typing import Any

from citrus.errors import ConfigurationError, RouteWarning
from citrus.routing.params import bind_params
from citrus.routing.pattern import ParamName, compile_path, split_path_or_pair
from citrus.routing.route import HTTP_METHODS, HandlerRef, Route, RouteMatch, RouteOptions

logger = logging.getLogger("citrus.routing")


class Router:
    """Append-only route table.

    Usage::

        router = Router()
        router.register("GET", "/users/:id", show_user)
        router.register("POST", ("^/legacy/(\\d+)$", ["id"]), legacy)
        match = router.find("GET", "/users/42")
        match.params  # {"id": "42"}

    Registering ``GET`` also registers the same path for ``HEAD``.
    ``freeze()`` closes the table for the serving phase; ``reset()``
    empties it and opens it again.
    """

    __slots__ = ("_frozen", "_routes")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._frozen = False

    def register(
        self,
        method: str,
        path_or_pair: str | Sequence[object],
        handler: HandlerRef,
        params: Mapping[ParamName, Any] | None = None,
    ) -> list[Route]:
        """Compile and append a route. Returns the routes added.

        An unknown method is stored anyway and reported with a
        ``RouteWarning``. An invalid raw pattern raises
        ``ConfigurationError``.
        """
        if self._frozen:
            msg = "Cannot add routes after the app has started serving."
            raise ConfigurationError(msg)

        method = method.upper()
        if method not in HTTP_METHODS:
            msg = f"'{method}' request method is unknown or unavailable."
            logger.warning(msg)
            warnings.warn(msg, RouteWarning, stacklevel=2)

        template, names = split_path_or_pair(path_or_pair)
        pattern = compile_path(template, names)
        options = RouteOptions(params=dict(params or {}))

        added = [Route(method=method, pattern=pattern, handler=handler, options=options)]
        if method == "GET":
            added.append(Route(method="HEAD", pattern=pattern, handler=handler, options=options))
        self._routes.extend(added)
        return added

    def reset(self) -> None:
        """Remove every route and accept registrations again."""
        self._routes.clear()
        self._frozen = False

    def freeze(self) -> None:
        self._frozen = True

    @property
    def routes(self) -> tuple[Route, ...]:
        """All routes in match priority order."""
        return tuple(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def find(self, method: str, path: str) -> RouteMatch | None:
        """Return the first route matching *method* and *path*, or ``None``.

        ``None`` is not an error; the dispatcher decides what a miss means.
        """
        method = method.upper()
        for route in self._routes:
            if route.method != method:
                continue
            match = route.pattern.match(path)
            if match is not None:
                return RouteMatch(route=route, params=bind_params(route, match))
        return None
