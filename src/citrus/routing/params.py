"""Parameter binding for matched routes.

Reconciles the captures of a matcher with the route's declared names:

* fewer captures than names: pad with ``None`` so handlers keep a
  stable arity for trailing optional wildcards;
* more captures than names: the extras get positional names
  ``len(names)``, ``len(names) + 1``...;
* default params from the route options come first and captured values
  override them.
"""

import re

from citrus.routing.route import Bindings, Route


def bind_params(route: Route, match: re.Match[str]) -> Bindings:
    """Build the parameter bindings for *route* from a successful *match*."""
    params: Bindings = dict(route.options.params)
    captures: list[str | None] = list(match.groups())
    names = list(route.names)
    if len(captures) < len(names):
        captures.extend([None] * (len(names) - len(captures)))
    elif len(captures) > len(names):
        names.extend(range(len(names), len(captures)))

    params.update(zip(names, captures, strict=True))
    return params
