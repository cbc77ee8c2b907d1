"""``citrus routes`` — list declared routes.

Resolves an import string to a citrus App and prints every route in
match order with method, path, and handler.
"""

import argparse
import sys

from citrus.cli._resolve import resolve_app
from citrus.files import CSS_ROUTE, PUBLIC_ROUTE

_BUILTIN_PATHS = frozenset({CSS_ROUTE[0], PUBLIC_ROUTE[0]})


def run_routes(args: argparse.Namespace) -> None:
    """Print a METHOD / PATH / HANDLER table for ``args.app``."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    app._ensure_frozen()
    routes = app.routes
    if getattr(args, "no_builtin", False):
        routes = tuple(route for route in routes if route.path not in _BUILTIN_PATHS)

    if not routes:
        print("No routes registered.")
        return

    rows = [(route.method, route.path, route.handler_name) for route in routes]

    width_method = max(6, *(len(r[0]) for r in rows))  # "METHOD" header
    width_path = max(4, *(len(r[1]) for r in rows))  # "PATH" header

    fmt = f"{{:<{width_method}}}  {{:<{width_path}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "HANDLER"))
    sep_len = width_method + width_path + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for method, path, handler_name in rows:
        print(fmt.format(method, path, handler_name))
