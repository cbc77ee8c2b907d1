"""Citrus CLI — route table inspection.

Entry point registered as ``citrus`` in ``pyproject.toml``::

    [project.scripts]
    citrus = "citrus.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``citrus`` command."""
    parser = argparse.ArgumentParser(
        prog="citrus",
        description="Citrus — a routing and dispatch micro-framework.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- citrus routes ----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List routes in match order")
    routes_parser.add_argument(
        "app",
        help="Import string (e.g. myapp:app)",
    )
    routes_parser.add_argument(
        "--no-builtin",
        action="store_true",
        help="Hide the framework's own asset routes",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from citrus.cli._routes import run_routes

        run_routes(args)
