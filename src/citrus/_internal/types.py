"""Shared type aliases for user-supplied callables."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: called positionally with the bound path parameters
Handler: TypeAlias = Callable[..., Any]

# Error handler: (errno, message, file, line) -> body or Response
ErrorHandler: TypeAlias = Callable[[int, str, str | None, int | None], Any]

# Lifecycle hooks: before(route), after(body, route), autorender(route)...
Hook: TypeAlias = Callable[..., Any]
