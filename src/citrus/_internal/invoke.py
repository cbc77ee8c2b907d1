"""Call sync or async user callables uniformly.

Handlers, hooks and error handlers may be ``def`` or ``async def``; every
call site goes through these helpers so the await check lives in one place.
"""

import inspect
from collections.abc import Callable
from typing import Any


async def invoke(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result when it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


async def call_hook(hook: Callable[..., Any] | None, *args: Any) -> Any:
    """``invoke`` an optional hook; a missing hook returns ``None``."""
    if hook is None:
        return None
    return await invoke(hook, *args)
