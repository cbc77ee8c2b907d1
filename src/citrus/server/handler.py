"""ASGI handler: translates ASGI scope/messages to citrus types.

The only component that touches raw ASGI directly. Builds the typed
Request, opens the dispatch context, runs the middleware chain around
the dispatcher and sends the response back through ASGI send().
"""

from collections.abc import Callable
from typing import Any

from citrus._internal.asgi import Receive, Scope, Send
from citrus.context import DispatchContext, enter_dispatch, exit_dispatch
from citrus.http.request import Request
from citrus.middleware.protocol import AnyResponse, Next
from citrus.server.dispatcher import Dispatcher
from citrus.server.sender import send_any

SIGNATURE_HEADER = "X-Citrus"


def build_chain(dispatcher: Dispatcher, middleware: tuple[Callable[..., Any], ...]) -> Next:
    """Wrap *middleware* around the dispatcher, first added outermost."""
    handler: Next = dispatcher
    for mw in reversed(middleware):
        outer = handler

        async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> AnyResponse:
            return await _mw(req, _next)

        handler = make_next
    return handler


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
    chain: Next,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    config = dispatcher.config
    request = Request.from_asgi(scope, receive)
    ctx = DispatchContext(request=request, config=config, renderer=dispatcher.renderer)
    token = enter_dispatch(ctx)
    try:
        try:
            response = await chain(request)
        except Exception as exc:
            # Raised by a middleware, outside the dispatcher's own handling
            response = await dispatcher.escalate(exc, ctx)

        if config.signature:
            response = response.with_header(SIGNATURE_HEADER, config.signature)
        await send_any(response, send, head=request.is_head)
    finally:
        exit_dispatch(token)
