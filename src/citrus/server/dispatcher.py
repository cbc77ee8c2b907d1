"""The request lifecycle.

One dispatch runs these stages in order::

    METHOD_CHECK -> ROUTE_LOOKUP -> PARAM_BIND -> HANDLER_RESOLVE
        -> before -> INVOKE -> after -> OUTPUT

Any failure on the way (a ``halt()``, an unknown method, a missing
route or handler, an uncaught exception) is answered by the error
cascade. Whatever happened, the dispatch ends with the ``before_exit``
hook and the flash sweep, and it always produces a response.
"""

import logging
import traceback
from dataclasses import dataclass
from typing import Any

from citrus._internal.invoke import call_hook, invoke
from citrus._internal.types import Hook
from citrus.config import AppConfig
from citrus.context import DispatchContext, current_dispatch
from citrus.errors import Halt, HandlerBindingError, MethodNotImplemented
from citrus.flashes import load_flash, sweep_flash
from citrus.http.request import Request
from citrus.http.response import Response, StreamingResponse
from citrus.http.status import is_valid_status
from citrus.middleware.protocol import AnyResponse
from citrus.routing.route import HTTP_METHODS, RouteMatch
from citrus.routing.router import Router
from citrus.routing.symbols import HandlerTable
from citrus.server.cascade import ErrorCascade, condition_of, halt
from citrus.server.negotiation import negotiate
from citrus.server.pages import render_notices
from citrus.templating.integration import Renderer

logger = logging.getLogger("citrus.server")


def default_route_missing(method: str, path: str) -> Any:
    """Answer an unmatched request with 404."""
    halt(404, f"({method}) {path}")


@dataclass(slots=True)
class Hooks:
    """User hooks around the handler call.

    ``before(match)`` runs for side effects, ``after(body, match)`` may
    replace the body, ``autorender(match)`` supplies a body when the
    handler returned ``None``, ``route_missing(method, path)`` answers
    requests no route matches and ``before_exit()`` runs last, always.
    ``before_render(content, layout, locals)`` is handed to the renderer
    and may rewrite what every view renders.
    """

    before: Hook | None = None
    after: Hook | None = None
    autorender: Hook | None = None
    route_missing: Hook = default_route_missing
    before_exit: Hook | None = None
    before_render: Hook | None = None


class Dispatcher:
    """Drives one request from method check to response.

    Built by ``App._freeze()`` from the frozen registries and shared by
    all requests; per-request state lives on the ``DispatchContext``.
    """

    __slots__ = ("cascade", "config", "handlers", "hooks", "renderer", "router")

    def __init__(
        self,
        *,
        router: Router,
        handlers: HandlerTable,
        cascade: ErrorCascade,
        hooks: Hooks,
        renderer: Renderer,
        config: AppConfig,
    ) -> None:
        self.router = router
        self.handlers = handlers
        self.cascade = cascade
        self.hooks = hooks
        self.renderer = renderer
        self.config = config

    async def __call__(self, request: Request) -> AnyResponse:
        """Innermost stage of the middleware chain."""
        ctx = current_dispatch()
        if ctx is None:
            msg = "Dispatcher called outside a dispatch context."
            raise LookupError(msg)

        load_flash(ctx)
        response: AnyResponse | None = None
        try:
            response = await self._run(ctx, request)
        except Exception as exc:
            response = await self.escalate(exc, ctx)
        finally:
            await self._terminate(ctx, response)
        return response

    async def _run(self, ctx: DispatchContext, request: Request) -> AnyResponse:
        # METHOD_CHECK
        method = await request.effective_method(
            field_name=self.config.method_override_field,
            header_name=self.config.method_override_header.lower(),
        )
        ctx.method = method
        if method not in HTTP_METHODS:
            raise MethodNotImplemented(method)

        # ROUTE_LOOKUP
        path = request.route_path
        match = self.router.find(method, path)
        if match is None:
            logger.debug("No route for %s %s", method, path)
            result = await invoke(self.hooks.route_missing, method, path)
            return self._finish(ctx, negotiate(result, renderer=self.renderer))

        # PARAM_BIND
        ctx.match = match
        ctx.params = match.params
        ctx.request = request.with_path_params(match.params)

        # HANDLER_RESOLVE
        handler = self.handlers.resolve(match.route.handler)
        if handler is None:
            raise HandlerBindingError(match.route.handler)

        # before / INVOKE / after
        await call_hook(self.hooks.before, match)
        result = await invoke(handler, *match.args)
        if result is None:
            result = await call_hook(self.hooks.autorender, match)
        response = self._finish(ctx, negotiate(result, renderer=self.renderer))
        return await self._after(response, match)

    async def _after(self, response: AnyResponse, match: RouteMatch) -> AnyResponse:
        if self.hooks.after is None:
            return response
        body: Any = response.body if isinstance(response, Response) else response
        result = await invoke(self.hooks.after, body, match)
        match result:
            case None:
                return response
            case Response() | StreamingResponse():
                return result
            case str() | bytes() if isinstance(response, Response):
                return response.with_body(result)
            case _:
                return negotiate(result, renderer=self.renderer)

    def _finish(self, ctx: DispatchContext, response: AnyResponse) -> AnyResponse:
        """Prepend the notice log to HTML bodies in development mode."""
        if not self.config.is_development or not ctx.notices:
            return response
        if not isinstance(response, Response) or not response.is_html:
            return response
        notices = render_notices(ctx.notices.drain())
        return response.with_body(notices + response.text)

    async def escalate(self, exc: Exception, ctx: DispatchContext) -> AnyResponse:
        """Answer *exc* through the error cascade."""
        number, message, file, line = condition_of(exc)
        request = ctx.request
        if isinstance(exc, Halt):
            ctx.debug_context = exc.context
            if is_valid_status(number):
                logger.debug("%d %s %s: %s", number, request.method, request.path, message)
            else:
                logger.error(
                    "Condition %d on %s %s: %s", number, request.method, request.path, message
                )
        else:
            logger.error("Unhandled error on %s %s", request.method, request.path, exc_info=exc)
            if self.config.is_development:
                ctx.debug_context = "".join(traceback.format_exception(exc))

        try:
            response = await self.cascade.handle(number, message, file, line, coerce=self._coerce)
        except Exception:
            logger.exception("Error handler failed for condition %d", number)
            return Response(
                body="Internal Server Error",
                status=500,
                content_type=f"text/plain; charset={self.config.encoding}",
            )
        return self._finish(ctx, response)

    def _coerce(self, value: Any) -> AnyResponse:
        return negotiate(value, renderer=self.renderer)

    async def _terminate(self, ctx: DispatchContext, response: AnyResponse | None) -> None:
        try:
            await call_hook(self.hooks.before_exit)
        except Exception:
            logger.exception("before_exit hook failed")
        sweep_flash(ctx, response.content_type if response is not None else None)
        ctx.notices.clear()

