"""Flash messages: values stored for the next request.

``flash(name, value)`` keeps a message for the next request;
``flash_now()`` reads the messages the previous request left for this
one. Messages live in the session, so flash needs sessions enabled
(``AppConfig.secret_key``).

The sweep that stores the next request's messages only runs for HTML
responses, so a JSON or file response between two pages does not
consume them.
"""

from dataclasses import dataclass, field
from typing import Any

from citrus.conditions import USER_WARNING
from citrus.context import DispatchContext, current_dispatch
from citrus.middleware.sessions import get_session, has_session
from citrus.server.cascade import record_notice

SESSION_KEY = "_citrus_flash"


@dataclass(slots=True)
class FlashMessages:
    """Messages readable now and messages queued for the next request."""

    now: dict[str, Any] = field(default_factory=dict)
    next: dict[str, Any] = field(default_factory=dict)


def load_flash(ctx: DispatchContext) -> None:
    """Attach the messages stored by the previous request to *ctx*."""
    stored = get_session().get(SESSION_KEY) if has_session() else None
    ctx.flash = FlashMessages(now=dict(stored) if isinstance(stored, dict) else {})


def sweep_flash(ctx: DispatchContext, content_type: str | None) -> None:
    """Store the queued messages for the next request.

    Runs when a dispatch ends. Skipped unless the response is HTML (or
    has no content type), or when sessions are off.
    """
    if ctx.flash is None or not has_session():
        return
    media = (content_type or "").split(";", 1)[0].strip().lower()
    if media not in ("", "text/html"):
        return
    session = get_session()
    if ctx.flash.next:
        session[SESSION_KEY] = dict(ctx.flash.next)
    else:
        session.pop(SESSION_KEY, None)


def flash(name: str, value: Any) -> None:
    """Queue a message for the next request.

    Without an active session the message is dropped and a
    ``USER_WARNING`` notice is recorded.
    """
    ctx = current_dispatch()
    if ctx is None or ctx.flash is None or not has_session():
        record_notice(
            USER_WARNING,
            "Flash messages can't be used because sessions are not enabled",
        )
        return
    ctx.flash.next[name] = value


def flash_now(name: str | None = None, default: Any = None) -> Any:
    """Messages available to the current request, or the one named *name*."""
    ctx = current_dispatch()
    messages = ctx.flash.now if ctx is not None and ctx.flash is not None else {}
    if name is None:
        return dict(messages)
    return messages.get(name, default)
