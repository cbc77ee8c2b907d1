"""Content negotiation: maps return values to Response objects.

isinstance-based dispatch over the handler's return value, no magic,
fully predictable.
"""

import json as json_module
from typing import Any

from citrus.http.response import Redirect, Response, StreamingResponse
from citrus.templating.integration import Renderer
from citrus.templating.returns import InlineTemplate, Template


def negotiate(value: Any, *, renderer: Renderer) -> Response | StreamingResponse:
    """Convert a handler's return value to a response.

    Dispatch order:

    1. ``Response`` / ``StreamingResponse`` -> pass through
    2. ``Redirect``         -> 302 (or its status) with Location header
    3. ``Template``         -> render via kida, optional layout
    4. ``InlineTemplate``   -> render source via kida
    5. ``None``             -> empty text/html body
    6. ``str``              -> 200, text/html
    7. ``bytes``            -> 200, application/octet-stream
    8. ``dict`` / ``list``  -> 200, application/json
    9. ``(value, int)``     -> negotiate value, override status
    10. ``(value, int, dict)`` -> negotiate value, override status + headers
    """
    encoding = renderer.config.encoding
    match value:
        case Response() | StreamingResponse():
            return value
        case Redirect():
            return value.to_response()
        case Template():
            return _html(renderer.render_template(value), encoding)
        case InlineTemplate():
            return _html(renderer.render_inline(value), encoding)
        case None:
            return _html("", encoding)
        case str():
            return _html(value, encoding)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response(
                body=json_module.dumps(value, default=str),
                content_type=f"application/json; charset={encoding}",
            )
        case (inner, int() as status):
            return negotiate(inner, renderer=renderer).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner, renderer=renderer).with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                f"Return str, bytes, dict, list, Template, InlineTemplate, "
                f"Response, StreamingResponse or Redirect."
            )
            raise TypeError(msg)


def _html(body: str, encoding: str) -> Response:
    return Response(body=body, content_type=f"text/html; charset={encoding}")
