"""ASGI response sending: translates citrus Response types to ASGI messages.

Handles single-body responses and chunked streaming responses. For HEAD
requests the status and headers are sent exactly as for GET and the body
is left out.
"""

import logging
from collections.abc import AsyncIterable

from citrus._internal.asgi import Send
from citrus.http.response import Response, StreamingResponse

logger = logging.getLogger("citrus.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(response: Response | StreamingResponse) -> list[tuple[bytes, bytes]]:
    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    for name, value in response.headers:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    raw_headers.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1")) for cookie in response.cookies
    )
    return raw_headers


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Translate a citrus Response into ASGI send() calls."""
    raw_headers = _raw_headers(response)
    body = response.body_bytes if _body_allowed(response.status) else b""
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b"" if head else body,
        }
    )


async def send_streaming_response(
    response: StreamingResponse,
    send: Send,
    *,
    head: bool = False,
) -> None:
    """Send a streaming response chunk by chunk.

    Sends headers immediately, then each chunk as an ASGI body message
    with ``more_body=True``, and closes with an empty body. Each chunk is
    handed to the server as soon as it is produced, so memory use does
    not grow with the size of the body.
    """
    raw_headers = _raw_headers(response)
    if response.content_length is not None:
        raw_headers.append((b"content-length", str(response.content_length).encode("latin-1")))
    else:
        raw_headers.append((b"transfer-encoding", b"chunked"))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )

    if not head and _body_allowed(response.status):
        try:
            if isinstance(response.chunks, AsyncIterable):
                async for chunk in response.chunks:
                    await _send_chunk(send, chunk)
            else:
                for chunk in response.chunks:
                    await _send_chunk(send, chunk)
        except Exception:
            # Headers are already sent; only the body can still be closed.
            logger.exception("Error while streaming response body")

    await send(
        {
            "type": "http.response.body",
            "body": b"",
            "more_body": False,
        }
    )


async def _send_chunk(send: Send, chunk: str | bytes) -> None:
    if not chunk:
        return
    await send(
        {
            "type": "http.response.body",
            "body": chunk.encode("utf-8") if isinstance(chunk, str) else chunk,
            "more_body": True,
        }
    )


async def send_any(response: Response | StreamingResponse, send: Send, *, head: bool = False) -> None:
    if isinstance(response, StreamingResponse):
        await send_streaming_response(response, send, head=head)
    else:
        await send_response(response, send, head=head)
