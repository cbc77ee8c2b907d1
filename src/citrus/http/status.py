"""HTTP status codes and reason phrases.

The table is the textbook status set; a number outside it is not a valid
HTTP status and is answered as ``500`` by the error cascade.
"""

STATUS_PHRASES: dict[int, str] = {
    100: "Continue",
    101: "Switching Protocols",
    102: "Processing",
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non-Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",
    207: "Multi-Status",
    226: "IM Used",
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    306: "Reserved",
    307: "Temporary Redirect",
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Request Entity Too Large",
    414: "Request-URI Too Long",
    415: "Unsupported Media Type",
    416: "Requested Range Not Satisfiable",
    417: "Expectation Failed",
    422: "Unprocessable Entity",
    423: "Locked",
    424: "Failed Dependency",
    426: "Upgrade Required",
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",
    510: "Not Extended",
}


def is_valid_status(code: object) -> bool:
    """True if *code* is a known HTTP status code."""
    return isinstance(code, int) and not isinstance(code, bool) and code in STATUS_PHRASES


def reason_phrase(code: int) -> str:
    """Reason phrase for *code*, or ``""`` when unknown."""
    return STATUS_PHRASES.get(code, "")


def status_line(code: int, http_version: str = "1.1") -> str:
    """Full status line, e.g. ``HTTP/1.1 404 Not Found``."""
    return f"HTTP/{http_version} {code} {reason_phrase(code)}".rstrip()
