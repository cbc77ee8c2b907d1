"""Cookie parsing (request side) and Set-Cookie serialization (response side)."""

from dataclasses import dataclass
from http.cookies import CookieError, SimpleCookie


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header into a name -> value dict.

    Malformed headers yield whatever pairs could be read before the error.
    """
    if not header:
        return {}
    jar = SimpleCookie()
    try:
        jar.load(header)
    except CookieError:
        pass
    return {name: morsel.value for name, morsel in jar.items()}


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive attached to a Response."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    def to_header_value(self) -> str:
        attributes = {
            "Max-Age": None if self.max_age is None else str(self.max_age),
            "Path": self.path or None,
            "Domain": self.domain,
            "SameSite": self.samesite or None,
        }
        parts = [f"{self.name}={self.value}"]
        parts.extend(f"{key}={value}" for key, value in attributes.items() if value is not None)
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        return "; ".join(parts)
