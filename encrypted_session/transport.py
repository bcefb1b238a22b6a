"""
Cookie transport — the boundary between the session codec and HTTP.

The codec only needs three operations on a named cookie: read its value,
write a value with attributes, and remove it. :class:`CookieTransport`
describes that surface; :class:`MemoryCookieTransport` is a dict-backed
jar and :mod:`encrypted_session.web` adapts aiohttp requests/responses.
"""
from datetime import datetime, timezone
from typing import Literal, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field



class CookieOptions(BaseModel):
    """Attributes written alongside the session cookie."""

    max_age: Optional[int] = Field(default=None, ge=0)
    expires: Optional[datetime] = None
    domain: Optional[str] = None
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: Optional[Literal["Strict", "Lax", "None"]] = "Lax"

    def expires_at_ms(self) -> Optional[int]:
        """Absolute ``expires`` attribute in ms since epoch (naive is UTC)."""
        if self.expires is None:
            return None
        expires = self.expires
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return int(expires.timestamp() * 1000)


@runtime_checkable
class CookieTransport(Protocol):
    """Read/write access to named cookies for a single request."""

    def read_cookie(self, name: str) -> Optional[str]:
        ...

    def write_cookie(self, name: str, value: str, options: CookieOptions) -> None:
        ...

    def remove_cookie(self, name: str, options: CookieOptions) -> None:
        ...


class MemoryCookieTransport:
    """In-memory cookie jar.

    Keeps the current value of every cookie and the options used on the
    last write, which makes it handy outside of a web request and in tests.
    """

    def __init__(self, cookies: Optional[dict[str, str]] = None):
        self.cookies: dict[str, str] = dict(cookies or {})
        self.options: dict[str, CookieOptions] = {}

    def read_cookie(self, name: str) -> Optional[str]:
        return self.cookies.get(name)

    def write_cookie(self, name: str, value: str, options: CookieOptions) -> None:
        self.cookies[name] = value
        self.options[name] = options

    def remove_cookie(self, name: str, options: CookieOptions) -> None:
        self.cookies.pop(name, None)
        self.options.pop(name, None)
