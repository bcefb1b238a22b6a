"""Encrypted Session — a session value kept in an encrypted client-side cookie.

Security Note (Threat Model):
    The cookie gives confidentiality, integrity and expiry. It does not give
    revocation: a client can replay an older cookie until it expires.
"""

from .version import __version__
from .conf import SessionConfig
from .exceptions import (
    ConfigurationError,
    ErrorKind,
    ExpiredError,
    MalformedError,
    NotFoundError,
    SessionError,
    UnauthenticatedError,
)
from .session import EncryptedSession, ReadResult
from .transport import CookieOptions, CookieTransport, MemoryCookieTransport

__all__ = [
    "__version__",
    "EncryptedSession",
    "ReadResult",
    "SessionConfig",
    "CookieOptions",
    "CookieTransport",
    "MemoryCookieTransport",
    "ErrorKind",
    "SessionError",
    "NotFoundError",
    "MalformedError",
    "UnauthenticatedError",
    "ExpiredError",
    "ConfigurationError",
]
