"""Encrypted Session errors.

Per-request failures derive from :class:`SessionError` and carry an
:class:`ErrorKind`. :class:`ConfigurationError` is fatal and is never
collapsed into an absent session.
"""
from enum import Enum


class ErrorKind(str, Enum):
    """Reason a session cookie could not be read."""

    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    UNAUTHENTICATED = "unauthenticated"
    EXPIRED = "expired"


class SessionError(Exception):
    """Base error for a session cookie that cannot be used."""

    kind: ErrorKind

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind.value)


class NotFoundError(SessionError):
    """No session cookie, or the cookie decodes to nothing."""

    kind = ErrorKind.NOT_FOUND


class MalformedError(SessionError):
    """A box has missing, wrong-typed or wrong-sized fields."""

    kind = ErrorKind.MALFORMED


class UnauthenticatedError(SessionError):
    """AES-GCM tag verification failed (tampering or wrong secret)."""

    kind = ErrorKind.UNAUTHENTICATED


class ExpiredError(SessionError):
    """Authentic session whose expiry instant has passed."""

    kind = ErrorKind.EXPIRED


class ConfigurationError(RuntimeError):
    """Invalid session configuration, such as an empty secret."""


_ERRORS = {
    cls.kind: cls
    for cls in (NotFoundError, MalformedError, UnauthenticatedError, ExpiredError)
}


def error_for(kind: ErrorKind, message: str = "") -> SessionError:
    """Build the exception instance matching ``kind``."""
    return _ERRORS[kind](message)
