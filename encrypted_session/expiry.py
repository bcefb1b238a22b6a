"""Expirable-value policy: when a session written now stops being valid."""
import time

from .transport import CookieOptions


# Largest integer every msgpack decoder (JavaScript included) reads exactly.
MAX_EXPIRY_MS = 2 ** 53 - 1


def now_ms() -> int:
    """Current wall-clock time in milliseconds since epoch."""
    return int(time.time() * 1000)


def compute_expiry(options: CookieOptions) -> int:
    """Absolute expiry for a session written now.

    ``max_age`` wins over ``expires``; a zero ``max_age`` counts as unset.
    Without either attribute the session never expires by itself.
    """
    if options.max_age:
        return now_ms() + options.max_age * 1000
    expires = options.expires_at_ms()
    if expires is not None:
        return expires
    return MAX_EXPIRY_MS


def is_expired(exp: float) -> bool:
    return exp < now_ms()
