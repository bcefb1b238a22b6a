import pytest

from encrypted_session import expiry
from encrypted_session.session import EncryptedSession
from encrypted_session.transport import CookieOptions, MemoryCookieTransport


class FrozenClock:
    """Controllable replacement for ``expiry.now_ms``."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def clock(monkeypatch):
    """Freeze session time; advance it with ``clock.advance(seconds)``."""
    frozen = FrozenClock()
    monkeypatch.setattr(expiry, "now_ms", frozen)
    return frozen


@pytest.fixture
def jar():
    """Empty in-memory cookie jar."""
    return MemoryCookieTransport()


@pytest.fixture
def session(jar):
    """Session handle without expiry attributes."""
    return EncryptedSession("s3cr3t", "sess", jar)


@pytest.fixture
def hourly_session(jar):
    """Session handle with max_age=3600."""
    return EncryptedSession("s3cr3t", "sess", jar, CookieOptions(max_age=3600))
