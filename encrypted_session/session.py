"""
EncryptedSession — a session value kept entirely in an encrypted cookie.

Provides the public API:
- ``set(value)`` — wrap with an expiry, encrypt and write the cookie
- ``read()`` — decode the cookie into a :class:`ReadResult`
- ``must_get()`` — return the value or raise the matching :class:`SessionError`
- ``get(default)`` — return the value or ``default`` on any failure
- ``delete()`` — remove the cookie

Security Note:
    Never log the secret, session values or cookie contents. Only log the
    cookie name and the failure kind.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from .boxes import EncryptedBox, ExpirableBox
from .conf import SessionConfig
from .crypto import (
    LazyRootKey,
    derive_key,
    generate_iv,
    generate_salt,
    open_sealed,
    seal,
)
from .exceptions import (
    ConfigurationError,
    ErrorKind,
    ExpiredError,
    MalformedError,
    NotFoundError,
    SessionError,
    error_for,
)
from .expiry import compute_expiry, is_expired
from .transport import CookieOptions, CookieTransport

logger = logging.getLogger("encrypted_session.session")

T = TypeVar("T")


@dataclass(frozen=True)
class ReadResult(Generic[T]):
    """Outcome of reading the session cookie: a value or an error kind."""

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, raising the exception matching ``error``."""
        if self.error is not None:
            raise error_for(self.error, self.detail)
        return self.value


class EncryptedSession(Generic[T]):
    """Encrypted session codec bound to one cookie.

    The handle holds no session value: every call reads or writes the
    cookie through ``transport``. Only the imported secret is cached.
    """

    def __init__(
        self,
        secret: str,
        name: str,
        transport: CookieTransport,
        cookie_options: Optional[CookieOptions] = None,
    ):
        if not name:
            raise ConfigurationError("Session cookie name cannot be empty")
        self.name = name
        self.transport = transport
        self.cookie_options = cookie_options or CookieOptions()
        self._root_key = LazyRootKey(secret)

    def __repr__(self) -> str:
        return f'<EncryptedSession name={self.name!r}>'

    @classmethod
    def from_config(
        cls, config: SessionConfig, transport: CookieTransport
    ) -> "EncryptedSession":
        return cls(
            secret=config.secret,
            name=config.cookie_name,
            transport=transport,
            cookie_options=config.cookie,
        )

    @classmethod
    def from_env(cls, transport: CookieTransport) -> "EncryptedSession":
        """Build a session handle from ``SESSION_*`` environment variables."""
        return cls.from_config(SessionConfig.from_env(), transport)

    # ------------------------------------------------------------------
    # Crypto pipeline (CPU-bound, run in a worker thread)
    # ------------------------------------------------------------------

    def _encrypt(self, box: ExpirableBox) -> str:
        root_key = self._root_key.get()
        salt = generate_salt()
        iv = generate_iv()
        key = derive_key(root_key, salt)
        enc = seal(key, iv, box.to_bytes())
        return EncryptedBox(salt=salt, iv=iv, enc=enc).to_text()

    def _decrypt(self, box: EncryptedBox) -> ExpirableBox:
        key = derive_key(self._root_key.get(), box.salt)
        return ExpirableBox.from_bytes(open_sealed(key, box.iv, box.enc))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def read(self) -> ReadResult[T]:
        """Decode the session cookie without raising session errors.

        An expired session is deleted before the result is returned.

        Raises:
            ConfigurationError: If the secret cannot be imported.
            Exception: Whatever the transport raises while reading.
        """
        cookie = self.transport.read_cookie(self.name)
        try:
            if not cookie:
                raise NotFoundError("session not found")
            envelope = EncryptedBox.from_text(cookie)
            box = await asyncio.to_thread(self._decrypt, envelope)
            if is_expired(box.exp):
                await self.delete()
                logger.info("Session cookie %s expired, removed", self.name)
                raise ExpiredError("session expired")
            if box.is_blank:
                raise MalformedError("session value is empty")
        except SessionError as err:
            logger.debug(
                "Session cookie %s rejected: %s", self.name, err.kind.value,
            )
            return ReadResult(error=err.kind, detail=str(err))
        return ReadResult(value=box.val)

    async def must_get(self) -> T:
        """Return the session value.

        Raises:
            NotFoundError: No cookie, or it decodes to nothing.
            MalformedError: A box has missing or wrong-typed fields.
            UnauthenticatedError: Tampered cookie or wrong secret.
            ExpiredError: The session expired; the cookie has been removed.
        """
        result = await self.read()
        return result.unwrap()

    async def get(self, default: Any = None) -> Optional[T]:
        """Return the session value, or ``default`` if there is no valid session.

        Every failure reads as absent, including an unusable secret or a
        failing transport; use :meth:`must_get` to tell them apart.
        """
        try:
            result = await self.read()
        except Exception as err:
            logger.debug(
                "Session cookie %s unreadable: %s", self.name, type(err).__name__,
            )
            return default
        return result.value if result.ok else default

    async def set(self, value: T) -> None:
        """Encrypt ``value`` and write it to the session cookie.

        Args:
            value: Session payload; anything msgpack can carry, plus
                pydantic models and sets. Tuples and sets read back as
                lists, pydantic models as dicts.

        Raises:
            ConfigurationError: If the secret cannot be imported.
            TypeError: If ``value`` cannot be serialized.
        """
        box = ExpirableBox(exp=compute_expiry(self.cookie_options), val=value)
        cookie = await asyncio.to_thread(self._encrypt, box)
        self.transport.write_cookie(self.name, cookie, self.cookie_options)
        logger.debug("Session cookie %s written (%d bytes)", self.name, len(cookie))

    async def delete(self) -> None:
        """Remove the session cookie; a missing cookie is not an error."""
        self.transport.remove_cookie(self.name, self.cookie_options)
        logger.debug("Session cookie %s deleted", self.name)
