"""
Session Crypto Core — key derivation and authenticated encryption.

Every write derives a fresh AES-256 key:
    PBKDF2-HMAC-SHA256(secret, salt 16B, 100000 iterations) → AES-GCM(iv 12B)

Security Note:
    Never log the secret, derived keys, plaintext or ciphertext.
    Salts and IVs are random per write; a derived key never encrypts twice.
"""
import os
import logging
import threading
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import ConfigurationError, UnauthenticatedError

logger = logging.getLogger("encrypted_session.crypto")

SALT_SIZE = 16  # 128-bit salt
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM tag
KEY_LENGTH = 32  # AES-256
KDF_ITERATIONS = 100_000


class RootKey:
    """Imported form of the long-term secret.

    Holds the UTF-8 encoding of the secret; it does not depend on any salt,
    so a session handle imports it once and reuses it for every call.
    """

    __slots__ = ("_material",)

    def __init__(self, material: bytes):
        self._material = material

    def __repr__(self) -> str:
        return "<RootKey>"

    @property
    def material(self) -> bytes:
        return self._material

    @classmethod
    def from_secret(cls, secret: str) -> "RootKey":
        """Import a text secret.

        Raises:
            ConfigurationError: If the secret is not text or is empty.
        """
        if not isinstance(secret, str):
            raise ConfigurationError(
                f"Session secret must be text, got {type(secret).__name__}"
            )
        if not secret:
            raise ConfigurationError("Session secret cannot be empty")
        return cls(secret.encode("utf-8"))


class LazyRootKey:
    """Init-once holder for a :class:`RootKey`.

    Concurrent first use is serialized by a lock; later calls read the
    cached key without locking.
    """

    def __init__(self, secret: str):
        self._secret = secret
        self._key: Optional[RootKey] = None
        self._lock = threading.Lock()

    def get(self) -> RootKey:
        key = self._key
        if key is not None:
            return key
        with self._lock:
            if self._key is None:
                self._key = RootKey.from_secret(self._secret)
                logger.debug("Imported session root key")
            return self._key


# ---------------------------------------------------------------------------
# Randomness
# ---------------------------------------------------------------------------

def generate_salt() -> bytes:
    """Return a fresh 16-byte salt from the OS CSPRNG."""
    return os.urandom(SALT_SIZE)


def generate_iv() -> bytes:
    """Return a fresh 12-byte AES-GCM nonce from the OS CSPRNG."""
    return os.urandom(NONCE_SIZE)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(root_key: RootKey, salt: bytes) -> bytes:
    """Derive a 32-byte AES-GCM key using PBKDF2-HMAC-SHA256.

    Args:
        root_key: Imported long-term secret.
        salt: 16-byte per-session salt.

    Returns:
        32-byte derived key.
    """
    if len(salt) != SALT_SIZE:
        raise ValueError(
            f"salt must be exactly {SALT_SIZE} bytes, got {len(salt)}"
        )
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(root_key.material)


# ---------------------------------------------------------------------------
# Authenticated encryption
# ---------------------------------------------------------------------------

def seal(key: bytes, iv: bytes, plaintext: bytes) -> bytes:
    """Encrypt with AES-256-GCM, no associated data.

    Returns:
        ciphertext followed by the 16-byte tag.
    """
    return AESGCM(key).encrypt(iv, plaintext, None)


def open_sealed(key: bytes, iv: bytes, data: bytes) -> bytes:
    """Decrypt and verify AES-256-GCM ciphertext+tag.

    Raises:
        UnauthenticatedError: If the tag does not verify or sizes are inconsistent.
    """
    if len(iv) != NONCE_SIZE or len(data) < TAG_SIZE:
        raise UnauthenticatedError(
            f"inconsistent sizes: iv={len(iv)} ciphertext={len(data)}"
        )
    try:
        return AESGCM(key).decrypt(iv, data, None)
    except InvalidTag as err:
        raise UnauthenticatedError("session authentication failed") from err
