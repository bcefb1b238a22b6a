"""
Session Boxes — msgpack records and their cookie-safe text form.

Two nested records, both msgpack maps:
- ``ExpirableBox``: ``{"exp": int ms since epoch, "val": payload}`` (plaintext)
- ``EncryptedBox``: ``{"salt": bin 16B, "iv": bin 12B, "enc": bin}`` (transmitted)

The encoded ``EncryptedBox`` travels as URL-safe base64 without padding.
"""
import re
import math
import base64
import binascii
from dataclasses import dataclass
from typing import Any

import msgpack
from pydantic import BaseModel

from .crypto import NONCE_SIZE, SALT_SIZE, TAG_SIZE
from .exceptions import MalformedError, NotFoundError


_BASE64URL_PATTERN = re.compile(r"[A-Za-z0-9_-]*={0,2}")
_UNPACK_ERRORS = (ValueError, TypeError, msgpack.UnpackException)


# ---------------------------------------------------------------------------
# msgpack helpers
# ---------------------------------------------------------------------------

def _default(obj: Any) -> Any:
    """Pack types msgpack does not know natively."""
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    raise TypeError(f"Cannot serialize {type(obj).__name__} into a session")


def pack(obj: Any) -> bytes:
    """Serialize a value to msgpack bytes, keeping bytes as ``bin``."""
    return msgpack.packb(obj, use_bin_type=True, default=_default)


def unpack(data: bytes) -> Any:
    """Deserialize msgpack bytes.

    Raises:
        MalformedError: If ``data`` is not a single valid msgpack object.
    """
    try:
        return msgpack.unpackb(data, raw=False, strict_map_key=False)
    except _UNPACK_ERRORS as err:
        raise MalformedError(f"invalid msgpack data: {err}") from err


def _is_blank(value: Any) -> bool:
    """Payloads that read back as "no value" (JavaScript-falsy scalars)."""
    if value is None or value is False:
        return True
    if isinstance(value, (str, bytes)):
        return not value
    if isinstance(value, (int, float)):
        return value == 0 or math.isnan(value)
    return False


# ---------------------------------------------------------------------------
# Text encoding
# ---------------------------------------------------------------------------

def to_text(data: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def from_text(text: str) -> bytes:
    """Reverse :func:`to_text`; padding is optional.

    Raises:
        MalformedError: If ``text`` contains characters outside the URL-safe
            alphabet or has an impossible length.
    """
    if not _BASE64URL_PATTERN.fullmatch(text):
        raise MalformedError("cookie is not URL-safe base64")
    stripped = text.rstrip("=")
    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as err:
        raise MalformedError(f"invalid base64 cookie: {err}") from err


# ---------------------------------------------------------------------------
# Boxes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExpirableBox:
    """Session payload with its absolute expiry (ms since epoch)."""

    exp: int
    val: Any

    def to_bytes(self) -> bytes:
        return pack({"exp": self.exp, "val": self.val})

    @classmethod
    def from_bytes(cls, data: bytes) -> "ExpirableBox":
        """Decode a plaintext box.

        The blank-payload check is left to the caller so that expiry can be
        detected first.

        Raises:
            NotFoundError: If the box decodes to nil or an empty map.
            MalformedError: If the box is not a map or ``exp`` is not a
                finite number.
        """
        decoded = unpack(data)
        if decoded is None or decoded == {}:
            raise NotFoundError("session box is empty")
        if not isinstance(decoded, dict):
            raise MalformedError("session box is not a map")
        exp = decoded.get("exp")
        if (
            isinstance(exp, bool)
            or not isinstance(exp, (int, float))
            or not math.isfinite(exp)
        ):
            raise MalformedError("session expiry is missing or not a number")
        return cls(exp=exp, val=decoded.get("val"))

    @property
    def is_blank(self) -> bool:
        return _is_blank(self.val)


@dataclass(frozen=True)
class EncryptedBox:
    """Salt, nonce and AES-GCM ciphertext+tag of an encoded ExpirableBox."""

    salt: bytes
    iv: bytes
    enc: bytes

    def to_bytes(self) -> bytes:
        return pack({"salt": self.salt, "iv": self.iv, "enc": self.enc})

    def to_text(self) -> str:
        return to_text(self.to_bytes())

    @classmethod
    def from_bytes(cls, data: bytes) -> "EncryptedBox":
        """Decode and validate an envelope before any decryption attempt.

        Raises:
            NotFoundError: If ``data`` is empty.
            MalformedError: If fields are missing, not binary, or wrong-sized.
        """
        if not data:
            raise NotFoundError("session cookie is empty")
        decoded = unpack(data)
        if not isinstance(decoded, dict):
            raise MalformedError("session envelope is not a map")
        salt = decoded.get("salt")
        iv = decoded.get("iv")
        enc = decoded.get("enc")
        if not isinstance(salt, bytes) or len(salt) != SALT_SIZE:
            raise MalformedError(f"session salt must be {SALT_SIZE} bytes")
        if not isinstance(iv, bytes) or len(iv) != NONCE_SIZE:
            raise MalformedError(f"session iv must be {NONCE_SIZE} bytes")
        if not isinstance(enc, bytes) or len(enc) < TAG_SIZE:
            raise MalformedError(
                f"session ciphertext must be at least {TAG_SIZE} bytes"
            )
        return cls(salt=salt, iv=iv, enc=enc)

    @classmethod
    def from_text(cls, text: str) -> "EncryptedBox":
        """Decode a cookie value (steps: base64, then envelope shape)."""
        if not text:
            raise NotFoundError("session cookie is empty")
        return cls.from_bytes(from_text(text))
