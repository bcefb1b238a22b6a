"""
Session Configuration — environment defaults and validated settings.

Reads settings from environment variables:
    SESSION_SECRET = <long-term secret text>
    SESSION_COOKIE_NAME = <cookie name, default "session">
    SESSION_MAX_AGE = <seconds, optional>
    SESSION_COOKIE_DOMAIN / SESSION_COOKIE_PATH
    SESSION_COOKIE_SECURE / SESSION_COOKIE_HTTPONLY = true|false
    SESSION_COOKIE_SAMESITE = Strict|Lax|None

Security Note:
    Never log the secret. Only log the cookie name and attributes.
"""
import os
import re
import logging
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .transport import CookieOptions

logger = logging.getLogger("encrypted_session.conf")

_COOKIE_NAME_PATTERN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_TRUE_VALUES = ("1", "true", "yes", "on")

SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "session")
SESSION_STORAGE = "encrypted_session"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as err:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from err


class SessionConfig(BaseModel):
    """Validated encrypted session configuration."""

    secret: str = Field(repr=False)
    cookie_name: str = Field(default=SESSION_COOKIE_NAME)
    cookie: CookieOptions = Field(default_factory=CookieOptions)

    @field_validator("secret")
    @classmethod
    def validate_secret(cls, v: str) -> str:
        """Reject an empty secret."""
        if not v:
            raise ValueError("Session secret cannot be empty")
        return v

    @field_validator("cookie_name")
    @classmethod
    def validate_cookie_name(cls, v: str) -> str:
        """Cookie names must be an RFC 6265 token."""
        if not _COOKIE_NAME_PATTERN.match(v):
            raise ValueError(f"Invalid cookie name: {v!r}")
        return v

    @classmethod
    def build(cls, **kwargs) -> "SessionConfig":
        """Create a SessionConfig, raising ConfigurationError on bad input."""
        try:
            return cls(**kwargs)
        except ValidationError as err:
            raise ConfigurationError(str(err)) from err

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Create SessionConfig by loading values from environment.

        Returns:
            Populated SessionConfig instance.

        Raises:
            ConfigurationError: If SESSION_SECRET is missing or a value is invalid.
        """
        secret = os.environ.get("SESSION_SECRET")
        if not secret:
            raise ConfigurationError(
                "SESSION_SECRET environment variable is not set"
            )
        cookie = {
            "max_age": _env_int("SESSION_MAX_AGE"),
            "domain": os.environ.get("SESSION_COOKIE_DOMAIN") or None,
            "path": os.environ.get("SESSION_COOKIE_PATH", "/"),
            "secure": _env_bool("SESSION_COOKIE_SECURE", False),
            "httponly": _env_bool("SESSION_COOKIE_HTTPONLY", True),
            "samesite": os.environ.get("SESSION_COOKIE_SAMESITE", "Lax"),
        }
        config = cls.build(
            secret=secret,
            cookie_name=os.environ.get("SESSION_COOKIE_NAME", SESSION_COOKIE_NAME),
            cookie=cookie,
        )
        logger.debug(
            "Loaded session config: cookie=%s max_age=%s",
            config.cookie_name, config.cookie.max_age,
        )
        return config
