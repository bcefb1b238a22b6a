"""aiohttp integration: cookie transport and session middleware."""
import logging
from datetime import timezone
from email.utils import format_datetime
from typing import Optional

from aiohttp import web

from .conf import SESSION_STORAGE, SessionConfig
from .session import EncryptedSession
from .transport import CookieOptions

logger = logging.getLogger("encrypted_session.web")


class AiohttpCookieTransport:
    """Cookie transport over an aiohttp request/response pair.

    Writes and removals are recorded so that a later read in the same
    request sees them. They reach the client when applied to a response,
    immediately if one was bound, or through :meth:`apply`.
    """

    def __init__(
        self,
        request: web.BaseRequest,
        response: Optional[web.StreamResponse] = None,
    ):
        self._request = request
        self._response = response
        # name -> (value, options); a None value marks a removal
        self._pending: dict[str, tuple[Optional[str], CookieOptions]] = {}

    def read_cookie(self, name: str) -> Optional[str]:
        if name in self._pending:
            return self._pending[name][0]
        return self._request.cookies.get(name)

    def write_cookie(self, name: str, value: str, options: CookieOptions) -> None:
        self._pending[name] = (value, options)
        if self._response is not None:
            self._set_cookie(self._response, name, value, options)

    def remove_cookie(self, name: str, options: CookieOptions) -> None:
        self._pending[name] = (None, options)
        if self._response is not None:
            self._del_cookie(self._response, name, options)

    def apply(self, response: web.StreamResponse) -> None:
        """Copy pending cookie changes onto ``response``."""
        for name, (value, options) in self._pending.items():
            if value is None:
                self._del_cookie(response, name, options)
            else:
                self._set_cookie(response, name, value, options)

    @staticmethod
    def _set_cookie(
        response: web.StreamResponse,
        name: str,
        value: str,
        options: CookieOptions,
    ) -> None:
        expires = None
        if options.expires is not None:
            dt = options.expires
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            expires = format_datetime(dt.astimezone(timezone.utc), usegmt=True)
        response.set_cookie(
            name,
            value,
            expires=expires,
            domain=options.domain,
            max_age=options.max_age,
            path=options.path,
            secure=options.secure,
            httponly=options.httponly,
            samesite=options.samesite,
        )

    @staticmethod
    def _del_cookie(
        response: web.StreamResponse, name: str, options: CookieOptions
    ) -> None:
        response.del_cookie(name, domain=options.domain, path=options.path)


def get_session(request: web.Request) -> EncryptedSession:
    """Return the session handle installed by :func:`session_middleware`."""
    try:
        return request[SESSION_STORAGE]
    except KeyError:
        raise RuntimeError(
            "Encrypted session not installed, "
            "add session_middleware() to the application"
        ) from None


def session_middleware(config: SessionConfig):
    """Install an :class:`EncryptedSession` on every request.

    Cookie changes made by the handler are applied to its response, also
    when the handler raises an HTTP exception.
    """

    @web.middleware
    async def middleware(request: web.Request, handler):
        transport = AiohttpCookieTransport(request)
        request[SESSION_STORAGE] = EncryptedSession.from_config(config, transport)
        try:
            response = await handler(request)
        except web.HTTPException as exc:
            transport.apply(exc)
            raise
        transport.apply(response)
        return response

    logger.debug("Session middleware configured for cookie %s", config.cookie_name)
    return middleware
