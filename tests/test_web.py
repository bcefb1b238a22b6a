"""
Tests for the aiohttp cookie transport and session middleware.
"""
from datetime import datetime, timezone

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from encrypted_session.conf import SessionConfig
from encrypted_session.session import EncryptedSession
from encrypted_session.transport import CookieOptions
from encrypted_session.web import (
    AiohttpCookieTransport,
    get_session,
    session_middleware,
)


def _request(cookie: str = ""):
    headers = {"Cookie": cookie} if cookie else {}
    return make_mocked_request("GET", "/", headers=headers)


@pytest.fixture
def config():
    return SessionConfig(
        secret="s3cr3t", cookie_name="sess", cookie=CookieOptions(max_age=3600),
    )


class TestAiohttpCookieTransport:
    """Tests for the aiohttp transport adapter."""

    def test_reads_request_cookie(self):
        """Test cookies are read from the request."""
        transport = AiohttpCookieTransport(_request("sess=abc; other=1"))
        assert transport.read_cookie("sess") == "abc"
        assert transport.read_cookie("missing") is None

    def test_pending_write_visible_to_read(self):
        """Test a write is visible to a later read."""
        transport = AiohttpCookieTransport(_request("sess=abc"))
        transport.write_cookie("sess", "new", CookieOptions())
        assert transport.read_cookie("sess") == "new"

    def test_pending_removal_visible_to_read(self):
        """Test a removal is visible to a later read."""
        transport = AiohttpCookieTransport(_request("sess=abc"))
        transport.remove_cookie("sess", CookieOptions())
        assert transport.read_cookie("sess") is None

    def test_apply_sets_attributes(self):
        """Test apply() writes every cookie attribute."""
        transport = AiohttpCookieTransport(_request())
        options = CookieOptions(
            max_age=60,
            expires=datetime(2030, 1, 1, tzinfo=timezone.utc),
            domain="example.com",
            path="/app",
            secure=True,
            samesite="Strict",
        )
        transport.write_cookie("sess", "value", options)
        response = web.Response()
        transport.apply(response)
        morsel = response.cookies["sess"]
        assert morsel.value == "value"
        assert morsel["max-age"] == "60"
        assert morsel["expires"] == "Tue, 01 Jan 2030 00:00:00 GMT"
        assert morsel["domain"] == "example.com"
        assert morsel["path"] == "/app"
        assert morsel["secure"]
        assert morsel["httponly"]
        assert morsel["samesite"] == "Strict"

    def test_apply_removal(self):
        """Test apply() expires removed cookies."""
        transport = AiohttpCookieTransport(_request("sess=abc"))
        transport.remove_cookie("sess", CookieOptions())
        response = web.Response()
        transport.apply(response)
        assert response.cookies["sess"].value == ""
        assert response.cookies["sess"]["max-age"] == "0"

    def test_bound_response_written_immediately(self):
        """Test a bound response gets cookies at once."""
        response = web.Response()
        transport = AiohttpCookieTransport(_request(), response)
        transport.write_cookie("sess", "value", CookieOptions())
        assert response.cookies["sess"].value == "value"


class TestSessionMiddleware:
    """Tests for session_middleware."""

    @pytest.mark.asyncio
    async def test_handler_sets_session(self, config):
        """Test a session set in one request reads in the next."""
        middleware = session_middleware(config)

        async def handler(request):
            await get_session(request).set({"userId": 42})
            return web.Response(text="ok")

        response = await middleware(_request(), handler)
        cookie = response.cookies["sess"].value
        assert cookie
        assert response.cookies["sess"]["max-age"] == "3600"

        async def reader(request):
            return web.json_response(await get_session(request).get())

        response = await middleware(_request(f"sess={cookie}"), reader)
        assert response.text == '{"userId": 42}'

    @pytest.mark.asyncio
    async def test_http_exception_carries_cookie(self, config):
        """Test HTTP exceptions carry cookie changes."""
        middleware = session_middleware(config)

        async def handler(request):
            await get_session(request).set("value")
            raise web.HTTPFound("/next")

        with pytest.raises(web.HTTPFound) as exc_info:
            await middleware(_request(), handler)
        assert exc_info.value.cookies["sess"].value

    @pytest.mark.asyncio
    async def test_garbage_cookie_reads_as_absent(self, config):
        """Test a garbage cookie reads as absent."""
        middleware = session_middleware(config)

        async def handler(request):
            session = get_session(request)
            assert isinstance(session, EncryptedSession)
            value = await session.get()
            return web.Response(text=repr(value))

        response = await middleware(_request("sess=garbage!"), handler)
        assert response.text == "None"

    def test_get_session_without_middleware(self):
        """Test get_session() fails without the middleware."""
        with pytest.raises(RuntimeError):
            get_session(_request())
