"""
Unit Tests for HTTP Middleware
Tests for: request ids, security headers, body size limit, access log levels
"""
import logging

import pytest
from httpx import AsyncClient, ASGITransport
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from app.core.middleware import (
    RequestLoggingMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
    is_quiet,
    level_for_status,
)


async def echo(request):
    return PlainTextResponse(await request.body())


def build_app(max_size: int = 16) -> Starlette:
    app = Starlette(routes=[Route('/echo', echo, methods=['POST'])])
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware, max_size=max_size)
    return app


async def post(app: Starlette, body: bytes, headers: dict = None):
    async with AsyncClient(transport=ASGITransport(app=app), base_url='http://test') as ac:
        return await ac.post('/echo', content=body, headers=headers or {})


class TestRequestLogging:

    @pytest.mark.asyncio
    async def test_request_id_echoed(self):
        response = await post(build_app(), b'hello', headers={'X-Request-ID': 'req-1234'})

        assert response.headers['X-Request-ID'] == 'req-1234'
        assert response.headers['X-Response-Time'].endswith('ms')

    @pytest.mark.asyncio
    async def test_request_id_generated(self):
        response = await post(build_app(), b'hello')

        assert response.headers['X-Request-ID']

    def test_quiet_paths(self):
        assert is_quiet('/health')
        assert is_quiet('/static/logo.png')
        assert not is_quiet('/api/students')

    @pytest.mark.parametrize('status_code,level', [
        (200, logging.INFO), (404, logging.WARNING), (503, logging.ERROR),
    ])
    def test_level_for_status(self, status_code, level):
        assert level_for_status(status_code) == level


class TestSecurityHeaders:

    @pytest.mark.asyncio
    async def test_headers_added(self):
        response = await post(build_app(), b'hello')

        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['X-Frame-Options'] == 'DENY'
        assert response.headers['Referrer-Policy'] == 'strict-origin-when-cross-origin'


class TestRequestSizeLimit:

    @pytest.mark.asyncio
    async def test_small_body_passes(self):
        response = await post(build_app(max_size=16), b'under limit')

        assert response.status_code == 200
        assert response.text == 'under limit'

    @pytest.mark.asyncio
    async def test_large_body_rejected(self):
        response = await post(build_app(max_size=16), b'x' * 64)

        assert response.status_code == 413
        assert response.json()['code'] == 'REQUEST_TOO_LARGE'
