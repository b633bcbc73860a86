"""
Unit Tests for rate limiting
"""
from unittest.mock import MagicMock

import pytest
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request

from checkin.core.rate_limiter import get_client_identifier, limiter, rate_limit_exceeded_handler


def make_request(headers: dict = None, path: str = '/abc/verify') -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({
        'type': 'http',
        'method': 'POST',
        'path': path,
        'query_string': b'',
        'headers': raw_headers,
        'client': ('198.51.100.7', 4321),
    })


class TestClientIdentifier:
    """Test the rate limit key"""

    def test_uses_forwarded_for(self):
        """Test the first forwarded address is the key"""
        request = make_request({'X-Forwarded-For': '81.2.69.160, 10.0.0.2'})
        assert get_client_identifier(request) == 'ip:81.2.69.160'

    def test_falls_back_to_peer(self):
        """Test the socket address is used without a proxy header"""
        assert get_client_identifier(make_request()) == 'ip:198.51.100.7'


class TestLimiter:
    """Test which routes are limited"""

    def test_no_default_limits(self):
        """Test only routes decorated with a limit are limited"""
        assert limiter._default_limits == []
        assert limiter._application_limits == []


class TestRateLimitExceededHandler:
    """Test the too many requests page"""

    @pytest.mark.asyncio
    async def test_renders_429_with_retry_after(self):
        """Test the error page is returned with Retry-After"""
        limit = MagicMock(limit='10 per 1 minute', error_message=None)
        exc = RateLimitExceeded(limit)

        response = await rate_limit_exceeded_handler(make_request(), exc)

        assert response.status_code == 429
        assert response.headers['Retry-After'] == '60'
        assert b'Too many attempts' in response.body
