"""
Unit Tests for error references
"""
import re

from starlette.requests import Request

from checkin.core.exceptions import EsupervisionApiError
from checkin.core.logging_config import set_request_id
from checkin.utils.error_reference import (
    build_error_context,
    extract_api_error_uuid,
    generate_error_reference,
)


class TestGenerateErrorReference:
    """Test reference format"""

    def test_uses_given_request_id(self):
        """Test ERR-{requestId}-{millis}"""
        assert re.fullmatch(r'ERR-abc12345-\d{13}', generate_error_reference('abc12345'))

    def test_uses_current_request_id(self):
        """Test the request context is used when no id is given"""
        set_request_id('ctx00001')
        try:
            assert generate_error_reference().startswith('ERR-ctx00001-')
        finally:
            set_request_id('')

    def test_falls_back_to_random_id(self):
        """Test a reference is produced outside a request"""
        assert generate_error_reference().startswith('ERR-')


class TestExtractApiErrorUuid:
    """Test upstream error id extraction"""

    def test_from_exception(self):
        """Test the id on an API error"""
        assert extract_api_error_uuid(EsupervisionApiError(500, 'x', error_uuid='e-1')) == 'e-1'

    def test_from_body(self):
        """Test the id keys of an error body"""
        assert extract_api_error_uuid({'errorId': 'e-2'}) == 'e-2'
        assert extract_api_error_uuid({'correlationId': 'e-3'}) == 'e-3'

    def test_missing(self):
        """Test errors without an id"""
        assert extract_api_error_uuid({}) is None
        assert extract_api_error_uuid(ValueError('x')) is None


class TestBuildErrorContext:
    """Test the context logged with an error"""

    def test_context(self, checkin_id: str):
        """Test request details and ids are collected"""
        request = Request({
            'type': 'http',
            'method': 'POST',
            'path': f'/{checkin_id}/verify',
            'query_string': b'',
            'headers': [(b'user-agent', b'TestAgent/1.0')],
            'path_params': {'submission_id': checkin_id},
        })
        error = EsupervisionApiError(502, 'Bad gateway', error_uuid='e-9')

        context = build_error_context(request, error, 'ERR-1-2')

        assert context == {
            'error_reference': 'ERR-1-2',
            'api_error_uuid': 'e-9',
            'submission_id': checkin_id,
            'path': f'/{checkin_id}/verify',
            'method': 'POST',
            'user_agent': 'TestAgent/1.0',
        }
