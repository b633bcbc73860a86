"""
Unit Tests for logging configuration
Tests for: request context, JSON and contextual formatters, logger helpers
"""
import json
import sys
import logging
from unittest.mock import patch

import pytest

from checkin.core.logging_config import (
    CheckinLogger,
    ContextualFormatter,
    JSONFormatter,
    generate_request_id,
    get_request_id,
    get_submission_id,
    logger,
    set_request_id,
    set_submission_id,
)


def make_record(message: str = 'hello', level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord('checkin', level, __file__, 10, message, None, None, func='handler')
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def clear_context():
    set_request_id('')
    set_submission_id('')
    yield
    set_request_id('')
    set_submission_id('')


class TestRequestContext:
    """Test request and submission context variables"""

    def test_generate_request_id_length(self):
        """Test request ids are short and unique"""
        first, second = generate_request_id(), generate_request_id()
        assert len(first) == 8
        assert first != second

    def test_set_and_get(self, checkin_id: str):
        """Test values round trip through the context"""
        set_request_id('req12345')
        set_submission_id(checkin_id)

        assert get_request_id() == 'req12345'
        assert get_submission_id() == checkin_id


class TestJSONFormatter:
    """Test structured production logs"""

    def test_basic_fields(self):
        """Test that level, logger and message are present"""
        data = json.loads(JSONFormatter().format(make_record('Checked in')))

        assert data['level'] == 'INFO'
        assert data['logger'] == 'checkin'
        assert data['message'] == 'Checked in'
        assert data['function'] == 'handler'
        assert data['timestamp'].endswith('Z')

    def test_includes_context_ids(self, checkin_id: str):
        """Test that request and submission ids are attached"""
        set_request_id('abcd1234')
        set_submission_id(checkin_id)

        data = json.loads(JSONFormatter().format(make_record()))

        assert data['request_id'] == 'abcd1234'
        assert data['submission_id'] == checkin_id

    def test_omits_empty_context(self):
        """Test that ids are left out outside a request"""
        data = json.loads(JSONFormatter().format(make_record()))

        assert 'request_id' not in data
        assert 'submission_id' not in data

    def test_extra_fields(self):
        """Test that fields passed with extra= are included"""
        data = json.loads(JSONFormatter().format(make_record(event_type='checkin', http_status=200)))

        assert data['event_type'] == 'checkin'
        assert data['http_status'] == 200

    def test_exception_details(self):
        """Test that exceptions are serialised"""
        try:
            raise ValueError('bad value')
        except ValueError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert data['exception']['type'] == 'ValueError'
        assert data['exception']['message'] == 'bad value'
        assert data['exception']['traceback']


class TestContextualFormatter:
    """Test readable development logs"""

    def test_placeholders_when_no_context(self):
        """Test that missing ids are shown as dashes"""
        formatter = ContextualFormatter('[%(request_id)s] [%(submission_id)s] %(message)s')
        assert formatter.format(make_record('hi')) == '[-] [-] hi'

    def test_includes_request_id(self):
        """Test that the current request id is shown"""
        set_request_id('r1')
        formatter = ContextualFormatter('[%(request_id)s] %(message)s')
        assert formatter.format(make_record('hi')) == '[r1] hi'


class TestCheckinLogger:
    """Test structured logging helpers"""

    def test_logger_class(self):
        """Test the service logger has the helper methods"""
        assert isinstance(logger, CheckinLogger)
        assert logger.propagate is False

    def test_log_checkin_event(self, checkin_id: str):
        """Test checkin events carry the event name and id"""
        with patch.object(logger, 'info') as mock_info:
            logger.log_checkin_event(checkin_id, 'verified')

        message = mock_info.call_args.args[0]
        extra = mock_info.call_args.kwargs['extra']
        assert checkin_id in message
        assert extra['checkin_event'] == 'verified'
        assert extra['checkin_id'] == checkin_id

    def test_log_api_call_warns_on_error_status(self):
        """Test failed API calls are logged at warning level"""
        with patch.object(logger, 'log') as mock_log:
            logger.log_api_call('GET', '/offender_checkins/x', 500, 12.5)

        assert mock_log.call_args.args[0] == logging.WARNING
        assert mock_log.call_args.kwargs['extra']['api_status'] == 500

    def test_log_api_call_debug_on_success(self):
        """Test successful API calls are logged at debug level"""
        with patch.object(logger, 'log') as mock_log:
            logger.log_api_call('GET', '/health/ping', 200, 3.0)

        assert mock_log.call_args.args[0] == logging.DEBUG

    def test_log_error_with_context(self):
        """Test errors are logged with type and context"""
        error = RuntimeError('upstream down')
        with patch.object(logger, 'error') as mock_error:
            logger.log_error_with_context(error, context='GET /x', error_reference='ERR-1')

        extra = mock_error.call_args.kwargs['extra']
        assert extra['error_type'] == 'RuntimeError'
        assert extra['error_context'] == 'GET /x'
        assert extra['error_reference'] == 'ERR-1'
        assert mock_error.call_args.kwargs['exc_info'] is error
