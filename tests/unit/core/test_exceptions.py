"""
Unit Tests for service exceptions
"""
from checkin.core.exceptions import (
    CheckinExpiredError,
    CheckinNotFoundError,
    CheckinServiceError,
    EsupervisionApiError,
    FormValidationError,
    IncompleteCheckinError,
    SessionExpiredError,
    SystemTokenError,
)


class TestCheckinServiceError:
    """Test the base exception"""

    def test_to_dict(self):
        """Test that the error serialises code, message and details"""
        error = CheckinServiceError('Something failed', code='BROKEN', details={'a': 1})

        assert error.to_dict() == {'code': 'BROKEN', 'message': 'Something failed', 'details': {'a': 1}}
        assert str(error) == 'Something failed'
        assert error.status_code == 500


class TestEsupervisionApiError:
    """Test upstream API errors"""

    def test_keeps_upstream_status(self):
        """Test that 4xx and 5xx statuses are passed through"""
        error = EsupervisionApiError(404, 'Not found')
        assert error.status == 404
        assert error.status_code == 404

    def test_odd_status_becomes_500(self):
        """Test that a non-error status maps to 500"""
        error = EsupervisionApiError(302, 'Redirected')
        assert error.status_code == 500

    def test_error_uuid_in_details(self):
        """Test that the upstream error id is kept"""
        error = EsupervisionApiError(500, 'Boom', error_uuid='abc-123', user_message='Try later')

        assert error.error_uuid == 'abc-123'
        assert error.user_message == 'Try later'
        assert error.details == {'status': 500, 'error_uuid': 'abc-123'}

    def test_system_token_error_is_unavailable(self):
        """Test that auth failures are reported as 503"""
        assert SystemTokenError().status_code == 503


class TestCheckinStateErrors:
    """Test not found, expired and session errors"""

    def test_not_found(self, checkin_id: str):
        """Test not found carries the submission id"""
        error = CheckinNotFoundError(checkin_id)
        assert error.status_code == 404
        assert error.submission_id == checkin_id
        assert error.code == 'CHECKIN_NOT_FOUND'

    def test_expired(self, checkin_id: str):
        """Test expired maps to 410"""
        error = CheckinExpiredError(checkin_id)
        assert error.status_code == 410
        assert error.submission_id == checkin_id

    def test_session_expired_is_not_an_error_status(self, checkin_id: str):
        """Test that the timeout page is served with 200"""
        assert SessionExpiredError(checkin_id).status_code == 200

    def test_incomplete_checkin(self):
        """Test the missing field is recorded"""
        error = IncompleteCheckinError('callback', 'Callback response is required')
        assert error.field == 'callback'
        assert error.details == {'field': 'callback'}


class TestFormValidationError:
    """Test form validation errors"""

    def test_fields_from_errors(self):
        """Test that field names are taken from the error anchors"""
        errors = [
            {'text': 'Enter your first name', 'href': '#firstName'},
            {'text': 'Enter your date of birth', 'href': '#dob'},
        ]
        error = FormValidationError(errors, '/abc/verify', form_body={'firstName': ''})

        assert error.details == {'fields': ['firstName', 'dob']}
        assert error.redirect_url == '/abc/verify'
        assert error.form_body == {'firstName': ''}
        assert error.status_code == 303
