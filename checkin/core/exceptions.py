"""
Custom Exceptions for the check in service
==========================================

Raised by services and route dependencies, rendered as GOV.UK error
pages by the handlers registered in checkin.main.

Usage:
    from checkin.core.exceptions import CheckinNotFoundError

    if response.status_code == 404:
        raise CheckinNotFoundError(submission_id)
"""

from typing import Optional, Any, Dict, List


class CheckinServiceError(Exception):
    """Base exception for all check in service errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Upstream API Errors
# ============================================

class EsupervisionApiError(CheckinServiceError):
    """The eSupervision API returned an error or could not be reached"""

    def __init__(
        self,
        status: int,
        message: str,
        error_uuid: Optional[str] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(message, code="ESUPERVISION_API_ERROR")
        self.status = status
        self.status_code = status if 400 <= status < 600 else 500
        self.error_uuid = error_uuid
        self.user_message = user_message
        self.details = {"status": status}
        if error_uuid:
            self.details["error_uuid"] = error_uuid


class SystemTokenError(CheckinServiceError):
    """Could not obtain a system token from HMPPS Auth"""

    def __init__(self, message: str = "Unable to obtain system token"):
        super().__init__(message, code="SYSTEM_TOKEN_ERROR")
        self.status_code = 503


class UploadLocationError(CheckinServiceError):
    """Upload locations returned by the API were incomplete"""

    def __init__(self, message: str):
        super().__init__(message, code="UPLOAD_LOCATION_ERROR")


# ============================================
# Check in State Errors
# ============================================

class CheckinNotFoundError(CheckinServiceError):
    """Check in does not exist or is not available to the citizen"""

    status_code = 404

    def __init__(self, submission_id: str):
        super().__init__(
            f"Checkin '{submission_id}' not found",
            code="CHECKIN_NOT_FOUND",
            details={"submission_id": submission_id}
        )
        self.submission_id = submission_id


class CheckinExpiredError(CheckinServiceError):
    """Check in link is past its due window"""

    status_code = 410

    def __init__(self, submission_id: str):
        super().__init__(
            f"Checkin '{submission_id}' has expired",
            code="CHECKIN_EXPIRED",
            details={"submission_id": submission_id}
        )
        self.submission_id = submission_id


class SessionExpiredError(CheckinServiceError):
    """Browser session is not authorised for this check in"""

    status_code = 200

    def __init__(self, submission_id: str):
        super().__init__(
            f"Session is not authorised for checkin '{submission_id}'",
            code="SESSION_EXPIRED",
            details={"submission_id": submission_id}
        )
        self.submission_id = submission_id


class MissingCrnError(CheckinServiceError):
    """Check in has no CRN to verify identity against"""

    def __init__(self, submission_id: str):
        super().__init__(
            "CRN not found",
            code="CRN_NOT_FOUND",
            details={"submission_id": submission_id}
        )


class IncompleteCheckinError(CheckinServiceError):
    """Submission attempted without a required answer"""

    def __init__(self, field: str, message: str):
        super().__init__(message, code="INCOMPLETE_CHECKIN", details={"field": field})
        self.field = field


# ============================================
# Form Errors
# ============================================

class FormValidationError(CheckinServiceError):
    """Submitted form failed validation"""

    status_code = 303

    def __init__(
        self,
        errors: List[Dict[str, str]],
        redirect_url: str,
        form_body: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            "Form validation failed",
            code="VALIDATION_FAILED",
            details={"fields": [error["href"].lstrip("#") for error in errors]}
        )
        self.errors = errors
        self.redirect_url = redirect_url
        # Input that is not kept in the session but should be shown again once
        self.form_body = form_body
