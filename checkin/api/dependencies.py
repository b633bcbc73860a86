"""
Route dependencies shared by the check in pages.

load_checkin runs before every /{submission_id} route: it fetches the check
in and turns an unusable one into the not-found or expired page.
require_auth guards the pages after the identity check.
"""

from typing import Any, Callable, Dict, Optional, Type

from fastapi import Depends, Request
from starlette.datastructures import FormData

from checkin.core.exceptions import (
    CheckinExpiredError,
    CheckinNotFoundError,
    FormValidationError,
    SessionExpiredError,
)
from checkin.core.logging_config import get_request_id, logger
from checkin.core.session import get_authorized_submission, get_form_data
from checkin.schemas.checkin import Checkin, CheckinStatus
from checkin.schemas.forms import FormT
from checkin.services import get_audit_service, get_esupervision_service
from checkin.services.audit_service import AuditService
from checkin.services.esupervision_service import EsupervisionService
from checkin.utils.strings import is_uuid


def is_confirmation_page(path: str) -> bool:
    return path.rstrip("/").endswith("/confirmation")


async def load_checkin(
    request: Request,
    submission_id: str,
    esupervision_service: EsupervisionService = Depends(get_esupervision_service),
) -> Checkin:
    """Fetch the check in and make sure the citizen can still use it"""
    if not is_uuid(submission_id):
        raise CheckinNotFoundError(submission_id)

    checkin = await esupervision_service.get_checkin(submission_id)

    if checkin.status == CheckinStatus.SUBMITTED and is_confirmation_page(request.url.path):
        return checkin

    if checkin.status == CheckinStatus.EXPIRED:
        raise CheckinExpiredError(submission_id)

    if checkin.status != CheckinStatus.CREATED:
        logger.info(f"[Checkin] {submission_id} has status {checkin.status.value}, treating as not found")
        raise CheckinNotFoundError(submission_id)

    return checkin


def require_auth(request: Request, submission_id: str) -> str:
    """The browser must have passed the identity check for this check in"""
    authorized = get_authorized_submission(request)
    if not authorized or authorized != submission_id:
        raise SessionExpiredError(submission_id)
    return authorized


# ============================================
# Request helpers
# ============================================

def form_to_dict(form: FormData) -> Dict[str, Any]:
    """Flatten posted form data: repeated keys (checkboxes) become lists"""
    data: Dict[str, Any] = {}
    for key in form.keys():
        values = [value for value in form.getlist(key) if isinstance(value, str)]
        if not values:
            continue
        data[key] = values if len(values) > 1 else values[0]
    return data


def is_check_answers(request: Request) -> bool:
    return request.query_params.get("checkAnswers") == "true"


def audit_page_view(page_name: str) -> Callable:
    """Dependency that records a page view (ids only, never answers)"""

    async def record_page_view(
        request: Request,
        submission_id: str,
        audit_service: AuditService = Depends(get_audit_service),
    ) -> None:
        await audit_service.log_page_view(
            page_name,
            "user",
            subject_id=submission_id,
            subject_type="CHECKIN",
            correlation_id=get_request_id(),
            details={"page": page_name, "checkAnswersMode": is_check_answers(request)},
        )

    return record_page_view


def build_page_params(request: Request, submission_id: str) -> Dict[str, Any]:
    """Parameters every submission page template receives"""
    cya = is_check_answers(request)
    form_data = get_form_data(request)
    return {
        "cya": cya,
        "autoVerifyResult": (form_data.get("autoVerifyResult") or "") if cya else "",
        "submissionId": submission_id,
    }


def build_redirect_url(request: Request, submission_id: str, next_path: str) -> str:
    """Next page, or back to check your answers when changing an answer"""
    if is_check_answers(request):
        return f"/{submission_id}/check-your-answers"
    return f"/{submission_id}{next_path}"


def build_back_link(
    request: Request,
    submission_id: str,
    default_path: str,
    cya_path: Optional[str] = None,
) -> str:
    if is_check_answers(request) and cya_path:
        return f"/{submission_id}{cya_path}"
    return f"/{submission_id}{default_path}"


def current_url(request: Request) -> str:
    """Path and query of the request, for POST/redirect/GET"""
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


def validate_or_redirect(
    schema: Type[FormT],
    data: Dict[str, Any],
    request: Request,
    form_body: Optional[Dict[str, Any]] = None,
) -> FormT:
    """Validate posted data or raise FormValidationError back to the same page"""
    model, errors = schema.validate_form(data)
    if errors:
        logger.info(
            f"[Validation] {schema.__name__} failed on {request.url.path}",
            extra={"fields": [error["href"] for error in errors]},
        )
        raise FormValidationError(errors, current_url(request), form_body=form_body)
    return model


__all__ = [
    "load_checkin",
    "require_auth",
    "audit_page_view",
    "form_to_dict",
    "build_page_params",
    "build_redirect_url",
    "build_back_link",
    "validate_or_redirect",
    "current_url",
]
