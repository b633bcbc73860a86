"""
Browser session helpers.

Session data lives in Redis behind a signed id cookie (see
ServerSessionMiddleware): the check in answers, the id of the check in
the browser has verified for, and one-shot flash messages. Values must be
JSON serialisable.
"""

import json
from typing import Any, Dict, List, Optional

from starlette.requests import Request


FORM_DATA_KEY = "formData"
SUBMISSION_AUTHORIZED_KEY = "submissionAuthorized"
FLASH_KEY = "_flashes"


def flash(request: Request, key: str, value: Any) -> None:
    """Store a value for the next request only"""
    flashes: Dict[str, List[str]] = request.session.setdefault(FLASH_KEY, {})
    flashes.setdefault(key, []).append(json.dumps(value))


def pop_flashed(request: Request, key: str) -> Optional[Any]:
    """Return the first flashed value for key and discard the rest"""
    flashes: Dict[str, List[str]] = request.session.get(FLASH_KEY) or {}
    values = flashes.pop(key, None)
    if flashes:
        request.session[FLASH_KEY] = flashes
    else:
        request.session.pop(FLASH_KEY, None)
    if not values:
        return None
    return json.loads(values[0])


def get_form_data(request: Request) -> Dict[str, Any]:
    return request.session.get(FORM_DATA_KEY) or {}


def save_form_data(request: Request, form_data: Dict[str, Any]) -> None:
    request.session[FORM_DATA_KEY] = form_data


def get_authorized_submission(request: Request) -> Optional[str]:
    return request.session.get(SUBMISSION_AUTHORIZED_KEY)


def authorize_submission(request: Request, submission_id: str) -> None:
    request.session[SUBMISSION_AUTHORIZED_KEY] = submission_id


def revoke_submission(request: Request) -> None:
    request.session.pop(SUBMISSION_AUTHORIZED_KEY, None)


__all__ = [
    "FORM_DATA_KEY",
    "SUBMISSION_AUTHORIZED_KEY",
    "flash",
    "pop_flashed",
    "get_form_data",
    "save_form_data",
    "get_authorized_submission",
    "authorize_submission",
    "revoke_submission",
]
