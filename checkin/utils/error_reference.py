"""
Error references shown to citizens on the error page.

A reference ties what the citizen quotes to support back to the log line
for the failure without exposing anything about them.
"""

import time
import uuid
from typing import Any, Dict, Optional

from starlette.requests import Request

from checkin.core.logging_config import get_request_id

API_ERROR_ID_KEYS = ("errorId", "errorUuid", "uuid", "correlationId")


def generate_error_reference(request_id: Optional[str] = None) -> str:
    """Format: ERR-{requestId}-{epoch millis}"""
    request_id = request_id or get_request_id() or str(uuid.uuid4())
    return f"ERR-{request_id}-{int(time.time() * 1000)}"


def extract_api_error_uuid(error: Any) -> Optional[str]:
    """Pull an upstream error id out of an exception or a decoded error body"""
    error_uuid = getattr(error, "error_uuid", None)
    if error_uuid:
        return str(error_uuid)

    if isinstance(error, dict):
        for key in API_ERROR_ID_KEYS:
            if error.get(key):
                return str(error[key])
    return None


def build_error_context(request: Request, error: Any, error_reference: str) -> Dict[str, Any]:
    return {
        "error_reference": error_reference,
        "api_error_uuid": extract_api_error_uuid(error),
        "submission_id": request.path_params.get("submission_id"),
        "path": request.url.path,
        "method": request.method,
        "user_agent": request.headers.get("user-agent"),
    }
