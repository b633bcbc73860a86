"""
Jinja2 page rendering.

Every page gets the language helpers, the header toggle, feature flags
and service-wide settings through a context processor, so routes only
pass what is specific to the page.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from jinja2 import pass_context
from starlette.requests import Request
from starlette.templating import Jinja2Templates

from checkin.content import (
    DEFAULT_LANGUAGE,
    build_language_toggle,
    get_content,
    get_namespace,
    t,
)
from checkin.core.config import settings
from checkin.core.logging_config import get_request_id
from checkin.schemas.forms import find_error
from checkin.utils.strings import user_friendly_string


TEMPLATES_DIR = settings.BASE_DIR / "templates"

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def _to_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except ValueError:
        return None


def gds_date(value: Union[str, date, datetime, None]) -> str:
    """GOV.UK style date, e.g. 5 March 2025"""
    parsed = _to_date(value)
    if not parsed:
        return ""
    return f"{parsed.day} {MONTHS[parsed.month - 1]} {parsed.year}"


def format_date(value: Union[str, date, datetime, None]) -> str:
    """dd/MM/yyyy"""
    parsed = _to_date(value)
    return parsed.strftime("%d/%m/%Y") if parsed else ""


@pass_context
def checked(context, name: str, value: str) -> bool:
    """True when the saved answer for name is (or includes) value"""
    form_data = context.get("formData") or {}
    saved = form_data.get(name)
    if isinstance(saved, (list, tuple)):
        return value in saved
    return saved == value


def base_context(request: Request) -> Dict[str, Any]:
    lang = getattr(request.state, "lang", DEFAULT_LANGUAGE)
    current_path = getattr(request.state, "current_path", request.url.path)

    return {
        "lang": lang,
        "t": lambda key, fallback=None: t(lang, key, fallback),
        "get_content": lambda key: get_content(lang, key),
        "get_namespace": lambda namespace: get_namespace(lang, namespace),
        "current_path": current_path,
        "language_toggle": getattr(
            request.state, "language_toggle", build_language_toggle(lang, current_path)
        ),
        "flags": getattr(request.state, "flags", settings.FEATURE_FLAG_DEFAULTS),
        "environment_name": settings.ENVIRONMENT_NAME,
        "feedback_url": settings.FEEDBACK_FORM_URL,
        "support_email": settings.SUPPORT_EMAIL,
        "session_timeout": settings.get_session_timeout_config(),
        "request_id": get_request_id(),
    }


templates = Jinja2Templates(directory=str(TEMPLATES_DIR), context_processors=[base_context])
templates.env.filters["user_friendly_string"] = user_friendly_string
templates.env.filters["find_error"] = find_error
templates.env.filters["gds_date"] = gds_date
templates.env.filters["format_date"] = format_date
templates.env.globals["checked"] = checked


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
):
    return templates.TemplateResponse(
        request,
        name,
        context or {},
        status_code=status_code,
        headers=headers,
    )


__all__ = ["templates", "render", "base_context", "gds_date", "format_date", "checked"]
