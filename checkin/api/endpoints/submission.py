"""
Check in journey pages, all under /{submission_id}.

Every route loads the check in first (see load_checkin). Pages after the
identity check also require the browser session to be authorised for
this check in; without it the timeout page is shown in place.

POST handlers copy answers into the session before validating, then
either redirect to the next page (303) or raise FormValidationError,
which sends the citizen back to the same page with the errors.
"""

import json
import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError

from checkin.api.dependencies import (
    audit_page_view,
    build_back_link,
    build_page_params,
    build_redirect_url,
    form_to_dict,
    load_checkin,
    require_auth,
    validate_or_redirect,
)
from checkin.content import DEFAULT_LANGUAGE, get_namespace, t
from checkin.core.config import settings
from checkin.core.exceptions import CheckinServiceError, IncompleteCheckinError, MissingCrnError
from checkin.core.logging_config import logger
from checkin.core.rate_limiter import verify_rate_limit
from checkin.core.session import (
    authorize_submission,
    flash,
    get_form_data,
    pop_flashed,
    revoke_submission,
    save_form_data,
)
from checkin.core.templates import gds_date, render
from checkin.models.form_data import (
    SUPPORT_FIELD_KEYS,
    clear_unselected_support_fields,
    extract_verify_form_data,
    merge_form_data,
    normalize_assistance,
)
from checkin.schemas.checkin import (
    CallbackRequested,
    Checkin,
    CheckinSubmission,
    DeviceInfo,
    SurveyResponse,
)
from checkin.schemas.forms import (
    AssistanceForm,
    CallbackForm,
    CheckAnswersForm,
    MentalHealthForm,
    PersonalDetailsForm,
)
from checkin.services import get_esupervision_service
from checkin.services.device_detection import detect_device
from checkin.services.esupervision_service import EsupervisionService
from checkin.utils.summary_rows import build_summary_rows, build_video_rows


router = APIRouter(prefix="/{submission_id}", dependencies=[Depends(load_checkin)])


# ============================================
# Helpers
# ============================================

def get_lang(request: Request) -> str:
    return getattr(request.state, "lang", DEFAULT_LANGUAGE)


def translator(request: Request):
    lang = get_lang(request)
    return lambda key, fallback=None: t(lang, key, fallback)


def page_context(request: Request, submission_id: str, **extra: Any) -> Dict[str, Any]:
    """Page params plus saved answers, restored input and validation errors"""
    form_data = dict(get_form_data(request))
    form_body = pop_flashed(request, "formBody")
    if form_body:
        form_data.update(form_body)

    return {
        **build_page_params(request, submission_id),
        "formData": form_data,
        "errors": pop_flashed(request, "validationErrors") or [],
        **extra,
    }


async def read_and_store_form(request: Request) -> Dict[str, Any]:
    """Parse the posted form and merge known answers into the session"""
    data = form_to_dict(await request.form())
    form_data = merge_form_data(dict(get_form_data(request)), data)
    save_form_data(request, form_data)
    return data


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def parse_device_data(device_data: Any) -> Optional[DeviceInfo]:
    if not device_data or not isinstance(device_data, str):
        return None
    try:
        return DeviceInfo.model_validate(json.loads(device_data))
    except ValueError as e:
        logger.error(f"[Submission] Failed to parse device data: {type(e).__name__}")
        return None


def build_assistance_options(assistance_content: Dict[str, Any], divider: str = "or") -> List[Dict[str, Any]]:
    """Checkbox items: each support option reveals a textarea, then 'or', then NO_HELP"""
    items: List[Dict[str, Any]] = []
    for option in assistance_content.get("options") or []:
        item: Dict[str, Any] = {"value": option["value"], "text": option["text"]}
        if option.get("supportField"):
            item["conditional"] = {
                "fieldName": option["supportField"],
                "label": option.get("supportLabel", ""),
            }
        items.append(item)

    no_help = assistance_content.get("noHelp")
    if no_help:
        items.append({"divider": divider})
        items.append({"value": no_help["value"], "text": no_help["text"], "behaviour": "exclusive"})
    return items


# ============================================
# Start and identity check
# ============================================

@router.get("", dependencies=[Depends(audit_page_view("CHECKIN_INDEX"))])
@router.get("/", dependencies=[Depends(audit_page_view("CHECKIN_INDEX"))], include_in_schema=False)
async def render_index(request: Request, submission_id: str):
    save_form_data(request, {"checkinStartedAt": int(time.time() * 1000)})
    logger.log_checkin_event(submission_id, "started")

    return render(request, "pages/submission/index.html", {
        **build_page_params(request, submission_id),
        "pageTitle": t(get_lang(request), "index.pageTitle"),
    })


@router.post("/start")
async def handle_start(submission_id: str):
    return redirect(f"/{submission_id}/verify")


@router.get("/verify", dependencies=[Depends(audit_page_view("VERIFY"))])
async def render_verify(request: Request, submission_id: str):
    return render(request, "pages/submission/verify.html", page_context(
        request,
        submission_id,
        pageTitle=t(get_lang(request), "verify.pageTitle"),
        backLink=f"/{submission_id}",
    ))


@router.post("/verify")
@verify_rate_limit()
async def handle_verify(
    request: Request,
    submission_id: str,
    checkin: Checkin = Depends(load_checkin),
    esupervision_service: EsupervisionService = Depends(get_esupervision_service),
):
    data = form_to_dict(await request.form())
    entered = extract_verify_form_data(data)
    form = validate_or_redirect(PersonalDetailsForm, data, request, form_body=entered)

    if not checkin.crn:
        logger.error(f"[Verify] No CRN found for checkin {submission_id}")
        raise MissingCrnError(submission_id)

    result = await esupervision_service.verify_identity(
        submission_id,
        checkin.crn,
        form.first_name,
        form.last_name,
        form.date_of_birth,
    )

    if not result.verified:
        logger.info(f"[Verify] Identity verification failed for checkin {submission_id}: {result.error}")
        # Shown again if the citizen chooses to try again
        flash(request, "formBody", entered)
        return render(request, "pages/submission/no-match-found.html", {
            "submissionId": submission_id,
            "firstName": form.first_name,
            "lastName": form.last_name,
            "dateOfBirth": gds_date(form.date_of_birth),
            "pageTitle": t(get_lang(request), "verify.noMatch.pageTitle"),
        })

    authorize_submission(request, submission_id)
    logger.log_checkin_event(submission_id, "verified")
    return redirect(f"/{submission_id}/questions/mental-health")


# ============================================
# Questions
# ============================================

@router.get(
    "/questions/mental-health",
    dependencies=[Depends(require_auth), Depends(audit_page_view("MENTAL_HEALTH"))],
)
async def render_mental_health(request: Request, submission_id: str):
    content = get_namespace(get_lang(request), "questions")["mentalHealth"]

    return render(request, "pages/submission/questions/mental-health.html", page_context(
        request,
        submission_id,
        pageTitle=content["pageTitle"],
        content=content,
        mentalHealthOptions=content.get("options") or [],
        backLink=build_back_link(request, submission_id, "/verify", "/check-your-answers"),
        showTimeoutModal=True,
    ))


@router.post("/questions/mental-health", dependencies=[Depends(require_auth)])
async def handle_mental_health(request: Request, submission_id: str):
    data = await read_and_store_form(request)
    validate_or_redirect(MentalHealthForm, data, request)
    return redirect(build_redirect_url(request, submission_id, "/questions/assistance"))


@router.get(
    "/questions/assistance",
    dependencies=[Depends(require_auth), Depends(audit_page_view("ASSISTANCE"))],
)
async def render_assistance(request: Request, submission_id: str):
    content = get_namespace(get_lang(request), "questions")["assistance"]

    return render(request, "pages/submission/questions/assistance.html", page_context(
        request,
        submission_id,
        pageTitle=content["pageTitle"],
        content=content,
        assistanceOptions=build_assistance_options(content, t(get_lang(request), "common.or")),
        backLink=build_back_link(request, submission_id, "/questions/mental-health", "/check-your-answers"),
        showTimeoutModal=True,
    ))


@router.post("/questions/assistance", dependencies=[Depends(require_auth)])
async def handle_assistance(request: Request, submission_id: str):
    data = await read_and_store_form(request)
    validate_or_redirect(AssistanceForm, data, request)

    form_data = dict(get_form_data(request))
    clear_unselected_support_fields(form_data)
    save_form_data(request, form_data)

    return redirect(build_redirect_url(request, submission_id, "/questions/callback"))


@router.get(
    "/questions/callback",
    dependencies=[Depends(require_auth), Depends(audit_page_view("CALLBACK"))],
)
async def render_callback(request: Request, submission_id: str):
    content = get_namespace(get_lang(request), "questions")["callback"]

    return render(request, "pages/submission/questions/callback.html", page_context(
        request,
        submission_id,
        pageTitle=content["pageTitle"],
        content=content,
        callbackOptions=content.get("options") or [],
        conditionalLabel=content.get("detailsLabel"),
        backLink=build_back_link(request, submission_id, "/questions/assistance", "/check-your-answers"),
        showTimeoutModal=True,
    ))


@router.post("/questions/callback", dependencies=[Depends(require_auth)])
async def handle_callback(request: Request, submission_id: str):
    data = await read_and_store_form(request)
    form = validate_or_redirect(CallbackForm, data, request)

    if form.callback == CallbackRequested.NO:
        form_data = dict(get_form_data(request))
        form_data.pop("callbackDetails", None)
        save_form_data(request, form_data)

    return redirect(build_redirect_url(request, submission_id, "/video/inform"))


# ============================================
# Video
# ============================================

@router.get(
    "/video/inform",
    dependencies=[Depends(require_auth), Depends(audit_page_view("VIDEO_INFORM"))],
)
async def render_video_inform(request: Request, submission_id: str):
    content = get_namespace(get_lang(request), "video")["inform"]

    return render(request, "pages/submission/video/inform.html", {
        **build_page_params(request, submission_id),
        "pageTitle": content["pageTitle"],
        "content": content,
        "backLink": f"/{submission_id}/questions/callback",
        "showTimeoutModal": True,
    })


@router.get(
    "/video/record",
    dependencies=[Depends(require_auth), Depends(audit_page_view("VIDEO_RECORD"))],
)
async def render_video_record(
    request: Request,
    submission_id: str,
    esupervision_service: EsupervisionService = Depends(get_esupervision_service),
):
    content = get_namespace(get_lang(request), "video")["record"]
    upload_locations = await esupervision_service.get_checkin_upload_location(submission_id)

    return render(request, "pages/submission/video/record.html", {
        **build_page_params(request, submission_id),
        "pageTitle": content["pageTitle"],
        "content": content,
        "backLink": f"/{submission_id}/video/inform",
        "videoUploadUrl": upload_locations.video.url,
        "frameUploadUrl": [snapshot.url for snapshot in upload_locations.snapshots],
        "videoConfig": settings.get_video_config(),
        "showTimeoutModal": True,
    })


@router.get(
    "/video/verify",
    dependencies=[Depends(require_auth), Depends(audit_page_view("VIDEO_VERIFY"))],
)
async def handle_video_verify(
    request: Request,
    submission_id: str,
    esupervision_service: EsupervisionService = Depends(get_esupervision_service),
):
    """Called by the recorder script once both uploads have finished"""
    headers = {"Cache-Control": "no-cache"}
    logger.log_checkin_event(submission_id, "video_verify_requested")

    try:
        result = await esupervision_service.auto_verify_checkin_identity(submission_id, 1)
    except (CheckinServiceError, ValidationError) as e:
        message = e.message if isinstance(e, CheckinServiceError) else "Invalid verification response"
        logger.error(f"[Video] Auto verification failed for checkin {submission_id}: {message}")
        return JSONResponse({"status": "ERROR", "message": message}, headers=headers)

    form_data = dict(get_form_data(request))
    form_data["autoVerifyResult"] = result.result.value
    save_form_data(request, form_data)

    return JSONResponse({"status": "SUCCESS", "result": result.result.value}, headers=headers)


@router.get(
    "/video/view",
    dependencies=[Depends(require_auth), Depends(audit_page_view("VIDEO_VIEW"))],
)
async def render_video_view(request: Request, submission_id: str):
    content = get_namespace(get_lang(request), "video")

    return render(request, "pages/submission/video/view.html", {
        **build_page_params(request, submission_id),
        "pageTitle": content["view"]["pageTitle"],
        "content": content,
        "backLink": f"/{submission_id}/video/record",
        "autoVerifyResult": get_form_data(request).get("autoVerifyResult"),
        "showTimeoutModal": True,
    })


# ============================================
# Check answers and submit
# ============================================

@router.get(
    "/check-your-answers",
    dependencies=[Depends(require_auth), Depends(audit_page_view("CHECK_YOUR_ANSWERS"))],
)
async def render_check_answers(request: Request, submission_id: str):
    content = get_namespace(get_lang(request), "checkAnswers")
    translate = translator(request)
    form_data = get_form_data(request)

    return render(request, "pages/submission/check-answers.html", page_context(
        request,
        submission_id,
        pageTitle=content["pageTitle"],
        content=content,
        backLink=f"/{submission_id}/video/view",
        summaryRows=build_summary_rows(form_data, submission_id, translate),
        videoRows=build_video_rows(form_data.get("autoVerifyResult") or "", submission_id, translate),
        sections=content.get("sections"),
        confirm=content.get("confirm"),
        buttonText=content.get("submitButton"),
        showTimeoutModal=True,
    ))


@router.post("/check-your-answers", dependencies=[Depends(require_auth)])
async def handle_submission(
    request: Request,
    submission_id: str,
    esupervision_service: EsupervisionService = Depends(get_esupervision_service),
):
    data = await read_and_store_form(request)
    validate_or_redirect(CheckAnswersForm, data, request)

    form_data = get_form_data(request)
    if not form_data.get("mentalHealth"):
        raise IncompleteCheckinError("mentalHealth", "Mental health response is required")
    if not form_data.get("callback"):
        raise IncompleteCheckinError("callback", "Callback response is required")

    device = parse_device_data(form_data.get("deviceData"))
    if device is None:
        device = detect_device(request.headers.get("user-agent"))

    # Assistance may be empty: "No, I do not need help" or nothing recorded
    survey = SurveyResponse.model_validate({
        "version": settings.SURVEY_VERSION,
        "mentalHealth": form_data["mentalHealth"],
        "assistance": normalize_assistance(form_data.get("assistance")),
        **{field: form_data.get(field) or "" for field in SUPPORT_FIELD_KEYS},
        "callback": form_data["callback"],
        "callbackDetails": form_data.get("callbackDetails") or "",
        "device": device,
        "checkinStartedAt": form_data.get("checkinStartedAt"),
    })

    await esupervision_service.submit_checkin(submission_id, CheckinSubmission(survey=survey))
    return redirect(f"/{submission_id}/confirmation")


@router.get("/confirmation")
async def render_confirmation(request: Request, submission_id: str):
    params = build_page_params(request, submission_id)
    request.session.clear()

    return render(request, "pages/submission/confirmation.html", {
        **params,
        "pageTitle": t(get_lang(request), "confirmation.pageTitle"),
        "content": get_namespace(get_lang(request), "confirmation"),
    })


# ============================================
# Session management
# ============================================

@router.get("/timeout")
async def render_timeout(request: Request, submission_id: str):
    logger.info(f"[Session] User session timed out for checkin {submission_id}")
    revoke_submission(request)

    return render(request, "pages/timeout.html", {
        "submissionId": submission_id,
        "pageTitle": t(get_lang(request), "common.timeout.pageTitle"),
    })


@router.get("/keepalive")
async def handle_keepalive():
    return {"status": "OK"}
