"""
Anonymous service feedback.

Answers are filtered to known values before anything is sent. When nothing
recognisable was submitted the thank you page is still shown.
"""

from fastapi import APIRouter, Depends, Request

from checkin.api.dependencies import form_to_dict
from checkin.content import DEFAULT_LANGUAGE, t
from checkin.core.config import settings
from checkin.core.logging_config import logger
from checkin.core.templates import render
from checkin.schemas.feedback import FeedbackContent, build_improvement_items, sanitise_feedback
from checkin.services import get_esupervision_service
from checkin.services.esupervision_service import EsupervisionService


router = APIRouter(prefix="/feedback", tags=["Feedback"])


def render_thank_you(request: Request):
    lang = getattr(request.state, "lang", DEFAULT_LANGUAGE)
    return render(request, "pages/feedback/thankyou.html", {
        "pageTitle": t(lang, "feedback.thankYou.pageTitle"),
    })


@router.get("")
async def render_feedback(request: Request):
    lang = getattr(request.state, "lang", DEFAULT_LANGUAGE)
    return render(request, "pages/feedback/provide-feedback.html", {
        "pageTitle": t(lang, "feedback.pageTitle"),
        "improvementItems": build_improvement_items(lang),
    })


@router.post("")
async def handle_feedback(
    request: Request,
    esupervision_service: EsupervisionService = Depends(get_esupervision_service),
):
    data = form_to_dict(await request.form())
    answers = sanitise_feedback(
        data.get("howEasy"),
        data.get("gettingSupport"),
        data.get("improvements"),
    )

    if not answers:
        logger.info("[Feedback] Nothing to send, skipping API call")
        return render_thank_you(request)

    await esupervision_service.submit_feedback(
        FeedbackContent(version=settings.FEEDBACK_VERSION, **answers)
    )
    logger.info(f"[Feedback] Submitted feedback with fields {sorted(answers)}")
    return render_thank_you(request)
