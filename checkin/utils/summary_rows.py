"""Rows for the GOV.UK summary list on the check your answers page"""

from typing import Any, Callable, Dict, List

from checkin.models.form_data import SUPPORT_FIELD_KEYS, normalize_assistance
from checkin.schemas.checkin import AutomatedIdVerificationResult, CallbackRequested
from checkin.utils.strings import user_friendly_string

Translate = Callable[[str], str]
SummaryRow = Dict[str, Any]


def build_row(key_text: str, value_text: str, href: str, action_text: str, hidden_text: str) -> SummaryRow:
    return {
        "key": {"text": key_text},
        "value": {"text": value_text},
        "actions": {
            "items": [{"href": href, "text": action_text, "visuallyHiddenText": hidden_text}],
        },
    }


def build_summary_rows(form_data: Dict[str, Any], submission_id: str, t: Translate) -> List[SummaryRow]:
    base_path = f"/{submission_id}"
    change = t("common.change")
    rows: List[SummaryRow] = []

    rows.append(build_row(
        t("checkAnswers.rows.mentalHealth.key"),
        user_friendly_string(form_data.get("mentalHealth") or ""),
        f"{base_path}/questions/mental-health?checkAnswers=true",
        change,
        t("checkAnswers.rows.mentalHealth.changeHidden"),
    ))

    assistance = normalize_assistance(form_data.get("assistance"))
    rows.append(build_row(
        t("checkAnswers.rows.assistance.key"),
        ", ".join(user_friendly_string(item.strip()) for item in assistance),
        f"{base_path}/questions/assistance?checkAnswers=true",
        change,
        t("checkAnswers.rows.assistance.changeHidden"),
    ))

    # Only the details the citizen actually filled in
    for field in SUPPORT_FIELD_KEYS:
        value = form_data.get(field)
        if value:
            rows.append(build_row(
                t(f"checkAnswers.rows.{field}.key"),
                value,
                f"{base_path}/questions/assistance?checkAnswers=true",
                change,
                t(f"checkAnswers.rows.{field}.changeHidden"),
            ))

    rows.append(build_row(
        t("checkAnswers.rows.callback.key"),
        user_friendly_string(form_data.get("callback") or ""),
        f"{base_path}/questions/callback?checkAnswers=true",
        change,
        t("checkAnswers.rows.callback.changeHidden"),
    ))

    if form_data.get("callback") == CallbackRequested.YES.value and form_data.get("callbackDetails"):
        rows.append(build_row(
            t("checkAnswers.rows.callbackDetails.key"),
            form_data["callbackDetails"],
            f"{base_path}/questions/callback?checkAnswers=true",
            change,
            t("checkAnswers.rows.callbackDetails.changeHidden"),
        ))

    return rows


def build_video_rows(auto_verify_result: str, submission_id: str, t: Translate) -> List[SummaryRow]:
    if auto_verify_result == AutomatedIdVerificationResult.MATCH.value:
        video_check_text = t("checkAnswers.rows.videoCheck.match")
    else:
        video_check_text = t("checkAnswers.rows.videoCheck.noMatch")

    return [
        build_row(
            t("checkAnswers.rows.videoCheck.key"),
            video_check_text,
            f"/{submission_id}/video/view?checkAnswers=true",
            t("common.view"),
            t("checkAnswers.rows.videoCheck.viewHidden"),
        )
    ]
