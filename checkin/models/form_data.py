"""
Check in answers held in the browser session between pages.

Only the keys listed here are ever persisted. Personal details typed on
the verify page are deliberately excluded: they are sent to the API once
and never stored.
"""

from typing import Any, Dict, List, Optional, Tuple


# Survey questions, support details, video result and metadata
CHECKIN_FORM_DATA_KEYS: Tuple[str, ...] = (
    "mentalHealth",
    "callback",
    "callbackDetails",
    "assistance",
    "mentalHealthSupport",
    "alcoholSupport",
    "drugsSupport",
    "moneySupport",
    "housingSupport",
    "supportSystemSupport",
    "otherSupport",
    "autoVerifyResult",
    "checkinStartedAt",
    "deviceData",
)

SUPPORT_FIELD_KEYS: Tuple[str, ...] = (
    "mentalHealthSupport",
    "alcoholSupport",
    "drugsSupport",
    "moneySupport",
    "housingSupport",
    "supportSystemSupport",
    "otherSupport",
)

SUPPORT_FIELDS_MAP: Dict[str, str] = {
    "MENTAL_HEALTH": "mentalHealthSupport",
    "ALCOHOL": "alcoholSupport",
    "DRUGS": "drugsSupport",
    "MONEY": "moneySupport",
    "HOUSING": "housingSupport",
    "SUPPORT_SYSTEM": "supportSystemSupport",
    "OTHER": "otherSupport",
}

VERIFY_FORM_DATA_KEYS: Tuple[str, ...] = ("firstName", "lastName", "day", "month", "year")

UNCHECKED_VALUE = "_unchecked"


def is_checkin_form_data_key(key: str) -> bool:
    return key in CHECKIN_FORM_DATA_KEYS


def normalize_assistance(assistance: Any) -> List[str]:
    """Coerce the assistance answer to a list: None -> [], scalar -> [scalar]"""
    if not assistance:
        return []
    if isinstance(assistance, (list, tuple)):
        return [str(item) for item in assistance]
    return [str(assistance)]


def merge_form_data(form_data: Dict[str, Any], submitted: Dict[str, Any]) -> Dict[str, Any]:
    """
    Copy posted answers into the session form data.

    Keys starting with an underscore (csrf, device helpers) and unknown keys
    are ignored. The value ``_unchecked`` removes an answer, so a hidden
    input can clear a checkbox group when nothing is ticked.
    """
    for key, value in submitted.items():
        if key.startswith("_") or not is_checkin_form_data_key(key):
            continue

        if value == UNCHECKED_VALUE:
            form_data.pop(key, None)
            continue

        if isinstance(value, list):
            value = [item for item in value if item != UNCHECKED_VALUE]
            if not value:
                form_data.pop(key, None)
                continue
            if len(value) == 1 and key != "assistance":
                value = value[0]

        form_data[key] = value

    return form_data


def clear_unselected_support_fields(form_data: Dict[str, Any]) -> None:
    """Drop the detail text for any support option that is no longer ticked"""
    selected = set(normalize_assistance(form_data.get("assistance")))
    for aspect, field in SUPPORT_FIELDS_MAP.items():
        if aspect not in selected:
            form_data.pop(field, None)


def extract_verify_form_data(submitted: Dict[str, Any]) -> Dict[str, Optional[str]]:
    return {key: submitted.get(key) for key in VERIFY_FORM_DATA_KEYS}
