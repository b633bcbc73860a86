"""Display text for enum values stored in the session and sent to the API"""

import re
from typing import Any, Optional

UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

USER_FRIENDLY_STRINGS = {
    "YES": "Yes",
    "NO": "No",
    "VERY_WELL": "Very well",
    "WELL": "Well",
    "NOT_GREAT": "Not great",
    "STRUGGLING": "Struggling",
    "MENTAL_HEALTH": "Mental health",
    "ALCOHOL": "Alcohol",
    "DRUGS": "Drugs",
    "HOUSING": "Housing",
    "MONEY": "Money",
    "SUPPORT_SYSTEM": "Support system",
    "OTHER": "Other",
    "NO_HELP": "No, I do not need help",
}


def user_friendly_string(key: Optional[Any]) -> Any:
    """Map e.g. VERY_WELL to 'Very well'. Unknown keys are returned unchanged."""
    if not key:
        return ""
    if not isinstance(key, str):
        return key
    return USER_FRIENDLY_STRINGS.get(key.strip().upper(), key)


def is_uuid(value: Optional[str]) -> bool:
    """Check in ids are UUIDs; anything else cannot exist upstream"""
    return bool(value) and bool(UUID_RE.match(value))
