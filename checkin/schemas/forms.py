"""
Form schemas for the check in journey.

Each form validates the posted (string) values and reports failures as a
GOV.UK error summary list: ``[{"text": "Enter your first name", "href": "#firstName"}]``.
"""

import re
from calendar import monthrange
from datetime import date
from typing import Any, ClassVar, Dict, List, Literal, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from checkin.models.form_data import UNCHECKED_VALUE
from checkin.schemas.checkin import CallbackRequested, MentalHealth, SupportAspect


# ASCII digits only, str.isdigit also accepts superscripts
DIGITS_RE = re.compile(r"[0-9]+")

ErrorList = List[Dict[str, str]]
FormT = TypeVar("FormT", bound="FormSchema")


def sentence_case(text: str, capitalise_first: bool = True) -> str:
    """Lower-case every word except acronyms, optionally capitalising the first letter"""
    words = [word if word.isupper() and len(word) > 1 else word.lower() for word in text.split(" ")]
    result = " ".join(words)
    if capitalise_first and result:
        result = result[0].upper() + result[1:]
    return result


def build_error(text: str, field: str) -> Dict[str, str]:
    return {"text": text, "href": f"#{field}"}


def find_error(errors: Optional[ErrorList], field: str) -> Optional[Dict[str, str]]:
    """Return the error for a field in the shape GOV.UK components expect"""
    if not errors:
        return None
    for error in errors:
        if error.get("href") == f"#{field}":
            return {"text": error["text"]}
    return None


# ============================================
# Date inputs
# ============================================

def date_validation_message(label: str, missing: List[str]) -> str:
    with_articles = [part if part == "4 numbers for the year" else f"a {part}" for part in missing]
    if len(with_articles) == 1 and with_articles[0] == "4 numbers for the year":
        return "Year must include 4 numbers"
    if len(with_articles) == 1:
        return f"{label} must include {with_articles[0]}"
    if len(with_articles) == 2:
        return f"{label} must include {with_articles[0]} and {with_articles[1]}"
    return f"{label} must include {', '.join(with_articles[:-1])} and {with_articles[-1]}"


def _is_real_date(year: int, month: int, day: int) -> bool:
    return 1 <= month <= 12 and 1 <= day <= monthrange(year, month)[1]


def validate_date_input(
    values: Dict[str, Any],
    *,
    prefix: Optional[str] = None,
    who: str = "your",
    label: str = "date",
    group_path: Optional[str] = None,
    must_be_in_past: bool = False,
    must_be_in_future: bool = False,
    allow_today: bool = False,
    today: Optional[date] = None,
) -> Optional[Dict[str, str]]:
    """
    Validate a day/month/year group and return the first problem found.

    Checks run in order and stop at the first failure: all empty,
    non-numeric parts, missing parts, impossible dates, then the
    past/future rules.
    """
    day_key = f"{prefix}Day" if prefix else "day"
    month_key = f"{prefix}Month" if prefix else "month"
    year_key = f"{prefix}Year" if prefix else "year"
    group_path = group_path or prefix or "date"
    label_text = sentence_case(label)
    today = today or date.today()

    day_raw = str(values.get(day_key) or "").strip()
    month_raw = str(values.get(month_key) or "").strip()
    year_raw = str(values.get(year_key) or "").strip()

    if not day_raw and not month_raw and not year_raw:
        return build_error(f"Enter {who} {label.lower()}", group_path)

    non_numeric = [
        key for key, raw in ((day_key, day_raw), (month_key, month_raw), (year_key, year_raw))
        if raw and not DIGITS_RE.fullmatch(raw)
    ]
    if len(non_numeric) == 1:
        which = non_numeric[0]
        if which == day_key:
            return build_error("Day must only contain numbers", which)
        if which == month_key:
            return build_error("Month must only contain numbers", which)
        return build_error("Year must only contain numbers", which)
    if non_numeric:
        return build_error(f"{label_text} must only contain numbers", group_path)

    missing: List[str] = []
    if not day_raw:
        missing.append("day")
    if not month_raw:
        missing.append("month")
    if not year_raw:
        missing.append("year")
    elif len(year_raw) != 4:
        missing.append("4 numbers for the year")

    if missing:
        if len(missing) == 1:
            path = {"day": day_key, "month": month_key}.get(missing[0], year_key)
        else:
            path = group_path
        return build_error(date_validation_message(label_text, missing), path)

    day, month, year = int(day_raw), int(month_raw), int(year_raw)
    day_invalid = day < 1 or day > 31
    month_invalid = month < 1 or month > 12
    year_invalid = year < 1900 or year > 2100

    path = None
    if day_invalid and not month_invalid:
        path = day_key
    elif month_invalid and not day_invalid:
        path = month_key
    elif day_invalid and month_invalid:
        path = group_path
    elif year_invalid or not _is_real_date(year, month, day):
        path = group_path

    if path:
        return build_error(f"{label_text} must be a real date", path)

    candidate = date(year, month, day)

    if must_be_in_future and allow_today:
        if candidate < today:
            return build_error(f"{label_text} must be today or in the future", group_path)
    elif must_be_in_future:
        if candidate <= today:
            return build_error(f"{label_text} must be in the future", group_path)

    if must_be_in_past and candidate >= today:
        return build_error(f"{label_text} must be in the past", group_path)

    return None


# ============================================
# Form schemas
# ============================================

class FormSchema(BaseModel):
    """
    Base class for posted forms.

    FIELD_MESSAGES maps a form field to the message shown for any problem
    with it. extra_issues() lets a form add checks that span several inputs.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)

    FIELD_MESSAGES: ClassVar[Dict[str, str]] = {}

    @classmethod
    def extra_issues(cls, data: Dict[str, Any]) -> ErrorList:
        return []

    @classmethod
    def validate_form(cls: Type[FormT], data: Dict[str, Any]) -> Tuple[Optional[FormT], ErrorList]:
        errors: ErrorList = []
        model = None
        try:
            model = cls.model_validate(data)
        except ValidationError as exc:
            seen = set()
            for error in exc.errors():
                field = str(error["loc"][0]) if error["loc"] else ""
                if field in seen:
                    continue
                seen.add(field)
                errors.append(build_error(cls.FIELD_MESSAGES.get(field, error["msg"]), field))

        errors.extend(cls.extra_issues(data))
        if errors:
            return None, errors
        return model, errors


class PersonalDetailsForm(FormSchema):
    FIELD_MESSAGES: ClassVar[Dict[str, str]] = {
        "firstName": "Enter your first name",
        "lastName": "Enter your last name",
    }

    first_name: str = Field(alias="firstName", min_length=1)
    last_name: str = Field(alias="lastName", min_length=1)
    day: str = ""
    month: str = ""
    year: str = ""

    @classmethod
    def extra_issues(cls, data: Dict[str, Any]) -> ErrorList:
        issue = validate_date_input(
            data,
            who="your",
            label="date of birth",
            group_path="dob",
            must_be_in_past=True,
        )
        return [issue] if issue else []

    @property
    def date_of_birth(self) -> str:
        """ISO date for the identity check"""
        return f"{int(self.year):04d}-{int(self.month):02d}-{int(self.day):02d}"


class MentalHealthForm(FormSchema):
    FIELD_MESSAGES: ClassVar[Dict[str, str]] = {
        "mentalHealth": "Select how you are feeling",
    }

    mental_health: MentalHealth = Field(alias="mentalHealth")


class AssistanceForm(FormSchema):
    FIELD_MESSAGES: ClassVar[Dict[str, str]] = {
        "assistance": "Select what you need help with or select 'No, I do not need help'",
    }

    assistance: List[SupportAspect] = Field(min_length=1)

    @field_validator("assistance", mode="before")
    @classmethod
    def coerce_to_list(cls, v: Any) -> List[Any]:
        if isinstance(v, str):
            v = [v]
        elif not isinstance(v, (list, tuple)):
            return []
        return [item for item in v if item and item != UNCHECKED_VALUE]


class CallbackForm(FormSchema):
    FIELD_MESSAGES: ClassVar[Dict[str, str]] = {
        "callback": "Select yes if you need to speak to your probation officer",
    }

    callback: CallbackRequested
    callback_details: str = Field(default="", alias="callbackDetails")


class CheckAnswersForm(FormSchema):
    FIELD_MESSAGES: ClassVar[Dict[str, str]] = {
        "checkAnswers": "Confirm your details are correct",
    }

    check_answers: Literal["CONFIRM"] = Field(alias="checkAnswers")

    @field_validator("check_answers", mode="before")
    @classmethod
    def drop_unchecked(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            v = next((item for item in v if item != UNCHECKED_VALUE), None)
        return v


__all__ = [
    "ErrorList",
    "FormSchema",
    "PersonalDetailsForm",
    "MentalHealthForm",
    "AssistanceForm",
    "CallbackForm",
    "CheckAnswersForm",
    "validate_date_input",
    "date_validation_message",
    "sentence_case",
    "build_error",
    "find_error",
]
