from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict, Any, Union

from checkin.content import DEFAULT_LANGUAGE, Language, get_content, t


HOW_EASY_VALUES = ("veryEasy", "easy", "neitherEasyOrDifficult", "difficult", "veryDifficult")

GETTING_SUPPORT_VALUES = ("yes", "no")

# Labels live in the locale bundles under feedback.improvements.options
IMPROVEMENT_VALUES = (
    "findingOutAboutCheckIns",
    "beingSignedUpToCheckIns",
    "textOrEmailNotifications",
    "checkInQuestions",
    "takingAVideo",
    "gettingHelp",
    "whatHappenedAfterAskingForSupport",
    "whatHappenedAfterAskingForContact",
    "somethingElse",
    "nothingNeedsImproving",
)


class FeedbackContent(BaseModel):
    """Anonymous service feedback. Bump version when the shape changes."""
    model_config = ConfigDict(populate_by_name=True)

    version: int = 1
    howEasy: Optional[str] = None
    gettingSupport: Optional[str] = None
    improvements: Optional[List[str]] = None


class Feedback(BaseModel):
    feedback: FeedbackContent

    def to_payload(self) -> Dict[str, Any]:
        return {"feedback": self.feedback.model_dump(exclude_none=True)}


def sanitise_feedback(
    how_easy: Any,
    getting_support: Any,
    improvements: Union[str, List[Any], None],
) -> Dict[str, Any]:
    """Keep only recognised answers. An empty dict means nothing worth sending."""
    output: Dict[str, Any] = {}

    if isinstance(how_easy, str) and how_easy in HOW_EASY_VALUES:
        output["howEasy"] = how_easy

    if isinstance(getting_support, str) and getting_support in GETTING_SUPPORT_VALUES:
        output["gettingSupport"] = getting_support

    if isinstance(improvements, list):
        filtered = [v for v in improvements if isinstance(v, str) and v in IMPROVEMENT_VALUES]
        if filtered:
            output["improvements"] = filtered
    elif isinstance(improvements, str) and improvements in IMPROVEMENT_VALUES:
        output["improvements"] = [improvements]

    return output


def improvement_labels(lang: Language) -> Dict[str, str]:
    labels: Dict[str, str] = {}
    for code in (DEFAULT_LANGUAGE, lang):
        for option in get_content(code, "feedback.improvements.options") or []:
            labels[option["value"]] = option["text"]
    return labels


def build_improvement_items(lang: Language = DEFAULT_LANGUAGE) -> List[Dict[str, str]]:
    """Checkbox items with an 'or' divider before the final, exclusive option"""
    labels = improvement_labels(lang)
    *values, last = IMPROVEMENT_VALUES
    return [
        *({"value": v, "text": labels.get(v, v)} for v in values),
        {"divider": t(lang, "common.or")},
        {"value": last, "text": labels.get(last, last)},
    ]
