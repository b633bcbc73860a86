from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from enum import Enum


class ApiModel(BaseModel):
    """Base for eSupervision API payloads: camelCase on the wire, unknown fields ignored"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ==================== Enums ====================

class CheckinStatus(str, Enum):
    CREATED = "CREATED"
    SUBMITTED = "SUBMITTED"
    REVIEWED = "REVIEWED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class MentalHealth(str, Enum):
    VERY_WELL = "VERY_WELL"
    WELL = "WELL"
    OK = "OK"
    NOT_GREAT = "NOT_GREAT"
    STRUGGLING = "STRUGGLING"


class SupportAspect(str, Enum):
    MENTAL_HEALTH = "MENTAL_HEALTH"
    ALCOHOL = "ALCOHOL"
    DRUGS = "DRUGS"
    MONEY = "MONEY"
    HOUSING = "HOUSING"
    SUPPORT_SYSTEM = "SUPPORT_SYSTEM"
    OTHER = "OTHER"
    NO_HELP = "NO_HELP"


class CallbackRequested(str, Enum):
    YES = "YES"
    NO = "NO"


class AutomatedIdVerificationResult(str, Enum):
    MATCH = "MATCH"
    NO_MATCH = "NO_MATCH"
    NO_FACE_DETECTED = "NO_FACE_DETECTED"
    ERROR = "ERROR"


# ==================== Check in ====================

class Checkin(ApiModel):
    """A single check in as returned by the API"""
    uuid: str
    crn: Optional[str] = None
    status: CheckinStatus
    due_date: Optional[str] = None
    submitted_at: Optional[str] = None
    created_at: Optional[str] = None
    created_by: Optional[str] = None
    reviewed_at: Optional[str] = None
    video_url: Optional[str] = None
    auto_id_check: Optional[AutomatedIdVerificationResult] = None
    flagged_responses: List[str] = Field(default_factory=list)
    checkin_started_at: Optional[str] = None


class CheckinLogs(ApiModel):
    hint: Optional[str] = None
    logs: List[Dict[str, Any]] = Field(default_factory=list)


class CheckinResponse(ApiModel):
    """GET /offender_checkins/{id}"""
    checkin: Checkin
    checkin_logs: Optional[CheckinLogs] = None


# ==================== Uploads ====================

class UploadLocation(ApiModel):
    url: str
    content_type: Optional[str] = None
    duration: Optional[str] = None


class CheckinUploadLocations(ApiModel):
    """Presigned PUT targets for the recorded video and snapshots"""
    video: Optional[UploadLocation] = None
    snapshots: List[UploadLocation] = Field(default_factory=list)
    references: List[UploadLocation] = Field(default_factory=list)
    error_message: Optional[str] = None


# ==================== Identity ====================

class PersonName(ApiModel):
    forename: str
    surname: str


class IdentityVerificationRequest(ApiModel):
    crn: str
    name: PersonName
    date_of_birth: str  # YYYY-MM-DD


class IdentityVerificationResult(ApiModel):
    verified: bool = False
    error: Optional[str] = None


class AutoVerifyResult(ApiModel):
    result: AutomatedIdVerificationResult


# ==================== Submission ====================

class DeviceInfo(ApiModel):
    """Device fingerprint captured in the browser, or derived from the User-Agent"""
    user_agent: str = "Unknown"
    platform: str = "Unknown"
    screen_resolution: str = "Unknown"
    pixel_ratio: Optional[float] = None
    touch_support: bool = False
    os: str = "Unknown"
    os_version: str = "Unknown"
    device_type: str = "Unknown"
    manufacturer: str = "Unknown"
    model: str = "Unknown"
    browser: str = "Unknown"
    browser_version: str = "Unknown"


class SurveyResponse(ApiModel):
    version: str
    mental_health: MentalHealth
    assistance: List[SupportAspect] = Field(default_factory=list)
    mental_health_support: str = ""
    alcohol_support: str = ""
    drugs_support: str = ""
    money_support: str = ""
    housing_support: str = ""
    support_system_support: str = ""
    other_support: str = ""
    callback: CallbackRequested
    callback_details: str = ""
    device: Optional[DeviceInfo] = None
    checkin_started_at: Optional[int] = None


class CheckinSubmission(ApiModel):
    survey: SurveyResponse


class CheckinEvent(ApiModel):
    event_type: str
    comment: Optional[str] = None


__all__ = [
    "ApiModel",
    "CheckinStatus",
    "MentalHealth",
    "SupportAspect",
    "CallbackRequested",
    "AutomatedIdVerificationResult",
    "Checkin",
    "CheckinLogs",
    "CheckinResponse",
    "UploadLocation",
    "CheckinUploadLocations",
    "PersonName",
    "IdentityVerificationRequest",
    "IdentityVerificationResult",
    "AutoVerifyResult",
    "DeviceInfo",
    "SurveyResponse",
    "CheckinSubmission",
    "CheckinEvent",
]
