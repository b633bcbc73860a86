# Pydantic schemas
from checkin.schemas.checkin import (
    CheckinStatus,
    MentalHealth,
    SupportAspect,
    CallbackRequested,
    AutomatedIdVerificationResult,
    Checkin,
    CheckinResponse,
    CheckinUploadLocations,
    IdentityVerificationResult,
    AutoVerifyResult,
    DeviceInfo,
    SurveyResponse,
    CheckinSubmission,
)
from checkin.schemas.feedback import Feedback, FeedbackContent, sanitise_feedback
from checkin.schemas.forms import (
    PersonalDetailsForm,
    MentalHealthForm,
    AssistanceForm,
    CallbackForm,
    CheckAnswersForm,
)
