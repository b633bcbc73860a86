"""
Mock eSupervision service and audit queue for testing
Keeps check ins in memory and records every call
"""
from typing import Any, Dict, List, Optional

from checkin.core.exceptions import CheckinNotFoundError, EsupervisionApiError
from checkin.schemas.checkin import (
    AutomatedIdVerificationResult,
    AutoVerifyResult,
    Checkin,
    CheckinStatus,
    CheckinSubmission,
    CheckinUploadLocations,
    IdentityVerificationResult,
    UploadLocation,
)
from checkin.schemas.feedback import FeedbackContent


class MockEsupervisionService:
    """In-memory stand in for EsupervisionService"""

    def __init__(self):
        self.checkins: Dict[str, Checkin] = {}
        self.people: Dict[str, Dict[str, str]] = {}
        self.submissions: Dict[str, CheckinSubmission] = {}
        self.events: List[Dict[str, Any]] = []
        self.feedback: List[FeedbackContent] = []
        self.verify_calls: List[Dict[str, str]] = []
        self.auto_verify_result = AutomatedIdVerificationResult.MATCH
        self.auto_verify_error: Optional[Exception] = None
        self.api_error: Optional[Exception] = None
        self.healthy = True

    def add_checkin(
        self,
        checkin_id: str,
        crn: Optional[str] = 'X123456',
        status: CheckinStatus = CheckinStatus.CREATED,
        forename: str = 'Jo',
        surname: str = 'Bloggs',
        date_of_birth: str = '1990-01-01',
    ) -> Checkin:
        checkin = Checkin(uuid=checkin_id, crn=crn, status=status, due_date='2025-01-01')
        self.checkins[checkin_id] = checkin
        self.people[checkin_id] = {
            'forename': forename,
            'surname': surname,
            'date_of_birth': date_of_birth,
        }
        return checkin

    def set_status(self, checkin_id: str, status: CheckinStatus) -> None:
        self.checkins[checkin_id] = self.checkins[checkin_id].model_copy(update={'status': status})

    async def get_checkin(self, checkin_id: str) -> Checkin:
        if self.api_error:
            raise self.api_error
        if checkin_id not in self.checkins:
            raise CheckinNotFoundError(checkin_id)
        return self.checkins[checkin_id]

    async def get_checkin_upload_location(self, checkin_id: str, video: str = 'video/mp4',
                                          snapshots: Optional[List[str]] = None) -> CheckinUploadLocations:
        base = f'https://uploads.test/{checkin_id}'
        return CheckinUploadLocations(
            video=UploadLocation(url=f'{base}/video.mp4', content_type=video),
            snapshots=[
                UploadLocation(url=f'{base}/snapshot-1.jpg', content_type='image/jpeg'),
                UploadLocation(url=f'{base}/snapshot-2.jpg', content_type='image/jpeg'),
            ],
        )

    async def verify_identity(self, checkin_id: str, crn: str, forename: str,
                              surname: str, date_of_birth: str) -> IdentityVerificationResult:
        self.verify_calls.append({
            'checkin_id': checkin_id,
            'crn': crn,
            'forename': forename,
            'surname': surname,
            'date_of_birth': date_of_birth,
        })
        person = self.people.get(checkin_id, {})
        verified = (
            person.get('forename', '').lower() == forename.lower()
            and person.get('surname', '').lower() == surname.lower()
            and person.get('date_of_birth') == date_of_birth
        )
        return IdentityVerificationResult(verified=verified, error=None if verified else 'No match')

    async def auto_verify_checkin_identity(self, checkin_id: str, num_snapshots: int = 1) -> AutoVerifyResult:
        if self.auto_verify_error:
            raise self.auto_verify_error
        return AutoVerifyResult(result=self.auto_verify_result)

    async def submit_checkin(self, checkin_id: str, submission: CheckinSubmission) -> None:
        self.submissions[checkin_id] = submission
        self.set_status(checkin_id, CheckinStatus.SUBMITTED)

    async def log_checkin_event(self, checkin_id: str, event_type: str, comment: Optional[str] = None) -> None:
        self.events.append({'checkin_id': checkin_id, 'event_type': event_type, 'comment': comment})

    async def submit_feedback(self, feedback: FeedbackContent) -> None:
        if self.api_error:
            raise self.api_error
        self.feedback.append(feedback)

    async def ping(self) -> bool:
        return self.healthy


class MockAuditService:
    """Records audit events instead of sending them to SQS"""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    async def log_audit_event(self, what: str, who: str, subject_id: Optional[str] = None,
                              subject_type: Optional[str] = None, correlation_id: Optional[str] = None,
                              details: Optional[Dict[str, Any]] = None) -> None:
        self.events.append({
            'what': what,
            'who': who,
            'subject_id': subject_id,
            'subject_type': subject_type,
            'correlation_id': correlation_id,
            'details': details,
        })

    async def log_page_view(self, page: str, who: str, **kwargs) -> None:
        await self.log_audit_event(f'PAGE_VIEW_{page}', who, **kwargs)

    @property
    def page_views(self) -> List[str]:
        return [event['what'] for event in self.events if event['what'].startswith('PAGE_VIEW_')]


def api_error(status: int = 500, message: str = 'Upstream failure', error_uuid: Optional[str] = None) -> EsupervisionApiError:
    return EsupervisionApiError(status, message, error_uuid=error_uuid)
