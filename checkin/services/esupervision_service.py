"""
Check in operations used by the citizen pages.

Thin layer over EsupervisionApiClient that turns API responses into the
domain errors the pages render (not found, missing upload locations).
"""

from typing import List, Optional

from checkin.core.exceptions import CheckinNotFoundError, EsupervisionApiError, UploadLocationError
from checkin.core.logging_config import logger
from checkin.schemas.checkin import (
    AutoVerifyResult,
    Checkin,
    CheckinSubmission,
    CheckinUploadLocations,
    IdentityVerificationResult,
)
from checkin.schemas.feedback import Feedback, FeedbackContent
from checkin.utils.esupervision_client import EsupervisionApiClient


VIDEO_CONTENT_TYPE = "video/mp4"
FRAME_CONTENT_TYPE = "image/jpeg"


class CheckinEventType:
    """Event types recorded against a check in"""
    OUTSIDE_ACCESS = "CHECKIN_OUTSIDE_ACCESS"


class EsupervisionService:
    def __init__(self, client: Optional[EsupervisionApiClient] = None):
        self.client = client or EsupervisionApiClient()

    async def get_checkin(self, checkin_id: str) -> Checkin:
        try:
            response = await self.client.get_checkin(checkin_id)
        except EsupervisionApiError as e:
            if e.status == 404:
                raise CheckinNotFoundError(checkin_id) from e
            raise
        return response.checkin

    async def get_checkin_upload_location(
        self,
        checkin_id: str,
        video: str = VIDEO_CONTENT_TYPE,
        snapshots: Optional[List[str]] = None,
    ) -> CheckinUploadLocations:
        snapshots = snapshots or [FRAME_CONTENT_TYPE, FRAME_CONTENT_TYPE]
        locations = await self.client.get_checkin_upload_location(checkin_id, video, snapshots)
        if not locations.snapshots or locations.video is None:
            raise UploadLocationError(
                f"Failed to get upload locations for checkin {checkin_id}: "
                f"video={'yes' if locations.video else 'no'} snapshots={len(locations.snapshots)}"
            )
        return locations

    async def verify_identity(
        self,
        checkin_id: str,
        crn: str,
        forename: str,
        surname: str,
        date_of_birth: str,
    ) -> IdentityVerificationResult:
        return await self.client.verify_identity(checkin_id, crn, forename, surname, date_of_birth)

    async def auto_verify_checkin_identity(self, checkin_id: str, num_snapshots: int = 1) -> AutoVerifyResult:
        return await self.client.auto_verify_checkin_identity(checkin_id, num_snapshots)

    async def submit_checkin(self, checkin_id: str, submission: CheckinSubmission) -> None:
        await self.client.submit_checkin(checkin_id, submission)
        logger.log_checkin_event(checkin_id, "submitted")

    async def log_checkin_event(self, checkin_id: str, event_type: str, comment: Optional[str] = None) -> None:
        await self.client.log_checkin_event(checkin_id, event_type, comment)

    async def submit_feedback(self, feedback: FeedbackContent) -> None:
        await self.client.submit_feedback(Feedback(feedback=feedback))

    async def ping(self) -> bool:
        return await self.client.ping()


esupervision_service = EsupervisionService()
