"""
Unit Tests for EsupervisionService
"""
from unittest.mock import AsyncMock

import pytest

from checkin.core.exceptions import CheckinNotFoundError, EsupervisionApiError, UploadLocationError
from checkin.schemas.checkin import (
    Checkin,
    CheckinResponse,
    CheckinStatus,
    CheckinUploadLocations,
    UploadLocation,
)
from checkin.schemas.feedback import Feedback, FeedbackContent
from checkin.services.esupervision_service import EsupervisionService


@pytest.fixture
def api_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(api_client: AsyncMock) -> EsupervisionService:
    return EsupervisionService(client=api_client)


class TestGetCheckin:
    """Test loading a check in"""

    @pytest.mark.asyncio
    async def test_returns_checkin(self, service: EsupervisionService, api_client: AsyncMock, checkin_id: str):
        """Test the check in is unwrapped from the response"""
        api_client.get_checkin.return_value = CheckinResponse(
            checkin=Checkin(uuid=checkin_id, status=CheckinStatus.CREATED))

        checkin = await service.get_checkin(checkin_id)

        assert checkin.uuid == checkin_id

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, service: EsupervisionService, api_client: AsyncMock, checkin_id: str):
        """Test a missing check in becomes CheckinNotFoundError"""
        api_client.get_checkin.side_effect = EsupervisionApiError(404, 'Not found')

        with pytest.raises(CheckinNotFoundError) as exc_info:
            await service.get_checkin(checkin_id)

        assert exc_info.value.submission_id == checkin_id

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, service: EsupervisionService, api_client: AsyncMock,
                                          checkin_id: str):
        """Test server errors are not hidden"""
        api_client.get_checkin.side_effect = EsupervisionApiError(500, 'Boom')

        with pytest.raises(EsupervisionApiError):
            await service.get_checkin(checkin_id)


class TestUploadLocation:
    """Test presigned upload locations"""

    @pytest.mark.asyncio
    async def test_default_content_types(self, service: EsupervisionService, api_client: AsyncMock,
                                         checkin_id: str):
        """Test one video and two snapshots are requested"""
        api_client.get_checkin_upload_location.return_value = CheckinUploadLocations(
            video=UploadLocation(url='https://s3/video'),
            snapshots=[UploadLocation(url='https://s3/1')],
        )

        await service.get_checkin_upload_location(checkin_id)

        api_client.get_checkin_upload_location.assert_awaited_once_with(
            checkin_id, 'video/mp4', ['image/jpeg', 'image/jpeg'])

    @pytest.mark.asyncio
    @pytest.mark.parametrize('locations', [
        CheckinUploadLocations(video=None, snapshots=[UploadLocation(url='https://s3/1')]),
        CheckinUploadLocations(video=UploadLocation(url='https://s3/video'), snapshots=[]),
    ])
    async def test_incomplete_locations(self, service: EsupervisionService, api_client: AsyncMock,
                                        checkin_id: str, locations: CheckinUploadLocations):
        """Test a missing video or snapshot location is an error"""
        api_client.get_checkin_upload_location.return_value = locations

        with pytest.raises(UploadLocationError):
            await service.get_checkin_upload_location(checkin_id)


class TestPassThrough:
    """Test calls forwarded to the client"""

    @pytest.mark.asyncio
    async def test_submit_feedback_wraps_content(self, service: EsupervisionService, api_client: AsyncMock):
        """Test feedback is wrapped for the API"""
        content = FeedbackContent(version=1, howEasy='easy')

        await service.submit_feedback(content)

        api_client.submit_feedback.assert_awaited_once_with(Feedback(feedback=content))

    @pytest.mark.asyncio
    async def test_log_event(self, service: EsupervisionService, api_client: AsyncMock, checkin_id: str):
        """Test events are forwarded"""
        await service.log_checkin_event(checkin_id, 'CHECKIN_OUTSIDE_ACCESS', 'ip=1')

        api_client.log_checkin_event.assert_awaited_once_with(checkin_id, 'CHECKIN_OUTSIDE_ACCESS', 'ip=1')

    @pytest.mark.asyncio
    async def test_ping(self, service: EsupervisionService, api_client: AsyncMock):
        """Test the health check result"""
        api_client.ping.return_value = False
        assert await service.ping() is False
