"""
Check in service - Test Configuration and Fixtures
"""
import os
import uuid
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from faker import Faker
from fakeredis import FakeAsyncRedis, FakeServer

# Set testing environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['AUDIT_ENABLED'] = 'false'
os.environ['GEO_RESTRICTION_ENABLED'] = 'false'
os.environ['LOG_LEVEL'] = 'WARNING'
os.environ['ESUPERVISION_API_URL'] = 'http://esupervision.test'
os.environ['HMPPS_AUTH_URL'] = 'http://auth.test/auth'

from checkin.core.redis_client import redis_client
from checkin.main import app
from checkin.services import get_audit_service, get_esupervision_service
from mocks.mock_esupervision import MockAuditService, MockEsupervisionService

fake = Faker('en_GB')


@pytest.fixture(autouse=True)
def session_redis() -> FakeAsyncRedis:
    """In-memory Redis for session data, empty for every test"""
    redis_client.client = FakeAsyncRedis(server=FakeServer(), decode_responses=True)
    yield redis_client.client
    redis_client.client = None


@pytest.fixture
def checkin_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def person() -> dict:
    """Personal details the mock API will accept for the check in"""
    dob = fake.date_of_birth(minimum_age=18, maximum_age=80)
    return {
        'firstName': fake.first_name(),
        'lastName': fake.last_name(),
        'day': str(dob.day),
        'month': str(dob.month),
        'year': str(dob.year),
        'dateOfBirth': dob.isoformat(),
    }


@pytest.fixture
def mock_service(checkin_id: str, person: dict) -> MockEsupervisionService:
    service = MockEsupervisionService()
    service.add_checkin(
        checkin_id,
        crn='X123456',
        forename=person['firstName'],
        surname=person['lastName'],
        date_of_birth=person['dateOfBirth'],
    )
    return service


@pytest.fixture
def mock_audit() -> MockAuditService:
    return MockAuditService()


@pytest.fixture
async def client(mock_service: MockEsupervisionService, mock_audit: MockAuditService) -> AsyncGenerator[AsyncClient, None]:
    """Test client with the eSupervision API and audit queue replaced"""
    app.dependency_overrides[get_esupervision_service] = lambda: mock_service
    app.dependency_overrides[get_audit_service] = lambda: mock_audit

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def verified_client(client: AsyncClient, checkin_id: str, person: dict) -> AsyncClient:
    """Client whose session has passed the identity check"""
    await client.get(f'/{checkin_id}')
    response = await client.post(f'/{checkin_id}/verify', data={
        'firstName': person['firstName'],
        'lastName': person['lastName'],
        'day': person['day'],
        'month': person['month'],
        'year': person['year'],
    })
    assert response.status_code == 303
    return client
