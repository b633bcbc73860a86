"""
eSupervision API client
=======================

Async httpx client for the check in endpoints of the eSupervision API.
Every call is made as the service itself, using a system token obtained
from HMPPS Auth with the client-credentials grant.

Idempotent GETs are retried on network errors and 5xx responses with
exponential backoff. POSTs are never retried: a duplicate submit or
identity check must not be sent twice.
"""

import asyncio
import random
import time
from typing import Any, Dict, List, Optional

import httpx

from checkin.core.config import settings
from checkin.core.exceptions import EsupervisionApiError, SystemTokenError
from checkin.core.logging_config import logger
from checkin.schemas.checkin import (
    AutoVerifyResult,
    CheckinResponse,
    CheckinSubmission,
    CheckinUploadLocations,
    IdentityVerificationRequest,
    IdentityVerificationResult,
    PersonName,
)
from checkin.schemas.feedback import Feedback
from checkin.utils.error_reference import extract_api_error_uuid


class SystemTokenProvider:
    """Fetch and cache a client-credentials token from HMPPS Auth."""

    def __init__(
        self,
        auth_url: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token_url = f"{(auth_url or settings.HMPPS_AUTH_URL).rstrip('/')}/oauth/token"
        self.client_id = client_id or settings.API_CLIENT_ID
        self.client_secret = client_secret or settings.API_CLIENT_SECRET
        self._transport = transport
        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    def _is_valid(self) -> bool:
        return self._token is not None and time.monotonic() < self._expires_at

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    async def get_token(self) -> str:
        if self._is_valid():
            return self._token

        async with self._lock:
            if self._is_valid():
                return self._token

            try:
                async with httpx.AsyncClient(transport=self._transport, timeout=10.0) as client:
                    response = await client.post(
                        self.token_url,
                        data={"grant_type": "client_credentials"},
                        auth=(self.client_id, self.client_secret),
                    )
                    response.raise_for_status()
                    data = response.json()
            except httpx.HTTPStatusError as e:
                logger.error(f"[SystemToken] HMPPS Auth returned {e.response.status_code}")
                raise SystemTokenError(f"HMPPS Auth returned {e.response.status_code}") from e
            except httpx.RequestError as e:
                logger.error(f"[SystemToken] Request error: {e}")
                raise SystemTokenError(f"HMPPS Auth unreachable: {e}") from e

            access_token = data.get("access_token")
            if not access_token:
                raise SystemTokenError("No access token in HMPPS Auth response")

            expires_in = int(data.get("expires_in", 300))
            buffer = settings.SYSTEM_TOKEN_EXPIRY_BUFFER_SECONDS
            self._token = access_token
            self._expires_at = time.monotonic() + max(expires_in - buffer, 0)
            logger.debug(f"[SystemToken] Obtained token valid for {expires_in}s")
            return self._token


class EsupervisionApiClient:
    """Calls the check in endpoints of the eSupervision API"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[SystemTokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retries: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.ESUPERVISION_API_URL).rstrip("/")
        self.token_provider = token_provider or SystemTokenProvider(transport=transport)
        self._transport = transport
        self.max_retries = settings.ESUPERVISION_API_MAX_RETRIES if max_retries is None else max_retries
        self.retry_base_delay = (
            settings.ESUPERVISION_API_RETRY_BASE_DELAY if retry_base_delay is None else retry_base_delay
        )
        self.timeout = httpx.Timeout(
            settings.ESUPERVISION_API_TIMEOUT,
            connect=settings.ESUPERVISION_API_CONNECT_TIMEOUT,
        )

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Exponential backoff with up to 25% jitter"""
        delay = min(self.retry_base_delay * (2 ** attempt), settings.ESUPERVISION_API_RETRY_MAX_DELAY)
        return delay + delay * random.uniform(0, 0.25)

    @staticmethod
    def _error_from_response(response: httpx.Response) -> EsupervisionApiError:
        body: Any = None
        try:
            body = response.json()
        except ValueError:
            pass

        message = f"eSupervision API returned {response.status_code}"
        user_message = None
        error_uuid = None
        if isinstance(body, dict):
            user_message = body.get("userMessage")
            message = user_message or body.get("developerMessage") or body.get("message") or message
            error_uuid = extract_api_error_uuid(body)

        return EsupervisionApiError(
            response.status_code,
            message,
            error_uuid=error_uuid,
            user_message=user_message,
        )

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        retry: bool = False,
    ) -> Any:
        attempts = self.max_retries + 1 if retry else 1
        token = await self.token_provider.get_token()
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}

        for attempt in range(attempts):
            start = time.perf_counter()
            try:
                async with httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=self.timeout,
                    transport=self._transport,
                ) as client:
                    response = await client.request(method, path, params=params, json=json, headers=headers)
            except httpx.RequestError as e:
                duration_ms = (time.perf_counter() - start) * 1000
                logger.log_api_call(method, path, None, duration_ms, error_type=type(e).__name__)
                if attempt < attempts - 1:
                    delay = self._calculate_retry_delay(attempt)
                    logger.warning(
                        f"[EsupervisionApi] {type(e).__name__} on {method} {path} "
                        f"(attempt {attempt + 1}/{attempts}), retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise EsupervisionApiError(503, f"eSupervision API unavailable: {type(e).__name__}") from e

            duration_ms = (time.perf_counter() - start) * 1000
            logger.log_api_call(method, path, response.status_code, duration_ms)

            if response.status_code >= 500 and attempt < attempts - 1:
                delay = self._calculate_retry_delay(attempt)
                logger.warning(
                    f"[EsupervisionApi] {response.status_code} on {method} {path} "
                    f"(attempt {attempt + 1}/{attempts}), retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                continue

            if response.status_code == 401:
                # Token may have been revoked early; the next call fetches a new one
                self.token_provider.invalidate()

            if response.is_error:
                raise self._error_from_response(response)

            if response.status_code == 204 or not response.content:
                return None
            return response.json()

    # ==================== Check ins ====================

    async def get_checkin(self, checkin_id: str) -> CheckinResponse:
        data = await self._request("GET", f"/offender_checkins/{checkin_id}", retry=True)
        return CheckinResponse.model_validate(data)

    async def get_checkin_upload_location(
        self,
        checkin_id: str,
        video: str,
        snapshots: List[str],
        reference: Optional[str] = None,
    ) -> CheckinUploadLocations:
        params: Dict[str, Any] = {"video": video, "snapshots": ",".join(snapshots)}
        if reference:
            params["reference"] = reference
        data = await self._request("POST", f"/offender_checkins/{checkin_id}/upload_location", params=params)
        return CheckinUploadLocations.model_validate(data or {})

    async def verify_identity(
        self,
        checkin_id: str,
        crn: str,
        forename: str,
        surname: str,
        date_of_birth: str,
    ) -> IdentityVerificationResult:
        payload = IdentityVerificationRequest(
            crn=crn,
            name=PersonName(forename=forename, surname=surname),
            date_of_birth=date_of_birth,
        )
        data = await self._request(
            "POST",
            f"/offender_checkins/{checkin_id}/identity-verify",
            json=payload.model_dump(by_alias=True),
        )
        return IdentityVerificationResult.model_validate(data or {})

    async def auto_verify_checkin_identity(self, checkin_id: str, num_snapshots: int) -> AutoVerifyResult:
        data = await self._request(
            "POST",
            f"/offender_checkins/{checkin_id}/video-verify",
            params={"numSnapshots": num_snapshots},
        )
        return AutoVerifyResult.model_validate(data)

    async def submit_checkin(self, checkin_id: str, submission: CheckinSubmission) -> Dict[str, Any]:
        data = await self._request(
            "POST",
            f"/offender_checkins/{checkin_id}/submit",
            json=submission.model_dump(by_alias=True, mode="json"),
        )
        return data or {}

    async def log_checkin_event(self, checkin_id: str, event_type: str, comment: Optional[str] = None) -> None:
        await self._request(
            "POST",
            f"/offender_checkins/{checkin_id}/event",
            json={"eventType": event_type, "comment": comment},
        )

    # ==================== Feedback ====================

    async def submit_feedback(self, feedback: Feedback) -> None:
        await self._request("POST", "/feedback", json=feedback.to_payload())

    # ==================== Health ====================

    async def ping(self) -> bool:
        try:
            await self._request("GET", "/health/ping")
            return True
        except (EsupervisionApiError, SystemTokenError) as e:
            logger.warning(f"[EsupervisionApi] Ping failed: {e.code} {e.message}")
            return False
