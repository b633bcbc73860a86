"""
Audit events for the HMPPS audit queue.

Events carry ids only (submission id, error reference) and never the
citizen's personal details. Sending is best effort: a failure is logged
and the page the citizen is on carries on.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from checkin.core.config import settings
from checkin.core.logging_config import logger


class AuditService:
    """Send audit messages to SQS"""

    def __init__(
        self,
        enabled: Optional[bool] = None,
        queue_url: Optional[str] = None,
        region: Optional[str] = None,
        service_name: Optional[str] = None,
        sqs_client: Any = None,
    ):
        self.enabled = settings.AUDIT_ENABLED if enabled is None else enabled
        self.queue_url = queue_url or settings.AUDIT_SQS_QUEUE_URL
        self.region = region or settings.AUDIT_SQS_REGION
        self.service_name = service_name or settings.AUDIT_SERVICE_NAME
        self._sqs_client = sqs_client

    @property
    def sqs_client(self):
        if self._sqs_client is None:
            self._sqs_client = boto3.client("sqs", region_name=self.region)
        return self._sqs_client

    def build_message(
        self,
        what: str,
        who: str,
        subject_id: Optional[str] = None,
        subject_type: Optional[str] = None,
        correlation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        message: Dict[str, Any] = {
            "what": what,
            "who": who,
            "when": datetime.now(timezone.utc).isoformat(),
            "service": self.service_name,
        }
        if subject_id:
            message["subjectId"] = subject_id
        if subject_type:
            message["subjectType"] = subject_type
        if correlation_id:
            message["correlationId"] = correlation_id
        if details:
            message["details"] = json.dumps(details, default=str)
        return message

    async def log_audit_event(
        self,
        what: str,
        who: str,
        subject_id: Optional[str] = None,
        subject_type: Optional[str] = None,
        correlation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = self.build_message(what, who, subject_id, subject_type, correlation_id, details)

        if not self.enabled or not self.queue_url:
            logger.debug(f"[Audit] Disabled, not sending {what}", extra={"audit_what": what})
            return

        try:
            await asyncio.get_running_loop().run_in_executor(
                None,
                lambda: self.sqs_client.send_message(
                    QueueUrl=self.queue_url,
                    MessageBody=json.dumps(message),
                ),
            )
            logger.debug(f"[Audit] Sent {what}", extra={"audit_what": what})
        except (ClientError, BotoCoreError) as e:
            logger.error(f"[Audit] Failed to send {what}: {e}", extra={"audit_what": what})

    async def log_page_view(
        self,
        page: str,
        who: str,
        subject_id: Optional[str] = None,
        subject_type: Optional[str] = None,
        correlation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        await self.log_audit_event(
            f"PAGE_VIEW_{page.upper().replace('-', '_')}",
            who,
            subject_id=subject_id,
            subject_type=subject_type,
            correlation_id=correlation_id,
            details=details,
        )


audit_service = AuditService()
