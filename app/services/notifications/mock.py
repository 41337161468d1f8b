"""
Mock Notification Service

Simulates email sending for development and tests.
No actual messages are sent - they are logged and kept in an outbox.

Author: Khalil Bannouri
Version: 3.0.0
"""

import random
import uuid
import logging
from dataclasses import dataclass
from typing import Optional

from app.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    """Record of a logged email, kept for inspection."""
    message_id: str
    to_email: str
    subject: str
    body_html: str
    body_text: Optional[str]


class MockNotificationService(BaseNotificationService):
    """Mock notification service for development."""

    def __init__(self, failure_rate: float = 0.0):
        self.failure_rate = failure_rate
        self.outbox: list[SentEmail] = []
        logger.info(f"MockNotificationService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Simulate sending email."""
        if self._should_fail():
            logger.warning(f"Mock email failed (simulated) to {to_email}")
            return NotificationResult(
                success=False,
                error_message="Simulated email failure",
                provider="mock"
            )

        message_id = f"email_mock_{uuid.uuid4().hex[:12]}"
        self.outbox.append(SentEmail(message_id, to_email, subject, body_html, body_text))
        logger.info(f"Mock email sent to {to_email}: {subject} (ID: {message_id})")
        if body_text:
            logger.debug(body_text)

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True
