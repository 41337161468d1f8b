"""
Notification Service Abstract Base Class

Defines interface for sending transactional email (verification links).
Supports both Mock (development) and Real (production) implementations.

Author: Khalil Bannouri
Version: 3.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from app.core.config import get_settings


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


def build_verification_link(token: str) -> str:
    settings = get_settings()
    return f"{settings.app_base_url.rstrip('/')}/api/auth/verify-email?token={token}"


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass

    async def send_verification_email(
        self,
        to_email: str,
        name: str,
        token: str,
    ) -> NotificationResult:
        """Send the email verification link to a newly registered user."""
        settings = get_settings()
        link = build_verification_link(token)
        hours = settings.verification_token_ttl_hours

        body_text = (
            f"Hi {name},\n\n"
            f"Please verify your email address for {settings.app_name}:\n"
            f"{link}\n\n"
            f"This link expires in {hours} hours."
        )
        body_html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h1 style="color: #ff4757;">Verify your email</h1>
            <p>Hi {name},</p>
            <p>Please confirm your email address for {settings.app_name}.</p>
            <a href="{link}" style="display: inline-block; background: #ff4757; color: white; padding: 15px 30px; text-decoration: none; border-radius: 8px; margin: 20px 0;">
                Verify Email
            </a>
            <p style="color: #666; font-size: 12px;">This link expires in {hours} hours.</p>
        </div>
        """

        return await self.send_email(
            to_email=to_email,
            subject=f"Verify your email - {settings.app_name}",
            body_html=body_html,
            body_text=body_text,
        )
