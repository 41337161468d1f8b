import threading

from app.services.notifications import (
    MockNotificationService,
    RealNotificationService,
    get_notification_service,
    reset_notification_service,
)
from app.services.rate_limit import InMemoryRateLimiter, get_rate_limiter, reset_rate_limiter


class StubResponse:
    status_code = 202
    headers = {"X-Message-Id": "sg-123"}


class StubSendGridClient:
    """Blocking client that records which thread it ran on."""

    def __init__(self):
        self.threads = []
        self.messages = []

    def send(self, message):
        self.threads.append(threading.get_ident())
        self.messages.append(message)
        return StubResponse()


def test_factories_pick_local_collaborators_in_development():
    reset_notification_service()
    reset_rate_limiter()
    try:
        notifier = get_notification_service()
        limiter = get_rate_limiter()

        assert isinstance(notifier, MockNotificationService)
        assert isinstance(limiter, InMemoryRateLimiter)
        assert get_notification_service() is notifier

        reset_notification_service()
        assert get_notification_service() is not notifier
    finally:
        reset_notification_service()
        reset_rate_limiter()


async def test_sendgrid_send_runs_off_the_event_loop():
    service = RealNotificationService()
    client = StubSendGridClient()
    service.sendgrid_client = client
    service.sendgrid_from_email = "noreply@restaurant.test"

    result = await service.send_verification_email("jane@x.com", "Jane", "abc123")

    assert result.success
    assert result.message_id == "sg-123"
    assert len(client.messages) == 1
    assert client.threads[0] != threading.get_ident()


async def test_sendgrid_without_credentials_reports_failure():
    service = RealNotificationService()
    service.sendgrid_client = None

    result = await service.send_email("jane@x.com", "Hi", "<p>Hi</p>")

    assert not result.success
    assert await service.health_check() is False
