"""
Test configuration and fixtures for notification tests.

This module provides:
- FakePushClient: in-memory stand-in for the Firebase messaging client that
  returns real firebase_admin BatchResponse objects
- Channel and delivery service fixtures wired to the fake client and
  Django's locmem email backend
- Template, notification and device token fixtures
- API client and delivery service injection for view tests

Usage:
    def test_example(api_client, installed_delivery_service, push_template):
        response = api_client.post(url, payload, format="json")
        assert response.status_code == 200
"""

import pytest
from firebase_admin import messaging
from rest_framework.test import APIClient

from notifications.tests.factories import (
    DeviceTokenFactory,
    NotificationTemplateFactory,
)


# =============================================================================
# Fake Push Provider
# =============================================================================


class FakePushClient:
    """
    Records messages and answers like firebase_admin.messaging.

    Args:
        failing_tokens: Tokens answered with UnregisteredError
        failing_calls: 0-based multicast call indices that raise outright
        send_error: Exception raised by single sends
    """

    def __init__(self, failing_tokens=(), failing_calls=(), send_error=None):
        self.failing_tokens = set(failing_tokens)
        self.failing_calls = set(failing_calls)
        self.send_error = send_error
        self.sent = []
        self.multicasts = []

    def send(self, message):
        self.sent.append(message)
        if self.send_error is not None:
            raise self.send_error
        return f"projects/test/messages/{len(self.sent)}"

    def send_each_for_multicast(self, message):
        call_index = len(self.multicasts)
        self.multicasts.append(message)
        if call_index in self.failing_calls:
            raise ConnectionError(f"multicast call {call_index} failed")

        responses = []
        for token in message.tokens:
            if token in self.failing_tokens:
                error = messaging.UnregisteredError(f"Token {token} is not registered")
                responses.append(messaging.SendResponse(None, error))
            else:
                responses.append(messaging.SendResponse({"name": f"msg-{token}"}, None))
        return messaging.BatchResponse(responses)

    @property
    def multicast_tokens(self):
        return [list(message.tokens) for message in self.multicasts]


# =============================================================================
# Channel / Service Fixtures
# =============================================================================


@pytest.fixture
def fake_push_client():
    """Push client where every token succeeds."""
    return FakePushClient()


@pytest.fixture
def token_store():
    from notifications.tokens import DeviceTokenStore

    return DeviceTokenStore()


@pytest.fixture
def push_channel(fake_push_client, token_store):
    from notifications.channels.push import PushChannel

    return PushChannel(fake_push_client, token_store)


@pytest.fixture
def email_channel():
    """Email channel sending through the locmem backend (mail.outbox)."""
    from notifications.channels.email import EmailChannel

    return EmailChannel(from_email="notifications@example.com", from_name="Greep")


@pytest.fixture
def delivery_service(email_channel, push_channel, token_store):
    from notifications.delivery import NotificationDeliveryService

    return NotificationDeliveryService(email_channel, push_channel, token_store)


@pytest.fixture
def installed_delivery_service(delivery_service, monkeypatch):
    """Make get_delivery_service() return the test delivery service."""
    from django.apps import apps

    monkeypatch.setattr(
        apps.get_app_config("notifications"), "delivery_service", delivery_service
    )
    return delivery_service


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def email_template(db):
    """Email template with {{username}} and {{order_id}} placeholders."""
    return NotificationTemplateFactory(
        name="order_confirmed",
        type="email",
        subject="Thanks {{username}}",
        content="<p>Order {{order_id}} confirmed.</p>",
    )


@pytest.fixture
def push_template(db):
    """Push template with {{username}} and {{order_id}} placeholders."""
    return NotificationTemplateFactory(
        name="order_shipped",
        type="push",
        subject="Hi {{username}}",
        content="Order {{order_id}} has shipped",
    )


@pytest.fixture
def user_token(db):
    """One active device token for user-1."""
    return DeviceTokenFactory(auth_user_id="user-1", token="token-user-1")


@pytest.fixture
def user_tokens(db):
    """Three active device tokens for user-1."""
    return [
        DeviceTokenFactory(auth_user_id="user-1", token=f"token-user-1-{i}")
        for i in range(3)
    ]


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client (the API identifies users by auth_user_id)."""
    return APIClient()
