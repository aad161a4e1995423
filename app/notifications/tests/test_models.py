"""
Tests for notification models.

Test Classes:
    TestNotificationTemplate: Tests for NotificationTemplate
    TestNotification: Tests for Notification defaults
    TestDeviceToken: Tests for DeviceToken constraints
"""

from datetime import timedelta

import pytest
from django.db import IntegrityError

from notifications.tests.factories import (
    DeviceTokenFactory,
    NotificationFactory,
    NotificationTemplateFactory,
)


class TestNotificationTemplate:
    """Tests for NotificationTemplate."""

    def test_name_is_unique(self, db):
        NotificationTemplateFactory(name="welcome")

        with pytest.raises(IntegrityError):
            NotificationTemplateFactory(name="welcome")

    def test_metadata_round_trips_json(self, db):
        template = NotificationTemplateFactory(metadata={"tags": ["a", "b"], "priority": 2})

        template.refresh_from_db()

        assert template.metadata == {"tags": ["a", "b"], "priority": 2}


class TestNotification:
    """Tests for Notification defaults."""

    def test_defaults(self, db):
        from notifications.models import Notification

        notification = Notification.objects.create(auth_user_id="user-1", type="push")

        assert notification.is_read is False
        assert notification.delivery_status == "pending"
        assert notification.title == ""
        assert notification.content == ""
        assert notification.email is None
        assert notification.created_at is not None

    def test_newest_first(self, db):
        from notifications.models import Notification

        first = NotificationFactory(auth_user_id="user-1")
        second = NotificationFactory(auth_user_id="user-1")
        Notification.objects.filter(pk=first.pk).update(
            created_at=second.created_at - timedelta(minutes=5)
        )

        assert list(Notification.objects.filter(auth_user_id="user-1")) == [second, first]


class TestDeviceToken:
    """Tests for DeviceToken constraints."""

    def test_token_is_unique(self, db):
        DeviceTokenFactory(token="same")

        with pytest.raises(IntegrityError):
            DeviceTokenFactory(token="same")

    def test_defaults_active(self, db):
        from notifications.models import DeviceToken

        device_token = DeviceToken.objects.create(
            auth_user_id="user-1", device_type="ios", token="tok"
        )

        assert device_token.is_active is True
