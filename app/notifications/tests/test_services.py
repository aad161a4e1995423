"""
Tests for notification services.

Tests focus on service behavior and ServiceResult patterns.

Test Classes:
    TestDeviceTokenServiceRegister: Tests for DeviceTokenService.register()
    TestDeviceTokenServiceManage: Tests for update(), delete(), list_for_user()
    TestNotificationTemplateService: Tests for template CRUD
    TestNotificationServiceSend: Tests for NotificationService.send()
    TestNotificationServiceBroadcast: Tests for NotificationService.broadcast()
    TestNotificationServiceInbox: Tests for list, update_status and delete
"""

import pytest
from django.core import mail

from notifications.tests.factories import (
    DeviceTokenFactory,
    NotificationFactory,
    NotificationTemplateFactory,
)


class TestDeviceTokenServiceRegister:
    """
    Tests for DeviceTokenService.register().

    Verifies:
    - New tokens are created active
    - Ownership conflicts are rejected
    - Same-user re-registration reactivates
    - Inactive tokens can be claimed by another user
    """

    def test_registers_new_token(self, db):
        from notifications.services import DeviceTokenService

        result = DeviceTokenService.register("user-1", "ios", "  apns-token  ")

        assert result.success
        assert result.data.created is True
        device_token = result.data.device_token
        assert device_token.token == "apns-token"
        assert device_token.is_active is True
        assert device_token.device_type == "ios"

    def test_rejects_token_active_for_another_user(self, db):
        """Registering another user's active token is a conflict."""
        from notifications.models import DeviceToken
        from notifications.services import DeviceTokenService

        DeviceTokenFactory(auth_user_id="owner", token="shared-token")

        result = DeviceTokenService.register("intruder", "android", "shared-token")

        assert not result.success
        assert result.error_code == "CONFLICT"
        assert result.error == "Device token is already registered to another user"
        assert DeviceToken.objects.get(token="shared-token").auth_user_id == "owner"

    def test_same_user_reregistration_reactivates(self, db):
        from notifications.services import DeviceTokenService

        existing = DeviceTokenFactory(auth_user_id="user-1", token="tok", is_active=False)

        result = DeviceTokenService.register("user-1", "web", "tok")

        assert result.success
        assert result.data.created is False
        existing.refresh_from_db()
        assert existing.is_active is True
        assert existing.device_type == "web"

    def test_inactive_token_is_reassigned(self, db):
        """An inactive token may be claimed by a new user."""
        from notifications.services import DeviceTokenService

        existing = DeviceTokenFactory(auth_user_id="old-owner", token="handed-over", is_active=False)

        result = DeviceTokenService.register("new-owner", "android", "handed-over")

        assert result.success
        existing.refresh_from_db()
        assert existing.auth_user_id == "new-owner"
        assert existing.is_active is True

    @pytest.mark.parametrize(
        "auth_user_id,device_type,token,message",
        [
            ("", "ios", "tok", "auth_user_id is required"),
            ("user-1", "ios", "", "token is required"),
            ("user-1", "blackberry", "tok", "Valid device type is required"),
        ],
    )
    def test_validation(self, db, auth_user_id, device_type, token, message):
        from notifications.models import DeviceToken
        from notifications.services import DeviceTokenService

        result = DeviceTokenService.register(auth_user_id, device_type, token)

        assert not result.success
        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == message
        assert not DeviceToken.objects.exists()


class TestDeviceTokenServiceManage:
    """Tests for DeviceTokenService.update(), delete() and list_for_user()."""

    def test_update_is_active(self, db):
        from notifications.services import DeviceTokenPatch, DeviceTokenService

        DeviceTokenFactory(auth_user_id="user-1", token="tok")

        result = DeviceTokenService.update("user-1", "tok", DeviceTokenPatch(is_active=False))

        assert result.success
        assert result.data.is_active is False

    def test_update_other_users_token_not_found(self, db):
        from notifications.services import DeviceTokenPatch, DeviceTokenService

        DeviceTokenFactory(auth_user_id="owner", token="tok")

        result = DeviceTokenService.update("someone-else", "tok", DeviceTokenPatch(is_active=False))

        assert result.error_code == "NOT_FOUND"
        assert result.error == "Device token not found"

    def test_delete(self, db):
        from notifications.models import DeviceToken
        from notifications.services import DeviceTokenService

        DeviceTokenFactory(auth_user_id="user-1", token="tok")

        assert DeviceTokenService.delete("user-1", "tok").success
        assert not DeviceToken.objects.filter(token="tok").exists()
        assert DeviceTokenService.delete("user-1", "tok").error_code == "NOT_FOUND"

    def test_list_active_only(self, db):
        from notifications.services import DeviceTokenService

        DeviceTokenFactory(auth_user_id="user-1", token="on")
        DeviceTokenFactory(auth_user_id="user-1", token="off", is_active=False)
        DeviceTokenFactory(auth_user_id="user-2", token="other")

        all_tokens = DeviceTokenService.list_for_user("user-1").data
        active = DeviceTokenService.list_for_user("user-1", active_only=True).data

        assert {t.token for t in all_tokens} == {"on", "off"}
        assert [t.token for t in active] == ["on"]


class TestNotificationTemplateService:
    """
    Tests for NotificationTemplateService.

    Verifies:
    - Unique names on create and rename
    - Partial updates
    - Type filtering
    """

    def test_create(self, db):
        from notifications.services import NotificationTemplateService

        result = NotificationTemplateService.create(
            name="welcome",
            type="email",
            subject="Welcome {{username}}",
            content="<p>Hi</p>",
            metadata={"category": "onboarding"},
        )

        assert result.success
        assert result.data.pk is not None
        assert result.data.metadata == {"category": "onboarding"}

    def test_create_duplicate_name_conflicts(self, db):
        from notifications.services import NotificationTemplateService

        NotificationTemplateFactory(name="welcome")

        result = NotificationTemplateService.create("welcome", "push", "S", "C")

        assert result.error_code == "CONFLICT"
        assert result.error == "Template with this name already exists"

    def test_rename_to_existing_name_conflicts(self, db):
        from notifications.services import NotificationTemplateService, TemplatePatch

        NotificationTemplateFactory(name="taken")
        template = NotificationTemplateFactory(name="mine")

        result = NotificationTemplateService.update(template.id, TemplatePatch(name="taken"))

        assert result.error_code == "CONFLICT"
        template.refresh_from_db()
        assert template.name == "mine"

    def test_partial_update_keeps_other_fields(self, db):
        from notifications.services import NotificationTemplateService, TemplatePatch

        template = NotificationTemplateFactory(name="mine", subject="Old", content="Body")

        result = NotificationTemplateService.update(
            template.id, TemplatePatch(name="mine", subject="New")
        )

        assert result.success
        template.refresh_from_db()
        assert template.subject == "New"
        assert template.content == "Body"

    def test_update_missing_template(self, db):
        from notifications.services import NotificationTemplateService, TemplatePatch

        result = NotificationTemplateService.update(999999, TemplatePatch(subject="x"))

        assert result.error_code == "NOT_FOUND"
        assert result.error == "Template not found"

    def test_list_filters_by_type(self, db):
        from notifications.services import NotificationTemplateService

        NotificationTemplateFactory(name="e", type="email")
        NotificationTemplateFactory(name="p", type="push")

        names = [t.name for t in NotificationTemplateService.list("push").data]

        assert names == ["p"]
        assert NotificationTemplateService.list().data.count() == 2

    def test_delete(self, db):
        from notifications.services import NotificationTemplateService

        template = NotificationTemplateFactory()

        assert NotificationTemplateService.delete(template.id).success
        assert NotificationTemplateService.get(template.id).error_code == "NOT_FOUND"


class TestNotificationServiceSend:
    """
    Tests for NotificationService.send().

    Verifies:
    - Rendered title/content and status are persisted
    - Failures are persisted as failed and mapped to error codes
    """

    def test_email_send_persists_rendered_notification(self, db, delivery_service, email_template):
        from notifications.services import NotificationService

        result = NotificationService.send(
            auth_user_id="user-1",
            type="email",
            template_id=email_template.id,
            template_data={"username": "Ada", "order_id": "A-1"},
            email="ada@example.com",
            delivery_service=delivery_service,
        )

        assert result.success
        notification = result.data
        notification.refresh_from_db()
        assert notification.title == "Thanks Ada"
        assert notification.content == "<p>Order A-1 confirmed.</p>"
        assert notification.delivery_status == "delivered"
        assert notification.is_read is False
        assert len(mail.outbox) == 1

    def test_template_not_found_marks_failed(self, db, delivery_service):
        from notifications.models import Notification
        from notifications.services import NotificationService

        result = NotificationService.send(
            auth_user_id="user-1",
            type="email",
            template_id=999999,
            email="ada@example.com",
            delivery_service=delivery_service,
        )

        assert not result.success
        assert result.error_code == "NOT_FOUND"
        assert result.error == "Failed to deliver notification: Template not found"
        notification = Notification.objects.get(auth_user_id="user-1")
        assert notification.delivery_status == "failed"
        assert result.data == notification

    def test_push_without_tokens_marks_failed(self, db, delivery_service, push_template):
        from notifications.services import NotificationService

        result = NotificationService.send(
            auth_user_id="user-1",
            type="push",
            template_id=push_template.id,
            template_data={"username": "Ada"},
            delivery_service=delivery_service,
        )

        assert result.error_code == "DELIVERY_FAILED"
        assert result.error == "Failed to deliver notification: No active device tokens found"
        result.data.refresh_from_db()
        assert result.data.delivery_status == "failed"
        assert result.data.title == "Hi Ada"

    def test_email_required_for_email_type(self, db, delivery_service, email_template):
        from notifications.models import Notification
        from notifications.services import NotificationService

        result = NotificationService.send(
            auth_user_id="user-1",
            type="email",
            template_id=email_template.id,
            delivery_service=delivery_service,
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "Email is required for email notifications"
        assert not Notification.objects.exists()

    @pytest.mark.parametrize("auth_user_id", ["", "   "])
    def test_blank_user_id_creates_nothing(
        self, db, delivery_service, fake_push_client, push_template, auth_user_id
    ):
        from notifications.models import Notification
        from notifications.services import NotificationService

        result = NotificationService.send(
            auth_user_id=auth_user_id,
            type="push",
            template_id=push_template.id,
            delivery_service=delivery_service,
        )

        assert result.success is False
        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "auth_user_id is required"
        assert not Notification.objects.exists()
        assert fake_push_client.sent == []

    def test_long_rendered_title_is_persisted(self, db, delivery_service):
        """A short subject can render into a title far past the subject limit."""
        from notifications.services import NotificationService

        template = NotificationTemplateFactory(
            type="push", subject="Hi {{name}}", content="Welcome"
        )
        DeviceTokenFactory(auth_user_id="user-1", token="token-user-1")

        result = NotificationService.send(
            auth_user_id="user-1",
            type="push",
            template_id=template.id,
            template_data={"name": "A" * 600},
            delivery_service=delivery_service,
        )

        assert result.success
        notification = result.data
        notification.full_clean()
        notification.refresh_from_db()
        assert len(notification.title) == 603
        assert notification.title == "Hi " + "A" * 600
        assert notification.delivery_status == "delivered"

    def test_uses_installed_delivery_service(self, db, installed_delivery_service, push_template, user_token):
        from notifications.services import NotificationService

        result = NotificationService.send(
            auth_user_id="user-1", type="push", template_id=push_template.id
        )

        assert result.success
        assert result.data.delivery_status == "delivered"


class TestNotificationServiceBroadcast:
    """Tests for NotificationService.broadcast()."""

    def test_broadcast_returns_aggregate(self, db, delivery_service, push_template):
        from notifications.models import Notification
        from notifications.services import NotificationService

        DeviceTokenFactory(auth_user_id="u1")
        DeviceTokenFactory(auth_user_id="u2")

        result = NotificationService.broadcast(
            user_ids=["u1", "u2", "u1"],
            template_id=push_template.id,
            notification_type="promo",
            delivery_service=delivery_service,
        )

        assert result.success
        assert result.data.receipt.success_count == 2
        assert not Notification.objects.exists()

    def test_missing_template(self, db, delivery_service):
        from notifications.services import NotificationService

        result = NotificationService.broadcast(
            user_ids=["u1"], template_id=999999, notification_type="promo",
            delivery_service=delivery_service,
        )

        assert result.error_code == "NOT_FOUND"

    def test_empty_user_ids(self, db, delivery_service, push_template):
        from notifications.services import NotificationService

        result = NotificationService.broadcast(
            user_ids=[], template_id=push_template.id, notification_type="promo",
            delivery_service=delivery_service,
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "user_ids is required"


class TestNotificationServiceInbox:
    """Tests for list_for_user(), update_status() and delete()."""

    def test_list_filters_by_read_state(self, db):
        from notifications.services import NotificationService

        NotificationFactory(auth_user_id="user-1", is_read=True)
        unread = NotificationFactory(auth_user_id="user-1", is_read=False)
        NotificationFactory(auth_user_id="user-2")

        assert NotificationService.list_for_user("user-1").data.count() == 2
        assert list(NotificationService.list_for_user("user-1", is_read=False).data) == [unread]

    def test_update_status(self, db):
        from notifications.services import NotificationPatch, NotificationService

        notification = NotificationFactory(auth_user_id="user-1")

        result = NotificationService.update_status(
            "user-1", notification.id, NotificationPatch(is_read=True)
        )

        assert result.success
        notification.refresh_from_db()
        assert notification.is_read is True

    def test_update_status_of_other_users_notification(self, db):
        from notifications.services import NotificationPatch, NotificationService

        notification = NotificationFactory(auth_user_id="owner")

        result = NotificationService.update_status(
            "someone-else", notification.id, NotificationPatch(is_read=True)
        )

        assert result.error_code == "NOT_FOUND"
        assert result.error == "Notification not found"

    def test_delete(self, db):
        from notifications.models import Notification
        from notifications.services import NotificationService

        notification = NotificationFactory(auth_user_id="user-1")

        assert NotificationService.delete("user-1", notification.id).success
        assert not Notification.objects.filter(pk=notification.pk).exists()
        assert NotificationService.delete("user-1", notification.id).error_code == "NOT_FOUND"
