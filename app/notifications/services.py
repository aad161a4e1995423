"""
Notification service layer.

This module provides the business logic behind the HTTP API, encapsulating
all operations on device tokens, templates and notifications.

Services:
    DeviceTokenService: Register, update, delete and list device tokens
    NotificationTemplateService: Template CRUD with unique names
    NotificationService: Send, broadcast, list, mark read and delete

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() with an error code
      that core.responses maps to an HTTP status
    - Updates are expressed as patch dataclasses listing only the mutable
      fields; None means "leave unchanged"
    - Delivery itself happens in NotificationDeliveryService; only
      NotificationService writes the outcome back to the Notification

Usage:
    from notifications.services import NotificationService, TemplatePatch

    result = NotificationService.send(
        auth_user_id="user-123",
        type="email",
        template_id=template.id,
        template_data={"username": "Ada"},
        email="ada@example.com",
    )

    result = NotificationTemplateService.update(
        template.id,
        TemplatePatch(subject="Welcome back, {{username}}"),
    )
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from django.db import IntegrityError

from core.services import BaseService, ServiceResult

from notifications.clients import get_delivery_service
from notifications.delivery import BroadcastOptions
from notifications.models import (
    DeliveryStatus,
    DeviceToken,
    DeviceType,
    Notification,
    NotificationChannel,
    NotificationTemplate,
)
from notifications.results import DeliveryErrorKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from django.db.models import QuerySet

    from notifications.delivery import NotificationDeliveryService
    from notifications.results import DeliveryResult

logger = logging.getLogger(__name__)


# =============================================================================
# Patch Types
# =============================================================================


class Patch:
    """Base for patch dataclasses: ``changes()`` lists the fields that are set."""

    def changes(self) -> dict[str, Any]:
        return {name: value for name, value in asdict(self).items() if value is not None}


@dataclass
class TemplatePatch(Patch):
    name: str | None = None
    type: str | None = None
    subject: str | None = None
    content: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass
class DeviceTokenPatch(Patch):
    is_active: bool | None = None


@dataclass
class NotificationPatch(Patch):
    is_read: bool | None = None


@dataclass
class TokenRegistration:
    """Outcome of DeviceTokenService.register."""

    device_token: DeviceToken
    created: bool


def _apply(instance, patch: Patch) -> list[str]:
    """Set patched fields on instance and return the fields to save."""
    changes = patch.changes()
    for field_name, value in changes.items():
        setattr(instance, field_name, value)
    return [*changes.keys(), "updated_at"] if changes else []


# =============================================================================
# Device Tokens
# =============================================================================


class DeviceTokenService(BaseService):
    """
    Device token registration and management.

    Ownership rule:
        A token belongs to one user. Registering a token that is active for
        another user is a conflict; an inactive token may be claimed by a
        new user (the device was handed over or reinstalled).
    """

    CONFLICT_MESSAGE = "Device token is already registered to another user"

    @classmethod
    def register(
        cls,
        auth_user_id: str,
        device_type: str,
        token: str,
    ) -> ServiceResult[TokenRegistration]:
        """
        Register a device token for a user.

        Returns:
            ServiceResult with TokenRegistration (created=False when an
            existing row was updated), or CONFLICT failure
        """
        validation = cls.validate_required(auth_user_id=auth_user_id, token=token)
        if validation is not None:
            return validation
        if device_type not in DeviceType.values:
            return ServiceResult.failure("Valid device type is required", "VALIDATION_ERROR")

        token = token.strip()
        logger = cls.get_logger()

        existing = DeviceToken.objects.filter(token=token).first()
        if existing is not None:
            if existing.auth_user_id != auth_user_id:
                if existing.is_active:
                    logger.warning(
                        f"Rejected registration of token {existing.pk} for user "
                        f"{auth_user_id}: active for user {existing.auth_user_id}"
                    )
                    return ServiceResult.failure(cls.CONFLICT_MESSAGE, "CONFLICT")
                logger.info(
                    f"Reassigning inactive token {existing.pk} from user "
                    f"{existing.auth_user_id} to {auth_user_id}"
                )

            existing.auth_user_id = auth_user_id
            existing.device_type = device_type
            existing.is_active = True
            existing.save(update_fields=["auth_user_id", "device_type", "is_active", "updated_at"])
            return ServiceResult.success(TokenRegistration(existing, created=False))

        try:
            with cls.atomic():
                device_token = DeviceToken.objects.create(
                    auth_user_id=auth_user_id,
                    device_type=device_type,
                    token=token,
                    is_active=True,
                )
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same token
            result = cls.handle_exception(
                e, "device token registration", log_level=logging.WARNING, error_code="CONFLICT"
            )
            result.error = cls.CONFLICT_MESSAGE
            return result

        logger.info(f"Registered {device_type} device token {device_token.pk} for user {auth_user_id}")
        return ServiceResult.success(TokenRegistration(device_token, created=True))

    @classmethod
    def update(
        cls,
        auth_user_id: str,
        token: str,
        patch: DeviceTokenPatch,
    ) -> ServiceResult[DeviceToken]:
        device_token = DeviceToken.objects.filter(
            auth_user_id=auth_user_id, token=token.strip()
        ).first()
        if device_token is None:
            return ServiceResult.failure("Device token not found", "NOT_FOUND")

        update_fields = _apply(device_token, patch)
        if update_fields:
            device_token.save(update_fields=update_fields)
        return ServiceResult.success(device_token)

    @classmethod
    def delete(cls, auth_user_id: str, token: str) -> ServiceResult[None]:
        deleted, _ = DeviceToken.objects.filter(
            auth_user_id=auth_user_id, token=token.strip()
        ).delete()
        if not deleted:
            return ServiceResult.failure("Device token not found", "NOT_FOUND")

        cls.get_logger().info(f"Deleted device token for user {auth_user_id}")
        return ServiceResult.success(None)

    @classmethod
    def list_for_user(
        cls, auth_user_id: str, active_only: bool = False
    ) -> ServiceResult[QuerySet[DeviceToken]]:
        queryset = DeviceToken.objects.filter(auth_user_id=auth_user_id)
        if active_only:
            queryset = queryset.filter(is_active=True)
        return ServiceResult.success(queryset)


# =============================================================================
# Templates
# =============================================================================


class NotificationTemplateService(BaseService):
    """Template CRUD; names are unique across all templates."""

    DUPLICATE_MESSAGE = "Template with this name already exists"

    @classmethod
    def create(
        cls,
        name: str,
        type: str,
        subject: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> ServiceResult[NotificationTemplate]:
        if NotificationTemplate.objects.filter(name=name).exists():
            return ServiceResult.failure(cls.DUPLICATE_MESSAGE, "CONFLICT")

        try:
            with cls.atomic():
                template = NotificationTemplate.objects.create(
                    name=name,
                    type=type,
                    subject=subject,
                    content=content,
                    metadata=metadata,
                )
        except IntegrityError:
            cls.get_logger().warning(f"Concurrent creation of template {name!r}")
            return ServiceResult.failure(cls.DUPLICATE_MESSAGE, "CONFLICT")

        cls.get_logger().info(f"Created {type} template {template.pk} ({name})")
        return ServiceResult.success(template)

    @classmethod
    def update(cls, template_id: int, patch: TemplatePatch) -> ServiceResult[NotificationTemplate]:
        template = NotificationTemplate.objects.filter(pk=template_id).first()
        if template is None:
            return ServiceResult.failure("Template not found", "NOT_FOUND")

        if (
            patch.name
            and patch.name != template.name
            and NotificationTemplate.objects.filter(name=patch.name).exclude(pk=template.pk).exists()
        ):
            return ServiceResult.failure(cls.DUPLICATE_MESSAGE, "CONFLICT")

        update_fields = _apply(template, patch)
        if update_fields:
            try:
                with cls.atomic():
                    template.save(update_fields=update_fields)
            except IntegrityError:
                return ServiceResult.failure(cls.DUPLICATE_MESSAGE, "CONFLICT")

        return ServiceResult.success(template)

    @classmethod
    def list(cls, type: str | None = None) -> ServiceResult[QuerySet[NotificationTemplate]]:
        queryset = NotificationTemplate.objects.all()
        if type:
            queryset = queryset.filter(type=type)
        return ServiceResult.success(queryset)

    @classmethod
    def get(cls, template_id: int) -> ServiceResult[NotificationTemplate]:
        template = NotificationTemplate.objects.filter(pk=template_id).first()
        if template is None:
            return ServiceResult.failure("Template not found", "NOT_FOUND")
        return ServiceResult.success(template)

    @classmethod
    def delete(cls, template_id: int) -> ServiceResult[None]:
        deleted, _ = NotificationTemplate.objects.filter(pk=template_id).delete()
        if not deleted:
            return ServiceResult.failure("Template not found", "NOT_FOUND")
        cls.get_logger().info(f"Deleted template {template_id}")
        return ServiceResult.success(None)


# =============================================================================
# Notifications
# =============================================================================


DELIVERY_ERROR_CODES = {
    DeliveryErrorKind.TEMPLATE_NOT_FOUND: "NOT_FOUND",
    DeliveryErrorKind.CONFIGURATION: "CONFIGURATION_ERROR",
    DeliveryErrorKind.INVALID_NOTIFICATION_TYPE: "CONFIGURATION_ERROR",
}


def delivery_error_code(result: DeliveryResult) -> str:
    """Service error code for a failed delivery."""
    return DELIVERY_ERROR_CODES.get(result.error_kind, "DELIVERY_FAILED")


class NotificationService(BaseService):
    """
    Notification sending and inbox management.

    send() is the only place a Notification's delivery_status is written:
    the row is created PENDING, delivered, then updated once with the
    rendered text and the outcome.
    """

    @classmethod
    def send(
        cls,
        auth_user_id: str,
        type: str,
        template_id: int,
        template_data: Mapping[str, Any] | None = None,
        email: str | None = None,
        delivery_service: NotificationDeliveryService | None = None,
    ) -> ServiceResult[Notification]:
        """
        Create and deliver one notification.

        Returns:
            Success with the updated notification, or failure whose data is
            the notification as persisted after the failed attempt
        """
        validation = cls.validate_required(auth_user_id=auth_user_id)
        if validation is not None:
            return validation
        if type not in NotificationChannel.values:
            return ServiceResult.failure(
                "Valid notification type (email or push) is required", "VALIDATION_ERROR"
            )
        if template_id is None:
            return ServiceResult.failure("template_id is required", "VALIDATION_ERROR")
        if type == NotificationChannel.EMAIL and not email:
            return ServiceResult.failure(
                "Email is required for email notifications", "VALIDATION_ERROR"
            )

        notification = Notification.objects.create(
            auth_user_id=auth_user_id,
            type=type,
            email=email or None,
            delivery_status=DeliveryStatus.PENDING,
        )

        service = delivery_service or get_delivery_service()
        result = service.deliver(notification, template_id, template_data or {})

        update_fields = ["delivery_status", "updated_at"]
        if result.receipt is not None:
            notification.title = result.receipt.title
            notification.content = result.receipt.content
            update_fields += ["title", "content"]
        notification.delivery_status = result.delivery_status
        notification.save(update_fields=update_fields)

        if not result.success:
            cls.get_logger().warning(
                f"Notification {notification.pk} for user {auth_user_id} failed: {result.error}"
            )
            return ServiceResult.failure(
                f"Failed to deliver notification: {result.error}",
                delivery_error_code(result),
                data=notification,
            )

        return ServiceResult.success(notification)

    @classmethod
    def broadcast(
        cls,
        user_ids: Iterable[str],
        template_id: int,
        notification_type: str,
        template_data: Mapping[str, Any] | None = None,
        additional_data: Mapping[str, Any] | None = None,
        priority: str = "high",
        delivery_service: NotificationDeliveryService | None = None,
    ) -> ServiceResult[DeliveryResult]:
        """
        Push one template to every active device of the given users.

        No Notification rows are written for broadcasts.
        """
        user_ids = [user_id for user_id in dict.fromkeys(user_ids or []) if user_id]
        if not user_ids:
            return ServiceResult.failure("user_ids is required", "VALIDATION_ERROR")

        template = NotificationTemplate.objects.filter(pk=template_id).first()
        if template is None:
            return ServiceResult.failure("Template not found", "NOT_FOUND")

        service = delivery_service or get_delivery_service()
        result = service.send_broadcast(
            user_ids,
            template,
            template_data or {},
            BroadcastOptions(
                notification_type=notification_type,
                additional_data=additional_data,
                priority=priority,
            ),
        )

        if not result.success:
            return ServiceResult.failure(
                f"Failed to deliver notification: {result.error}",
                delivery_error_code(result),
                data=result,
            )
        return ServiceResult.success(result)

    @classmethod
    def list_for_user(
        cls, auth_user_id: str, is_read: bool | None = None
    ) -> ServiceResult[QuerySet[Notification]]:
        queryset = Notification.objects.filter(auth_user_id=auth_user_id)
        if is_read is not None:
            queryset = queryset.filter(is_read=is_read)
        return ServiceResult.success(queryset)

    @classmethod
    def update_status(
        cls,
        auth_user_id: str,
        notification_id: int,
        patch: NotificationPatch,
    ) -> ServiceResult[Notification]:
        notification = Notification.objects.filter(
            pk=notification_id, auth_user_id=auth_user_id
        ).first()
        if notification is None:
            return ServiceResult.failure("Notification not found", "NOT_FOUND")

        update_fields = _apply(notification, patch)
        if update_fields:
            notification.save(update_fields=update_fields)
        return ServiceResult.success(notification)

    @classmethod
    def delete(cls, auth_user_id: str, notification_id: int) -> ServiceResult[None]:
        deleted, _ = Notification.objects.filter(
            pk=notification_id, auth_user_id=auth_user_id
        ).delete()
        if not deleted:
            return ServiceResult.failure("Notification not found", "NOT_FOUND")
        return ServiceResult.success(None)
