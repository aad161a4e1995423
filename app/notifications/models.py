"""
Notification system models.

This module defines the persistent state of the notification service:
- NotificationTemplate: Stored subject/content with {{placeholder}} tokens
- Notification: One email or push notification sent to a user
- DeviceToken: Push token registered by a user's device

Design Decisions:
    - Users live in an external auth service; they are referenced by the
      opaque ``auth_user_id`` string rather than a foreign key
    - Notifications keep the rendered title/content, not a template FK, so
      deleting or editing a template never rewrites history
    - delivery_status is written only by NotificationService after a
      delivery attempt
    - Device tokens are deactivated, not deleted, when the push provider
      reports them as permanently invalid

Usage:
    from notifications.models import DeviceToken, Notification, NotificationTemplate

    template = NotificationTemplate.objects.create(
        name="payment_success",
        type=NotificationChannel.PUSH,
        subject="Payment of {{amount}} received",
        content="Hi {{username}}, your payment went through.",
    )

    DeviceToken.objects.create(
        auth_user_id="user-123",
        device_type=DeviceType.ANDROID,
        token="fcm-registration-token",
    )
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel


# =============================================================================
# Enums
# =============================================================================


class NotificationChannel(models.TextChoices):
    """Delivery channels for notifications and templates."""

    EMAIL = "email", "Email"
    PUSH = "push", "Push Notification"


class DeliveryStatus(models.TextChoices):
    """
    Status of a notification delivery attempt.

    State Flow:
        PENDING -> DELIVERED (every token/recipient accepted)
        PENDING -> PARTIAL (some push tokens failed)
        PENDING -> FAILED (nothing delivered)

    SENT is accepted for records written by older clients; terminal values
    never move back to PENDING.
    """

    PENDING = "pending", "Pending"
    SENT = "sent", "Sent"
    DELIVERED = "delivered", "Delivered"
    FAILED = "failed", "Failed"
    PARTIAL = "partial", "Partially delivered"


class DeviceType(models.TextChoices):
    """Platforms a push token can be registered from."""

    IOS = "ios", "iOS"
    ANDROID = "android", "Android"
    WEB = "web", "Web"


# =============================================================================
# Configuration Models
# =============================================================================


class NotificationTemplate(BaseModel):
    """
    Reusable subject/content pair with ``{{placeholder}}`` tokens.

    Fields:
        name: Unique programmatic identifier (e.g., "payment_success")
        type: Channel the template is written for (email or push)
        subject: Subject line (email) or title (push)
        content: HTML body (email) or message body (push)
        metadata: Free-form JSON for callers (e.g., sample variables)

    Note:
        Placeholders are rendered by notifications.rendering.render; tokens
        without a matching data key are left in place.
    """

    name = models.CharField(
        max_length=255,
        unique=True,
        help_text="Unique template identifier (e.g., 'payment_success')",
    )

    type = models.CharField(
        max_length=10,
        choices=NotificationChannel.choices,
        db_index=True,
        help_text="Channel this template is written for",
    )

    subject = models.CharField(
        max_length=500,
        help_text="Subject/title template, may contain {{placeholders}}",
    )

    content = models.TextField(
        help_text="Body template, may contain {{placeholders}}",
    )

    metadata = models.JSONField(
        null=True,
        blank=True,
        help_text="Arbitrary template metadata",
    )

    class Meta:
        db_table = "notification_templates"
        verbose_name = "notification template"
        verbose_name_plural = "notification templates"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} ({self.type})"


# =============================================================================
# Notification Models
# =============================================================================


class Notification(BaseModel):
    """
    Notification record for a user.

    Created as PENDING before delivery, then updated once with the rendered
    title/content and the delivery outcome.

    Fields:
        auth_user_id: Identifier of the user in the auth service
        type: Delivery channel (email or push)
        title: Rendered subject/title
        content: Rendered body
        email: Recipient address (required for email notifications)
        is_read: Whether the user has read this notification
        delivery_status: Outcome of the delivery attempt

    Inherits from BaseModel:
        created_at: Timestamp (auto, indexed)
        updated_at: Timestamp (auto)
    """

    auth_user_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="User identifier from the auth service",
    )

    type = models.CharField(
        max_length=10,
        choices=NotificationChannel.choices,
        help_text="Delivery channel",
    )

    title = models.TextField(
        blank=True,
        default="",
        help_text="Rendered notification title",
    )

    content = models.TextField(
        blank=True,
        default="",
        help_text="Rendered notification body",
    )

    email = models.EmailField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Recipient email address (email notifications only)",
    )

    is_read = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the user has read this notification",
    )

    delivery_status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING,
        help_text="Outcome of the delivery attempt",
    )

    class Meta:
        db_table = "notifications"
        ordering = ["-created_at"]  # Newest first
        indexes = [
            # Primary inbox query: user's unread notifications
            models.Index(
                fields=["auth_user_id", "created_at"],
                name="notif_user_unread_idx",
                condition=models.Q(is_read=False),
            ),
        ]

    def __str__(self) -> str:
        return f"Notification({self.type}) for {self.auth_user_id}: {self.delivery_status}"


class DeviceToken(BaseModel):
    """
    Push registration token for one of a user's devices.

    A token belongs to exactly one user at a time. Re-registration of an
    active token by another user is rejected by DeviceTokenService.

    Fields:
        auth_user_id: Owner of the device
        device_type: ios, android or web
        token: Provider registration token (unique)
        is_active: False once the provider reports the token as invalid
    """

    auth_user_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="User identifier from the auth service",
    )

    device_type = models.CharField(
        max_length=10,
        choices=DeviceType.choices,
        help_text="Platform the token was issued on",
    )

    token = models.CharField(
        max_length=4096,
        unique=True,
        help_text="Push provider registration token",
    )

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether pushes are still sent to this token",
    )

    class Meta:
        db_table = "device_tokens"
        verbose_name = "device token"
        verbose_name_plural = "device tokens"
        ordering = ["-created_at"]
        indexes = [
            # Active tokens for a user (every push send)
            models.Index(
                fields=["auth_user_id", "is_active"],
                name="device_token_user_active_idx",
            ),
        ]

    def __str__(self) -> str:
        status = "active" if self.is_active else "inactive"
        return f"DeviceToken({self.device_type}, {self.auth_user_id}, {status})"
