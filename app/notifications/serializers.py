"""
Serializers for the notification API.

Output serializers render model instances; input serializers validate
request bodies and query strings. Input error messages are the messages
returned to clients: core.responses.envelope_exception_handler promotes the
first error to the envelope ``message``.

Serializers:
    DeviceTokenSerializer / NotificationSerializer / NotificationTemplateSerializer:
        Read-only model output
    RegisterDeviceTokenSerializer, UpdateDeviceTokenSerializer,
    DeleteDeviceTokenSerializer, DeviceTokenListQuerySerializer:
        Device token input
    SendNotificationSerializer, BroadcastNotificationSerializer,
    NotificationStatusSerializer, DeleteNotificationSerializer,
    NotificationListQuerySerializer:
        Notification input
    CreateTemplateSerializer, UpdateTemplateSerializer, DeleteTemplateSerializer,
    TemplateListQuerySerializer:
        Template input
    BroadcastResultSerializer: Aggregate broadcast outcome

Usage:
    serializer = SendNotificationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = NotificationService.send(**serializer.validated_data)
"""

from __future__ import annotations

from rest_framework import serializers

from notifications.models import (
    DeviceToken,
    DeviceType,
    Notification,
    NotificationChannel,
    NotificationTemplate,
)


def required_messages(message: str, *extra: str) -> dict[str, str]:
    """error_messages mapping the missing-value errors (plus extra keys) to message."""
    return {key: message for key in ("required", "null", "blank", *extra)}


AUTH_USER_ID_MESSAGES = required_messages("auth_user_id is required")
TOKEN_MESSAGES = required_messages("Token is required")


# =============================================================================
# Output Serializers
# =============================================================================


class DeviceTokenSerializer(serializers.ModelSerializer):
    """Read-only serializer for DeviceToken."""

    class Meta:
        model = DeviceToken
        fields = [
            "id",
            "auth_user_id",
            "device_type",
            "token",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for Notification.

    Usage:
        serializer = NotificationSerializer(notification)
        serializer = NotificationSerializer(notifications, many=True)
    """

    class Meta:
        model = Notification
        fields = [
            "id",
            "auth_user_id",
            "type",
            "title",
            "content",
            "email",
            "is_read",
            "delivery_status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class NotificationTemplateSerializer(serializers.ModelSerializer):
    """Read-only serializer for NotificationTemplate."""

    class Meta:
        model = NotificationTemplate
        fields = [
            "id",
            "name",
            "type",
            "subject",
            "content",
            "metadata",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BroadcastResultSerializer(serializers.Serializer):
    """Aggregate outcome of a broadcast."""

    success = serializers.BooleanField()
    delivery_status = serializers.CharField()
    success_count = serializers.IntegerField()
    failure_count = serializers.IntegerField()
    errors = serializers.ListField(child=serializers.CharField())


# =============================================================================
# Device Token Input
# =============================================================================


class RegisterDeviceTokenSerializer(serializers.Serializer):
    auth_user_id = serializers.CharField(max_length=255, error_messages=AUTH_USER_ID_MESSAGES)
    device_type = serializers.ChoiceField(
        choices=DeviceType.choices,
        error_messages=required_messages("Valid device type is required", "invalid_choice"),
    )
    token = serializers.CharField(max_length=4096, error_messages=TOKEN_MESSAGES)


class UpdateDeviceTokenSerializer(serializers.Serializer):
    auth_user_id = serializers.CharField(max_length=255, error_messages=AUTH_USER_ID_MESSAGES)
    token = serializers.CharField(max_length=4096, error_messages=TOKEN_MESSAGES)
    is_active = serializers.BooleanField(required=False)


class DeleteDeviceTokenSerializer(serializers.Serializer):
    auth_user_id = serializers.CharField(max_length=255, error_messages=AUTH_USER_ID_MESSAGES)
    token = serializers.CharField(max_length=4096, error_messages=TOKEN_MESSAGES)


class DeviceTokenListQuerySerializer(serializers.Serializer):
    auth_user_id = serializers.CharField(max_length=255, error_messages=AUTH_USER_ID_MESSAGES)
    active_only = serializers.BooleanField(required=False, default=False)


# =============================================================================
# Notification Input
# =============================================================================


class SendNotificationSerializer(serializers.Serializer):
    """
    Request body for sending a notification.

    ``email`` is required when ``type`` is email.
    """

    auth_user_id = serializers.CharField(max_length=255, error_messages=AUTH_USER_ID_MESSAGES)
    type = serializers.ChoiceField(
        choices=NotificationChannel.choices,
        error_messages=required_messages(
            "Valid notification type (email or push) is required", "invalid_choice"
        ),
    )
    template_id = serializers.IntegerField(
        min_value=1,
        error_messages=required_messages("template_id is required", "invalid", "min_value"),
    )
    template_data = serializers.DictField(required=False, default=dict)
    email = serializers.EmailField(
        required=False,
        allow_null=True,
        allow_blank=True,
        max_length=255,
    )

    def validate(self, attrs):
        if attrs["type"] == NotificationChannel.EMAIL and not attrs.get("email"):
            raise serializers.ValidationError(
                {"email": "Email is required for email notifications"}
            )
        return attrs


class BroadcastNotificationSerializer(serializers.Serializer):
    """Request body for a push broadcast to many users."""

    user_ids = serializers.ListField(
        child=serializers.CharField(max_length=255),
        allow_empty=False,
        error_messages=required_messages("user_ids is required", "empty", "not_a_list"),
    )
    template_id = serializers.IntegerField(
        min_value=1,
        error_messages=required_messages("template_id is required", "invalid", "min_value"),
    )
    notification_type = serializers.CharField(
        max_length=100,
        error_messages=required_messages("notification_type is required"),
    )
    template_data = serializers.DictField(required=False, default=dict)
    additional_data = serializers.DictField(required=False, default=dict)
    priority = serializers.ChoiceField(
        choices=[("high", "High"), ("normal", "Normal")],
        required=False,
        default="high",
        error_messages={"invalid_choice": "priority must be 'high' or 'normal'"},
    )


class NotificationStatusSerializer(serializers.Serializer):
    auth_user_id = serializers.CharField(max_length=255, error_messages=AUTH_USER_ID_MESSAGES)
    notification_id = serializers.IntegerField(
        error_messages=required_messages("notification_id is required", "invalid"),
    )
    is_read = serializers.BooleanField(
        error_messages=required_messages("is_read status is required", "invalid"),
    )


class DeleteNotificationSerializer(serializers.Serializer):
    auth_user_id = serializers.CharField(max_length=255, error_messages=AUTH_USER_ID_MESSAGES)
    notification_id = serializers.IntegerField(
        error_messages=required_messages("notification_id is required", "invalid"),
    )


class NotificationListQuerySerializer(serializers.Serializer):
    auth_user_id = serializers.CharField(max_length=255, error_messages=AUTH_USER_ID_MESSAGES)
    is_read = serializers.BooleanField(required=False, allow_null=True, default=None)


# =============================================================================
# Template Input
# =============================================================================


class CreateTemplateSerializer(serializers.Serializer):
    name = serializers.CharField(
        max_length=255,
        error_messages=required_messages("Template name is required"),
    )
    type = serializers.ChoiceField(
        choices=NotificationChannel.choices,
        error_messages=required_messages("Valid notification type is required", "invalid_choice"),
    )
    subject = serializers.CharField(
        max_length=500,
        error_messages=required_messages("Subject is required"),
    )
    content = serializers.CharField(
        trim_whitespace=False,
        error_messages=required_messages("Content is required"),
    )
    metadata = serializers.JSONField(required=False, allow_null=True, default=None)


class UpdateTemplateSerializer(serializers.Serializer):
    """Template update: ``id`` plus any subset of the mutable fields."""

    id = serializers.IntegerField(
        error_messages=required_messages("Template ID is required", "invalid"),
    )
    name = serializers.CharField(max_length=255, required=False)
    type = serializers.ChoiceField(
        choices=NotificationChannel.choices,
        required=False,
        error_messages={"invalid_choice": "Valid notification type is required"},
    )
    subject = serializers.CharField(max_length=500, required=False)
    content = serializers.CharField(required=False, trim_whitespace=False)
    metadata = serializers.JSONField(required=False, allow_null=True)


class DeleteTemplateSerializer(serializers.Serializer):
    id = serializers.IntegerField(
        error_messages=required_messages("Template ID is required", "invalid"),
    )


class TemplateListQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(
        choices=NotificationChannel.choices,
        required=False,
        allow_blank=True,
        error_messages={"invalid_choice": "Valid notification type is required"},
    )
