"""
Views for the notification API.

Callers are trusted backend services; users are identified by the
``auth_user_id`` carried in the request, so every view is AllowAny. All
responses use the {success, message, data?} envelope from core.responses.

Views:
    DeviceTokenView: Register/update/delete/list device tokens
    NotificationView: Send/list/delete notifications
    NotificationBroadcastView: Push broadcast to many users
    NotificationStatusView: Mark a notification read or unread
    NotificationTemplateView: Create/update/list/delete templates

Endpoints:
    POST   /api/v1/device-tokens/            - Register device token
    PUT    /api/v1/device-tokens/            - Update device token
    DELETE /api/v1/device-tokens/            - Delete device token
    GET    /api/v1/device-tokens/            - List a user's device tokens
    POST   /api/v1/notifications/            - Send notification
    GET    /api/v1/notifications/            - List a user's notifications (paginated)
    DELETE /api/v1/notifications/            - Delete notification
    POST   /api/v1/notifications/broadcast/  - Broadcast push notification
    PUT    /api/v1/notifications/status/     - Update read status
    POST   /api/v1/notification-templates/   - Create template
    PUT    /api/v1/notification-templates/   - Update template
    GET    /api/v1/notification-templates/   - List templates
    DELETE /api/v1/notification-templates/   - Delete template
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

from core.responses import api_response, error_response, service_error

from notifications.serializers import (
    BroadcastNotificationSerializer,
    BroadcastResultSerializer,
    CreateTemplateSerializer,
    DeleteDeviceTokenSerializer,
    DeleteNotificationSerializer,
    DeleteTemplateSerializer,
    DeviceTokenListQuerySerializer,
    DeviceTokenSerializer,
    NotificationListQuerySerializer,
    NotificationSerializer,
    NotificationStatusSerializer,
    NotificationTemplateSerializer,
    RegisterDeviceTokenSerializer,
    SendNotificationSerializer,
    TemplateListQuerySerializer,
    UpdateDeviceTokenSerializer,
    UpdateTemplateSerializer,
)
from notifications.services import (
    DeviceTokenPatch,
    DeviceTokenService,
    NotificationPatch,
    NotificationService,
    NotificationTemplateService,
    TemplatePatch,
)


def _validated(serializer_class, data):
    serializer = serializer_class(data=data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


# =============================================================================
# Device Tokens
# =============================================================================


class DeviceTokenView(APIView):
    """Device token registration and management."""

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="register_device_token",
        summary="Register device token",
        description=(
            "Register a push token for a user's device. Re-registering a token the "
            "same user already owns reactivates it. A token active for another user "
            "is rejected with 409."
        ),
        request=RegisterDeviceTokenSerializer,
        responses={
            201: DeviceTokenSerializer,
            200: DeviceTokenSerializer,
            400: OpenApiResponse(description="Invalid input"),
            409: OpenApiResponse(description="Token registered to another user"),
        },
        tags=["Device Tokens"],
    )
    def post(self, request):
        data = _validated(RegisterDeviceTokenSerializer, request.data)
        result = DeviceTokenService.register(**data)
        if not result.success:
            raise service_error(result)

        registration = result.data
        payload = DeviceTokenSerializer(registration.device_token).data
        if registration.created:
            return api_response(
                "Device token registered successfully", payload, status.HTTP_201_CREATED
            )
        return api_response("Device token updated successfully", payload)

    @extend_schema(
        operation_id="update_device_token",
        summary="Update device token",
        request=UpdateDeviceTokenSerializer,
        responses={
            200: DeviceTokenSerializer,
            400: OpenApiResponse(description="Invalid input"),
            404: OpenApiResponse(description="Device token not found"),
        },
        tags=["Device Tokens"],
    )
    def put(self, request):
        data = _validated(UpdateDeviceTokenSerializer, request.data)
        result = DeviceTokenService.update(
            data["auth_user_id"],
            data["token"],
            DeviceTokenPatch(is_active=data.get("is_active")),
        )
        if not result.success:
            raise service_error(result)
        return api_response(
            "Device token updated successfully", DeviceTokenSerializer(result.data).data
        )

    @extend_schema(
        operation_id="delete_device_token",
        summary="Delete device token",
        request=DeleteDeviceTokenSerializer,
        responses={
            200: OpenApiResponse(description="Device token deleted successfully"),
            404: OpenApiResponse(description="Device token not found"),
        },
        tags=["Device Tokens"],
    )
    def delete(self, request):
        data = _validated(DeleteDeviceTokenSerializer, request.data)
        result = DeviceTokenService.delete(data["auth_user_id"], data["token"])
        if not result.success:
            raise service_error(result)
        return api_response("Device token deleted successfully")

    @extend_schema(
        operation_id="list_device_tokens",
        summary="List device tokens",
        parameters=[
            OpenApiParameter(name="auth_user_id", type=str, required=True),
            OpenApiParameter(name="active_only", type=bool, required=False),
        ],
        responses={200: DeviceTokenSerializer(many=True)},
        tags=["Device Tokens"],
    )
    def get(self, request):
        data = _validated(DeviceTokenListQuerySerializer, request.query_params.dict())
        result = DeviceTokenService.list_for_user(data["auth_user_id"], data["active_only"])
        return api_response(
            "Device tokens retrieved successfully",
            DeviceTokenSerializer(result.data, many=True).data,
        )


# =============================================================================
# Notifications
# =============================================================================


class NotificationView(APIView):
    """Send, list and delete notifications."""

    permission_classes = [AllowAny]
    pagination_class = PageNumberPagination

    @extend_schema(
        operation_id="send_notification",
        summary="Send notification",
        description=(
            "Create a notification from a template and deliver it by email or push. "
            "The stored notification carries the rendered title/content and the "
            "delivery status."
        ),
        request=SendNotificationSerializer,
        responses={
            200: NotificationSerializer,
            400: OpenApiResponse(description="Invalid input"),
            404: OpenApiResponse(description="Template not found"),
            500: OpenApiResponse(description="Failed to deliver notification"),
        },
        tags=["Notifications"],
    )
    def post(self, request):
        data = _validated(SendNotificationSerializer, request.data)
        result = NotificationService.send(**data)
        if not result.success:
            payload = NotificationSerializer(result.data).data if result.data else None
            return error_response(result, payload)
        return api_response(
            "Notification sent successfully", NotificationSerializer(result.data).data
        )

    @extend_schema(
        operation_id="list_notifications",
        summary="List notifications",
        parameters=[
            OpenApiParameter(name="auth_user_id", type=str, required=True),
            OpenApiParameter(
                name="is_read",
                type=bool,
                required=False,
                description="Filter by read status (true/false)",
            ),
            OpenApiParameter(name="page", type=int, required=False),
        ],
        responses={200: NotificationSerializer(many=True)},
        tags=["Notifications"],
    )
    def get(self, request):
        data = _validated(NotificationListQuerySerializer, request.query_params.dict())
        queryset = NotificationService.list_for_user(data["auth_user_id"], data["is_read"]).data

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return api_response(
            "Notifications retrieved successfully",
            {
                "count": paginator.page.paginator.count,
                "next": paginator.get_next_link(),
                "previous": paginator.get_previous_link(),
                "results": NotificationSerializer(page, many=True).data,
            },
        )

    @extend_schema(
        operation_id="delete_notification",
        summary="Delete notification",
        request=DeleteNotificationSerializer,
        responses={
            200: OpenApiResponse(description="Notification deleted successfully"),
            404: OpenApiResponse(description="Notification not found"),
        },
        tags=["Notifications"],
    )
    def delete(self, request):
        data = _validated(DeleteNotificationSerializer, request.data)
        result = NotificationService.delete(data["auth_user_id"], data["notification_id"])
        if not result.success:
            raise service_error(result)
        return api_response("Notification deleted successfully")


class NotificationBroadcastView(APIView):
    """Push one template to every active device of many users."""

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="broadcast_notification",
        summary="Broadcast push notification",
        description=(
            "Render a template once and multicast it to the active device tokens of "
            "every listed user, in chunks of at most 500 tokens."
        ),
        request=BroadcastNotificationSerializer,
        responses={
            200: BroadcastResultSerializer,
            400: OpenApiResponse(description="Invalid input"),
            404: OpenApiResponse(description="Template not found"),
            500: OpenApiResponse(description="Failed to deliver notification"),
        },
        tags=["Notifications"],
    )
    def post(self, request):
        data = _validated(BroadcastNotificationSerializer, request.data)
        result = NotificationService.broadcast(**data)
        if not result.success:
            payload = result.data.to_dict() if result.data else None
            return error_response(result, payload)
        return api_response("Broadcast notification sent successfully", result.data.to_dict())


class NotificationStatusView(APIView):
    """Read status updates."""

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="update_notification_status",
        summary="Update notification read status",
        request=NotificationStatusSerializer,
        responses={
            200: NotificationSerializer,
            400: OpenApiResponse(description="Invalid input"),
            404: OpenApiResponse(description="Notification not found"),
        },
        tags=["Notifications"],
    )
    def put(self, request):
        data = _validated(NotificationStatusSerializer, request.data)
        result = NotificationService.update_status(
            data["auth_user_id"],
            data["notification_id"],
            NotificationPatch(is_read=data["is_read"]),
        )
        if not result.success:
            raise service_error(result)
        return api_response(
            "Notification status updated successfully", NotificationSerializer(result.data).data
        )


# =============================================================================
# Templates
# =============================================================================


class NotificationTemplateView(APIView):
    """Template CRUD."""

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="create_notification_template",
        summary="Create template",
        request=CreateTemplateSerializer,
        responses={
            201: NotificationTemplateSerializer,
            400: OpenApiResponse(description="Invalid input"),
            409: OpenApiResponse(description="Template with this name already exists"),
        },
        tags=["Notification Templates"],
    )
    def post(self, request):
        data = _validated(CreateTemplateSerializer, request.data)
        result = NotificationTemplateService.create(**data)
        if not result.success:
            raise service_error(result)
        return api_response(
            "Template created successfully",
            NotificationTemplateSerializer(result.data).data,
            status.HTTP_201_CREATED,
        )

    @extend_schema(
        operation_id="update_notification_template",
        summary="Update template",
        request=UpdateTemplateSerializer,
        responses={
            200: NotificationTemplateSerializer,
            400: OpenApiResponse(description="Invalid input"),
            404: OpenApiResponse(description="Template not found"),
            409: OpenApiResponse(description="Template with this name already exists"),
        },
        tags=["Notification Templates"],
    )
    def put(self, request):
        data = dict(_validated(UpdateTemplateSerializer, request.data))
        template_id = data.pop("id")
        result = NotificationTemplateService.update(template_id, TemplatePatch(**data))
        if not result.success:
            raise service_error(result)
        return api_response(
            "Template updated successfully", NotificationTemplateSerializer(result.data).data
        )

    @extend_schema(
        operation_id="list_notification_templates",
        summary="List templates",
        parameters=[
            OpenApiParameter(
                name="type",
                type=str,
                required=False,
                enum=["email", "push"],
                description="Filter by channel",
            ),
        ],
        responses={200: NotificationTemplateSerializer(many=True)},
        tags=["Notification Templates"],
    )
    def get(self, request):
        data = _validated(TemplateListQuerySerializer, request.query_params.dict())
        result = NotificationTemplateService.list(data.get("type") or None)
        return api_response(
            "Templates retrieved successfully",
            NotificationTemplateSerializer(result.data, many=True).data,
        )

    @extend_schema(
        operation_id="delete_notification_template",
        summary="Delete template",
        request=DeleteTemplateSerializer,
        responses={
            200: OpenApiResponse(description="Template deleted successfully"),
            404: OpenApiResponse(description="Template not found"),
        },
        tags=["Notification Templates"],
    )
    def delete(self, request):
        data = _validated(DeleteTemplateSerializer, request.data)
        result = NotificationTemplateService.delete(data["id"])
        if not result.success:
            raise service_error(result)
        return api_response("Template deleted successfully")
