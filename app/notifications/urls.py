"""
URL configuration for the notifications app.

Included under /api/v1/ by config.urls:
    device-tokens/             - DeviceTokenView (POST/PUT/DELETE/GET)
    notifications/             - NotificationView (POST/GET/DELETE)
    notifications/broadcast/   - NotificationBroadcastView (POST)
    notifications/status/      - NotificationStatusView (PUT)
    notification-templates/    - NotificationTemplateView (POST/PUT/GET/DELETE)
"""

from django.urls import path

from notifications.views import (
    DeviceTokenView,
    NotificationBroadcastView,
    NotificationStatusView,
    NotificationTemplateView,
    NotificationView,
)

app_name = "notifications"

urlpatterns = [
    path("device-tokens/", DeviceTokenView.as_view(), name="device-tokens"),
    path("notifications/", NotificationView.as_view(), name="notifications"),
    path(
        "notifications/broadcast/",
        NotificationBroadcastView.as_view(),
        name="notification-broadcast",
    ),
    path(
        "notifications/status/",
        NotificationStatusView.as_view(),
        name="notification-status",
    ),
    path(
        "notification-templates/",
        NotificationTemplateView.as_view(),
        name="notification-templates",
    ),
]
