"""Django app configuration for notifications."""

from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    """
    Configuration for the notifications app.

    Holds the clients built at process start:
        firebase_app: firebase_admin App, None when push is not configured
        delivery_service: NotificationDeliveryService, built on first use
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"
    verbose_name = "Notifications"

    firebase_app = None
    delivery_service = None

    def ready(self):
        from notifications.clients import build_firebase_app

        self.firebase_app = build_firebase_app()
