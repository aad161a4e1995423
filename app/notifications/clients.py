"""
Construction of the external clients used for delivery.

The Firebase app is initialized once in NotificationsConfig.ready() and the
delivery service is built lazily on first use, then cached on the app
config. Tests replace it by setting ``delivery_service`` on the app config.

Configuration (via settings):
- FIREBASE_CREDENTIALS_FILE: Service account JSON file, or
- FIREBASE_PROJECT_ID / FIREBASE_CLIENT_EMAIL / FIREBASE_PRIVATE_KEY
- FIREBASE_APP_NAME: Name of the firebase_admin App (default "notifications")
- NOTIFICATION_FROM_EMAIL / NOTIFICATION_FROM_NAME: Email sender
- FCM_MULTICAST_LIMIT / PUSH_TOKEN_MAX_LENGTH: Push limits

Usage:
    from notifications.clients import get_delivery_service

    result = get_delivery_service().deliver(notification, template_id, data)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import firebase_admin
from django.apps import apps
from django.conf import settings
from firebase_admin import credentials

from core.exceptions import ConfigurationError

from notifications.channels.email import EmailChannel
from notifications.channels.push import FirebasePushClient, PushChannel
from notifications.delivery import NotificationDeliveryService
from notifications.tokens import DeviceTokenStore

if TYPE_CHECKING:
    from firebase_admin import App

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


def _firebase_credentials():
    """
    Build a Certificate from settings.

    Raises:
        ConfigurationError: When neither a credentials file nor the inline
            service account settings are present
    """
    if settings.FIREBASE_CREDENTIALS_FILE:
        return credentials.Certificate(settings.FIREBASE_CREDENTIALS_FILE)

    missing = [
        name
        for name in ("FIREBASE_PROJECT_ID", "FIREBASE_CLIENT_EMAIL", "FIREBASE_PRIVATE_KEY")
        if not getattr(settings, name, "")
    ]
    if missing:
        raise ConfigurationError(
            "Push notifications are not configured",
            details={"missing": missing},
        )

    return credentials.Certificate(
        {
            "type": "service_account",
            "project_id": settings.FIREBASE_PROJECT_ID,
            "client_email": settings.FIREBASE_CLIENT_EMAIL,
            "private_key": settings.FIREBASE_PRIVATE_KEY.replace("\\n", "\n"),
            "token_uri": GOOGLE_TOKEN_URI,
        }
    )


def build_firebase_app() -> App | None:
    """
    Initialize (or reuse) the Firebase app for push delivery.

    Returns:
        The firebase_admin App, or None when credentials are missing or invalid
    """
    name = settings.FIREBASE_APP_NAME
    try:
        return firebase_admin.get_app(name)
    except ValueError:
        pass

    try:
        cred = _firebase_credentials()
        options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
        app = firebase_admin.initialize_app(cred, options, name=name)
    except ConfigurationError as e:
        missing = ", ".join(e.details.get("missing", []))
        logger.warning(f"Push notifications disabled, missing settings: {missing}")
        return None
    except (ValueError, OSError) as e:
        logger.error(f"Failed to initialize Firebase: {e}")
        return None

    logger.info(f"Firebase app '{name}' initialized for push delivery")
    return app


def build_email_channel() -> EmailChannel:
    if not settings.NOTIFICATION_FROM_EMAIL:
        logger.warning("Email notifications disabled, NOTIFICATION_FROM_EMAIL is not set")
    return EmailChannel(
        from_email=settings.NOTIFICATION_FROM_EMAIL,
        from_name=settings.NOTIFICATION_FROM_NAME or None,
    )


def build_push_channel(firebase_app: App | None, token_store: DeviceTokenStore) -> PushChannel:
    client = FirebasePushClient(firebase_app) if firebase_app is not None else None
    return PushChannel(
        client,
        token_store,
        multicast_limit=settings.FCM_MULTICAST_LIMIT,
        max_token_length=settings.PUSH_TOKEN_MAX_LENGTH,
    )


def build_delivery_service(firebase_app: App | None = None) -> NotificationDeliveryService:
    token_store = DeviceTokenStore()
    return NotificationDeliveryService(
        email_channel=build_email_channel(),
        push_channel=build_push_channel(firebase_app, token_store),
        token_store=token_store,
    )


def get_delivery_service() -> NotificationDeliveryService:
    """Return the process-wide delivery service, building it on first use."""
    config = apps.get_app_config("notifications")
    if config.delivery_service is None:
        config.delivery_service = build_delivery_service(config.firebase_app)
    return config.delivery_service
