"""
Delivery orchestration for notifications.

NotificationDeliveryService loads a template, renders it, and hands the
result to the email or push channel. It never writes to the Notification
it delivers; NotificationService persists the outcome.

Flow (deliver):
    1. Load the template (missing -> TEMPLATE_NOT_FOUND)
    2. Render subject and content with the caller's data
    3. email -> EmailChannel to notification.email
       push  -> the user's active tokens; none -> NO_TOKENS,
                one valid token -> send_one, several -> send_many
    4. Any other type -> INVALID_NOTIFICATION_TYPE

Flow (send_broadcast):
    Active tokens for every user in one query, rendered once, multicast
    with the caller's data, additional data and notification type merged
    into the push payload.

Usage:
    from notifications.clients import get_delivery_service

    service = get_delivery_service()
    result = service.deliver(notification, template_id=3, data={"username": "Ada"})
    notification.delivery_status = result.delivery_status
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from notifications.models import NotificationChannel, NotificationTemplate
from notifications.rendering import render_template
from notifications.results import DeliveryErrorKind, DeliveryResult

if TYPE_CHECKING:
    from notifications.channels.email import EmailChannel
    from notifications.channels.push import PushChannel
    from notifications.models import Notification
    from notifications.tokens import DeviceTokenStore

logger = logging.getLogger(__name__)


@dataclass
class BroadcastOptions:
    """
    Extra push payload settings for a broadcast.

    Attributes:
        notification_type: Sent to devices as the ``type`` data key
        additional_data: Merged into the data payload (values stringified)
        priority: Android delivery priority, "high" or "normal"
    """

    notification_type: str
    additional_data: Mapping[str, Any] | None = None
    priority: str = "high"


class NotificationDeliveryService:
    """Routes rendered notifications to their delivery channel."""

    def __init__(
        self,
        email_channel: EmailChannel,
        push_channel: PushChannel,
        token_store: DeviceTokenStore,
    ):
        self.email_channel = email_channel
        self.push_channel = push_channel
        self.token_store = token_store

    def get_template(self, template_id: int | None) -> NotificationTemplate | None:
        if template_id is None:
            return None
        return NotificationTemplate.objects.filter(pk=template_id).first()

    def deliver(
        self,
        notification: Notification,
        template_id: int,
        data: Mapping[str, Any] | None = None,
    ) -> DeliveryResult:
        """
        Deliver one notification using the given template.

        Returns:
            DeliveryResult; on success its receipt carries the rendered
            title and content
        """
        template = self.get_template(template_id)
        if template is None:
            logger.warning(f"Template {template_id} not found for notification {notification.pk}")
            return DeliveryResult.err(DeliveryErrorKind.TEMPLATE_NOT_FOUND, "Template not found")

        title, content = render_template(template, data)

        if notification.type == NotificationChannel.EMAIL:
            result = self.email_channel.send(notification.email, title, content)
        elif notification.type == NotificationChannel.PUSH:
            result = self._deliver_push(notification, title, content)
        else:
            logger.error(f"Notification {notification.pk} has invalid type {notification.type!r}")
            return DeliveryResult.err(
                DeliveryErrorKind.INVALID_NOTIFICATION_TYPE,
                "Invalid notification type",
            )

        if result.success:
            logger.info(
                f"Delivered {notification.type} notification {notification.pk} "
                f"({result.delivery_status})"
            )
        else:
            logger.warning(
                f"Failed to deliver {notification.type} notification {notification.pk}: "
                f"{result.error}"
            )
        return result.with_rendering(title, content)

    def _deliver_push(self, notification: Notification, title: str, content: str) -> DeliveryResult:
        tokens = self.token_store.active_tokens_for_user(notification.auth_user_id)
        if not tokens:
            return DeliveryResult.err(DeliveryErrorKind.NO_TOKENS, "No active device tokens found")

        if len(self.push_channel.valid_tokens(tokens)) <= 1:
            return self.push_channel.send_one(tokens, title, content)
        return self.push_channel.send_many(tokens, title, content)

    def send_broadcast(
        self,
        user_ids: Iterable[str],
        template: NotificationTemplate,
        data: Mapping[str, Any] | None,
        options: BroadcastOptions,
    ) -> DeliveryResult:
        """
        Push one template to every active device of the given users.

        Returns:
            DeliveryResult with aggregate success/failure counts
        """
        user_ids = list(user_ids)
        tokens = self.token_store.active_tokens_for_users(user_ids)
        if not self.push_channel.valid_tokens(tokens):
            logger.info(f"Broadcast to {len(user_ids)} user(s) found no valid device tokens")
            return DeliveryResult.err(
                DeliveryErrorKind.NO_TOKENS,
                "No valid device tokens found for any user",
            )

        title, content = render_template(template, data)
        payload = {
            **{k: v for k, v in (data or {}).items() if v is not None},
            **{k: v for k, v in (options.additional_data or {}).items() if v is not None},
            "type": options.notification_type,
        }

        result = self.push_channel.send_many(
            tokens,
            title,
            content,
            data=payload,
            priority=options.priority or "high",
        )
        logger.info(
            f"Broadcast of template {template.pk} to {len(user_ids)} user(s): "
            f"{result.delivery_status}"
        )
        return result.with_rendering(title, content)
