"""
Email delivery channel.

Sends one rendered HTML email per call through Django's email framework
(EmailMultiAlternatives over the backend configured by the EMAIL_* settings).
A plain-text alternative is derived from the HTML body.

Configuration (via settings):
- NOTIFICATION_FROM_EMAIL: Sender address
- NOTIFICATION_FROM_NAME: Sender display name (optional)
- EMAIL_BACKEND / EMAIL_HOST / EMAIL_PORT / EMAIL_TIMEOUT: Transport

Usage:
    channel = EmailChannel(from_email="noreply@example.com", from_name="Greep")
    result = channel.send("user@example.com", "Welcome", "<p>Hello</p>")
"""

from __future__ import annotations

import logging
import time
from email.utils import formataddr

from django.core.mail import EmailMultiAlternatives
from django.utils.html import strip_tags

from notifications.models import DeliveryStatus
from notifications.results import DeliveryErrorKind, DeliveryReceipt, DeliveryResult

logger = logging.getLogger(__name__)


class EmailChannel:
    """
    Email channel bound to a sender identity.

    Args:
        from_email: Default sender address
        from_name: Display name shown with the sender address
        connection: Django email connection; None opens the configured
            backend on each send
    """

    def __init__(self, from_email: str | None, from_name: str | None = None, connection=None):
        self.from_email = from_email
        self.from_name = from_name
        self.connection = connection

    def format_sender(self, from_address: str | None = None) -> str | None:
        address = from_address or self.from_email
        if not address:
            return None
        if self.from_name:
            return formataddr((self.from_name, address))
        return address

    def send(
        self,
        to_address: str | None,
        subject: str,
        html_body: str,
        from_address: str | None = None,
    ) -> DeliveryResult:
        """
        Send one email.

        Missing recipient or sender fails without touching the transport.
        Transport errors are returned as a failed result.
        """
        if not to_address:
            return DeliveryResult.err(
                DeliveryErrorKind.VALIDATION,
                "Recipient email address is missing",
            )

        sender = self.format_sender(from_address)
        if not sender:
            return DeliveryResult.err(
                DeliveryErrorKind.CONFIGURATION,
                "Sender email address is not configured",
            )

        log_context = {"operation": "send_email", "to": to_address, "subject": subject}
        start_time = time.time()

        message = EmailMultiAlternatives(
            subject=subject,
            body=strip_tags(html_body or ""),
            from_email=sender,
            to=[to_address],
            connection=self.connection,
        )
        message.attach_alternative(html_body or "", "text/html")

        try:
            sent = message.send(fail_silently=False)
        except Exception as e:
            logger.warning(
                f"Email delivery to {to_address} failed: {e}",
                extra={**log_context, "duration_ms": (time.time() - start_time) * 1000},
                exc_info=True,
            )
            return DeliveryResult.err(
                DeliveryErrorKind.DELIVERY,
                str(e) or e.__class__.__name__,
                DeliveryReceipt(
                    delivery_status=DeliveryStatus.FAILED,
                    failure_count=1,
                    errors=[str(e)],
                ),
            )

        duration_ms = (time.time() - start_time) * 1000
        if not sent:
            logger.warning(
                f"Email backend accepted no message for {to_address}",
                extra={**log_context, "duration_ms": duration_ms},
            )
            return DeliveryResult.err(
                DeliveryErrorKind.DELIVERY,
                "Email was not sent",
                DeliveryReceipt(delivery_status=DeliveryStatus.FAILED, failure_count=1),
            )

        logger.info(
            f"Email delivered to {to_address}",
            extra={**log_context, "duration_ms": duration_ms},
        )
        return DeliveryResult.ok(
            DeliveryReceipt(delivery_status=DeliveryStatus.DELIVERED, success_count=1)
        )
