"""
Push delivery channel backed by Firebase Cloud Messaging.

Two send paths:
- send_one: one message to the first valid token of a user
- send_many: multicast to many tokens in chunks of at most
  FCM_MULTICAST_LIMIT (500) tokens, one provider call per chunk

Token handling:
    Tokens are trimmed and kept only when 1..PUSH_TOKEN_MAX_LENGTH characters
    long. Tokens the provider rejects are deactivated through the
    DeviceTokenStore so later sends skip them.

Status policy (send_many):
    delivered - every token accepted
    partial   - some accepted, some rejected
    failed    - nothing accepted

Usage:
    from notifications.channels.push import FirebasePushClient, PushChannel
    from notifications.tokens import DeviceTokenStore

    channel = PushChannel(FirebasePushClient(firebase_app), DeviceTokenStore())
    result = channel.send_many(tokens, "Title", "Body", data={"order_id": "42"})
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from notifications.models import DeliveryStatus, DeviceToken
from notifications.results import DeliveryErrorKind, DeliveryReceipt, DeliveryResult

if TYPE_CHECKING:
    from firebase_admin import App

    from notifications.tokens import DeviceTokenStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MULTICAST_LIMIT = 500
DEFAULT_MAX_TOKEN_LENGTH = 4096

# Provider errors meaning the token will never work again
PERMANENT_TOKEN_ERRORS = (
    messaging.UnregisteredError,
    messaging.SenderIdMismatchError,
    firebase_exceptions.InvalidArgumentError,
)


# =============================================================================
# Provider Client
# =============================================================================


class PushClient(Protocol):
    """Minimal surface of the push provider used by PushChannel."""

    def send(self, message: messaging.Message) -> str:
        """Send one message, returning the provider message id."""
        ...

    def send_each_for_multicast(
        self, message: messaging.MulticastMessage
    ) -> messaging.BatchResponse:
        """Send one multicast message, returning per-token responses."""
        ...


class FirebasePushClient:
    """firebase_admin.messaging bound to an explicitly initialized App."""

    def __init__(self, app: App | None = None):
        self.app = app

    def send(self, message: messaging.Message) -> str:
        return messaging.send(message, app=self.app)

    def send_each_for_multicast(
        self, message: messaging.MulticastMessage
    ) -> messaging.BatchResponse:
        return messaging.send_each_for_multicast(message, app=self.app)


# =============================================================================
# Helpers
# =============================================================================


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into consecutive slices of at most size elements."""
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def aggregate_status(success_count: int, failure_count: int) -> str:
    """Map multicast counts onto a delivery status."""
    if success_count <= 0:
        return DeliveryStatus.FAILED
    if failure_count > 0:
        return DeliveryStatus.PARTIAL
    return DeliveryStatus.DELIVERED


def sanitize_data(data: Mapping[str, Any] | None) -> dict[str, str]:
    """FCM data payloads only carry strings: drop None values, str() the rest."""
    if not data:
        return {}
    return {str(key): str(value) for key, value in data.items() if value is not None}


# =============================================================================
# Channel
# =============================================================================


class PushChannel:
    """
    Push channel over a PushClient.

    Args:
        client: Provider client; None means push is not configured and every
            send fails with a configuration error
        token_store: Used to deactivate tokens the provider rejects
        multicast_limit: Maximum tokens per multicast call
        max_token_length: Longest token accepted after trimming
    """

    def __init__(
        self,
        client: PushClient | None,
        token_store: DeviceTokenStore,
        multicast_limit: int = DEFAULT_MULTICAST_LIMIT,
        max_token_length: int = DEFAULT_MAX_TOKEN_LENGTH,
    ):
        self.client = client
        self.token_store = token_store
        self.multicast_limit = multicast_limit
        self.max_token_length = max_token_length

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _index_tokens(
        self, tokens: Iterable[DeviceToken | str]
    ) -> tuple[list[str], dict[str, list[int]]]:
        """
        Trim, bound-check and de-duplicate tokens, preserving order.

        Returns:
            (valid token strings, trimmed token -> DeviceToken ids)
        """
        valid: list[str] = []
        ids_by_token: dict[str, list[int]] = {}
        for item in tokens:
            raw = item.token if isinstance(item, DeviceToken) else item
            value = (raw or "").strip()
            if not value or len(value) > self.max_token_length:
                continue
            if value not in ids_by_token:
                ids_by_token[value] = []
                valid.append(value)
            if isinstance(item, DeviceToken) and item.pk is not None:
                ids_by_token[value].append(item.pk)
        return valid, ids_by_token

    def valid_tokens(self, tokens: Iterable[DeviceToken | str]) -> list[str]:
        """Trimmed, de-duplicated tokens within the length bound."""
        return self._index_tokens(tokens)[0]

    def _not_configured(self) -> DeliveryResult:
        return DeliveryResult.err(
            DeliveryErrorKind.CONFIGURATION,
            "Push notifications are not configured",
        )

    def send_one(
        self,
        tokens: Iterable[DeviceToken | str],
        title: str,
        body: str,
        data: Mapping[str, Any] | None = None,
    ) -> DeliveryResult:
        """
        Send one push to the first valid token.

        A token rejected as unregistered or invalid is deactivated.
        """
        if not self.is_configured:
            return self._not_configured()

        valid, ids_by_token = self._index_tokens(tokens)
        if not valid:
            return DeliveryResult.err(DeliveryErrorKind.NO_TOKENS, "No valid device tokens found")

        token = valid[0]
        message = messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data=sanitize_data(data) or None,
        )

        start_time = time.time()
        try:
            message_id = self.client.send(message)
        except firebase_exceptions.FirebaseError as e:
            logger.warning(
                f"Push send failed ({e.code}): {e}",
                extra={"operation": "push_send", "duration_ms": (time.time() - start_time) * 1000},
            )
            if isinstance(e, PERMANENT_TOKEN_ERRORS):
                self.token_store.deactivate(ids_by_token.get(token, []))
            return self._single_failure(str(e) or "Failed to send notification")
        except Exception as e:
            logger.exception(f"Unexpected push send error: {e}")
            return self._single_failure(str(e) or "Failed to send notification")

        logger.info(
            f"Push delivered (message_id={message_id})",
            extra={"operation": "push_send", "duration_ms": (time.time() - start_time) * 1000},
        )
        return DeliveryResult.ok(
            DeliveryReceipt(
                delivery_status=DeliveryStatus.DELIVERED,
                success_count=1,
                message_id=message_id,
            )
        )

    @staticmethod
    def _single_failure(message: str) -> DeliveryResult:
        return DeliveryResult.err(
            DeliveryErrorKind.DELIVERY,
            message,
            DeliveryReceipt(
                delivery_status=DeliveryStatus.FAILED,
                failure_count=1,
                errors=[message],
            ),
        )

    def send_many(
        self,
        tokens: Iterable[DeviceToken | str],
        title: str,
        body: str,
        data: Mapping[str, Any] | None = None,
        priority: str = "high",
    ) -> DeliveryResult:
        """
        Multicast a push to every valid token, chunk by chunk.

        Chunks are sent sequentially and the tokens a chunk reports as failed
        are deactivated before the next chunk goes out. A chunk whose call
        raises is logged and counted as failed for all its tokens; the next
        chunk is still sent.
        """
        if not self.is_configured:
            return self._not_configured()

        valid, ids_by_token = self._index_tokens(tokens)
        if not valid:
            return DeliveryResult.err(DeliveryErrorKind.NO_TOKENS, "No valid device tokens found")

        payload = sanitize_data(data) or None
        success_count = 0
        failure_count = 0
        errors: list[str] = []

        chunks = chunk(valid, self.multicast_limit)
        for index, chunk_tokens in enumerate(chunks):
            message = messaging.MulticastMessage(
                tokens=chunk_tokens,
                notification=messaging.Notification(title=title, body=body),
                data=payload,
                android=messaging.AndroidConfig(priority=priority),
            )
            log_context = {
                "operation": "push_multicast",
                "chunk": index + 1,
                "chunks": len(chunks),
                "tokens": len(chunk_tokens),
            }

            start_time = time.time()
            try:
                response = self.client.send_each_for_multicast(message)
            except Exception as e:
                logger.exception(
                    f"Push chunk {index + 1}/{len(chunks)} failed: {e}",
                    extra=log_context,
                )
                failure_count += len(chunk_tokens)
                errors.append(str(e) or e.__class__.__name__)
                continue

            success_count += response.success_count
            failure_count += response.failure_count

            failed_ids: list[int] = []
            for token, send_response in zip(chunk_tokens, response.responses):
                if send_response.success:
                    continue
                failed_ids.extend(ids_by_token.get(token, []))
                errors.append(str(send_response.exception) if send_response.exception else "Unknown error")

            logger.info(
                f"Push chunk {index + 1}/{len(chunks)}: "
                f"{response.success_count} sent, {response.failure_count} failed",
                extra={**log_context, "duration_ms": (time.time() - start_time) * 1000},
            )
            if failed_ids:
                self.token_store.deactivate(failed_ids)

        receipt = DeliveryReceipt(
            delivery_status=aggregate_status(success_count, failure_count),
            success_count=success_count,
            failure_count=failure_count,
            errors=errors,
        )
        if success_count > 0:
            return DeliveryResult.ok(receipt)
        return DeliveryResult.err(
            DeliveryErrorKind.DELIVERY,
            errors[0] if errors else "Failed to deliver push notification",
            receipt,
        )
