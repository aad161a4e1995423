"""
Result types returned by the delivery channels and orchestrator.

A delivery attempt never raises for expected failures. It returns a
DeliveryResult that is either ``ok`` with a DeliveryReceipt, or ``err`` with
a DeliveryErrorKind and a human-readable message (optionally still carrying
a receipt, e.g. a broadcast where every token failed).

Usage:
    result = push_channel.send_many(tokens, title, body)
    if result.success:
        logger.info(f"{result.receipt.success_count} pushes delivered")
    else:
        logger.warning(f"Push failed ({result.error_kind}): {result.error}")

    notification.delivery_status = result.delivery_status
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any

from notifications.models import DeliveryStatus


class DeliveryErrorKind(str, Enum):
    """Why a delivery attempt failed."""

    VALIDATION = "validation"
    TEMPLATE_NOT_FOUND = "template_not_found"
    INVALID_NOTIFICATION_TYPE = "invalid_notification_type"
    CONFIGURATION = "configuration"
    NO_TOKENS = "no_tokens"
    DELIVERY = "delivery"


@dataclass
class DeliveryReceipt:
    """
    Outcome details of a delivery attempt.

    Attributes:
        delivery_status: delivered, partial or failed
        title: Rendered subject/title
        content: Rendered body
        success_count: Recipients/tokens the provider accepted
        failure_count: Recipients/tokens the provider rejected
        errors: Provider error messages, one per failed token or chunk
        message_id: Provider message id for single sends
    """

    delivery_status: str
    title: str = ""
    content: str = ""
    success_count: int = 0
    failure_count: int = 0
    errors: list[str] = field(default_factory=list)
    message_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DeliveryResult:
    """Tagged delivery result: ``ok(receipt)`` or ``err(kind, message)``."""

    success: bool
    receipt: DeliveryReceipt | None = None
    error_kind: DeliveryErrorKind | None = None
    error: str | None = None

    @classmethod
    def ok(cls, receipt: DeliveryReceipt) -> DeliveryResult:
        return cls(success=True, receipt=receipt)

    @classmethod
    def err(
        cls,
        kind: DeliveryErrorKind,
        message: str,
        receipt: DeliveryReceipt | None = None,
    ) -> DeliveryResult:
        return cls(success=False, receipt=receipt, error_kind=kind, error=message)

    @property
    def delivery_status(self) -> str:
        """Status to persist on the notification; failed when nothing was sent."""
        if self.receipt is not None:
            return self.receipt.delivery_status
        return DeliveryStatus.FAILED.value

    def with_rendering(self, title: str, content: str) -> DeliveryResult:
        """Return a copy whose receipt carries the rendered title and content."""
        receipt = self.receipt or DeliveryReceipt(delivery_status=self.delivery_status)
        return replace(self, receipt=replace(receipt, title=title, content=content))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": self.success,
            "delivery_status": self.delivery_status,
        }
        if self.receipt is not None:
            result.update(
                success_count=self.receipt.success_count,
                failure_count=self.receipt.failure_count,
                errors=list(self.receipt.errors),
            )
        if not self.success:
            result["error"] = self.error
            result["error_kind"] = self.error_kind.value if self.error_kind else None
        return result
