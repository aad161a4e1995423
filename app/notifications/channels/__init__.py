"""
Delivery channels for notifications.

- EmailChannel: one HTML email through Django's mail framework
- PushChannel: single and multicast pushes through Firebase Cloud Messaging

Channels never raise for delivery failures; they return a
notifications.results.DeliveryResult.
"""

from notifications.channels.email import EmailChannel
from notifications.channels.push import FirebasePushClient, PushChannel, PushClient

__all__ = [
    "EmailChannel",
    "FirebasePushClient",
    "PushChannel",
    "PushClient",
]
