"""
Notifications app for email and push notification delivery.

This app provides:
- NotificationTemplate, Notification and DeviceToken models
- Template rendering with {{placeholder}} tokens
- Email (Django mail) and push (Firebase Cloud Messaging) channels
- NotificationDeliveryService orchestrating rendering and delivery
- REST API for device tokens, templates and notifications

Usage:
    from notifications.services import NotificationService

    result = NotificationService.send(
        auth_user_id="user-123",
        type="push",
        template_id=template.id,
        template_data={"username": "Ada"},
    )

    if result.success:
        notification = result.data
"""
