"""
Create the notification service tables.

Changes:
    - Create NotificationTemplate (notification_templates)
    - Create Notification (notifications) with partial unread index
    - Create DeviceToken (device_tokens) with user/active index
"""

from django.db import migrations, models


def _timestamps():
    return [
        (
            "id",
            models.BigAutoField(
                auto_created=True,
                primary_key=True,
                serialize=False,
                verbose_name="ID",
            ),
        ),
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
    ]


CHANNEL_CHOICES = [("email", "Email"), ("push", "Push Notification")]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="NotificationTemplate",
            fields=_timestamps()
            + [
                (
                    "name",
                    models.CharField(
                        max_length=255,
                        unique=True,
                        help_text="Unique template identifier (e.g., 'payment_success')",
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        max_length=10,
                        choices=CHANNEL_CHOICES,
                        db_index=True,
                        help_text="Channel this template is written for",
                    ),
                ),
                (
                    "subject",
                    models.CharField(
                        max_length=500,
                        help_text="Subject/title template, may contain {{placeholders}}",
                    ),
                ),
                (
                    "content",
                    models.TextField(
                        help_text="Body template, may contain {{placeholders}}",
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        null=True,
                        blank=True,
                        help_text="Arbitrary template metadata",
                    ),
                ),
            ],
            options={
                "db_table": "notification_templates",
                "verbose_name": "notification template",
                "verbose_name_plural": "notification templates",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=_timestamps()
            + [
                (
                    "auth_user_id",
                    models.CharField(
                        max_length=255,
                        db_index=True,
                        help_text="User identifier from the auth service",
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        max_length=10,
                        choices=CHANNEL_CHOICES,
                        help_text="Delivery channel",
                    ),
                ),
                (
                    "title",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Rendered notification title",
                    ),
                ),
                (
                    "content",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Rendered notification body",
                    ),
                ),
                (
                    "email",
                    models.EmailField(
                        max_length=255,
                        null=True,
                        blank=True,
                        help_text="Recipient email address (email notifications only)",
                    ),
                ),
                (
                    "is_read",
                    models.BooleanField(
                        default=False,
                        db_index=True,
                        help_text="Whether the user has read this notification",
                    ),
                ),
                (
                    "delivery_status",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("pending", "Pending"),
                            ("sent", "Sent"),
                            ("delivered", "Delivered"),
                            ("failed", "Failed"),
                            ("partial", "Partially delivered"),
                        ],
                        default="pending",
                        help_text="Outcome of the delivery attempt",
                    ),
                ),
            ],
            options={
                "db_table": "notifications",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["auth_user_id", "created_at"],
                        name="notif_user_unread_idx",
                        condition=models.Q(is_read=False),
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DeviceToken",
            fields=_timestamps()
            + [
                (
                    "auth_user_id",
                    models.CharField(
                        max_length=255,
                        db_index=True,
                        help_text="User identifier from the auth service",
                    ),
                ),
                (
                    "device_type",
                    models.CharField(
                        max_length=10,
                        choices=[("ios", "iOS"), ("android", "Android"), ("web", "Web")],
                        help_text="Platform the token was issued on",
                    ),
                ),
                (
                    "token",
                    models.CharField(
                        max_length=4096,
                        unique=True,
                        help_text="Push provider registration token",
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        db_index=True,
                        help_text="Whether pushes are still sent to this token",
                    ),
                ),
            ],
            options={
                "db_table": "device_tokens",
                "verbose_name": "device token",
                "verbose_name_plural": "device tokens",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["auth_user_id", "is_active"],
                        name="device_token_user_active_idx",
                    ),
                ],
            },
        ),
    ]
