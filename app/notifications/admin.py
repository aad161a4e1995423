"""
Django admin configuration for notification models.

Registers the notification models with the admin site:
- NotificationTemplate
- Notification
- DeviceToken
"""

from django.contrib import admin

from notifications.models import DeviceToken, Notification, NotificationTemplate


@admin.register(NotificationTemplate)
class NotificationTemplateAdmin(admin.ModelAdmin):
    """
    Admin configuration for NotificationTemplate.

    Templates are edited here or through the API; names stay unique.
    """

    list_display = ["name", "type", "subject", "updated_at"]
    list_filter = ["type"]
    search_fields = ["name", "subject"]
    ordering = ["name"]
    readonly_fields = ["created_at", "updated_at"]
    fieldsets = (
        (None, {"fields": ("name", "type")}),
        ("Template", {"fields": ("subject", "content", "metadata")}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Admin configuration for Notification (delivery history, read-mostly)."""

    list_display = [
        "id",
        "auth_user_id",
        "type",
        "title",
        "delivery_status",
        "is_read",
        "created_at",
    ]
    list_filter = ["type", "delivery_status", "is_read"]
    search_fields = ["auth_user_id", "email", "title"]
    date_hierarchy = "created_at"
    readonly_fields = ["delivery_status", "created_at", "updated_at"]


@admin.register(DeviceToken)
class DeviceTokenAdmin(admin.ModelAdmin):
    """Admin configuration for DeviceToken."""

    list_display = ["id", "auth_user_id", "device_type", "is_active", "updated_at"]
    list_filter = ["device_type", "is_active"]
    search_fields = ["auth_user_id", "token"]
    readonly_fields = ["created_at", "updated_at"]
    actions = ["deactivate_tokens"]

    @admin.action(description="Deactivate selected tokens")
    def deactivate_tokens(self, request, queryset):
        from notifications.tokens import DeviceTokenStore

        updated = DeviceTokenStore().deactivate(queryset.values_list("id", flat=True))
        self.message_user(request, f"Deactivated {updated} device token(s).")
