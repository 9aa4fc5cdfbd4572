"""Admin configuration for notify models."""

from django.contrib import admin
from django.utils.html import format_html

from apps.notify.models import DeliveryStatus, NotificationDelivery


@admin.register(NotificationDelivery)
class NotificationDeliveryAdmin(admin.ModelAdmin):
    """Read-only view of the push delivery ledger."""

    list_display = [
        "incident",
        "user_id",
        "short_token",
        "status_badge",
        "status_code",
        "retryable",
        "attempts",
        "updated_at",
    ]
    list_filter = ["status", "retryable"]
    search_fields = ["user_id", "device_token", "error", "incident__alarm_name"]
    readonly_fields = [
        "incident",
        "device_token",
        "user_id",
        "status",
        "error",
        "status_code",
        "retryable",
        "attempts",
        "created_at",
        "updated_at",
    ]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("incident")

    def has_add_permission(self, request):
        return False

    @admin.display(description="Token")
    def short_token(self, obj):
        return f"…{obj.device_token[-8:]}"

    @admin.display(description="Status")
    def status_badge(self, obj):
        color = "#28a745" if obj.status == DeliveryStatus.SENT else "#dc3545"
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; '
            'border-radius: 3px; font-size: 11px;">{}</span>',
            color,
            obj.status.upper(),
        )
