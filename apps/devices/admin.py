"""Admin configuration for devices models."""

from django.contrib import admin, messages
from django_object_actions import DjangoObjectActions
from django_object_actions import action as object_action

from apps.devices.models import Device
from apps.devices.services import DeviceRegistry


@admin.register(Device)
class DeviceAdmin(DjangoObjectActions, admin.ModelAdmin):
    """Admin for Device model."""

    list_display = ["user_id", "platform", "sandbox", "short_token", "created_at"]
    list_filter = ["platform", "sandbox"]
    search_fields = ["user_id", "device_token"]
    readonly_fields = ["created_at"]
    change_actions = ["send_test_push"]

    @admin.display(description="Token")
    def short_token(self, obj):
        return f"…{obj.device_token[-8:]}"

    @object_action(label="Send test push", description="Send the test notification to this device")
    def send_test_push(self, request, obj):
        result = DeviceRegistry.send_test(obj.user_id, obj.device_token)
        if result.success:
            self.message_user(request, "Test notification sent.")
        else:
            self.message_user(request, f"Test push failed: {result.error}", level=messages.ERROR)
