"""Admin configuration for teams models."""

from django.contrib import admin
from django.db import models as db_models
from django.utils import timezone
from django.utils.html import format_html
from django_json_widget.widgets import JSONEditorWidget

from apps.teams.models import ScheduleSlot, Team


class ScheduleSlotInline(admin.TabularInline):
    """Inline display of schedule slots within a team."""

    model = ScheduleSlot
    extra = 0
    fields = ["slot_id", "user_id", "start", "end"]


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    """Admin for Team model."""

    list_display = ["name", "team_id", "account_ids_display", "on_call_display", "created_at"]
    search_fields = ["name", "team_id"]
    formfield_overrides = {db_models.JSONField: {"widget": JSONEditorWidget}}
    inlines = [ScheduleSlotInline]

    fieldsets = [
        (
            None,
            {
                "fields": ["team_id", "name", "created_at"],
            },
        ),
        (
            "Routing",
            {
                "fields": ["account_ids"],
            },
        ),
        (
            "Escalation",
            {
                "fields": ["escalation_policy"],
                "classes": ["collapse"],
            },
        ),
    ]

    @admin.display(description="Accounts")
    def account_ids_display(self, obj):
        return ", ".join(obj.account_ids or []) or "-"

    @admin.display(description="On call now")
    def on_call_display(self, obj):
        from apps.teams.services import resolve_on_call

        user_id = resolve_on_call(obj.team_id)
        if user_id is None:
            return format_html('<span style="color: #dc3545;">{}</span>', "nobody")
        return user_id


@admin.register(ScheduleSlot)
class ScheduleSlotAdmin(admin.ModelAdmin):
    """Admin for ScheduleSlot model."""

    list_display = ["team", "user_id", "start", "end", "active_display"]
    list_filter = ["team"]
    search_fields = ["user_id", "slot_id", "team__team_id"]
    date_hierarchy = "start"

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("team")

    @admin.display(description="Active", boolean=True)
    def active_display(self, obj):
        return obj.covers(timezone.now())
