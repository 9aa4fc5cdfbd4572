"""Admin configuration for incidents models."""

from django.contrib import admin
from django.utils.html import format_html
from django_object_actions import DjangoObjectActions
from django_object_actions import action as object_action

from apps.incidents.models import Incident, IncidentState
from apps.incidents.services import IncidentConflict, IncidentStateMachine
from config.admin import prettify_json

SEVERITY_COLORS = {
    "critical": "#dc3545",
    "warning": "#ffc107",
    "info": "#17a2b8",
}

STATE_COLORS = {
    "triggered": "#dc3545",
    "acked": "#ffc107",
    "resolved": "#28a745",
}


def _badge(color: str, text: str):
    return format_html(
        '<span style="background-color: {}; color: white; padding: 3px 8px; '
        'border-radius: 3px; font-size: 11px;">{}</span>',
        color,
        text.upper(),
    )


@admin.register(Incident)
class IncidentAdmin(DjangoObjectActions, admin.ModelAdmin):
    """Admin for Incident model.

    State, timestamps and timeline are read-only here: transitions go through
    the state machine so they are recorded on the timeline.
    """

    list_display = [
        "alarm_name",
        "team",
        "severity_badge",
        "state_badge",
        "assigned_to",
        "triggered_at",
        "acked_at",
        "resolved_at",
    ]
    list_filter = ["state", "severity", "team"]
    search_fields = ["alarm_name", "alarm_arn", "assigned_to", "incident_id"]
    readonly_fields = [
        "incident_id",
        "team",
        "alarm_name",
        "alarm_arn",
        "account_id",
        "region",
        "dedup_key",
        "state",
        "severity",
        "assigned_to",
        "escalation_level",
        "triggered_at",
        "acked_at",
        "resolved_at",
        "expires_at",
        "pretty_timeline",
    ]
    date_hierarchy = "triggered_at"
    actions = ["acknowledge_selected", "resolve_selected"]
    change_actions = ["acknowledge_incident", "resolve_incident"]

    fieldsets = [
        (
            None,
            {
                "fields": ["incident_id", "team", "alarm_name", "severity", "state", "assigned_to"],
            },
        ),
        (
            "Alarm",
            {
                "fields": ["alarm_arn", "account_id", "region", "dedup_key"],
                "classes": ["collapse"],
            },
        ),
        (
            "Timeline",
            {
                "fields": ["pretty_timeline"],
            },
        ),
        (
            "Timestamps",
            {
                "fields": [
                    "triggered_at",
                    "acked_at",
                    "resolved_at",
                    "expires_at",
                    "escalation_level",
                ],
            },
        ),
    ]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("team")

    def has_add_permission(self, request):
        """Incidents are created by alarm ingestion only."""
        return False

    def _actor(self, request) -> str:
        return f"admin:{request.user.get_username()}"

    def _apply(self, request, incidents, transition) -> int:
        count = 0
        for incident in incidents:
            try:
                result = transition(incident.incident_id, actor=self._actor(request))
            except IncidentConflict as e:
                self.message_user(request, str(e), level="warning")
                continue
            if result.changed:
                count += 1
        return count

    @admin.action(description="Acknowledge selected incidents")
    def acknowledge_selected(self, request, queryset):
        machine = IncidentStateMachine()
        count = self._apply(
            request, queryset.filter(state=IncidentState.TRIGGERED), machine.acknowledge
        )
        self.message_user(request, f"{count} incident(s) acknowledged.")

    @admin.action(description="Resolve selected incidents")
    def resolve_selected(self, request, queryset):
        machine = IncidentStateMachine()
        count = self._apply(
            request, queryset.exclude(state=IncidentState.RESOLVED), machine.resolve
        )
        self.message_user(request, f"{count} incident(s) resolved.")

    @object_action(label="Acknowledge", description="Mark this incident as acknowledged")
    def acknowledge_incident(self, request, obj):
        if obj.state == IncidentState.TRIGGERED:
            IncidentStateMachine().acknowledge(obj.incident_id, actor=self._actor(request))
            self.message_user(request, f"Incident '{obj.alarm_name}' acknowledged.")
        else:
            self.message_user(
                request, f"Cannot acknowledge: state is '{obj.state}'.", level="warning"
            )

    @object_action(label="Resolve", description="Mark this incident as resolved")
    def resolve_incident(self, request, obj):
        if obj.state != IncidentState.RESOLVED:
            IncidentStateMachine().resolve(obj.incident_id, actor=self._actor(request))
            self.message_user(request, f"Incident '{obj.alarm_name}' resolved.")
        else:
            self.message_user(request, "Already resolved.", level="warning")

    @admin.display(description="Severity")
    def severity_badge(self, obj):
        return _badge(SEVERITY_COLORS.get(obj.severity, "#6c757d"), obj.severity)

    @admin.display(description="State")
    def state_badge(self, obj):
        return _badge(STATE_COLORS.get(obj.state, "#6c757d"), obj.state)

    @admin.display(description="Timeline")
    def pretty_timeline(self, obj):
        return prettify_json(obj.timeline)
