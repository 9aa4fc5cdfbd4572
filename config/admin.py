"""Custom admin site for the on-call ops console."""

import json
from datetime import timedelta

from django.contrib.admin import AdminSite
from django.db.models import Count, Q
from django.utils import timezone
from django.utils.html import format_html


def prettify_json(value) -> str:
    """Render a JSON-serializable value as an indented <pre> block."""
    if value in (None, "", [], {}):
        return "-"
    return format_html(
        '<pre style="white-space: pre-wrap; margin: 0;">{}</pre>',
        json.dumps(value, indent=2, sort_keys=True, default=str),
    )


class OnCallAdminSite(AdminSite):
    site_header = "Pip-Alert On-Call"
    site_title = "Pip-Alert"
    index_title = "Dashboard"
    index_template = "admin/dashboard.html"

    def index(self, request, extra_context=None):
        extra_context = extra_context or {}
        extra_context.update(self._get_dashboard_context())
        return super().index(request, extra_context=extra_context)

    def _get_dashboard_context(self):
        from apps.incidents.models import Incident, IncidentSeverity, IncidentState
        from apps.notify.models import DeliveryStatus, NotificationDelivery

        now = timezone.now()
        last_24h = now - timedelta(hours=24)

        # --- Outstanding Incidents ---
        outstanding = Incident.objects.outstanding().aggregate(
            total=Count("id"),
            triggered=Count("id", filter=Q(state=IncidentState.TRIGGERED)),
            acked=Count("id", filter=Q(state=IncidentState.ACKED)),
            critical=Count("id", filter=Q(severity=IncidentSeverity.CRITICAL)),
            warning=Count("id", filter=Q(severity=IncidentSeverity.WARNING)),
            info=Count("id", filter=Q(severity=IncidentSeverity.INFO)),
        )

        # --- Push Delivery Health (24h) ---
        deliveries = NotificationDelivery.objects.filter(created_at__gte=last_24h).aggregate(
            total=Count("id"),
            sent=Count("id", filter=Q(status=DeliveryStatus.SENT)),
            failed=Count("id", filter=Q(status=DeliveryStatus.FAILED)),
            retryable=Count("id", filter=Q(status=DeliveryStatus.FAILED, retryable=True)),
        )
        total = deliveries["total"]
        deliveries["success_rate"] = round(deliveries["sent"] / total * 100, 1) if total else 0

        # --- Recent Incidents (last 10) ---
        recent_incidents = list(
            Incident.objects.select_related("team").order_by("-triggered_at")[:10]
        )

        # --- Top Failure Reasons (24h) ---
        top_delivery_errors = list(
            NotificationDelivery.objects.filter(
                status=DeliveryStatus.FAILED,
                created_at__gte=last_24h,
            )
            .values("error")
            .annotate(count=Count("id"))
            .order_by("-count")[:5]
        )

        return {
            "outstanding_incidents": outstanding,
            "delivery_health": deliveries,
            "recent_incidents": recent_incidents,
            "top_delivery_errors": top_delivery_errors,
        }
