"""
URL configuration for the incidents app.
"""

from django.urls import path

from apps.incidents.views import (
    AlarmWebhookView,
    IncidentActionView,
    IncidentDetailView,
    IncidentListView,
)

app_name = "incidents"

urlpatterns = [
    # Alarm ingestion (auto-detect driver)
    path("alarms/", AlarmWebhookView.as_view(), name="alarms"),
    path("alarms/<str:driver>/", AlarmWebhookView.as_view(), name="alarms_driver"),
    # Client actions
    path("", IncidentListView.as_view(), name="list"),
    path("<str:incident_id>/", IncidentDetailView.as_view(), name="detail"),
    path("<str:incident_id>/ack/", IncidentActionView.as_view(action="ack"), name="ack"),
    path(
        "<str:incident_id>/resolve/",
        IncidentActionView.as_view(action="resolve"),
        name="resolve",
    ),
]
