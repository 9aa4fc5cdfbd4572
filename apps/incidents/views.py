"""
Views for the incidents app.

- Alarm webhook receiving CloudWatch alarm notifications (SNS)
- Client actions: list/detail, acknowledge, resolve
"""

import json
import logging
from typing import Any

from django.conf import settings
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from apps.incidents.models import IncidentState
from apps.incidents.services import (
    AlarmIngestionPipeline,
    IncidentConflict,
    IncidentNotFound,
    IncidentQueryService,
    IncidentStateMachine,
)
from config.mixins import CallerIdentityMixin, JSONResponseMixin

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class AlarmWebhookView(View):
    """
    Webhook endpoint for alarm notifications.

    POST /incidents/alarms/
    POST /incidents/alarms/<driver>/

    Accepts SNS events, SNS HTTP notifications or bare CloudWatch alarm
    messages. Delivery is at-least-once; duplicates of the same alarm
    transition are dropped by the pipeline.
    """

    def post(self, request, driver=None):
        """Handle incoming alarm delivery."""
        try:
            try:
                payload = json.loads(request.body)
            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON payload: {e}")
                return JsonResponse(
                    {"status": "error", "message": "Invalid JSON payload"},
                    status=400,
                )

            if not isinstance(payload, dict):
                return JsonResponse(
                    {"status": "error", "message": "Payload must be a JSON object"},
                    status=400,
                )

            # If Celery is enabled, enqueue ingestion and return quickly.
            # (In tests/dev you can set CELERY_TASK_ALWAYS_EAGER=1 to run inline.)
            celery_eager = bool(getattr(settings, "CELERY_TASK_ALWAYS_EAGER", False))

            if getattr(settings, "ENABLE_CELERY_INGESTION", True) and not celery_eager:
                try:
                    from apps.incidents.tasks import ingest_alarm_payload

                    async_res = ingest_alarm_payload.delay(payload, driver)
                    return JsonResponse(
                        {"status": "queued", "task_id": async_res.id},
                        status=202,
                    )
                except Exception as enqueue_err:
                    # Broker unreachable: don't 500 the webhook, process inline instead.
                    logger.warning(
                        "Celery ingestion enqueue failed; falling back to sync processing: %s",
                        enqueue_err,
                    )

            result = AlarmIngestionPipeline().process_payload(payload, driver=driver)

            response_data: dict[str, Any] = {
                "status": "success" if not result.has_errors else "partial",
                **result.to_dict(),
            }

            if result.has_errors:
                logger.warning(f"Alarm webhook processing errors: {result.errors}")

            return JsonResponse(response_data)

        except Exception as e:
            logger.exception("Unexpected error processing alarm webhook")
            return JsonResponse(
                {"status": "error", "message": str(e)},
                status=500,
            )

    def get(self, request, driver=None):
        """Health check endpoint."""
        return JsonResponse(
            {
                "status": "ok",
                "message": "Alarm webhook endpoint is ready",
                "driver": driver or "auto-detect",
            }
        )


class IncidentListView(CallerIdentityMixin, JSONResponseMixin, View):
    """
    GET /incidents/?team_id=...&state=...&mine=1

    Lists incidents, newest first.
    """

    def get(self, request):
        user_id = self.get_user_id(request)
        if not user_id:
            return self.error_response("Unauthorized", status=401)

        state = request.GET.get("state")
        if state and state not in IncidentState.values:
            return self.error_response(f"Invalid state: {state}")

        incidents = IncidentQueryService.list_incidents(
            team_id=request.GET.get("team_id"),
            state=state,
            assigned_to=user_id if request.GET.get("mine") == "1" else None,
        )
        data = [incident.to_dict() for incident in incidents]
        return self.json_response({"count": len(data), "incidents": data})


class IncidentDetailView(CallerIdentityMixin, JSONResponseMixin, View):
    """GET /incidents/<incident_id>/"""

    def get(self, request, incident_id):
        if not self.get_user_id(request):
            return self.error_response("Unauthorized", status=401)
        try:
            incident = IncidentQueryService.get_incident(incident_id)
        except IncidentNotFound:
            return self.error_response("Incident not found", status=404)
        return self.json_response({"incident": incident.to_dict()})


@method_decorator(csrf_exempt, name="dispatch")
class IncidentActionView(CallerIdentityMixin, JSONResponseMixin, View):
    """
    POST /incidents/<incident_id>/ack/
    POST /incidents/<incident_id>/resolve/

    Optional JSON body: {"note": "..."}
    Returns 409 when the incident cannot move to the requested state.
    """

    action: str = ""

    def post(self, request, incident_id):
        actor = self.get_user_id(request)
        if not actor:
            return self.error_response("Unauthorized", status=401)

        try:
            body = self.parse_json_body(request)
        except ValueError:
            return self.error_response("Invalid JSON payload")

        machine = IncidentStateMachine()
        handler = machine.acknowledge if self.action == "ack" else machine.resolve

        try:
            result = handler(incident_id, actor=actor, note=str(body.get("note", "")))
        except IncidentNotFound:
            return self.error_response("Incident not found", status=404)
        except IncidentConflict as e:
            return JsonResponse(
                {"error": str(e), "state": e.current_state},
                status=409,
            )
        except Exception:
            logger.exception(f"Unexpected error on incident {self.action}")
            return self.error_response("Internal server error", status=500)

        return self.json_response({"changed": result.changed, "incident": result.incident.to_dict()})
