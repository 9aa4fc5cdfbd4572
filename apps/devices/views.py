"""
Views for the devices app.

- POST   /devices/             register a push token
- DELETE /devices/<token>/     unregister a push token
- POST   /devices/test-push/   send a test push to a registered token

All endpoints act on behalf of the caller identified by the X-User-Id header.
"""

import json
import logging
from urllib.parse import unquote

from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from apps.devices.services import DeviceNotFound, DeviceRegistry
from config.mixins import CallerIdentityMixin, JSONResponseMixin

logger = logging.getLogger(__name__)


def parse_sandbox_flag(value) -> bool | None:
    """Read the sandbox flag: a JSON boolean, or "true"/"false". Missing means False.

    Returns None for anything else.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None


class DeviceAPIView(CallerIdentityMixin, JSONResponseMixin, View):
    """Base class for device endpoints: CSRF exempt, caller required."""

    @method_decorator(csrf_exempt)
    def dispatch(self, request, *args, **kwargs):
        self.user_id = self.get_user_id(request)
        if not self.user_id:
            return self.error_response("Unauthorized", status=401)
        try:
            return super().dispatch(request, *args, **kwargs)
        except Exception as e:
            logger.exception("Unexpected error in devices API")
            return self.error_response(str(e), status=500)


class DeviceRegisterView(DeviceAPIView):
    """POST /devices/ with {"token", "platform", "sandbox"}."""

    def post(self, request):
        try:
            body = self.parse_json_body(request)
        except (json.JSONDecodeError, ValueError):
            return self.error_response("Invalid JSON payload")

        token = body.get("token")
        platform = body.get("platform")
        if not token or not platform:
            return self.error_response("Missing token or platform")

        sandbox = parse_sandbox_flag(body.get("sandbox"))
        if sandbox is None:
            return self.error_response("Invalid sandbox flag")

        try:
            device, _ = DeviceRegistry.register(self.user_id, token, platform, sandbox=sandbox)
        except ValueError:
            return self.error_response("Invalid platform")

        return self.json_response(
            {"message": "Device registered", "device": device.to_dict()}, status=201
        )


class DeviceUnregisterView(DeviceAPIView):
    """DELETE /devices/<token>/ (token is URL-encoded)."""

    def delete(self, request, token=""):
        token = unquote(token or "")
        if not token:
            return self.error_response("Missing token")
        DeviceRegistry.unregister(self.user_id, token)
        return self.json_response({"message": "Device unregistered"})


class DeviceTestPushView(DeviceAPIView):
    """POST /devices/test-push/ with {"token"}."""

    def post(self, request):
        try:
            body = self.parse_json_body(request)
        except (json.JSONDecodeError, ValueError):
            return self.error_response("Invalid JSON payload")

        token = body.get("token")
        if not token:
            return self.error_response("Missing token")

        try:
            result = DeviceRegistry.send_test(self.user_id, token)
        except DeviceNotFound:
            return self.error_response("Device not found", status=404)

        if not result.success:
            return self.error_response(result.error or "Unknown error", status=500)
        return self.json_response({"message": "Test notification sent"})
