"""
Views for the demo app.

- POST /demo/setup/  {"aws_account_id"?}  create the demo team, caller on call
- POST /demo/start/  {"aws_account_id"?}  publish the demo alarms
- POST /demo/reset/                       delete all demo data
"""

import json
import logging

from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from apps.demo.services import DemoEnvironment
from config.mixins import CallerIdentityMixin, JSONResponseMixin

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class DemoActionView(CallerIdentityMixin, JSONResponseMixin, View):
    """POST handler shared by the demo endpoints."""

    action: str = ""

    def post(self, request):
        user_id = self.get_user_id(request)
        if not user_id:
            return self.error_response("Unauthorized", status=401)

        try:
            body = self.parse_json_body(request)
        except (json.JSONDecodeError, ValueError):
            return self.error_response("Invalid JSON payload")

        account_id = body.get("aws_account_id") or None
        env = DemoEnvironment()

        try:
            if self.action == "setup":
                data = env.setup(user_id, account_id)
            elif self.action == "start":
                data = env.start(account_id)
            elif self.action == "reset":
                data = env.reset()
            else:
                return self.error_response("Not found", status=404)
        except Exception:
            logger.exception(f"Demo {self.action} failed")
            return self.error_response("Internal server error", status=500)

        return self.json_response(data)
