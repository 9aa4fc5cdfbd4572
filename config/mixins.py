"""Shared mixins for JSON API views."""

import json
from typing import Any

from django.http import JsonResponse

# Identity of the caller, set by the authenticating gateway in front of the API.
USER_ID_HEADER = "X-User-Id"


class JSONResponseMixin:
    """Mixin for JSON responses."""

    def json_response(self, data: Any, status: int = 200, safe: bool = True) -> JsonResponse:
        return JsonResponse(data, status=status, safe=safe)

    def error_response(self, message: str, status: int = 400) -> JsonResponse:
        return JsonResponse({"error": message}, status=status)

    def parse_json_body(self, request) -> dict[str, Any]:
        """Parse the request body as a JSON object; an empty body is {}.

        Raises:
            ValueError: If the body is not valid JSON or not an object.
        """
        if not request.body:
            return {}
        payload = json.loads(request.body)
        if not isinstance(payload, dict):
            raise ValueError("JSON body must be an object")
        return payload


class CallerIdentityMixin:
    """Mixin resolving the authenticated caller's user id."""

    def get_user_id(self, request) -> str | None:
        user_id = request.headers.get(USER_ID_HEADER, "").strip()
        if user_id:
            return user_id
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            return user.get_username()
        return None
