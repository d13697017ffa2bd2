import json
import logging
import os
from typing import Tuple

from django.http import JsonResponse, HttpResponseNotAllowed

from .auth import session_email
from .firebase_service import firestore_service

logger = logging.getLogger("flohub")


def json_body(request) -> Tuple[dict, JsonResponse]:
    try:
        body = request.body.decode("utf-8") if request.body else "{}"
        data = json.loads(body)
        if not isinstance(data, dict):
            raise ValueError("JSON body must be an object")
        return data, None
    except (json.JSONDecodeError, ValueError) as exc:
        return None, JsonResponse({"error": f"invalid_json: {exc}"}, status=400)


def require_env(*keys):
    missing = [key for key in keys if not os.environ.get(key)]
    if missing:
        return JsonResponse({"error": "missing_env", "missing": missing}, status=500)
    return None


def require_firestore():
    if not firestore_service.is_available():
        return JsonResponse({
            "error": "firestore_unavailable",
            "message": "Firebase Firestore is not configured",
        }, status=503)
    return None


def not_signed_in():
    return JsonResponse({"error": "Not signed in"}, status=401)


def server_error(tag: str, exc: Exception, message: str = None) -> JsonResponse:
    """Log an unexpected failure and turn it into a 500 response."""
    logger.exception(f"[{tag}] {exc}")
    return JsonResponse({"error": message or str(exc) or "Internal server error"}, status=500)


def dispatch(request, tag: str, handlers: dict):
    """
    Route a signed-in request to ``handlers[method](request, email)``.

    Returns 405 for other methods, 401 without a session, 503 without
    Firestore and 500 (logged) when the handler raises.
    """
    logger.info(f"[{tag}] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method not in handlers:
        return HttpResponseNotAllowed(list(handlers))

    email = session_email(request)
    if not email:
        return not_signed_in()

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    try:
        return handlers[request.method](request, email)
    except Exception as e:
        return server_error(tag, e)
