import logging

from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt

from ..constants import DEFAULT_ACTIVE_WIDGETS
from ..firebase_service import firestore_service
from ..http import dispatch, json_body

logger = logging.getLogger("flohub")


def default_settings():
    today = timezone.localdate().isoformat()
    return {
        "selectedCals": ["primary"],
        "defaultView": "month",
        "customRange": {"start": today, "end": today},
        "powerAutomateUrl": "",
        "globalTags": [],
        "activeWidgets": list(DEFAULT_ACTIVE_WIDGETS),
    }


def _no_store(response):
    response["Cache-Control"] = "no-store"
    return response


def _get_settings(request, email):
    settings = firestore_service.get_user_settings(email)
    if settings is None:
        logger.info(f"[SETTINGS] No settings for {email}, returning defaults")
        return _no_store(JsonResponse(default_settings()))
    return _no_store(JsonResponse(settings))


def _save_settings(request, email):
    data, error = json_body(request)
    if error:
        return error

    firestore_service.save_user_settings(email, data)
    logger.info(f"[SETTINGS] Saved settings for {email}")
    return _no_store(JsonResponse(data))


@csrf_exempt
def user_settings(request):
    return dispatch(request, "SETTINGS", {"GET": _get_settings, "POST": _save_settings})
