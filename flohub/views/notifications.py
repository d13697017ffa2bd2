import logging

from django.http import JsonResponse, HttpResponseNotAllowed
from django.views.decorators.csrf import csrf_exempt

from ..auth import is_internal_request, session_email
from ..firebase_service import firestore_service
from ..http import dispatch, json_body, require_firestore, server_error
from ..push_service import build_payload, push_service
from ..scheduler import run_notification_scheduler
from ..utils import subscription_id

logger = logging.getLogger("flohub")


def _subscribe(request, email):
    subscription, error = json_body(request)
    if error:
        return error

    endpoint = subscription.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint:
        return JsonResponse({"success": False, "message": "Invalid subscription data"}, status=400)

    doc_id = firestore_service.save_push_subscription(email, subscription)
    logger.info(f"[NOTIFICATIONS/SUBSCRIBE] Saved subscription {doc_id[:16]}... for {email}")
    return JsonResponse({"success": True})


def _unsubscribe(request, email):
    subscription, error = json_body(request)
    if error:
        return error

    endpoint = subscription.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint:
        return JsonResponse({"success": False, "message": "Invalid subscription data"}, status=400)

    firestore_service.delete_push_subscription(subscription_id(endpoint))
    return JsonResponse({"success": True})


@csrf_exempt
def subscribe(request):
    return dispatch(request, "NOTIFICATIONS/SUBSCRIBE", {"POST": _subscribe})


@csrf_exempt
def unsubscribe(request):
    return dispatch(request, "NOTIFICATIONS/UNSUBSCRIBE", {"POST": _unsubscribe})


@csrf_exempt
def send(request):
    """
    Push a notification to every subscription of ``userEmail``.

    Signed-in users may only notify themselves; internal callers (the
    scheduler) authenticate with the X-API-Key header.
    """
    logger.info(f"[NOTIFICATIONS/SEND] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    email = session_email(request)
    internal = is_internal_request(request)
    if not email and not internal:
        return JsonResponse({"success": False, "message": "Unauthorized"}, status=401)

    data, error = json_body(request)
    if error:
        return error

    user_email = data.get("userEmail")
    title = data.get("title")
    body = data.get("body")
    if not user_email or not title or not body:
        return JsonResponse({
            "success": False,
            "message": "Missing required fields: userEmail, title, body",
        }, status=400)

    if email and email != user_email and not internal:
        return JsonResponse({
            "success": False,
            "message": "You can only send notifications to yourself",
        }, status=403)

    if not push_service.is_configured():
        return JsonResponse({"success": False, "message": "Web push is not configured"}, status=503)

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    try:
        subscriptions = firestore_service.push_subscriptions_for(user_email)
        if not subscriptions:
            return JsonResponse({
                "success": False,
                "message": "No push subscriptions found for this user",
            }, status=404)

        payload = build_payload(
            title,
            body,
            icon=data.get("icon"),
            badge=data.get("badge"),
            tag=data.get("tag"),
            data=data.get("data") if isinstance(data.get("data"), dict) else None,
            actions=data.get("actions") if isinstance(data.get("actions"), list) else None,
        )
        results = push_service.send_to_user(subscriptions, payload)
    except Exception as e:
        return server_error("NOTIFICATIONS/SEND", e, message=f"Internal server error: {e}")

    success_count = sum(1 for r in results if r.success)
    return JsonResponse({
        "success": True,
        "message": f"Notification sent to {success_count} of {len(results)} subscriptions",
        "results": [r.to_dict() for r in results],
    })


@csrf_exempt
def scheduler(request):
    """Run one reminder pass. Meant for cron, authenticated with X-API-Key."""
    logger.info(f"[NOTIFICATIONS/SCHEDULER] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    if not is_internal_request(request):
        return JsonResponse({"success": False, "message": "Unauthorized"}, status=401)

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    try:
        report = run_notification_scheduler()
    except Exception as e:
        return server_error("NOTIFICATIONS/SCHEDULER", e, message=f"Error running notification scheduler: {e}")

    return JsonResponse({
        "success": True,
        "message": "Notification scheduler executed successfully",
        "report": report.to_dict(),
    })
