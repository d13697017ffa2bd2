import logging
from datetime import date

from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt

from ..constants import (
    DEFAULT_SLEEP_HOURS,
    JOURNAL_ACTIVITIES_COLLECTION,
    JOURNAL_ENTRIES_COLLECTION,
    JOURNAL_MOODS_COLLECTION,
    JOURNAL_SLEEP_COLLECTION,
)
from ..firebase_service import firestore_service
from ..http import dispatch, json_body

logger = logging.getLogger("flohub")


def _valid_date(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _get_entry(request, email):
    day = request.GET.get("date")
    if not _valid_date(day):
        return JsonResponse({"error": "A valid date (YYYY-MM-DD) is required"}, status=400)

    record = firestore_service.get_journal_record(JOURNAL_ENTRIES_COLLECTION, email, day)
    if not record:
        return JsonResponse({"content": "", "timestamp": timezone.now().isoformat()})
    return JsonResponse({"content": record.get("content", ""), "timestamp": record.get("timestamp")})


def _save_entry(request, email):
    data, error = json_body(request)
    if error:
        return error

    day = data.get("date")
    content = data.get("content")
    if not _valid_date(day) or not isinstance(content, str):
        return JsonResponse({"error": "date and content are required"}, status=400)

    timestamp = data.get("timestamp") or timezone.now().isoformat()
    firestore_service.upsert_journal_record(
        JOURNAL_ENTRIES_COLLECTION, email, day, {"content": content, "timestamp": timestamp}
    )
    logger.info(f"[JOURNAL] Saved entry {day} for {email}")
    return JsonResponse({"success": True})


def _get_mood(request, email):
    day = request.GET.get("date")
    if not _valid_date(day):
        return JsonResponse({"error": "A valid date (YYYY-MM-DD) is required"}, status=400)

    record = firestore_service.get_journal_record(JOURNAL_MOODS_COLLECTION, email, day)
    if not record:
        return JsonResponse({"emoji": "", "label": "", "tags": []})
    return JsonResponse({
        "emoji": record.get("emoji", ""),
        "label": record.get("label", ""),
        "tags": record.get("tags") or [],
    })


def _save_mood(request, email):
    data, error = json_body(request)
    if error:
        return error

    day = data.get("date")
    if not _valid_date(day) or not data.get("emoji") or not data.get("label"):
        return JsonResponse({"error": "date, emoji and label are required"}, status=400)

    tags = data.get("tags") or []
    if not isinstance(tags, list):
        return JsonResponse({"error": "Invalid tags format"}, status=400)

    firestore_service.upsert_journal_record(
        JOURNAL_MOODS_COLLECTION, email, day, {"emoji": data["emoji"], "label": data["label"], "tags": tags}
    )
    return JsonResponse({"success": True})


def _get_sleep(request, email):
    day = request.GET.get("date")
    if not _valid_date(day):
        return JsonResponse({"error": "A valid date (YYYY-MM-DD) is required"}, status=400)

    record = firestore_service.get_journal_record(JOURNAL_SLEEP_COLLECTION, email, day)
    if not record:
        return JsonResponse({"quality": "", "hours": DEFAULT_SLEEP_HOURS})
    return JsonResponse({"quality": record.get("quality", ""), "hours": record.get("hours", DEFAULT_SLEEP_HOURS)})


def _save_sleep(request, email):
    data, error = json_body(request)
    if error:
        return error

    day = data.get("date")
    hours = data.get("hours")
    if not _valid_date(day) or not data.get("quality") or hours is None:
        return JsonResponse({"error": "date, quality and hours are required"}, status=400)
    if isinstance(hours, bool) or not isinstance(hours, (int, float)) or not 0 <= hours <= 24:
        return JsonResponse({"error": "hours must be a number between 0 and 24"}, status=400)

    firestore_service.upsert_journal_record(
        JOURNAL_SLEEP_COLLECTION, email, day, {"quality": data["quality"], "hours": hours}
    )
    return JsonResponse({"success": True})


def _get_activities(request, email):
    day = request.GET.get("date")
    if not _valid_date(day):
        return JsonResponse({"error": "A valid date (YYYY-MM-DD) is required"}, status=400)

    record = firestore_service.get_journal_record(JOURNAL_ACTIVITIES_COLLECTION, email, day)
    return JsonResponse({"activities": (record or {}).get("activities") or []})


def _save_activities(request, email):
    data, error = json_body(request)
    if error:
        return error

    day = data.get("date")
    activities = data.get("activities")
    if not _valid_date(day) or not isinstance(activities, list) or not all(isinstance(a, str) for a in activities):
        return JsonResponse({"error": "date and an activities array are required"}, status=400)

    # duplicates dropped, first occurrence wins
    unique = list(dict.fromkeys(activities))
    firestore_service.upsert_journal_record(JOURNAL_ACTIVITIES_COLLECTION, email, day, {"activities": unique})
    logger.info(f"[JOURNAL] Saved {len(unique)} activities ({len(activities)} received) for {day}")
    return JsonResponse({"success": True})


def _batch_activities(request, email):
    data, error = json_body(request)
    if error:
        return error

    dates = data.get("dates")
    if not isinstance(dates, list) or not all(isinstance(d, str) for d in dates):
        return JsonResponse({"error": "A dates array is required"}, status=400)

    records = firestore_service.journal_records_for_dates(JOURNAL_ACTIVITIES_COLLECTION, email, dates)
    return JsonResponse({
        "activities": {
            day: record["activities"]
            for day, record in records.items()
            if isinstance(record.get("activities"), list) and record["activities"]
        }
    })


@csrf_exempt
def journal_entry(request):
    return dispatch(request, "JOURNAL/ENTRY", {"GET": _get_entry, "POST": _save_entry})


@csrf_exempt
def journal_mood(request):
    return dispatch(request, "JOURNAL/MOOD", {"GET": _get_mood, "POST": _save_mood})


@csrf_exempt
def journal_sleep(request):
    return dispatch(request, "JOURNAL/SLEEP", {"GET": _get_sleep, "POST": _save_sleep})


@csrf_exempt
def journal_activities(request):
    return dispatch(request, "JOURNAL/ACTIVITIES", {"GET": _get_activities, "POST": _save_activities})


@csrf_exempt
def journal_activities_batch(request):
    """Activities for many dates at once: ``{"dates": [...]}`` -> ``{"activities": {date: [...]}}``."""
    return dispatch(request, "JOURNAL/ACTIVITIES/BATCH", {"POST": _batch_activities})
