import logging
from datetime import date

from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt

from ..constants import HABIT_FREQUENCIES
from ..habit_service import habit_service
from ..http import dispatch, json_body

logger = logging.getLogger("flohub")


def _owned_habit(habit_id, email):
    """Returns (habit, error_response)."""
    if not habit_id:
        return None, JsonResponse({"error": "Habit ID is required"}, status=400)
    habit = habit_service.get_habit(habit_id)
    if not habit:
        return None, JsonResponse({"error": "Habit not found"}, status=404)
    if habit.get("userId") != email:
        return None, JsonResponse({"error": "Unauthorized"}, status=403)
    return habit, None


def _invalid_frequency(data):
    return "frequency" in data and data["frequency"] not in HABIT_FREQUENCIES


def _list_habits(request, email):
    return JsonResponse(habit_service.list_habits(email), safe=False)


def _create_habit(request, email):
    data, error = json_body(request)
    if error:
        return error

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        return JsonResponse({"error": "Habit name is required"}, status=400)
    if _invalid_frequency(data):
        return JsonResponse({"error": f"Invalid frequency, expected one of {', '.join(HABIT_FREQUENCIES)}"}, status=400)

    habit = habit_service.create_habit(email, {"frequency": "daily", **data, "name": name.strip()})
    return JsonResponse(habit, status=201)


def _update_habit(request, email):
    data, error = json_body(request)
    if error:
        return error

    _, error = _owned_habit(data.get("id"), email)
    if error:
        return error
    if _invalid_frequency(data):
        return JsonResponse({"error": f"Invalid frequency, expected one of {', '.join(HABIT_FREQUENCIES)}"}, status=400)

    habit = habit_service.update_habit(data["id"], data)
    return JsonResponse(habit)


def _delete_habit(request, email):
    habit_id = request.GET.get("id")
    if not habit_id:
        data, error = json_body(request)
        if error:
            return error
        habit_id = data.get("id")

    _, error = _owned_habit(habit_id, email)
    if error:
        return error

    removed = habit_service.delete_habit(habit_id)
    logger.info(f"[HABITS] Deleted habit {habit_id} and {removed} completions for {email}")
    return JsonResponse({"success": True})


def _month_completions(request, email):
    try:
        year = int(request.GET["year"])
        month = int(request.GET["month"])
        return JsonResponse(habit_service.completions_for_month(email, year, month), safe=False)
    except (KeyError, ValueError):
        return JsonResponse({"error": "Valid year and month (0-11) are required"}, status=400)


def _toggle_completion(request, email):
    data, error = json_body(request)
    if error:
        return error

    day = data.get("date")
    if not data.get("habitId") or not isinstance(day, str):
        return JsonResponse({"error": "habitId and date are required"}, status=400)
    try:
        date.fromisoformat(day)
    except ValueError:
        return JsonResponse({"error": "date must be YYYY-MM-DD"}, status=400)

    _, error = _owned_habit(data["habitId"], email)
    if error:
        return error

    completion = habit_service.toggle_completion(email, data["habitId"], day, data.get("notes") or "")
    return JsonResponse(completion)


def _habit_stats(request, email):
    habit, error = _owned_habit(request.GET.get("habitId"), email)
    if error:
        return error

    stats = habit_service.stats(email, habit, timezone.now().date())
    return JsonResponse(stats.to_dict())


@csrf_exempt
def habits(request):
    return dispatch(request, "HABITS", {
        "GET": _list_habits,
        "POST": _create_habit,
        "PATCH": _update_habit,
        "DELETE": _delete_habit,
    })


@csrf_exempt
def habit_completions(request):
    return dispatch(request, "HABITS/COMPLETIONS", {"GET": _month_completions, "POST": _toggle_completion})


@csrf_exempt
def habit_stats(request):
    return dispatch(request, "HABITS/STATS", {"GET": _habit_stats})
