import logging

from django.http import JsonResponse, HttpResponse
from django.views.decorators.csrf import csrf_exempt

from ..constants import TASK_SOURCES
from ..firebase_service import firestore_service
from ..http import dispatch, json_body
from ..serializers import serialize_task
from ..utils import parse_datetime

logger = logging.getLogger("flohub")


def _list_tasks(request, email):
    tasks = firestore_service.list_tasks(email)
    return JsonResponse([serialize_task(task) for task in tasks], safe=False)


def _create_task(request, email):
    data, error = json_body(request)
    if error:
        return error

    text = data.get("text")
    if not isinstance(text, str) or not text.strip():
        return JsonResponse({"error": "Invalid text"}, status=400)

    source = data.get("source")
    if source is not None and source not in TASK_SOURCES:
        return JsonResponse({"error": "Invalid source", "valid": list(TASK_SOURCES)}, status=400)

    tags = data.get("tags")
    if tags is not None and (not isinstance(tags, list) or not all(isinstance(t, str) for t in tags)):
        return JsonResponse({"error": "Invalid tags format"}, status=400)

    try:
        due_date = parse_datetime(data.get("dueDate"))
    except ValueError:
        return JsonResponse({"error": "Invalid dueDate"}, status=400)

    task = firestore_service.create_task(email, text.strip(), due_date=due_date, source=source, tags=tags)
    logger.info(f"[TASKS] Created task {task['id']} for {email}")
    return JsonResponse(serialize_task(task), status=201)


def _update_task(request, email):
    data, error = json_body(request)
    if error:
        return error

    task_id = data.get("id")
    if not task_id or ("done" not in data and "source" not in data):
        return JsonResponse({"error": "Invalid payload"}, status=400)

    changes = {}
    if "done" in data:
        if not isinstance(data["done"], bool):
            return JsonResponse({"error": "Invalid payload"}, status=400)
        changes["done"] = data["done"]
    if "source" in data:
        if data["source"] not in TASK_SOURCES:
            return JsonResponse({"error": "Invalid source", "valid": list(TASK_SOURCES)}, status=400)
        changes["source"] = data["source"]

    firestore_service.update_task(email, task_id, changes)
    return JsonResponse({"id": task_id, **changes})


def _delete_task(request, email):
    data, error = json_body(request)
    if error:
        return error

    task_id = data.get("id")
    if not task_id:
        return JsonResponse({"error": "Missing id"}, status=400)

    firestore_service.delete_task(email, task_id)
    return HttpResponse(status=204)


@csrf_exempt
def tasks(request):
    """List, create, update (done / source) and delete the caller's tasks."""
    return dispatch(request, "TASKS", {
        "GET": _list_tasks,
        "POST": _create_task,
        "PATCH": _update_task,
        "DELETE": _delete_task,
    })
