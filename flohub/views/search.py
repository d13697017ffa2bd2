from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from ..firebase_service import firestore_service
from ..http import dispatch
from ..serializers import serialize_note, serialize_task


def _search_by_tag(request, email):
    tag = request.GET.get("tag")
    if not tag:
        return JsonResponse({"error": "Missing or invalid tag parameter"}, status=400)

    items = []
    for note in firestore_service.notes_with_tag(email, tag):
        item = serialize_note(note)
        item.setdefault("source", "notespage")
        item["actions"] = note.get("actions") or []
        items.append(item)
    items.extend(serialize_task(task) for task in firestore_service.tasks_with_tag(email, tag))

    # ISO strings share one UTC offset, so they sort chronologically
    items.sort(key=lambda item: item.get("createdAt") or "", reverse=True)
    return JsonResponse({"items": items})


@csrf_exempt
def search_by_tag(request):
    """Notes and tasks carrying ``?tag=``, newest first."""
    return dispatch(request, "SEARCH", {"GET": _search_by_tag})
