import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from ..firebase_service import firestore_service
from ..http import dispatch, json_body
from ..llm_service import summarize_meeting
from ..pdf_export import meeting_note_pdf
from ..serializers import serialize_meeting_note, serialize_document
from ..utils import run_async
from .notes import invalid_tags, owned_note, pdf_response, validate_update

logger = logging.getLogger("flohub")

MEETING_UPDATE_FIELDS = ("title", "content", "tags", "eventId", "eventTitle", "isAdhoc", "actions", "agenda")
ASSIGNED_TO_ME = "Me"


def _invalid_actions(actions) -> bool:
    return actions is not None and (
        not isinstance(actions, list) or not all(isinstance(a, dict) for a in actions)
    )


def _create_tasks_for_actions(email, actions, known_ids=()):
    """Actions assigned to "Me" become work tasks; ids in ``known_ids`` are skipped."""
    created = 0
    for action in actions:
        if action.get("assignedTo") != ASSIGNED_TO_ME:
            continue
        if action.get("id") is not None and action.get("id") in known_ids:
            continue
        firestore_service.create_task(
            email,
            action.get("description", ""),
            source="work",
            done=action.get("status") == "done",
        )
        created += 1
    return created


def _list_meeting_notes(request, email):
    meeting_notes = firestore_service.user_meeting_notes(email)
    return JsonResponse({"meetingNotes": [serialize_meeting_note(note) for note in meeting_notes]})


def _create_meeting_note(request, email):
    data, error = json_body(request)
    if error:
        return error

    content = data.get("content")
    if not isinstance(content, str) or not content.strip():
        return JsonResponse({"error": "Meeting note content is required"}, status=400)
    if invalid_tags(data.get("tags")):
        return JsonResponse({"error": "Invalid tags format"}, status=400)
    actions = data.get("actions")
    if _invalid_actions(actions):
        return JsonResponse({"error": "Invalid actions format"}, status=400)

    agenda = data.get("agenda")
    ai_summary = None
    if agenda and content:
        ai_summary = run_async(summarize_meeting(agenda, content, actions or []))

    fields = {"title": data.get("title"), "content": content, "tags": data.get("tags")}
    for key in ("eventId", "eventTitle", "agenda"):
        if data.get(key):
            fields[key] = data[key]
    if data.get("isAdhoc") is not None:
        fields["isAdhoc"] = data["isAdhoc"]
    if actions:
        fields["actions"] = actions
    if ai_summary:
        fields["aiSummary"] = ai_summary

    note_id = firestore_service.create_note(email, fields)
    tasks_created = _create_tasks_for_actions(email, actions or [])
    logger.info(f"[MEETINGS/CREATE] Created meeting note {note_id}, {tasks_created} tasks from actions")

    return JsonResponse({"success": True, "noteId": note_id}, status=201)


def _update_meeting_note(request, email):
    data, error = json_body(request)
    if error:
        return error

    error = validate_update(data, MEETING_UPDATE_FIELDS, label="Meeting Note")
    if error:
        return error
    if _invalid_actions(data.get("actions")):
        return JsonResponse({"error": "Invalid actions format"}, status=400)

    note, error = owned_note(data["id"], email, label="Meeting Note")
    if error:
        return error

    changes = {field: data[field] for field in MEETING_UPDATE_FIELDS if field in data}

    if data.get("actions"):
        known_ids = {a.get("id") for a in note.get("actions") or [] if a.get("id") is not None}
        _create_tasks_for_actions(email, data["actions"], known_ids)

    agenda = data["agenda"] if "agenda" in data else note.get("agenda")
    content = data["content"] if "content" in data else note.get("content")
    actions = data["actions"] if "actions" in data else note.get("actions") or []
    if agenda and content:
        ai_summary = run_async(summarize_meeting(agenda, content, actions or []))
        if ai_summary:
            changes["aiSummary"] = ai_summary

    updated = firestore_service.update_note(data["id"], changes)
    return JsonResponse({"success": True, "updatedNote": serialize_document(updated)})


def _delete_meeting_note(request, email):
    data, error = json_body(request)
    if error:
        return error

    note_id = data.get("id")
    if not note_id:
        return JsonResponse({"error": "Meeting Note ID is required"}, status=400)

    _, error = owned_note(note_id, email, label="Meeting Note")
    if error:
        return error

    firestore_service.delete_notes([note_id])
    return JsonResponse({"message": "Meeting note deleted successfully"})


def _export_meeting_note(request, email):
    data, error = json_body(request)
    if error:
        return error

    note_id = data.get("id")
    if not isinstance(note_id, str) or not note_id:
        return JsonResponse({"error": "Meeting Note ID is required"}, status=400)

    note, error = owned_note(note_id, email, label="Meeting Note")
    if error:
        return error

    pdf = meeting_note_pdf(note)
    logger.info(f"[MEETINGS/EXPORT] Rendered {len(pdf)} bytes for meeting note {note_id}")
    return pdf_response(pdf, f"{note.get('title') or 'Meeting Note'}_{note_id}.pdf")


@csrf_exempt
def meetings(request):
    return dispatch(request, "MEETINGS", {"GET": _list_meeting_notes})


@csrf_exempt
def meeting_create(request):
    return dispatch(request, "MEETINGS/CREATE", {"POST": _create_meeting_note})


@csrf_exempt
def meeting_update(request):
    return dispatch(request, "MEETINGS/UPDATE", {"PUT": _update_meeting_note, "PATCH": _update_meeting_note})


@csrf_exempt
def meeting_delete(request):
    return dispatch(request, "MEETINGS/DELETE", {"DELETE": _delete_meeting_note})


@csrf_exempt
def meeting_export_pdf(request):
    return dispatch(request, "MEETINGS/EXPORT", {"POST": _export_meeting_note})
