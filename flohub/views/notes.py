import logging
import re

from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from ..firebase_service import firestore_service
from ..http import dispatch, json_body
from ..pdf_export import notes_pdf
from ..serializers import serialize_note

logger = logging.getLogger("flohub")

NOTE_UPDATE_FIELDS = ("title", "content", "tags", "eventId", "eventTitle", "isAdhoc")


def invalid_tags(tags) -> bool:
    return tags is not None and (not isinstance(tags, list) or not all(isinstance(t, str) for t in tags))


def validate_update(data, fields, label="Note"):
    """Shared checks for note and meeting note updates; returns an error response or None."""
    note_id = data.get("id")
    if not isinstance(note_id, str) or not note_id.strip():
        return JsonResponse({"error": f"{label} ID is required"}, status=400)
    if not any(field in data for field in fields):
        return JsonResponse({"error": "No update fields provided"}, status=400)
    if "title" in data and not isinstance(data["title"], str):
        return JsonResponse({"error": "Invalid title format"}, status=400)
    if "content" in data and not isinstance(data["content"], str):
        return JsonResponse({"error": "Invalid content format"}, status=400)
    if invalid_tags(data.get("tags")):
        return JsonResponse({"error": "Invalid tags format"}, status=400)
    return None


def owned_note(note_id, email, label="Note"):
    """Fetch a note the caller owns; returns (note, error_response)."""
    note = firestore_service.get_note(note_id)
    if not note:
        return None, JsonResponse({"error": f"{label} not found"}, status=404)
    if note.get("userId") != email:
        return None, JsonResponse({"error": f"Unauthorized to update this {label.lower()}"}, status=403)
    return note, None


def pdf_response(pdf: bytes, filename: str) -> HttpResponse:
    # quotes and line breaks would break the header value
    safe_name = re.sub(r'["\\\r\n]', "_", filename)
    response = HttpResponse(pdf, content_type="application/pdf")
    response["Content-Disposition"] = f'attachment; filename="{safe_name}"'
    return response


def _list_notes(request, email):
    notes = firestore_service.user_notes(email)
    return JsonResponse({"notes": [serialize_note(note) for note in notes]})


def _create_note(request, email):
    data, error = json_body(request)
    if error:
        return error

    content = data.get("content")
    if not isinstance(content, str) or not content.strip():
        return JsonResponse({"error": "Note content is required"}, status=400)
    if invalid_tags(data.get("tags")):
        return JsonResponse({"error": "Invalid tags format"}, status=400)

    fields = {"title": data.get("title"), "content": content, "tags": data.get("tags")}
    for key in ("eventId", "eventTitle", "isAdhoc", "source"):
        if data.get(key) is not None:
            fields[key] = data[key]

    note_id = firestore_service.create_note(email, fields)
    logger.info(f"[NOTES] Created note {note_id} for {email}")
    return JsonResponse({"success": True, "noteId": note_id}, status=201)


def _update_note(request, email):
    data, error = json_body(request)
    if error:
        return error

    error = validate_update(data, NOTE_UPDATE_FIELDS)
    if error:
        return error

    _, error = owned_note(data["id"], email)
    if error:
        return error

    changes = {field: data[field] for field in NOTE_UPDATE_FIELDS if field in data}
    firestore_service.update_note(data["id"], changes)
    return JsonResponse({"success": True})


def _delete_notes(request, email):
    data, error = json_body(request)
    if error:
        return error

    ids = data.get("ids")
    if not isinstance(ids, list) or not ids:
        return JsonResponse({"error": "An array of Note IDs is required"}, status=400)

    owned = []
    skipped = []
    for note_id in ids:
        note = firestore_service.get_note(note_id) if isinstance(note_id, str) else None
        if note and note.get("userId") == email:
            owned.append(note_id)
        else:
            skipped.append(note_id)

    deleted = firestore_service.delete_notes(owned)
    if skipped:
        logger.warning(f"[NOTES/DELETE] Skipped {len(skipped)} notes not owned by {email}")

    return JsonResponse({
        "message": f"{deleted} notes deleted successfully",
        "deleted": deleted,
        "skipped": skipped,
    })


def _export_notes(request, email):
    data, error = json_body(request)
    if error:
        return error

    ids = data.get("ids")
    if not isinstance(ids, list) or not ids:
        return JsonResponse({"error": "An array of Note IDs is required"}, status=400)

    found = [firestore_service.get_note(note_id) if isinstance(note_id, str) else None for note_id in ids]
    owned = [note for note in found if note and note.get("userId") == email]
    if not owned:
        return JsonResponse({"error": "No notes found"}, status=404)
    if len(owned) < len(ids):
        logger.warning(f"[NOTES/EXPORT] Skipped {len(ids) - len(owned)} notes not owned by {email}")

    return pdf_response(notes_pdf(owned), "exported_notes.pdf")


@csrf_exempt
def notes(request):
    return dispatch(request, "NOTES", {"GET": _list_notes})


@csrf_exempt
def note_create(request):
    return dispatch(request, "NOTES/CREATE", {"POST": _create_note})


@csrf_exempt
def note_update(request):
    return dispatch(request, "NOTES/UPDATE", {"PUT": _update_note, "PATCH": _update_note})


@csrf_exempt
def note_delete(request):
    return dispatch(request, "NOTES/DELETE", {"DELETE": _delete_notes})


@csrf_exempt
def note_export_pdf(request):
    return dispatch(request, "NOTES/EXPORT", {"POST": _export_notes})
