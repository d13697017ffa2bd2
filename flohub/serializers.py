"""JSON shapes returned by the API for Firestore records."""
from typing import Dict, Any

from .utils import to_iso


def serialize_task(task: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": task["id"],
        "text": task.get("text"),
        "done": bool(task.get("done")),
        "dueDate": to_iso(task.get("dueDate")),
        "createdAt": to_iso(task.get("createdAt")),
        "source": task.get("source"),
        "tags": task.get("tags") or [],
    }


def serialize_note(note: Dict[str, Any]) -> Dict[str, Any]:
    data = {
        "id": note["id"],
        "title": note.get("title") or "",
        "content": note.get("content"),
        "tags": note.get("tags") or [],
        "createdAt": to_iso(note.get("createdAt")),
    }
    for key in ("source", "eventId", "eventTitle", "isAdhoc"):
        if note.get(key) is not None:
            data[key] = note[key]
    return data


def serialize_meeting_note(note: Dict[str, Any]) -> Dict[str, Any]:
    data = serialize_note(note)
    data["actions"] = note.get("actions") or []
    for key in ("agenda", "aiSummary"):
        if note.get(key):
            data[key] = note[key]
    return data


def serialize_conversation(conversation: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": conversation.get("id"),
        "userId": conversation.get("userId"),
        "messages": [
            {**message, "timestamp": to_iso(message.get("timestamp"))}
            for message in conversation.get("messages") or []
        ],
        "createdAt": to_iso(conversation.get("createdAt")),
    }


def serialize_document(data: Dict[str, Any]) -> Dict[str, Any]:
    """Generic record with timestamps rendered as ISO strings."""
    return {
        key: to_iso(value) if hasattr(value, "isoformat") else value
        for key, value in data.items()
    }
