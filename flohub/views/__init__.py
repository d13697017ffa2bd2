from .health import health
from .tasks import tasks
from .notes import notes, note_create, note_update, note_delete, note_export_pdf
from .meetings import meetings, meeting_create, meeting_update, meeting_delete, meeting_export_pdf
from .search import search_by_tag
from .assistant import assistant, conversations
from .notifications import (
    subscribe as notification_subscribe,
    unsubscribe as notification_unsubscribe,
    send as notification_send,
    scheduler as notification_scheduler,
)
from .settings import user_settings
from .habits import habits, habit_completions, habit_stats
from .journal import journal_entry, journal_mood, journal_sleep, journal_activities, journal_activities_batch

__all__ = [
    "health",
    "tasks",
    "notes",
    "note_create",
    "note_update",
    "note_delete",
    "note_export_pdf",
    "meetings",
    "meeting_create",
    "meeting_update",
    "meeting_delete",
    "meeting_export_pdf",
    "search_by_tag",
    "assistant",
    "conversations",
    "notification_subscribe",
    "notification_unsubscribe",
    "notification_send",
    "notification_scheduler",
    "user_settings",
    "habits",
    "habit_completions",
    "habit_stats",
    "journal_entry",
    "journal_mood",
    "journal_sleep",
    "journal_activities",
    "journal_activities_batch",
]
