from django.urls import path
from . import views

urlpatterns = [
    # Health check
    path("health", views.health, name="health"),

    # Tasks
    path("tasks", views.tasks, name="tasks"),

    # Notes and meeting notes (top-level "notes" collection)
    path("notes", views.notes, name="notes"),
    path("notes/create", views.note_create, name="note_create"),
    path("notes/update", views.note_update, name="note_update"),
    path("notes/delete", views.note_delete, name="note_delete"),
    path("notes/export-pdf", views.note_export_pdf, name="note_export_pdf"),
    path("meetings", views.meetings, name="meetings"),
    path("meetings/create", views.meeting_create, name="meeting_create"),
    path("meetings/update", views.meeting_update, name="meeting_update"),
    path("meetings/delete", views.meeting_delete, name="meeting_delete"),
    path("meetings/export-pdf", views.meeting_export_pdf, name="meeting_export_pdf"),
    path("search", views.search_by_tag, name="search_by_tag"),

    # Assistant
    path("assistant", views.assistant, name="assistant"),
    path("assistant/conversations", views.conversations, name="conversations"),

    # Web push
    path("notifications/subscribe", views.notification_subscribe, name="notification_subscribe"),
    path("notifications/unsubscribe", views.notification_unsubscribe, name="notification_unsubscribe"),
    path("notifications/send", views.notification_send, name="notification_send"),
    # Cron entry point, requires X-API-Key
    path("notifications/scheduler", views.notification_scheduler, name="notification_scheduler"),

    path("user-settings", views.user_settings, name="user_settings"),

    # Habits
    path("habits", views.habits, name="habits"),
    path("habits/completions", views.habit_completions, name="habit_completions"),
    path("habits/stats", views.habit_stats, name="habit_stats"),

    # Journal
    path("journal/entry", views.journal_entry, name="journal_entry"),
    path("journal/mood", views.journal_mood, name="journal_mood"),
    path("journal/sleep", views.journal_sleep, name="journal_sleep"),
    path("journal/activities", views.journal_activities, name="journal_activities"),
    path("journal/activities/batch", views.journal_activities_batch, name="journal_activities_batch"),
]
