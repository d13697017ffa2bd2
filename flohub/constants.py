import os

# Firestore collections
USERS_COLLECTION = "users"
TASKS_SUBCOLLECTION = "tasks"
CALENDAR_EVENTS_SUBCOLLECTION = "calendarEvents"
SETTINGS_SUBCOLLECTION = "settings"
SETTINGS_DOCUMENT = "userSettings"
NOTES_COLLECTION = "notes"
CONVERSATIONS_COLLECTION = "conversations"
PUSH_SUBSCRIPTIONS_COLLECTION = "pushSubscriptions"
HABITS_COLLECTION = "habits"
HABIT_COMPLETIONS_COLLECTION = "habitCompletions"
JOURNAL_ENTRIES_COLLECTION = "journal_entries"
JOURNAL_MOODS_COLLECTION = "journal_moods"
JOURNAL_SLEEP_COLLECTION = "journal_sleep"
JOURNAL_ACTIVITIES_COLLECTION = "journal_activities"

# Firestore caps the values of an "in" filter
FIRESTORE_IN_LIMIT = 10

# Same value as google.cloud.firestore.Query.DESCENDING
DESCENDING = "DESCENDING"
ASCENDING = "ASCENDING"

TASK_SOURCES = ("personal", "work")
HABIT_FREQUENCIES = ("daily", "weekly", "custom")

# Reminder offsets in minutes before start / due time
MEETING_REMINDERS = (15, 5)
MEETING_REMINDER_TOLERANCE = 1
TASK_REMINDERS = (60 * 24, 60)
TASK_REMINDER_TOLERANCE = 5
SCHEDULER_QUERY_LIMIT = 10

# Assistant context selection
CONTEXT_TOP_K = 5
EMBEDDING_BATCH_SIZE = 5

OPENAI_CHAT_MODEL = os.environ.get("OPENAI_CHAT_MODEL", "gpt-3.5-turbo")
OPENAI_EMBEDDING_MODEL = os.environ.get("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")

ASSISTANT_PERSONA = (
    "You are FloCat, a friendly, slightly quirky AI assistant. You provide summaries, "
    "add tasks, schedule events, and cheerfully help users stay on track. You are also a cat 😺."
)

# Web push defaults
DEFAULT_NOTIFICATION_ICON = "/icons/icon-192x192.png"
DEFAULT_NOTIFICATION_BADGE = "/icons/icon-72x72.png"
DEFAULT_NOTIFICATION_TAG = "default"
PUSH_TTL_SECONDS = 60 * 60

FLOHUB_BASE_URL = os.environ.get("FLOHUB_BASE_URL", "http://localhost:8000")

SESSION_COOKIE_NAMES = (
    "__Secure-next-auth.session-token",
    "next-auth.session-token",
)

DEFAULT_ACTIVE_WIDGETS = ["tasks", "calendar", "ataglance", "quicknote", "habit-tracker"]

DEFAULT_SLEEP_HOURS = 7
