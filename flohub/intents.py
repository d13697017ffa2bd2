"""Regex intent detection for assistant shortcuts ("add task ...", "add event ...")."""
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from django.utils import timezone

TASK_PATTERN = re.compile(r"(?:add|new) task(?: called)? (.+?)(?: due ([\w\s]+))?$", re.IGNORECASE)
EVENT_PATTERN = re.compile(r"(?:add|new|schedule) event (.+)", re.IGNORECASE)
EVENT_TRIGGERS = ("add event", "new event", "schedule event")
IN_DAYS_PATTERN = re.compile(r"^in (\d+) days?$")
NEXT_WEEKDAY_PATTERN = re.compile(r"^next (\w+)$")

# Monday first, matching datetime.weekday()
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@dataclass
class TaskIntent:
    text: str
    due_phrase: Optional[str] = None
    due_date: Optional[datetime] = None


@dataclass
class EventIntent:
    summary: str


def _end_of_day(value: datetime) -> datetime:
    return value.replace(hour=23, minute=59, second=59, microsecond=999000)


def parse_due_date(phrase: str, now: datetime = None) -> Optional[datetime]:
    """Resolve "today", "tomorrow", "in N days" and "next <weekday>" to end of that day."""
    now = timezone.localtime(now or timezone.now())

    if phrase == "today":
        return _end_of_day(now)

    if phrase == "tomorrow":
        return _end_of_day(now + timedelta(days=1))

    match = IN_DAYS_PATTERN.match(phrase)
    if match:
        return _end_of_day(now + timedelta(days=int(match.group(1))))

    match = NEXT_WEEKDAY_PATTERN.match(phrase)
    if match and match.group(1).lower() in WEEKDAYS:
        target = WEEKDAYS.index(match.group(1).lower())
        days_ahead = (target - now.weekday()) % 7 or 7
        return _end_of_day(now + timedelta(days=days_ahead))

    return None


def detect_task_intent(message: str, now: datetime = None) -> Optional[TaskIntent]:
    match = TASK_PATTERN.search(message)
    if not match or not match.group(1):
        return None
    text = match.group(1).strip()
    due_phrase = match.group(2).strip().lower() if match.group(2) else None
    due_date = parse_due_date(due_phrase, now) if due_phrase else None
    return TaskIntent(text=text, due_phrase=due_phrase, due_date=due_date)


def detect_event_intent(message: str) -> Optional[EventIntent]:
    lowered = message.lower()
    if not any(trigger in lowered for trigger in EVENT_TRIGGERS):
        return None
    match = EVENT_PATTERN.search(message)
    if not match or not match.group(1):
        return None
    return EventIntent(summary=match.group(1).strip())
