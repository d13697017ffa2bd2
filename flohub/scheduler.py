"""
Reminder scheduler for upcoming meetings and tasks.

Each run scans every user holding a push subscription and sends a reminder
when an event start or task due time falls inside one of the reminder
windows. Runs are triggered externally (cron hitting the scheduler
endpoint). No "already notified" state is stored, so a reminder fires on
every run that lands inside its window.
"""
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone as dt_timezone
from typing import Optional, Dict, Any, List, Sequence

from django.utils import timezone

from .constants import (
    MEETING_REMINDERS,
    MEETING_REMINDER_TOLERANCE,
    SCHEDULER_QUERY_LIMIT,
    TASK_REMINDERS,
    TASK_REMINDER_TOLERANCE,
)
from .firebase_service import firestore_service
from .notification_client import NotificationSendError, send_notification
from .utils import normalize_datetime, parse_datetime

logger = logging.getLogger("flohub")


@dataclass
class SchedulerReport:
    usersChecked: int = 0
    meetingReminders: int = 0
    taskReminders: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def minutes_until(target: datetime, now: datetime) -> float:
    return (target - now).total_seconds() / 60


def matching_reminder(minutes: float, reminders: Sequence[int], tolerance: int) -> Optional[int]:
    """The reminder offset whose window ``(r - tolerance, r]`` contains ``minutes``."""
    for reminder in reminders:
        if reminder - tolerance < minutes <= reminder:
            return reminder
    return None


def task_reminder_text(reminder_minutes: int) -> str:
    if reminder_minutes >= 60:
        hours = round(reminder_minutes / 60)
        return f"due in {hours} hour{'s' if hours > 1 else ''}"
    return f"due in {reminder_minutes} minutes"


def event_start(event: Dict[str, Any]) -> Optional[datetime]:
    start = event.get("start") or {}
    return parse_datetime(start.get("dateTime") or start.get("date"))


class NotificationScheduler:

    def __init__(self, store=None, sender=None):
        self._store = store or firestore_service
        self._send = sender or send_notification

    def _deliver(self, report: SchedulerReport, user_email: str, title: str, body: str, **kwargs) -> bool:
        try:
            self._send(user_email, title, body, **kwargs)
            return True
        except NotificationSendError as e:
            logger.error(f"[SCHEDULER] {e}")
            report.errors.append(str(e))
            return False

    def check_upcoming_meetings(self, now: datetime, emails: List[str], report: SchedulerReport) -> None:
        logger.info(f"[SCHEDULER] Checking upcoming meetings for {len(emails)} users")

        for user_email in emails:
            if not self._store.user_exists(user_email):
                logger.info(f"[SCHEDULER] No user document for {user_email}, skipping meetings")
                continue

            events = self._store.upcoming_calendar_events(user_email, now, SCHEDULER_QUERY_LIMIT)
            for event in events:
                start = event_start(event)
                if start is None:
                    continue
                minutes = minutes_until(start, now)
                if matching_reminder(minutes, MEETING_REMINDERS, MEETING_REMINDER_TOLERANCE) is None:
                    continue

                summary = event.get("summary", "")
                logger.info(f"[SCHEDULER] Meeting reminder for {summary} to {user_email}")
                sent = self._deliver(
                    report,
                    user_email,
                    f"Meeting Reminder: {summary}",
                    f'Your meeting "{summary}" starts in {round(minutes)} minutes',
                    data={
                        "eventId": event["id"],
                        "url": f"/dashboard/meetings?id={event['id']}",
                        "type": "meeting",
                    },
                    tag=f"meeting-{event['id']}",
                    actions=[{"action": "view_meeting", "title": "View Details"}],
                )
                if sent:
                    report.meetingReminders += 1

    def check_upcoming_tasks(self, now: datetime, emails: List[str], report: SchedulerReport) -> None:
        logger.info(f"[SCHEDULER] Checking upcoming tasks for {len(emails)} users")

        for user_email in emails:
            tasks = self._store.upcoming_tasks(user_email, now, SCHEDULER_QUERY_LIMIT)
            for task in tasks:
                due = normalize_datetime(task.get("dueDate"))
                if due is None:
                    continue
                reminder = matching_reminder(minutes_until(due, now), TASK_REMINDERS, TASK_REMINDER_TOLERANCE)
                if reminder is None:
                    continue

                text = task.get("text", "")
                logger.info(f"[SCHEDULER] Task reminder for {text} to {user_email}")
                sent = self._deliver(
                    report,
                    user_email,
                    f"Task Reminder: {text}",
                    f'Your task "{text}" is {task_reminder_text(reminder)}',
                    data={
                        "taskId": task["id"],
                        "url": f"/dashboard/tasks?id={task['id']}",
                        "type": "task",
                    },
                    tag=f"task-{task['id']}",
                    actions=[
                        {"action": "view_task", "title": "View Task"},
                        {"action": "mark_done", "title": "Mark as Done"},
                    ],
                )
                if sent:
                    report.taskReminders += 1

    def run(self, now: datetime = None) -> SchedulerReport:
        # calendar event times are stored as UTC ISO strings
        now = (now or timezone.now()).astimezone(dt_timezone.utc)
        report = SchedulerReport()
        logger.info(f"[SCHEDULER] Running notification scheduler at {now.isoformat()}")

        emails = self._store.subscribed_user_emails()
        report.usersChecked = len(emails)
        if not emails:
            logger.info("[SCHEDULER] No push subscriptions found")
            return report

        for check in (self.check_upcoming_meetings, self.check_upcoming_tasks):
            try:
                check(now, emails, report)
            except Exception as e:
                logger.exception(f"[SCHEDULER] {check.__name__} failed: {e}")
                report.errors.append(f"{check.__name__}: {e}")

        logger.info(
            f"[SCHEDULER] Completed: {report.meetingReminders} meeting and "
            f"{report.taskReminders} task reminders"
        )
        return report


def run_notification_scheduler(now: datetime = None) -> SchedulerReport:
    return NotificationScheduler().run(now)
