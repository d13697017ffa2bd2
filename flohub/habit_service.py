"""
Habit tracker persistence and statistics.

habits/{habitId}: name, description, category, frequency, customDays, color,
icon, userId, createdAt / updatedAt (epoch milliseconds).
habitCompletions/{id}: habitId, userId, date (YYYY-MM-DD), completed, notes,
timestamp (epoch milliseconds).
"""
import calendar
import logging
from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta, timezone as dt_timezone
from typing import Optional, Dict, Any, List

from .constants import HABITS_COLLECTION, HABIT_COMPLETIONS_COLLECTION
from .firebase_service import firestore_service, _with_id
from .utils import epoch_ms

logger = logging.getLogger("flohub")

HABIT_FIELDS = ("name", "description", "category", "frequency", "customDays", "color", "icon")


@dataclass
class HabitStats:
    habitId: str
    currentStreak: int = 0
    longestStreak: int = 0
    totalCompletions: int = 0
    completionRate: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def month_bounds(year: int, month: int):
    """First and last ISO date of a month given as 0-11."""
    month = month + 1
    if not 1 <= month <= 12:
        raise ValueError("month must be between 0 and 11")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1).isoformat(), date(year, month, last_day).isoformat()


def current_streak(completed_dates, today: date) -> int:
    """Consecutive completed days ending today, or yesterday when today is still open."""
    if today.isoformat() in completed_dates:
        cursor = today
    elif (today - timedelta(days=1)).isoformat() in completed_dates:
        cursor = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while cursor.isoformat() in completed_dates:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(completed_dates) -> int:
    longest = 0
    run = 0
    previous = None
    for value in sorted(completed_dates):
        day = date.fromisoformat(value)
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day
    return longest


def calculate_stats(habit: Dict[str, Any], completions: List[Dict[str, Any]], today: date) -> HabitStats:
    completed_dates = {c["date"] for c in completions if c.get("completed") is True and c.get("date")}
    total = len([c for c in completions if c.get("completed") is True])

    created_ms = habit.get("createdAt") or epoch_ms()
    created_on = datetime.fromtimestamp(created_ms / 1000, tz=dt_timezone.utc).date()
    days_since_creation = max((today - created_on).days, 0) + 1

    return HabitStats(
        habitId=habit["id"],
        currentStreak=current_streak(completed_dates, today),
        longestStreak=longest_streak(completed_dates),
        totalCompletions=total,
        completionRate=round(total / days_since_creation * 100),
    )


class HabitService:
    """Habit and completion documents for a single Firestore client."""

    def __init__(self, store=None):
        self._store = store or firestore_service

    @property
    def db(self):
        return self._store.db

    def list_habits(self, email: str) -> List[Dict[str, Any]]:
        query = self.db.collection(HABITS_COLLECTION).where("userId", "==", email)
        habits = [_with_id(doc) for doc in query.stream()]
        # sorted in memory to avoid requiring a composite index
        return sorted(habits, key=lambda h: h.get("createdAt") or 0, reverse=True)

    def get_habit(self, habit_id: str) -> Optional[Dict[str, Any]]:
        doc = self.db.collection(HABITS_COLLECTION).document(habit_id).get()
        if not doc.exists:
            return None
        return _with_id(doc)

    def create_habit(self, email: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        now = epoch_ms()
        habit = {key: fields[key] for key in HABIT_FIELDS if key in fields}
        habit.update({"userId": email, "createdAt": now, "updatedAt": now})
        _, doc_ref = self.db.collection(HABITS_COLLECTION).add(habit)
        logger.info(f"Created habit {doc_ref.id} for {email}")
        return {"id": doc_ref.id, **habit}

    def update_habit(self, habit_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        changes = {key: fields[key] for key in HABIT_FIELDS if key in fields}
        changes["updatedAt"] = epoch_ms()
        doc_ref = self.db.collection(HABITS_COLLECTION).document(habit_id)
        doc_ref.update(changes)
        return _with_id(doc_ref.get())

    def delete_habit(self, habit_id: str) -> int:
        """Delete a habit and its completions; returns the number of completions removed."""
        self.db.collection(HABITS_COLLECTION).document(habit_id).delete()

        query = self.db.collection(HABIT_COMPLETIONS_COLLECTION).where("habitId", "==", habit_id)
        docs = list(query.stream())
        if not docs:
            return 0
        batch = self.db.batch()
        for doc in docs:
            batch.delete(doc.reference)
        batch.commit()
        return len(docs)

    def completions_for_month(self, email: str, year: int, month: int) -> List[Dict[str, Any]]:
        start, end = month_bounds(year, month)
        query = self.db.collection(HABIT_COMPLETIONS_COLLECTION).where("userId", "==", email)
        return [
            completion for completion in (_with_id(doc) for doc in query.stream())
            if start <= completion.get("date", "") <= end
        ]

    def completions_for_habit(self, email: str, habit_id: str) -> List[Dict[str, Any]]:
        query = (
            self.db.collection(HABIT_COMPLETIONS_COLLECTION)
            .where("userId", "==", email)
            .where("habitId", "==", habit_id)
        )
        return [_with_id(doc) for doc in query.stream()]

    def toggle_completion(self, email: str, habit_id: str, day: str, notes: str = "") -> Dict[str, Any]:
        """Mark ``day`` completed, or flip an existing completion for that day."""
        existing = [c for c in self.completions_for_habit(email, habit_id) if c.get("date") == day]
        now = epoch_ms()

        if not existing:
            completion = {
                "habitId": habit_id,
                "userId": email,
                "date": day,
                "completed": True,
                "notes": notes or "",
                "timestamp": now,
            }
            _, doc_ref = self.db.collection(HABIT_COMPLETIONS_COLLECTION).add(completion)
            return {"id": doc_ref.id, **completion}

        current = existing[0]
        changes = {
            "completed": not current.get("completed", False),
            "notes": notes or current.get("notes") or "",
            "timestamp": now,
        }
        self.db.collection(HABIT_COMPLETIONS_COLLECTION).document(current["id"]).update(changes)
        return {**current, **changes}

    def stats(self, email: str, habit: Dict[str, Any], today: date) -> HabitStats:
        return calculate_stats(habit, self.completions_for_habit(email, habit["id"]), today)


habit_service = HabitService()
