"""
Firebase service for Django - Firestore access for FloHub resources.

Firestore Collections:
- users/{email}: user document (existence marks an onboarded user)
- users/{email}/tasks/{taskId}: tasks with text, done, dueDate, source, tags
- users/{email}/calendarEvents/{eventId}: events with start.dateTime / start.date
- users/{email}/settings/userSettings: dashboard settings document
- notes/{noteId}: notes and meeting notes, owned through userId (email)
- conversations/{id}: saved assistant conversations
- pushSubscriptions/{base64(endpoint)}: Web Push subscriptions per userEmail
- journal_entries, journal_moods, journal_sleep, journal_activities: one document
  per user and date
"""
import os
import json
import logging
from typing import Optional, Dict, Any, List
from datetime import datetime

import firebase_admin
from django.utils import timezone
from firebase_admin import credentials, firestore

from .constants import (
    ASCENDING,
    CALENDAR_EVENTS_SUBCOLLECTION,
    CONVERSATIONS_COLLECTION,
    DESCENDING,
    FIRESTORE_IN_LIMIT,
    NOTES_COLLECTION,
    PUSH_SUBSCRIPTIONS_COLLECTION,
    SETTINGS_DOCUMENT,
    SETTINGS_SUBCOLLECTION,
    TASKS_SUBCOLLECTION,
    USERS_COLLECTION,
)
from .utils import subscription_id

logger = logging.getLogger("flohub")

# Process-wide Firebase state, created on first use
_firebase_app = None
_firestore_client = None
_firebase_init_attempted = False


def _load_credentials():
    """Service account from FIREBASE_SERVICE_ACCOUNT (JSON) or FIREBASE_SERVICE_ACCOUNT_PATH."""
    raw = os.environ.get("FIREBASE_SERVICE_ACCOUNT")
    if raw:
        try:
            return credentials.Certificate(json.loads(raw))
        except json.JSONDecodeError as e:
            logger.error(f"FIREBASE_SERVICE_ACCOUNT is not valid JSON: {e}")
            return None

    path = os.environ.get("FIREBASE_SERVICE_ACCOUNT_PATH")
    if path and os.path.exists(path):
        logger.info(f"Loading Firebase service account from {path}")
        return credentials.Certificate(path)
    return None


def _initialize(cred, options):
    try:
        return firebase_admin.initialize_app(cred, options)
    except ValueError:
        # already initialized in this process
        return firebase_admin.get_app()


def get_firebase_app():
    """Firebase Admin app, or None when neither the emulator nor credentials are configured."""
    global _firebase_app, _firebase_init_attempted

    if _firebase_app is not None or _firebase_init_attempted:
        return _firebase_app
    _firebase_init_attempted = True

    project_id = os.environ.get("FIREBASE_PROJECT_ID")

    if os.environ.get("FIREBASE_USE_EMULATOR", "false").lower() == "true":
        host = os.environ.setdefault("FIRESTORE_EMULATOR_HOST", "localhost:8080")
        _firebase_app = _initialize(None, {"projectId": project_id or "demo-flohub"})
        logger.info(f"Firebase app using the Firestore emulator at {host}")
        return _firebase_app

    cred = _load_credentials()
    if cred is None:
        logger.warning("No Firebase credentials configured, Firestore-backed routes will answer 503")
        return None

    _firebase_app = _initialize(cred, {"projectId": project_id} if project_id else None)
    logger.info(f"Firebase app initialized for project {project_id or cred.project_id}")
    return _firebase_app


def get_firestore():
    global _firestore_client

    if _firestore_client is None and get_firebase_app() is not None:
        try:
            _firestore_client = firestore.client()
        except Exception as e:
            logger.error(f"Could not create Firestore client: {e}")
    return _firestore_client


def _with_id(doc) -> Dict[str, Any]:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


class FirestoreService:
    """Firestore reads and writes behind the API handlers.

    Methods assume the client is available (handlers check ``is_available``
    first) and let Firestore errors propagate to the handler.
    """

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = get_firestore()
        return self._db

    def is_available(self) -> bool:
        return self.db is not None

    def user_ref(self, email: str):
        return self.db.collection(USERS_COLLECTION).document(email)

    def user_exists(self, email: str) -> bool:
        return self.user_ref(email).get().exists

    # -- Tasks

    def tasks_ref(self, email: str):
        return self.user_ref(email).collection(TASKS_SUBCOLLECTION)

    def list_tasks(self, email: str) -> List[Dict[str, Any]]:
        query = self.tasks_ref(email).order_by("createdAt", direction=DESCENDING)
        return [_with_id(doc) for doc in query.stream()]

    def create_task(
        self,
        email: str,
        text: str,
        due_date: Optional[datetime] = None,
        source: Optional[str] = None,
        tags: Optional[List[str]] = None,
        done: bool = False,
    ) -> Dict[str, Any]:
        task_data = {
            "text": text,
            "done": done,
            "dueDate": due_date,
            "createdAt": timezone.now(),
            "tags": tags or [],
        }
        if source:
            task_data["source"] = source

        _, doc_ref = self.tasks_ref(email).add(task_data)
        logger.info(f"Created task {doc_ref.id} for {email}")
        return _with_id(doc_ref.get())

    def update_task(self, email: str, task_id: str, changes: Dict[str, Any]) -> None:
        self.tasks_ref(email).document(task_id).update(changes)

    def delete_task(self, email: str, task_id: str) -> None:
        self.tasks_ref(email).document(task_id).delete()

    def upcoming_tasks(self, email: str, now: datetime, limit: int) -> List[Dict[str, Any]]:
        query = (
            self.tasks_ref(email)
            .where("done", "==", False)
            .where("dueDate", ">", now)
            .order_by("dueDate", direction=ASCENDING)
            .limit(limit)
        )
        return [_with_id(doc) for doc in query.stream()]

    def tasks_with_tag(self, email: str, tag: str) -> List[Dict[str, Any]]:
        query = self.tasks_ref(email).where("tags", "array_contains", tag)
        return [_with_id(doc) for doc in query.stream()]

    # -- Notes and meeting notes

    def user_notes(self, email: str) -> List[Dict[str, Any]]:
        query = (
            self.db.collection(NOTES_COLLECTION)
            .where("userId", "==", email)
            .order_by("createdAt", direction=DESCENDING)
        )
        return [_with_id(doc) for doc in query.stream()]

    def user_meeting_notes(self, email: str) -> List[Dict[str, Any]]:
        """Notes attached to a calendar event or flagged as ad-hoc meetings."""
        return [
            note for note in self.user_notes(email)
            if note.get("eventId") or note.get("isAdhoc") is True
        ]

    def notes_with_tag(self, email: str, tag: str) -> List[Dict[str, Any]]:
        query = (
            self.db.collection(NOTES_COLLECTION)
            .where("userId", "==", email)
            .where("tags", "array_contains", tag)
        )
        return [_with_id(doc) for doc in query.stream()]

    def get_note(self, note_id: str) -> Optional[Dict[str, Any]]:
        doc = self.db.collection(NOTES_COLLECTION).document(note_id).get()
        if not doc.exists:
            return None
        return _with_id(doc)

    def create_note(self, email: str, fields: Dict[str, Any]) -> str:
        note_data = {
            "userId": email,
            "title": fields.pop("title", None) or "",
            "content": fields.pop("content"),
            "tags": fields.pop("tags", None) or [],
            "createdAt": timezone.now(),
        }
        note_data.update(fields)
        _, doc_ref = self.db.collection(NOTES_COLLECTION).add(note_data)
        logger.info(f"Created note {doc_ref.id} for {email}")
        return doc_ref.id

    def update_note(self, note_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        doc_ref = self.db.collection(NOTES_COLLECTION).document(note_id)
        doc_ref.update(changes)
        return _with_id(doc_ref.get())

    def delete_notes(self, note_ids: List[str]) -> int:
        if not note_ids:
            return 0
        batch = self.db.batch()
        for note_id in note_ids:
            batch.delete(self.db.collection(NOTES_COLLECTION).document(note_id))
        batch.commit()
        return len(note_ids)

    # -- Assistant conversations

    def user_conversations(self, email: str) -> List[Dict[str, Any]]:
        query = (
            self.db.collection(CONVERSATIONS_COLLECTION)
            .where("userId", "==", email)
            .order_by("createdAt", direction=DESCENDING)
        )
        return [_with_id(doc) for doc in query.stream()]

    def save_conversation(self, email: str, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        now = timezone.now()
        conversation = {
            "userId": email,
            "messages": [{**message, "timestamp": now} for message in messages],
            "createdAt": now,
        }
        _, doc_ref = self.db.collection(CONVERSATIONS_COLLECTION).add(conversation)
        return {"id": doc_ref.id, **conversation}

    # -- Calendar events

    def calendar_events_ref(self, email: str):
        return self.user_ref(email).collection(CALENDAR_EVENTS_SUBCOLLECTION)

    def upcoming_calendar_events(self, email: str, now: datetime, limit: int) -> List[Dict[str, Any]]:
        query = (
            self.calendar_events_ref(email)
            .where("start.dateTime", ">", now.isoformat())
            .order_by("start.dateTime", direction=ASCENDING)
            .limit(limit)
        )
        return [_with_id(doc) for doc in query.stream()]

    def add_calendar_event(self, email: str, summary: str, start: datetime, end: datetime) -> str:
        event = {
            "summary": summary,
            "start": {"dateTime": start.isoformat()},
            "end": {"dateTime": end.isoformat()},
            "createdAt": timezone.now(),
        }
        _, doc_ref = self.calendar_events_ref(email).add(event)
        logger.info(f"Created calendar event {doc_ref.id} for {email}")
        return doc_ref.id

    # -- Push subscriptions

    def save_push_subscription(self, email: str, subscription: Dict[str, Any]) -> str:
        doc_id = subscription_id(subscription["endpoint"])
        now = timezone.now().isoformat()
        self.db.collection(PUSH_SUBSCRIPTIONS_COLLECTION).document(doc_id).set({
            "userEmail": email,
            "subscription": subscription,
            "createdAt": now,
            "updatedAt": now,
        })
        return doc_id

    def delete_push_subscription(self, doc_id: str) -> None:
        self.db.collection(PUSH_SUBSCRIPTIONS_COLLECTION).document(doc_id).delete()

    def push_subscriptions_for(self, email: str) -> List[Dict[str, Any]]:
        query = self.db.collection(PUSH_SUBSCRIPTIONS_COLLECTION).where("userEmail", "==", email)
        return [_with_id(doc) for doc in query.stream()]

    def subscribed_user_emails(self) -> List[str]:
        """Distinct user emails holding at least one push subscription, in first-seen order."""
        emails = []
        for doc in self.db.collection(PUSH_SUBSCRIPTIONS_COLLECTION).stream():
            email = (doc.to_dict() or {}).get("userEmail")
            if email and email not in emails:
                emails.append(email)
        return emails

    # -- User settings

    def settings_ref(self, email: str):
        return self.user_ref(email).collection(SETTINGS_SUBCOLLECTION).document(SETTINGS_DOCUMENT)

    def get_user_settings(self, email: str) -> Optional[Dict[str, Any]]:
        doc = self.settings_ref(email).get()
        if not doc.exists:
            return None
        return doc.to_dict()

    def save_user_settings(self, email: str, settings: Dict[str, Any]) -> None:
        self.settings_ref(email).set(settings, merge=True)

    # -- Journal (one document per user and date)

    def get_journal_record(self, collection: str, email: str, date: str) -> Optional[Dict[str, Any]]:
        query = (
            self.db.collection(collection)
            .where("userEmail", "==", email)
            .where("date", "==", date)
            .limit(1)
        )
        docs = list(query.stream())
        if not docs:
            return None
        return docs[0].to_dict()

    def journal_records_for_dates(self, collection: str, email: str, dates: List[str]) -> Dict[str, Dict[str, Any]]:
        """Records keyed by date, queried in chunks of FIRESTORE_IN_LIMIT dates."""
        records = {}
        for start in range(0, len(dates), FIRESTORE_IN_LIMIT):
            query = (
                self.db.collection(collection)
                .where("userEmail", "==", email)
                .where("date", "in", dates[start:start + FIRESTORE_IN_LIMIT])
            )
            for doc in query.stream():
                data = doc.to_dict() or {}
                if data.get("date"):
                    records[data["date"]] = data
        return records

    def upsert_journal_record(self, collection: str, email: str, date: str, fields: Dict[str, Any]) -> None:
        now = timezone.now().isoformat()
        query = (
            self.db.collection(collection)
            .where("userEmail", "==", email)
            .where("date", "==", date)
            .limit(1)
        )
        docs = list(query.stream())
        if docs:
            docs[0].reference.update({**fields, "updatedAt": now})
            return
        self.db.collection(collection).add({
            "userEmail": email,
            "date": date,
            **fields,
            "createdAt": now,
            "updatedAt": now,
        })


# Singleton instance
firestore_service = FirestoreService()
