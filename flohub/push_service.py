"""
Web Push delivery (VAPID) for browser subscriptions stored in Firestore.
"""
import json
import logging
import os
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, List

from pywebpush import WebPushException, webpush

from .constants import (
    DEFAULT_NOTIFICATION_BADGE,
    DEFAULT_NOTIFICATION_ICON,
    DEFAULT_NOTIFICATION_TAG,
    PUSH_TTL_SECONDS,
)
from .firebase_service import firestore_service
from .utils import epoch_ms

logger = logging.getLogger("flohub")

# Push services answer these for subscriptions that will never work again
GONE_STATUS_CODES = (404, 410)


@dataclass
class PushResult:
    """Result of a push notification attempt"""
    success: bool
    subscriptionId: str
    error: Optional[str] = None
    statusCode: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def build_payload(
    title: str,
    body: str,
    icon: str = DEFAULT_NOTIFICATION_ICON,
    badge: str = DEFAULT_NOTIFICATION_BADGE,
    tag: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
    actions: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    return {
        "title": title,
        "body": body,
        "icon": icon or DEFAULT_NOTIFICATION_ICON,
        "badge": badge or DEFAULT_NOTIFICATION_BADGE,
        "tag": tag or DEFAULT_NOTIFICATION_TAG,
        "data": {**(data or {}), "timestamp": epoch_ms()},
        "actions": actions or [],
    }


class WebPushService:
    """
    Sends notifications to every subscription of a user and prunes the
    subscriptions the push service reports as gone.
    """

    def __init__(self, store=None):
        self._store = store or firestore_service
        self.public_key = os.environ.get("VAPID_PUBLIC_KEY")
        self.private_key = os.environ.get("VAPID_PRIVATE_KEY")
        mailto = os.environ.get("VAPID_MAILTO", "")
        self.subject = mailto if mailto.startswith("mailto:") else f"mailto:{mailto}"

    def is_configured(self) -> bool:
        return bool(self.public_key and self.private_key and self.subject != "mailto:")

    def send_to_subscription(self, doc_id: str, subscription: Dict[str, Any], payload: Dict[str, Any]) -> PushResult:
        try:
            webpush(
                subscription_info=subscription,
                data=json.dumps(payload),
                vapid_private_key=self.private_key,
                vapid_claims={"sub": self.subject},
                ttl=PUSH_TTL_SECONDS,
            )
            return PushResult(success=True, subscriptionId=doc_id)
        except WebPushException as e:
            status_code = getattr(e.response, "status_code", None)
            logger.error(f"[PUSH] Error sending to subscription {doc_id}: {e}")
            if status_code in GONE_STATUS_CODES:
                self._store.delete_push_subscription(doc_id)
                return PushResult(
                    success=False,
                    subscriptionId=doc_id,
                    error="Subscription expired or invalid, removed from database",
                    statusCode=status_code,
                )
            return PushResult(success=False, subscriptionId=doc_id, error=str(e), statusCode=status_code)

    def send_to_user(self, subscriptions: List[Dict[str, Any]], payload: Dict[str, Any]) -> List[PushResult]:
        results = []
        for record in subscriptions:
            results.append(self.send_to_subscription(record["id"], record.get("subscription") or {}, payload))
        sent = sum(1 for r in results if r.success)
        logger.info(f"[PUSH] Delivered {sent} of {len(results)} notifications")
        return results


# Singleton instance
push_service = WebPushService()
