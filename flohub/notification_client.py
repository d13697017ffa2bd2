import logging
import os
from typing import Dict, Any, List

import requests

from .constants import FLOHUB_BASE_URL

logger = logging.getLogger("flohub")


class NotificationSendError(Exception):
    """The push-send endpoint refused or could not be reached."""


def send_notification(
    user_email: str,
    title: str,
    body: str,
    data: Dict[str, Any] = None,
    tag: str = "default",
    actions: List[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Call the push-send endpoint as an internal caller."""
    url = f"{FLOHUB_BASE_URL.rstrip('/')}/api/notifications/send"
    payload = {
        "userEmail": user_email,
        "title": title,
        "body": body,
        "data": data or {},
        "tag": tag,
        "actions": actions or [],
    }
    try:
        response = requests.post(
            url,
            json=payload,
            headers={
                "Content-Type": "application/json",
                "X-API-Key": os.environ.get("INTERNAL_API_KEY", ""),
            },
            timeout=30,
        )
    except requests.exceptions.RequestException as exc:
        raise NotificationSendError(f"notification service unreachable: {exc}") from exc

    if not response.ok:
        raise NotificationSendError(f"Failed to send notification: {response.status_code} {response.text}")

    try:
        return response.json()
    except ValueError:
        return {"raw": response.text}
