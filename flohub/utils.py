import asyncio
import base64
import time
from datetime import datetime, date

from django.utils import timezone


def run_async(coro):
    """Helper to run async code in sync Django views."""
    return asyncio.run(coro)


def normalize_datetime(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        if timezone.is_naive(value):
            return timezone.make_aware(value, timezone.get_current_timezone())
        return timezone.localtime(value)
    if hasattr(value, "timestamp"):
        return datetime.fromtimestamp(value.timestamp(), tz=timezone.get_current_timezone())
    return None


def parse_datetime(value):
    """Parse an ISO-8601 string (a trailing ``Z`` is accepted) into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return normalize_datetime(value)
    if not isinstance(value, str):
        raise ValueError(f"unsupported datetime value: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return normalize_datetime(datetime.fromisoformat(text))


def to_iso(ts):
    if ts is None:
        return None
    if isinstance(ts, datetime):
        return ts.isoformat()
    if isinstance(ts, date):
        return ts.isoformat()
    if hasattr(ts, "timestamp"):
        return datetime.fromtimestamp(ts.timestamp(), tz=timezone.utc).isoformat()
    return str(ts)


def epoch_ms() -> int:
    return int(time.time() * 1000)


def subscription_id(endpoint: str) -> str:
    """Document id for a push subscription: the URL-safe base64 of its endpoint."""
    return base64.urlsafe_b64encode(endpoint.encode("utf-8")).decode("ascii")
