"""
Session authentication.

The web client signs in through NextAuth and forwards its session JWT either
as a bearer token or in the NextAuth session cookie. Tokens are HS256 JWTs
signed with NEXTAUTH_SECRET; the ``email`` claim identifies the user.
"""
import hmac
import logging
import os
import time
from typing import Optional, Dict, Any

import jwt

from .constants import SESSION_COOKIE_NAMES

logger = logging.getLogger("flohub")


def _raw_token(request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer ") and header[7:].strip():
        return header[7:].strip()
    for name in SESSION_COOKIE_NAMES:
        value = request.COOKIES.get(name)
        if value:
            return value
    return None


def get_token(request) -> Optional[Dict[str, Any]]:
    """Return the decoded session claims, or None for anonymous requests."""
    raw = _raw_token(request)
    if not raw:
        return None

    secret = os.environ.get("NEXTAUTH_SECRET")
    if not secret:
        logger.error("[AUTH] NEXTAUTH_SECRET is not set")
        return None

    try:
        return jwt.decode(raw, secret, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        logger.info("[AUTH] Session token expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"[AUTH] Invalid session token: {e}")
    return None


def session_email(request) -> Optional[str]:
    claims = get_token(request)
    if not claims:
        return None
    email = claims.get("email")
    return email if isinstance(email, str) and email else None


def is_internal_request(request) -> bool:
    """True when the caller presents the shared internal API key."""
    expected = os.environ.get("INTERNAL_API_KEY")
    provided = request.headers.get("X-API-Key")
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided, expected)


def issue_token(email: str, secret: str, expires_in: int = 3600, **claims) -> str:
    """Sign a session token. Used by tooling and tests."""
    now = int(time.time())
    payload = {"email": email, "iat": now, "exp": now + expires_in, **claims}
    return jwt.encode(payload, secret, algorithm="HS256")
