"""
security.py — Password hashing, JWT, and webhook signature utilities.

Uses:
  - bcrypt (direct, no passlib) for account passwords
  - python-jose for bearer tokens; the subject is the user's MongoDB id,
    which the map store compares against a map's owner_id
  - hmac/hashlib for Stripe-style webhook signatures:
        Stripe-Signature: t=<unix ts>,v1=<hex hmac_sha256(secret, "<ts>.<body>")>
"""

import hashlib
import hmac
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from spotmarket.core.config import settings


class WebhookSignatureError(Exception):
    """Signature header missing, malformed, stale, or not matching."""


# ── Password hashing ──────────────────────────────────────────────────────────

def hash_password(plain: str) -> str:
    """Return bcrypt hash of *plain* password (bcrypt only reads the first 72 bytes)."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


# ── Bearer tokens ─────────────────────────────────────────────────────────────

def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token for *user_id*; TTL defaults to settings.jwt_expiry_hours."""
    expire = datetime.now(tz=timezone.utc) + (
        expires_delta or timedelta(hours=settings.jwt_expiry_hours)
    )
    return jwt.encode(
        {"sub": user_id, "exp": expire},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> Optional[str]:
    """Return the user id carried by *token*, or None if it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    return payload.get("sub")


# ── Webhook signatures ────────────────────────────────────────────────────────

def _compute_signature(secret: str, timestamp: str, payload: bytes) -> str:
    signed = timestamp.encode("utf-8") + b"." + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def sign_webhook_payload(payload: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """Build a signature header for *payload*. Used by tests and the seed tooling."""
    ts = str(int(time.time()) if timestamp is None else timestamp)
    return f"t={ts},v1={_compute_signature(secret, ts, payload)}"


def verify_webhook_signature(
    payload: bytes,
    header: Optional[str],
    secret: str,
    tolerance: int = 300,
    now: Optional[float] = None,
) -> None:
    """
    Check a Stripe-style signature header against the raw request body.

    Raises WebhookSignatureError; returns None when the signature is valid.
    Any v1 entry may match (Stripe sends several while rotating secrets).
    """
    if not secret:
        raise WebhookSignatureError("Webhook signing secret is not configured")
    if not header:
        raise WebhookSignatureError("Missing signature header")

    timestamp = None
    candidates: list[str] = []
    for item in header.split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1" and value:
            candidates.append(value)

    if not timestamp or not candidates:
        raise WebhookSignatureError("Malformed signature header")
    try:
        ts_value = int(timestamp)
    except ValueError:
        raise WebhookSignatureError("Malformed signature timestamp")

    current = time.time() if now is None else now
    if tolerance and abs(current - ts_value) > tolerance:
        raise WebhookSignatureError("Signature timestamp outside tolerance")

    expected = _compute_signature(secret, timestamp, payload)
    if not any(hmac.compare_digest(expected, c) for c in candidates):
        raise WebhookSignatureError("Signature mismatch")
