"""
Signed unsubscribe tokens and admin shared-secret check

Token format: base64url("<json payload>:<hex hmac-sha256 of payload>"),
payload = {"id", "email", "exp"}.
"""

import base64
import binascii
import hashlib
import hmac
import json
import time
from typing import Optional

from ..config import settings
from ..errors import AuthError

TOKEN_TTL_SECONDS = 30 * 24 * 60 * 60


def _sign(payload: str, secret: str) -> str:
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(token: str) -> bytes:
    padded = token + "=" * (-len(token) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def generate_unsubscribe_token(
    subscriber_id: str,
    email: str,
    now: Optional[float] = None,
    secret: Optional[str] = None
) -> str:
    """
    Build a signed, time-boxed unsubscribe token

    Args:
        subscriber_id: subscriber id
        email: subscriber email (lowercased into the payload)
        now: unix time of issuance (defaults to the current time)
        secret: HMAC key (defaults to the configured signing secret)
    """
    issued_at = int(time.time() if now is None else now)
    payload = json.dumps(
        {"id": subscriber_id, "email": email.lower(), "exp": issued_at + TOKEN_TTL_SECONDS},
        separators=(",", ":"),
    )
    signature = _sign(payload, secret or settings.signing_secret)
    return _b64encode(f"{payload}:{signature}".encode("utf-8"))


def verify_unsubscribe_token(
    token: str,
    now: Optional[float] = None,
    secret: Optional[str] = None
) -> dict:
    """
    Verify a token and return {"id", "email"}

    Raises:
        AuthError: on any structural, signature or expiry problem
    """
    if not token or not isinstance(token, str):
        raise AuthError("invalid token")

    try:
        decoded = _b64decode(token.strip()).decode("utf-8")
    except (binascii.Error, ValueError, UnicodeDecodeError):
        raise AuthError("invalid token")

    # The hex signature never contains ':', the JSON payload does
    payload_string, sep, signature = decoded.rpartition(":")
    if not sep or not payload_string or not signature:
        raise AuthError("invalid token")

    expected = _sign(payload_string, secret or settings.signing_secret)
    if not hmac.compare_digest(signature.encode(), expected.encode()):
        raise AuthError("invalid token")

    try:
        payload = json.loads(payload_string)
    except ValueError:
        raise AuthError("invalid token")

    if not isinstance(payload, dict) or not payload.get("id") or not payload.get("email"):
        raise AuthError("invalid token")

    current = int(time.time() if now is None else now)
    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or exp < current:
        raise AuthError("expired token")

    return {"id": payload["id"], "email": str(payload["email"]).lower()}


def verify_admin_token(token: Optional[str], expected: Optional[str] = None) -> bool:
    """Constant-time comparison against the configured admin token"""
    expected = settings.admin_token if expected is None else expected
    if not token or not expected:
        return False
    return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))
