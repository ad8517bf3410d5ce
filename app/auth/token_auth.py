"""HMAC-SHA256 signed bearer tokens.

Token format:  "{user_id}.{expires_epoch}.{signature}"
  signature – HMAC-SHA256 hex digest of "{user_id}.{expires_epoch}" keyed with AUTH_SECRET

The identity provider issues tokens after sign-in; the service only verifies
them. Verification is stateless: no token table, expiry is carried in the token.
"""
import hashlib
import hmac
import time
from typing import Optional


def _sign(secret: str, payload: str) -> str:
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def issue_access_token(
    secret: str, user_id: int, ttl_seconds: int, now: Optional[int] = None
) -> str:
    expires = (now if now is not None else int(time.time())) + ttl_seconds
    payload = f"{user_id}.{expires}"
    return f"{payload}.{_sign(secret, payload)}"


def verify_access_token(
    secret: str, token: Optional[str], now: Optional[int] = None
) -> Optional[int]:
    """Return the user id if the token is authentic and unexpired, else None.

    Returns None (rather than raising) so the caller decides how to reject.
    """
    if not token or not secret:
        return None

    parts = token.split(".")
    if len(parts) != 3:
        return None
    user_part, expires_part, signature = parts

    try:
        user_id = int(user_part)
        expires = int(expires_part)
    except ValueError:
        return None

    current = now if now is not None else int(time.time())
    if expires <= current:
        return None

    expected = _sign(secret, f"{user_part}.{expires_part}")
    if not hmac.compare_digest(expected, signature):
        return None
    return user_id


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
