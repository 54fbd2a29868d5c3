from typing import Optional
from datetime import datetime, timezone
from app.core.security import verify_token


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate access token"""
    try:
        payload = verify_token(token)
        if payload is None:
            return None

        # Check token type
        if payload.get("type") != "access":
            return None

        # Check expiration
        exp = payload.get("exp")
        if exp is None or datetime.now(timezone.utc).timestamp() > exp:
            return None

        return payload
    except Exception:
        return None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header value"""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]
