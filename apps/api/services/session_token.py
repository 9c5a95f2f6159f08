"""Signed session tokens carrying the catalog user id.

Tokens are minted by the auth service in front of the catalog, which shares
JWT_SECRET with the API. The catalog itself only verifies them, apart from
tests and local tooling that mint their own.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from config import settings


SESSION_TOKEN_TYPE = "catalog_session"


def create_session_token(user_id: int, expires_hours: Optional[int] = None) -> Dict[str, Any]:
    """Sign a token whose subject is the numeric user id."""
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(hours=max(int(expires_hours or settings.JWT_EXPIRATION_HOURS or 24), 1))
    expires_at = int((issued_at + lifetime).timestamp())
    token = jwt.encode(
        {
            "sub": str(user_id),
            "type": SESSION_TOKEN_TYPE,
            "iat": int(issued_at.timestamp()),
            "exp": expires_at,
        },
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    return {"token": token, "expires_at": expires_at}


def decode_session_token(token: str) -> Dict[str, Any]:
    """Verify signature, expiry and token type; raise ValueError on any mismatch."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired session token.") from exc

    if str(claims.get("type", "")).strip() != SESSION_TOKEN_TYPE:
        raise ValueError("Invalid session token type.")
    if not str(claims.get("sub", "")).strip().isdigit():
        raise ValueError("Session token subject must be a user id.")
    return claims
