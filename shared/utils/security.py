"""
shared/utils/security.py
Access-token decoding for sessions issued by the managed backend.
The backend signs HS256 JWTs; the UI only reads them.
"""

from typing import Optional

from jose import JWTError, jwt

from config.settings import settings
from shared.schemas.schemas import SessionUser


def verify_access_token(token: str) -> dict:
    """
    Decode and verify a backend access token.
    Raises JWTError on invalid/expired token.
    """
    return jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=["HS256"],
        audience=settings.SUPABASE_JWT_AUDIENCE,
    )


def session_user_from_token(token: Optional[str]) -> Optional[SessionUser]:
    """Current-session lookup. Returns None when there is no live session."""
    if not token:
        return None
    try:
        payload = verify_access_token(token)
    except JWTError:
        return None
    return SessionUser(
        id=payload["sub"],
        email=payload.get("email"),
        user_metadata=payload.get("user_metadata") or {},
    )
