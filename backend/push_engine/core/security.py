"""
Access token verification.

Tokens are issued by the authentication service; this backend only verifies them.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from push_engine.core.config import settings


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the token claims, or None when the token is invalid or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def create_access_token(subject: str, expires_minutes: int = 15) -> str:
    """Sign a short-lived token for ``subject``; used by operational scripts and tests."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    return jwt.encode({"sub": subject, "exp": expire}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
