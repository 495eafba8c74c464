from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import jwt

from cloudvault.core.config import settings


def create_token(claims: Dict[str, Any], expires_delta: timedelta) -> str:
    to_encode = dict(claims)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry. Raises ``jose.JWTError`` on any failure."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

