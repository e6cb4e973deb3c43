from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from eventchat.config import get_settings
from eventchat.models.user import UserRole


def create_access_token(user_id: str, role: UserRole = UserRole.USER, expires_minutes: int = 60) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {"sub": user_id, "role": UserRole(role).value, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a bearer token; raises ``jwt.PyJWTError`` if invalid."""
    settings = get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )
