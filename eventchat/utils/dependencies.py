from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError

from eventchat.models.user import ELEVATED_ROLES, UserRole
from eventchat.schemas.user import Actor, TokenPayload
from eventchat.utils.errors import AuthenticationError, ForbiddenError
from eventchat.utils.security import decode_access_token


bearer_scheme = HTTPBearer(auto_error=False)


def actor_from_token(token: str) -> Actor:
    try:
        payload = TokenPayload(**decode_access_token(token))
    except (jwt.PyJWTError, PydanticValidationError) as exc:
        raise AuthenticationError("Invalid or expired token") from exc
    return Actor(id=payload.sub, role=payload.role)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Actor]:
    if credentials is None:
        return None
    return actor_from_token(credentials.credentials)


async def get_current_user(actor: Optional[Actor] = Depends(get_optional_user)) -> Actor:
    if actor is None:
        raise AuthenticationError("Authentication required")
    return actor


async def require_superuser(actor: Actor = Depends(get_current_user)) -> Actor:
    if actor.role != UserRole.SUPERUSER:
        raise ForbiddenError("Superuser role required")
    return actor


async def require_elevated(actor: Actor = Depends(get_current_user)) -> Actor:
    if actor.role not in ELEVATED_ROLES:
        raise ForbiddenError("Admin role required")
    return actor
