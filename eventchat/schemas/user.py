from typing import Any, Mapping, Optional

from pydantic import BaseModel, EmailStr

from eventchat.models.user import UserRole


class UserPublic(BaseModel):
    """Profile fields safe to hand to other users; never carries credentials."""

    id: str
    email: EmailStr
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    role: UserRole = UserRole.USER

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "UserPublic":
        return cls(
            id=str(doc["_id"]),
            email=doc["email"],
            username=doc.get("username") or doc["email"],
            first_name=doc.get("first_name"),
            last_name=doc.get("last_name"),
            avatar_url=doc.get("avatar_url"),
            bio=doc.get("bio"),
            role=doc.get("role", UserRole.USER),
        )


class TokenPayload(BaseModel):

    sub: str
    role: UserRole = UserRole.USER
    exp: Optional[int] = None


class Actor(BaseModel):
    """The authenticated caller of a request."""

    id: str
    role: UserRole = UserRole.USER
