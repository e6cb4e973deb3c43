from enum import Enum
from typing import Optional, TypedDict


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPERUSER = "superuser"


ELEVATED_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPERUSER})


class UserDocument(TypedDict, total=False):

    _id: str
    email: str
    username: str
    hashed_password: str
    first_name: Optional[str]
    last_name: Optional[str]
    avatar_url: Optional[str]
    bio: Optional[str]
    role: str
