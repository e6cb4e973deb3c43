from datetime import datetime
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, Field


class RoomCreate(BaseModel):

    name: str = Field(min_length=1, max_length=100)
    is_public: bool = True


class RoomUpdate(BaseModel):

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    is_public: Optional[bool] = None


class RoomOut(BaseModel):

    id: str
    name: str
    slug: str
    is_public: bool
    created_by: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "RoomOut":
        return cls(
            id=str(doc["_id"]),
            name=doc["name"],
            slug=doc["slug"],
            is_public=bool(doc.get("is_public", True)),
            created_by=doc["created_by"],
            created_at=doc.get("created_at"),
        )


class RoomAction(BaseModel):
    """A room frame sent by a client over ``/ws``."""

    action: Literal["join_room", "leave_room", "room_message"]
    room_id: str
    message: Optional[str] = Field(default=None, max_length=5000)
