from datetime import datetime
from typing import Any, List, Mapping

from pydantic import BaseModel, Field

from eventchat.schemas.user import UserPublic


class MessageCreate(BaseModel):

    recipient_id: str = Field(min_length=1)
    content: str = Field(min_length=1, max_length=5000)


class MessageOut(BaseModel):

    id: str
    sender_id: str
    recipient_id: str
    content: str
    is_read: bool = False
    created_at: datetime

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "MessageOut":
        return cls(
            id=str(doc["_id"]),
            sender_id=doc["sender_id"],
            recipient_id=doc["recipient_id"],
            content=doc["content"],
            is_read=bool(doc.get("is_read", False)),
            created_at=doc["created_at"],
        )


class ConversationSummary(BaseModel):

    user_id: str
    user: UserPublic
    last_message: MessageOut
    unread_count: int = 0


class ConversationThread(BaseModel):

    messages: List[MessageOut]
    user: UserPublic
