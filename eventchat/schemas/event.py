from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from eventchat.models.event import EventVisibility
from eventchat.policies.event_visibility import parse_allowed_user_ids


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # naive timestamps are taken to be UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EventCreate(BaseModel):

    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    visibility: EventVisibility
    allowed_user_ids: Optional[List[str]] = None
    color: Optional[str] = Field(default=None, max_length=20)
    location: Optional[str] = Field(default=None, max_length=200)

    normalize_times = field_validator("start_time", "end_time")(as_utc)


class EventUpdate(BaseModel):

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    visibility: Optional[EventVisibility] = None
    allowed_user_ids: Optional[List[str]] = None
    color: Optional[str] = Field(default=None, max_length=20)
    location: Optional[str] = Field(default=None, max_length=200)

    normalize_times = field_validator("start_time", "end_time")(as_utc)


class EventOut(BaseModel):

    id: str
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    visibility: str
    allowed_user_ids: List[str] = Field(default_factory=list)
    created_by: str
    color: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "EventOut":
        return cls(
            id=str(doc["_id"]),
            title=doc["title"],
            description=doc.get("description"),
            start_time=doc["start_time"],
            end_time=doc["end_time"],
            visibility=doc["visibility"],
            allowed_user_ids=sorted(parse_allowed_user_ids(doc.get("allowed_user_ids"))),
            created_by=doc["created_by"],
            color=doc.get("color"),
            location=doc.get("location"),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )
