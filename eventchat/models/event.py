from datetime import datetime
from enum import Enum
from typing import Optional, TypedDict


class EventVisibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"
    RESTRICTED = "restricted"


class EventDocument(TypedDict, total=False):
    _id: str
    title: str
    description: Optional[str]
    start_time: datetime
    end_time: datetime
    visibility: str
    # JSON array of user ids, only meaningful for restricted events
    allowed_user_ids: Optional[str]
    created_by: str
    color: Optional[str]
    location: Optional[str]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime]
