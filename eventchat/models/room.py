from datetime import datetime
from typing import Optional, TypedDict


class RoomDocument(TypedDict, total=False):
    _id: str
    name: str
    slug: str
    is_public: bool
    created_by: str
    created_at: datetime
    deleted_at: Optional[datetime]
