from datetime import datetime
from typing import Optional, TypedDict


class PageDocument(TypedDict, total=False):
    _id: str
    title: str
    slug: str
    content: str
    is_published: bool
    created_by: str
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime]
