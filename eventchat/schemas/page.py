from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field


class PageCreate(BaseModel):

    title: str = Field(min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, max_length=200)
    content: str
    is_published: bool = False


class PageUpdate(BaseModel):

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = None
    is_published: Optional[bool] = None


class PageOut(BaseModel):

    id: str
    title: str
    slug: str
    content: str
    is_published: bool
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "PageOut":
        return cls(
            id=str(doc["_id"]),
            title=doc["title"],
            slug=doc["slug"],
            content=doc["content"],
            is_published=bool(doc.get("is_published", False)),
            created_by=doc["created_by"],
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )
