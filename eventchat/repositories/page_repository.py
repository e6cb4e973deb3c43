from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from eventchat.models.page import PageDocument
from eventchat.utils.ids import to_object_id


class PageRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["pages"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("slug", ASCENDING)])

    async def create_page(self, fields: Dict[str, Any]) -> PageDocument:
        now = datetime.now(timezone.utc)
        doc: Dict[str, Any] = {**fields, "created_at": now, "updated_at": now, "deleted_at": None}
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def get_page(self, page_id: str) -> Optional[PageDocument]:
        oid = to_object_id(page_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid, "deleted_at": None})
        if doc:
            doc["_id"] = str(doc["_id"])
        return doc

    async def get_page_by_slug(self, slug: str) -> Optional[PageDocument]:
        doc = await self.collection.find_one({"slug": slug, "deleted_at": None})
        if doc:
            doc["_id"] = str(doc["_id"])
        return doc

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query: Dict[str, Any] = {"slug": slug, "deleted_at": None}
        oid = to_object_id(exclude_id)
        if oid is not None:
            query["_id"] = {"$ne": oid}
        return await self.collection.count_documents(query, limit=1) > 0

    async def list_pages(self, published_only: bool) -> List[PageDocument]:
        query: Dict[str, Any] = {"deleted_at": None}
        if published_only:
            query["is_published"] = True
        cursor = self.collection.find(query).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
        items = await cursor.to_list(length=None)
        for it in items:
            it["_id"] = str(it.get("_id"))
        return items

    async def update_page(self, page_id: str, fields: Dict[str, Any]) -> Optional[PageDocument]:
        oid = to_object_id(page_id)
        if oid is None:
            return None
        await self.collection.update_one(
            {"_id": oid, "deleted_at": None},
            {"$set": {**fields, "updated_at": datetime.now(timezone.utc)}},
        )
        return await self.get_page(page_id)

    async def soft_delete(self, page_id: str) -> bool:
        oid = to_object_id(page_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid, "deleted_at": None},
            {"$set": {"deleted_at": datetime.now(timezone.utc)}},
        )
        return bool(result.modified_count)
