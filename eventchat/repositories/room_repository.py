from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from eventchat.models.room import RoomDocument
from eventchat.utils.ids import to_object_id


class RoomRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["rooms"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("slug", ASCENDING)])
        await self.collection.create_index([("created_by", ASCENDING)])

    async def create_room(self, fields: Dict[str, Any]) -> RoomDocument:
        doc: Dict[str, Any] = {**fields, "created_at": datetime.now(timezone.utc), "deleted_at": None}
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def get_room(self, room_id: str) -> Optional[RoomDocument]:
        oid = to_object_id(room_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid, "deleted_at": None})
        if doc:
            doc["_id"] = str(doc["_id"])
        return doc

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query: Dict[str, Any] = {"slug": slug, "deleted_at": None}
        oid = to_object_id(exclude_id)
        if oid is not None:
            query["_id"] = {"$ne": oid}
        return await self.collection.count_documents(query, limit=1) > 0

    async def list_rooms(self) -> List[RoomDocument]:
        cursor = self.collection.find({"deleted_at": None}).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
        items = await cursor.to_list(length=None)
        for it in items:
            it["_id"] = str(it.get("_id"))
        return items

    async def update_room(self, room_id: str, fields: Dict[str, Any]) -> Optional[RoomDocument]:
        oid = to_object_id(room_id)
        if oid is None:
            return None
        if fields:
            await self.collection.update_one({"_id": oid, "deleted_at": None}, {"$set": fields})
        return await self.get_room(room_id)

    async def soft_delete(self, room_id: str) -> bool:
        oid = to_object_id(room_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid, "deleted_at": None},
            {"$set": {"deleted_at": datetime.now(timezone.utc)}},
        )
        return bool(result.modified_count)
