from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from eventchat.models.event import EventDocument
from eventchat.utils.ids import to_object_id


class EventRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["events"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("start_time", ASCENDING)])
        await self.collection.create_index([("created_by", ASCENDING)])

    async def create_event(self, fields: Dict[str, Any]) -> EventDocument:
        now = datetime.now(timezone.utc)
        doc: Dict[str, Any] = {**fields, "created_at": now, "updated_at": now, "deleted_at": None}
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def get_event(self, event_id: str) -> Optional[EventDocument]:
        oid = to_object_id(event_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid, "deleted_at": None})
        if doc:
            doc["_id"] = str(doc["_id"])
        return doc

    async def list_events(
        self,
        start_from: Optional[datetime] = None,
        end_to: Optional[datetime] = None,
        visibility: Optional[str] = None,
    ) -> List[EventDocument]:
        query: Dict[str, Any] = {"deleted_at": None}
        if start_from is not None:
            query["start_time"] = {"$gte": start_from}
        if end_to is not None:
            query["end_time"] = {"$lte": end_to}
        if visibility is not None:
            query["visibility"] = visibility
        cursor = self.collection.find(query).sort([("start_time", ASCENDING), ("_id", ASCENDING)])
        items = await cursor.to_list(length=None)
        for it in items:
            it["_id"] = str(it.get("_id"))
        return items

    async def update_event(self, event_id: str, fields: Dict[str, Any]) -> Optional[EventDocument]:
        oid = to_object_id(event_id)
        if oid is None:
            return None
        await self.collection.update_one(
            {"_id": oid, "deleted_at": None},
            {"$set": {**fields, "updated_at": datetime.now(timezone.utc)}},
        )
        return await self.get_event(event_id)

    async def soft_delete(self, event_id: str) -> bool:
        oid = to_object_id(event_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid, "deleted_at": None},
            {"$set": {"deleted_at": datetime.now(timezone.utc)}},
        )
        return bool(result.modified_count)
