from datetime import datetime, timezone
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from eventchat.models.message import MessageDocument


NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]
OLDEST_FIRST = [("created_at", ASCENDING), ("_id", ASCENDING)]


class MessageRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["messages"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("sender_id", ASCENDING), ("created_at", DESCENDING)])
        await self.collection.create_index(
            [("recipient_id", ASCENDING), ("sender_id", ASCENDING), ("is_read", ASCENDING)]
        )

    async def save_message(self, sender_id: str, recipient_id: str, content: str) -> MessageDocument:
        doc: MessageDocument = {
            "sender_id": sender_id,
            "recipient_id": recipient_id,
            "content": content,
            "is_read": False,
            "created_at": datetime.now(timezone.utc),
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def list_for_participant(self, user_id: str) -> List[MessageDocument]:
        """Every message the user sent or received, newest first."""
        query = {"$or": [{"sender_id": user_id}, {"recipient_id": user_id}]}
        cursor = self.collection.find(query).sort(NEWEST_FIRST)
        items = await cursor.to_list(length=None)
        for it in items:
            it["_id"] = str(it.get("_id"))
        return items

    async def list_between(self, user_a: str, user_b: str) -> List[MessageDocument]:
        """The two-party thread, oldest first."""
        query = {
            "$or": [
                {"sender_id": user_a, "recipient_id": user_b},
                {"sender_id": user_b, "recipient_id": user_a},
            ]
        }
        cursor = self.collection.find(query).sort(OLDEST_FIRST)
        items = await cursor.to_list(length=None)
        for it in items:
            it["_id"] = str(it.get("_id"))
        return items

    async def count_unread(self, sender_id: str, recipient_id: str) -> int:
        return await self.collection.count_documents(
            {"sender_id": sender_id, "recipient_id": recipient_id, "is_read": False}
        )

    async def mark_read(self, sender_id: str, recipient_id: str) -> int:
        result = await self.collection.update_many(
            {"sender_id": sender_id, "recipient_id": recipient_id, "is_read": False},
            {"$set": {"is_read": True}},
        )
        return result.modified_count or 0
