import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from eventchat.repositories.room_repository import RoomRepository
from eventchat.schemas.room import RoomCreate, RoomOut, RoomUpdate
from eventchat.schemas.user import Actor
from eventchat.utils.errors import NotFoundError, ValidationError
from eventchat.utils.notifications import RealtimeNotifier
from eventchat.utils.slug import slugify, unique_slug


logger = logging.getLogger(__name__)


class RoomService:
    """Chat rooms. Any signed-in user lists and talks in them, admins manage them.

    Room traffic is not stored: join/leave/message frames are fanned out on
    the room's channel and forgotten.
    """

    def __init__(self, room_repo: RoomRepository, notifier: Optional[RealtimeNotifier] = None) -> None:
        self._room_repo = room_repo
        self._notifier = notifier

    async def list_rooms(self) -> List[RoomOut]:
        return [RoomOut.from_document(r) for r in await self._room_repo.list_rooms()]

    async def get_room(self, room_id: str) -> RoomOut:
        room = await self._room_repo.get_room(room_id)
        if room is None:
            raise NotFoundError("Room not found")
        return RoomOut.from_document(room)

    async def create_room(self, actor: Actor, data: RoomCreate) -> RoomOut:
        slug = await self._slug_for(data.name)
        room = await self._room_repo.create_room(
            {"name": data.name, "slug": slug, "is_public": data.is_public, "created_by": actor.id}
        )
        logger.info("Room %s created by %s with slug %s", room["_id"], actor.id, slug)
        return RoomOut.from_document(room)

    async def update_room(self, room_id: str, data: RoomUpdate) -> RoomOut:
        if await self._room_repo.get_room(room_id) is None:
            raise NotFoundError("Room not found")

        changes: Dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            # renaming regenerates the slug; the room's own slug does not count as taken
            changes["slug"] = await self._slug_for(changes["name"], exclude_id=room_id)

        updated = await self._room_repo.update_room(room_id, changes)
        if updated is None:
            raise NotFoundError("Room not found")
        return RoomOut.from_document(updated)

    async def delete_room(self, room_id: str) -> None:
        if not await self._room_repo.soft_delete(room_id):
            raise NotFoundError("Room not found")
        logger.info("Room %s deleted", room_id)
        await self._notify(room_id, "room_deleted", {"room_id": room_id})

    async def join_room(self, actor: Actor, room_id: str) -> RoomOut:
        room = await self.get_room(room_id)
        await self._notify(room_id, "user_joined_room", {"room_id": room_id, "user_id": actor.id})
        return room

    async def leave_room(self, actor: Actor, room_id: str) -> None:
        await self._notify(room_id, "user_left_room", {"room_id": room_id, "user_id": actor.id})

    async def send_to_room(self, actor: Actor, room_id: str, message: Optional[str]) -> Dict[str, Any]:
        if not message or not message.strip():
            raise ValidationError("Message content cannot be empty")
        payload = {
            "room_id": room_id,
            "message_id": uuid4().hex,
            "sender_id": actor.id,
            "message": message.strip(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        logger.debug("Room message %s from %s to room %s", payload["message_id"], actor.id, room_id)
        await self._notify(room_id, "room_message", payload)
        return payload

    async def _slug_for(self, name: str, exclude_id: Optional[str] = None) -> str:
        base_slug = slugify(name)
        if not base_slug:
            raise ValidationError("Room name must contain at least one letter or digit")
        return await unique_slug(base_slug, lambda slug: self._room_repo.slug_exists(slug, exclude_id=exclude_id))

    async def _notify(self, room_id: str, event_type: str, data: Dict[str, Any]) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.notify_room(room_id, event_type, data)
        except Exception:
            logger.warning("Could not notify room %s of %s", room_id, event_type, exc_info=True)
