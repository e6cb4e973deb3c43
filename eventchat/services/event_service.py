import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from eventchat.models.event import EventVisibility
from eventchat.policies.event_visibility import VisibilityPolicy, serialize_allowed_user_ids
from eventchat.repositories.event_repository import EventRepository
from eventchat.repositories.user_repository import UserRepository
from eventchat.schemas.event import EventCreate, EventOut, EventUpdate, as_utc
from eventchat.schemas.user import Actor
from eventchat.utils.errors import ForbiddenError, NotFoundError, ValidationError
from eventchat.utils.notifications import RealtimeNotifier


logger = logging.getLogger(__name__)


class EventService:

    def __init__(
        self,
        event_repo: EventRepository,
        user_repo: UserRepository,
        policy: Optional[VisibilityPolicy] = None,
        notifier: Optional[RealtimeNotifier] = None,
    ) -> None:
        self._event_repo = event_repo
        self._user_repo = user_repo
        self._policy = policy or VisibilityPolicy()
        self._notifier = notifier

    async def list_events(
        self,
        actor: Actor,
        start_from: Optional[datetime] = None,
        end_to: Optional[datetime] = None,
        visibility: Optional[EventVisibility] = None,
    ) -> List[EventOut]:
        events = await self._event_repo.list_events(
            start_from=as_utc(start_from),
            end_to=as_utc(end_to),
            visibility=visibility.value if visibility else None,
        )
        return [
            EventOut.from_document(e)
            for e in events
            if self._policy.can_view(e, actor.id, actor.role)
        ]

    async def get_event(self, actor: Actor, event_id: str) -> EventOut:
        event = await self._event_repo.get_event(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        if not self._policy.can_view(event, actor.id, actor.role):
            raise ForbiddenError("You do not have permission to view this event")
        return EventOut.from_document(event)

    async def create_event(self, actor: Actor, data: EventCreate) -> EventOut:
        if data.end_time <= data.start_time:
            raise ValidationError("End time must be after start time")
        await self._validate_users_exist(data.allowed_user_ids or [])

        event = await self._event_repo.create_event(
            {
                "title": data.title,
                "description": data.description,
                "start_time": data.start_time,
                "end_time": data.end_time,
                "visibility": data.visibility.value,
                "allowed_user_ids": serialize_allowed_user_ids(data.allowed_user_ids),
                "created_by": actor.id,
                "color": data.color,
                "location": data.location,
            }
        )
        result = EventOut.from_document(event)
        logger.info("Event %s created by %s (%s)", result.id, actor.id, result.visibility)
        await self._notify("event_created", event, result.model_dump(mode="json"))
        return result

    async def update_event(self, actor: Actor, event_id: str, data: EventUpdate) -> EventOut:
        event = await self._event_repo.get_event(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        if not self._policy.can_modify(event, actor.id, actor.role):
            raise ForbiddenError("Insufficient permissions to update this event")

        changes: Dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        if "visibility" in changes:
            changes["visibility"] = EventVisibility(changes["visibility"]).value
        if data.allowed_user_ids is not None:
            await self._validate_users_exist(data.allowed_user_ids)
            changes["allowed_user_ids"] = serialize_allowed_user_ids(data.allowed_user_ids)

        start_time = changes.get("start_time", event["start_time"])
        end_time = changes.get("end_time", event["end_time"])
        if end_time <= start_time:
            raise ValidationError("End time must be after start time")

        updated = await self._event_repo.update_event(event_id, changes)
        if updated is None:
            raise NotFoundError("Event not found")
        result = EventOut.from_document(updated)
        logger.info("Event %s updated by %s", event_id, actor.id)
        await self._notify("event_updated", updated, result.model_dump(mode="json"))
        return result

    async def delete_event(self, actor: Actor, event_id: str) -> None:
        event = await self._event_repo.get_event(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        if not self._policy.can_modify(event, actor.id, actor.role):
            raise ForbiddenError("Insufficient permissions to delete this event")
        if not await self._event_repo.soft_delete(event_id):
            raise NotFoundError("Event not found")
        logger.info("Event %s deleted by %s", event_id, actor.id)
        await self._notify("event_deleted", event, {"id": event_id})

    async def _validate_users_exist(self, user_ids: Iterable[str]) -> None:
        for user_id in user_ids:
            if await self._user_repo.get_user_by_id(user_id) is None:
                raise ValidationError(f"User with ID {user_id} not found")

    async def _notify(self, event_type: str, event: Dict[str, Any], data: Dict[str, Any]) -> None:
        if self._notifier is not None:
            await self._notifier.notify_event(event_type, event, data)
