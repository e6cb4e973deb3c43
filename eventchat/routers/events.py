from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from eventchat.database.connection import mongo_db_dependency
from eventchat.models.event import EventVisibility
from eventchat.repositories.event_repository import EventRepository
from eventchat.repositories.user_repository import UserRepository
from eventchat.schemas.event import EventCreate, EventUpdate
from eventchat.schemas.user import Actor
from eventchat.services.event_service import EventService
from eventchat.utils.dependencies import get_current_user
from eventchat.utils.notifications import RealtimeNotifier, get_notifier
from eventchat.utils.responses import success_response


router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(
    db = Depends(mongo_db_dependency),
    notifier: RealtimeNotifier = Depends(get_notifier),
) -> EventService:
    return EventService(EventRepository(db), UserRepository(db), notifier=notifier)


@router.get("")
async def list_events(
    start_from: Optional[datetime] = Query(None, alias="from"),
    end_to: Optional[datetime] = Query(None, alias="to"),
    visibility: Optional[EventVisibility] = None,
    current_user: Actor = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
):
    events = await service.list_events(current_user, start_from=start_from, end_to=end_to, visibility=visibility)
    return success_response(events)


@router.get("/{event_id}")
async def get_event(event_id: str, current_user: Actor = Depends(get_current_user), service: EventService = Depends(get_event_service)):
    return success_response(await service.get_event(current_user, event_id))


@router.post("")
async def create_event(body: EventCreate, current_user: Actor = Depends(get_current_user), service: EventService = Depends(get_event_service)):
    event = await service.create_event(current_user, body)
    return success_response(event, status_code=201)


@router.put("/{event_id}")
async def update_event(event_id: str, body: EventUpdate, current_user: Actor = Depends(get_current_user), service: EventService = Depends(get_event_service)):
    return success_response(await service.update_event(current_user, event_id, body))


@router.delete("/{event_id}")
async def delete_event(event_id: str, current_user: Actor = Depends(get_current_user), service: EventService = Depends(get_event_service)):
    await service.delete_event(current_user, event_id)
    return success_response({"message": "Event deleted successfully"})
