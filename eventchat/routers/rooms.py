from fastapi import APIRouter, Depends

from eventchat.database.connection import mongo_db_dependency
from eventchat.repositories.room_repository import RoomRepository
from eventchat.schemas.room import RoomCreate, RoomUpdate
from eventchat.schemas.user import Actor
from eventchat.services.room_service import RoomService
from eventchat.utils.dependencies import get_current_user, require_elevated
from eventchat.utils.notifications import RealtimeNotifier, get_notifier
from eventchat.utils.responses import success_response


router = APIRouter(prefix="/rooms", tags=["rooms"])


def get_room_service(
    db = Depends(mongo_db_dependency),
    notifier: RealtimeNotifier = Depends(get_notifier),
) -> RoomService:
    return RoomService(RoomRepository(db), notifier=notifier)


@router.get("")
async def list_rooms(current_user: Actor = Depends(get_current_user), service: RoomService = Depends(get_room_service)):
    return success_response(await service.list_rooms())


@router.post("")
async def create_room(body: RoomCreate, current_user: Actor = Depends(require_elevated), service: RoomService = Depends(get_room_service)):
    room = await service.create_room(current_user, body)
    return success_response(room, status_code=201)


@router.put("/{room_id}")
async def update_room(room_id: str, body: RoomUpdate, current_user: Actor = Depends(require_elevated), service: RoomService = Depends(get_room_service)):
    return success_response(await service.update_room(room_id, body))


@router.delete("/{room_id}")
async def delete_room(room_id: str, current_user: Actor = Depends(require_elevated), service: RoomService = Depends(get_room_service)):
    await service.delete_room(room_id)
    return success_response({"message": "Room deleted successfully"})
