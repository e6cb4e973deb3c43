from fastapi import APIRouter, Depends

from eventchat.database.connection import mongo_db_dependency
from eventchat.repositories.message_repository import MessageRepository
from eventchat.repositories.user_repository import UserRepository
from eventchat.schemas.message import MessageCreate
from eventchat.schemas.user import Actor
from eventchat.services.chat_service import ChatService
from eventchat.utils.dependencies import get_current_user
from eventchat.utils.notifications import RealtimeNotifier, get_notifier
from eventchat.utils.responses import success_response


router = APIRouter(prefix="/messages", tags=["chat"])


def get_chat_service(
    db = Depends(mongo_db_dependency),
    notifier: RealtimeNotifier = Depends(get_notifier),
) -> ChatService:
    return ChatService(MessageRepository(db), UserRepository(db), notifier)


@router.get("/conversations")
async def list_conversations(current_user: Actor = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    conversations = await service.list_conversations(current_user.id)
    return success_response(conversations)


@router.get("/{user_id}")
async def get_thread(user_id: str, current_user: Actor = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    # opening the thread marks the other user's messages as read
    thread = await service.get_thread(current_user.id, user_id)
    return success_response(thread)


@router.post("")
async def send_message(body: MessageCreate, current_user: Actor = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    message = await service.send_message(current_user.id, body.recipient_id, body.content)
    return success_response(message, status_code=201)
