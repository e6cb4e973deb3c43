import asyncio
import contextlib
import json
import logging
from typing import Set

import redis.asyncio as redis
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from eventchat.routers.rooms import get_room_service
from eventchat.schemas.room import RoomAction
from eventchat.schemas.user import Actor
from eventchat.services.room_service import RoomService
from eventchat.utils.dependencies import actor_from_token
from eventchat.utils.errors import AppError, AuthenticationError
from eventchat.utils.realtime_bus import BROADCAST_CHANNEL, get_bus, room_channel, user_channel
from eventchat.utils.websocket_manager import manager


logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_text(json.dumps({"type": "error", "data": {"message": message}}))


async def _handle_room_frame(
    websocket: WebSocket,
    actor: Actor,
    raw: str,
    rooms: RoomService,
    subscriber,
    joined: Set[str],
) -> None:
    try:
        frame = RoomAction.model_validate_json(raw)
    except PydanticValidationError:
        await _send_error(websocket, "Unrecognised frame")
        return

    room_id = frame.room_id
    try:
        if frame.action == "join_room":
            await rooms.get_room(room_id)
            manager.join_room(room_id, websocket)
            joined.add(room_id)
            if subscriber is not None:
                await subscriber.join(room_channel(room_id))
            await rooms.join_room(actor, room_id)
        elif frame.action == "leave_room":
            if room_id not in joined:
                return
            manager.leave_room(room_id, websocket)
            joined.discard(room_id)
            if subscriber is not None:
                await subscriber.leave(room_channel(room_id))
            await rooms.leave_room(actor, room_id)
        elif room_id not in joined:
            await _send_error(websocket, "Join the room before sending to it")
        else:
            await rooms.send_to_room(actor, room_id, frame.message)
    except AppError as exc:
        await _send_error(websocket, exc.message)
    except redis.RedisError:
        logger.warning("Could not update room subscriptions for %s", actor.id, exc_info=True)


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, rooms: RoomService = Depends(get_room_service)):
    # browsers cannot set headers on a websocket, so the token comes as ?token=...
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4401)
        return
    try:
        actor = actor_from_token(token)
    except AuthenticationError:
        await websocket.close(code=4401)
        return

    await manager.connect(actor.id, websocket)
    bus = await get_bus()
    subscriber = None
    sub_task = None
    if getattr(bus, "enabled", False):
        try:
            subscriber = await bus.subscribe([user_channel(actor.id), BROADCAST_CHANNEL], websocket.send_text)
            sub_task = asyncio.create_task(subscriber.run())
        except redis.RedisError:
            # local delivery through the connection manager still works
            logger.warning("Bus subscription failed for %s, using local delivery only", actor.id, exc_info=True)
            subscriber = None
    logger.debug("Realtime socket opened for %s", actor.id)

    joined: Set[str] = set()
    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
                continue
            await _handle_room_frame(websocket, actor, data, rooms, subscriber, joined)
    except WebSocketDisconnect:
        logger.debug("Realtime socket closed for %s", actor.id)
    finally:
        manager.disconnect(actor.id, websocket)
        for room_id in joined:
            await rooms.leave_room(actor, room_id)
        if subscriber is not None:
            await subscriber.cancel()
        if sub_task is not None:
            sub_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sub_task
