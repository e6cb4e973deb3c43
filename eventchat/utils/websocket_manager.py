import logging
from collections import defaultdict
from typing import DefaultDict, Set

from fastapi import WebSocket
from starlette.websockets import WebSocketState


logger = logging.getLogger(__name__)


class ConnectionManager:
    """Sockets held by this process, grouped by the user who opened them
    and by the chat rooms they have joined."""

    def __init__(self) -> None:
        self.active_connections: DefaultDict[str, Set[WebSocket]] = defaultdict(set)
        self.room_members: DefaultDict[str, Set[WebSocket]] = defaultdict(set)

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections[user_id].add(websocket)

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        for room_id in [r for r, sockets in self.room_members.items() if websocket in sockets]:
            self.leave_room(room_id, websocket)
        sockets = self.active_connections.get(user_id)
        if sockets is None:
            return
        sockets.discard(websocket)
        if not sockets:
            del self.active_connections[user_id]

    def is_connected(self, user_id: str) -> bool:
        return bool(self.active_connections.get(user_id))

    def join_room(self, room_id: str, websocket: WebSocket) -> None:
        self.room_members[room_id].add(websocket)

    def leave_room(self, room_id: str, websocket: WebSocket) -> None:
        sockets = self.room_members.get(room_id)
        if sockets is None:
            return
        sockets.discard(websocket)
        if not sockets:
            del self.room_members[room_id]

    async def send_personal_message(self, receiver_id: str, message: str) -> None:
        for conn in list(self.active_connections.get(receiver_id, ())):
            if getattr(conn, "client_state", WebSocketState.CONNECTED) == WebSocketState.DISCONNECTED:
                self.disconnect(receiver_id, conn)
                continue
            await conn.send_text(message)

    async def send_room_message(self, room_id: str, message: str) -> None:
        for conn in list(self.room_members.get(room_id, ())):
            if getattr(conn, "client_state", WebSocketState.CONNECTED) == WebSocketState.DISCONNECTED:
                self.leave_room(room_id, conn)
                continue
            await conn.send_text(message)

    async def broadcast(self, message: str) -> None:
        for receiver_id in list(self.active_connections):
            await self.send_personal_message(receiver_id, message)


manager = ConnectionManager()
