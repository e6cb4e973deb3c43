import json
import logging
from typing import Any, Iterable, Mapping

from eventchat.models.event import EventVisibility
from eventchat.policies.event_visibility import parse_allowed_user_ids
from eventchat.utils.realtime_bus import BROADCAST_CHANNEL, get_bus, room_channel, user_channel
from eventchat.utils.websocket_manager import ConnectionManager, manager


logger = logging.getLogger(__name__)


class RealtimeNotifier:
    """Fire-and-forget fan-out to connected clients.

    Goes through the Redis bus when one is configured so every worker sees
    it, otherwise straight to the sockets held by this process. When a bus
    publish fails the payload still goes to the local sockets. Delivery
    failures are logged and never raised to the caller.
    """

    def __init__(self, bus, connections: ConnectionManager) -> None:
        self._bus = bus
        self._connections = connections

    async def notify_users(self, user_ids: Iterable[str], event_type: str, data: Mapping[str, Any]) -> None:
        payload = self._encode(event_type, data)
        for user_id in dict.fromkeys(user_ids):
            await self._deliver(user_channel(user_id), payload, user_id=user_id)

    async def notify_all(self, event_type: str, data: Mapping[str, Any]) -> None:
        await self._deliver(BROADCAST_CHANNEL, self._encode(event_type, data))

    async def notify_room(self, room_id: str, event_type: str, data: Mapping[str, Any]) -> None:
        await self._deliver(room_channel(room_id), self._encode(event_type, data), room_id=room_id)

    async def notify_event(self, event_type: str, event: Mapping[str, Any], data: Mapping[str, Any]) -> None:
        visibility = event.get("visibility")
        owner = event.get("created_by")
        if visibility == EventVisibility.PUBLIC.value:
            await self.notify_all(event_type, data)
        elif visibility == EventVisibility.RESTRICTED.value:
            allowed = sorted(parse_allowed_user_ids(event.get("allowed_user_ids")))
            await self.notify_users([owner, *allowed], event_type, data)
        else:
            await self.notify_users([owner], event_type, data)

    def _encode(self, event_type: str, data: Mapping[str, Any]) -> str:
        return json.dumps({"type": event_type, "data": data}, default=str)

    async def _deliver(self, channel: str, payload: str, user_id: str | None = None, room_id: str | None = None) -> None:
        if getattr(self._bus, "enabled", False):
            try:
                await self._bus.publish(channel, payload)
                return
            except Exception:
                logger.warning("Real-time delivery to %s failed on the bus, sending locally", channel, exc_info=True)
        try:
            if user_id is not None:
                await self._connections.send_personal_message(user_id, payload)
            elif room_id is not None:
                await self._connections.send_room_message(room_id, payload)
            else:
                await self._connections.broadcast(payload)
        except Exception:
            logger.warning("Real-time delivery to %s failed", channel, exc_info=True)


async def get_notifier() -> RealtimeNotifier:
    return RealtimeNotifier(await get_bus(), manager)
