import asyncio
import logging
from typing import Awaitable, Callable, Iterable

import redis.asyncio as redis

from eventchat.config import get_settings


logger = logging.getLogger(__name__)

BROADCAST_CHANNEL = "broadcast"


def user_channel(user_id: str) -> str:
    return f"user:{user_id}"


def room_channel(room_id: str) -> str:
    return f"room:{room_id}"


class NoopBus:

    enabled = False

    async def publish(self, channel: str, message: str) -> None:
        return

    async def subscribe(self, channels: Iterable[str], on_message: Callable[[str], Awaitable[None]]):
        class _Sub:
            async def run(self):
                await asyncio.Future()

            async def join(self, *channels: str):
                return

            async def leave(self, *channels: str):
                return

            async def cancel(self):
                return

        return _Sub()

    async def close(self) -> None:
        return


class RedisBus:

    enabled = True

    def __init__(self, url: str) -> None:
        self._redis = redis.from_url(url)

    async def ping(self) -> None:
        await self._redis.ping()

    async def publish(self, channel: str, message: str) -> None:
        await self._redis.publish(channel, message)

    async def subscribe(self, channels: Iterable[str], on_message: Callable[[str], Awaitable[None]]):
        channels = list(channels)
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(*channels)

        class _Sub:
            _running = True

            async def run(self_inner):
                while self_inner._running:
                    try:
                        msg = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                    except redis.RedisError:
                        logger.warning("Redis subscription to %s failed, retrying", channels, exc_info=True)
                        await asyncio.sleep(0.5)
                        continue
                    if not msg or msg.get("type") != "message":
                        continue
                    data = msg.get("data")
                    if isinstance(data, bytes):
                        data = data.decode("utf-8")
                    try:
                        await on_message(data)
                    except Exception:
                        # the socket went away under us; nothing left to deliver to
                        logger.debug("Stopping subscription to %s, delivery failed", channels, exc_info=True)
                        self_inner._running = False

            async def join(self_inner, *extra: str):
                await pubsub.subscribe(*extra)
                channels.extend(extra)

            async def leave(self_inner, *extra: str):
                await pubsub.unsubscribe(*extra)
                for channel in extra:
                    if channel in channels:
                        channels.remove(channel)

            async def cancel(self_inner):
                self_inner._running = False
                try:
                    await pubsub.unsubscribe(*channels)
                    await pubsub.aclose()
                except redis.RedisError:
                    logger.debug("Redis unsubscribe from %s failed", channels, exc_info=True)

        return _Sub()

    async def close(self) -> None:
        await self._redis.aclose()


_bus = None


async def get_bus():
    global _bus
    if _bus is not None:
        return _bus
    url = get_settings().redis_url
    if not url:
        logger.info("REDIS_URL not set, real-time fan-out limited to this process")
        _bus = NoopBus()
        return _bus
    bus = RedisBus(url)
    try:
        await bus.ping()
    except redis.RedisError:
        logger.warning("Redis is unreachable, real-time fan-out limited to this process", exc_info=True)
        await bus.close()
        _bus = NoopBus()
        return _bus
    _bus = bus
    return _bus


async def close_bus() -> None:
    global _bus
    if _bus is not None:
        await _bus.close()
        _bus = None
