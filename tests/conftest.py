"""Shared fixtures: in-memory stand-ins for the Motor-backed repositories.

Each fake mirrors the public coroutine surface of its repository so the
services can be exercised without a MongoDB server.
"""

from __future__ import annotations

import itertools
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from eventchat.models.user import UserRole
from eventchat.schemas.user import Actor
from eventchat.utils.notifications import RealtimeNotifier
from eventchat.utils.websocket_manager import ConnectionManager

ALICE = "65a000000000000000000001"
BOB = "65a000000000000000000002"
CAROL = "65a000000000000000000003"
ADMIN = "65a000000000000000000004"
ROOT = "65a000000000000000000005"
GHOST = "65a0000000000000000000ff"

BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def _user(user_id: str, username: str, role: UserRole = UserRole.USER) -> dict:
    return {
        "_id": user_id,
        "email": f"{username}@eventchat.io",
        "username": username,
        "hashed_password": "$2b$12$not-a-real-hash",
        "role": role.value,
    }


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeUserRepository:
    def __init__(self, users: list[dict] | None = None) -> None:
        self.users = {u["_id"]: dict(u) for u in users or []}

    async def get_user_by_id(self, user_id: str) -> dict | None:
        user = self.users.get(user_id)
        return dict(user) if user else None


class FakeMessageRepository:
    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.messages: list[dict] = []
        self._ids = itertools.count(1)
        self._clock = start

    def add(self, sender_id: str, recipient_id: str, content: str, created_at: datetime, is_read: bool = False) -> dict:
        doc = {
            "_id": f"m{next(self._ids):04d}",
            "sender_id": sender_id,
            "recipient_id": recipient_id,
            "content": content,
            "is_read": is_read,
            "created_at": created_at,
        }
        self.messages.append(doc)
        return doc

    async def save_message(self, sender_id: str, recipient_id: str, content: str) -> dict:
        self._clock += timedelta(seconds=1)
        return dict(self.add(sender_id, recipient_id, content, self._clock))

    async def list_for_participant(self, user_id: str) -> list[dict]:
        items = [m for m in self.messages if user_id in (m["sender_id"], m["recipient_id"])]
        items.sort(key=lambda m: (m["created_at"], m["_id"]), reverse=True)
        return [dict(m) for m in items]

    async def list_between(self, user_a: str, user_b: str) -> list[dict]:
        pair = {user_a, user_b}
        items = [m for m in self.messages if {m["sender_id"], m["recipient_id"]} == pair]
        items.sort(key=lambda m: (m["created_at"], m["_id"]))
        return [dict(m) for m in items]

    async def count_unread(self, sender_id: str, recipient_id: str) -> int:
        return sum(
            1
            for m in self.messages
            if m["sender_id"] == sender_id and m["recipient_id"] == recipient_id and not m["is_read"]
        )

    async def mark_read(self, sender_id: str, recipient_id: str) -> int:
        count = 0
        for m in self.messages:
            if m["sender_id"] == sender_id and m["recipient_id"] == recipient_id and not m["is_read"]:
                m["is_read"] = True
                count += 1
        return count


class FakeEventRepository:
    def __init__(self) -> None:
        self.events: dict[str, dict] = {}
        self._ids = itertools.count(1)

    async def create_event(self, fields: dict[str, Any]) -> dict:
        now = datetime.now(UTC)
        doc = {**fields, "_id": f"e{next(self._ids):04d}", "created_at": now, "updated_at": now, "deleted_at": None}
        self.events[doc["_id"]] = doc
        return dict(doc)

    async def get_event(self, event_id: str) -> dict | None:
        doc = self.events.get(event_id)
        if doc is None or doc.get("deleted_at") is not None:
            return None
        return dict(doc)

    async def list_events(self, start_from=None, end_to=None, visibility=None) -> list[dict]:
        items = [e for e in self.events.values() if e.get("deleted_at") is None]
        if start_from is not None:
            items = [e for e in items if e["start_time"] >= start_from]
        if end_to is not None:
            items = [e for e in items if e["end_time"] <= end_to]
        if visibility is not None:
            items = [e for e in items if e["visibility"] == visibility]
        items.sort(key=lambda e: (e["start_time"], e["_id"]))
        return [dict(e) for e in items]

    async def update_event(self, event_id: str, fields: dict[str, Any]) -> dict | None:
        if await self.get_event(event_id) is None:
            return None
        self.events[event_id].update(fields, updated_at=datetime.now(UTC))
        return await self.get_event(event_id)

    async def soft_delete(self, event_id: str) -> bool:
        if await self.get_event(event_id) is None:
            return False
        self.events[event_id]["deleted_at"] = datetime.now(UTC)
        return True


class FakePageRepository:
    def __init__(self) -> None:
        self.pages: dict[str, dict] = {}
        self._ids = itertools.count(1)

    def _live(self) -> list[dict]:
        return [p for p in self.pages.values() if p.get("deleted_at") is None]

    async def create_page(self, fields: dict[str, Any]) -> dict:
        now = datetime.now(UTC)
        doc = {**fields, "_id": f"p{next(self._ids):04d}", "created_at": now, "updated_at": now, "deleted_at": None}
        self.pages[doc["_id"]] = doc
        return dict(doc)

    async def get_page(self, page_id: str) -> dict | None:
        doc = self.pages.get(page_id)
        if doc is None or doc.get("deleted_at") is not None:
            return None
        return dict(doc)

    async def get_page_by_slug(self, slug: str) -> dict | None:
        for page in self._live():
            if page["slug"] == slug:
                return dict(page)
        return None

    async def slug_exists(self, slug: str, exclude_id: str | None = None) -> bool:
        return any(p["slug"] == slug and p["_id"] != exclude_id for p in self._live())

    async def list_pages(self, published_only: bool) -> list[dict]:
        items = [p for p in self._live() if p.get("is_published") or not published_only]
        items.sort(key=lambda p: (p["created_at"], p["_id"]), reverse=True)
        return [dict(p) for p in items]

    async def update_page(self, page_id: str, fields: dict[str, Any]) -> dict | None:
        if await self.get_page(page_id) is None:
            return None
        self.pages[page_id].update(fields, updated_at=datetime.now(UTC))
        return await self.get_page(page_id)

    async def soft_delete(self, page_id: str) -> bool:
        if await self.get_page(page_id) is None:
            return False
        self.pages[page_id]["deleted_at"] = datetime.now(UTC)
        return True


class FakeRoomRepository:
    def __init__(self) -> None:
        self.rooms: dict[str, dict] = {}
        self._ids = itertools.count(1)

    def _live(self) -> list[dict]:
        return [r for r in self.rooms.values() if r.get("deleted_at") is None]

    async def create_room(self, fields: dict[str, Any]) -> dict:
        doc = {**fields, "_id": f"r{next(self._ids):04d}", "created_at": datetime.now(UTC), "deleted_at": None}
        self.rooms[doc["_id"]] = doc
        return dict(doc)

    async def get_room(self, room_id: str) -> dict | None:
        doc = self.rooms.get(room_id)
        if doc is None or doc.get("deleted_at") is not None:
            return None
        return dict(doc)

    async def slug_exists(self, slug: str, exclude_id: str | None = None) -> bool:
        return any(r["slug"] == slug and r["_id"] != exclude_id for r in self._live())

    async def list_rooms(self) -> list[dict]:
        items = sorted(self._live(), key=lambda r: (r["created_at"], r["_id"]), reverse=True)
        return [dict(r) for r in items]

    async def update_room(self, room_id: str, fields: dict[str, Any]) -> dict | None:
        if await self.get_room(room_id) is None:
            return None
        self.rooms[room_id].update(fields)
        return await self.get_room(room_id)

    async def soft_delete(self, room_id: str) -> bool:
        if await self.get_room(room_id) is None:
            return False
        self.rooms[room_id]["deleted_at"] = datetime.now(UTC)
        return True


class RecordingBus:
    """A bus that keeps every published (channel, payload) pair."""

    enabled = True

    def __init__(self) -> None:
        self.published: list[tuple[str, str]] = []

    async def publish(self, channel: str, message: str) -> None:
        self.published.append((channel, message))


class FailingBus:
    enabled = True

    async def publish(self, channel: str, message: str) -> None:
        raise ConnectionError("redis is down")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository(
        [
            _user(ALICE, "alice"),
            _user(BOB, "bob"),
            _user(CAROL, "carol"),
            _user(ADMIN, "admin", UserRole.ADMIN),
            _user(ROOT, "root", UserRole.SUPERUSER),
        ]
    )


@pytest.fixture
def message_repo() -> FakeMessageRepository:
    return FakeMessageRepository()


@pytest.fixture
def event_repo() -> FakeEventRepository:
    return FakeEventRepository()


@pytest.fixture
def page_repo() -> FakePageRepository:
    return FakePageRepository()


@pytest.fixture
def room_repo() -> FakeRoomRepository:
    return FakeRoomRepository()


@pytest.fixture
def bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def notifier(bus: RecordingBus) -> RealtimeNotifier:
    return RealtimeNotifier(bus, ConnectionManager())


@pytest.fixture
def alice() -> Actor:
    return Actor(id=ALICE, role=UserRole.USER)


@pytest.fixture
def bob() -> Actor:
    return Actor(id=BOB, role=UserRole.USER)


@pytest.fixture
def carol() -> Actor:
    return Actor(id=CAROL, role=UserRole.USER)


@pytest.fixture
def admin() -> Actor:
    return Actor(id=ADMIN, role=UserRole.ADMIN)


@pytest.fixture
def root() -> Actor:
    return Actor(id=ROOT, role=UserRole.SUPERUSER)
