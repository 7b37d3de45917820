"""
Realtime broadcaster - room membership and event fan-out.

Rooms are named ``list:{id}`` (everyone viewing a shopping list) and
``user:{id}`` (every open session of one owner). Delivery is best effort:
events are not stored, a session that is not connected when an event is
emitted never sees it and is expected to re-fetch the list on reconnect.

One broadcaster exists per server process. It is created in the application
lifespan and handed to whoever needs to emit.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol

logger = logging.getLogger(__name__)

ITEM_CHECKED_CHANGED = "item_checked_changed"
ITEM_ADDED = "item_added"


def list_room(shopping_list_id: int) -> str:
    return f"list:{shopping_list_id}"


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


class Subscriber(Protocol):
    """Anything that can receive a JSON message (a Starlette WebSocket)."""

    async def send_json(self, data: Any) -> None: ...


@dataclass(frozen=True)
class RealtimeEvent:
    """
    Description of an event to emit, produced by the service layer.

    The service never talks to sockets; it returns these and the controller
    hands them to the broadcaster once the transaction has committed.
    """
    name: str
    rooms: tuple[str, ...]
    payload: dict = field(default_factory=dict)

    def message(self) -> dict:
        return {"event": self.name, "data": self.payload}


class RealtimeBroadcaster:
    """In-process room table and fan-out."""

    def __init__(self):
        self._rooms: dict[str, set[Subscriber]] = defaultdict(set)
        self._memberships: dict[Subscriber, set[str]] = defaultdict(set)

    # ==========================================
    # Membership
    # ==========================================

    def join(self, subscriber: Subscriber, room: str) -> None:
        self._rooms[room].add(subscriber)
        self._memberships[subscriber].add(room)

    def leave(self, subscriber: Subscriber, room: str) -> None:
        members = self._rooms.get(room)
        if members is not None:
            members.discard(subscriber)
            if not members:
                del self._rooms[room]

        rooms = self._memberships.get(subscriber)
        if rooms is not None:
            rooms.discard(room)
            if not rooms:
                del self._memberships[subscriber]

    def disconnect(self, subscriber: Subscriber) -> None:
        """Remove a session from every room it joined."""
        for room in list(self._memberships.get(subscriber, ())):
            self.leave(subscriber, room)

    def members(self, room: str) -> set[Subscriber]:
        return set(self._rooms.get(room, ()))

    def rooms_of(self, subscriber: Subscriber) -> set[str]:
        return set(self._memberships.get(subscriber, ()))

    @property
    def connection_count(self) -> int:
        return len(self._memberships)

    # ==========================================
    # Delivery
    # ==========================================

    async def emit(self, event: RealtimeEvent) -> int:
        """
        Send an event to every member of its rooms.

        A session that sits in several of the target rooms gets the event
        once. A session whose send fails is dropped from all rooms.

        Returns:
            Number of sessions the event was delivered to
        """
        recipients: set[Subscriber] = set()
        for room in event.rooms:
            recipients.update(self._rooms.get(room, ()))

        message = event.message()
        delivered = 0
        for subscriber in recipients:
            try:
                await subscriber.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping realtime session after failed {event.name} delivery: {e}")
                self.disconnect(subscriber)

        return delivered

    async def publish(self, events: Iterable[RealtimeEvent]) -> None:
        """Emit events in order."""
        for event in events:
            delivered = await self.emit(event)
            logger.debug(f"{event.name} delivered to {delivered} session(s) in {', '.join(event.rooms)}")

    async def close(self) -> None:
        """Forget all sessions. Called on application shutdown."""
        count = self.connection_count
        self._rooms.clear()
        self._memberships.clear()
        logger.info(f"Realtime broadcaster closed ({count} session(s) dropped)")
