"""In-memory publish/subscribe relay for consultation rooms.

The broker owns two maps: room id -> member connection ids, and connection
id -> rooms joined. Both are mutated only by ``connect``, ``join``, ``leave``
and ``disconnect`` while holding the broker lock. Relays take a snapshot of
the room under the lock and send outside it.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Set

logger = logging.getLogger(__name__)

SendFunc = Callable[[str, Any], Awaitable[None]]


def consultation_room(consultation_id: Any) -> str:
    return f"consultation-{consultation_id}"


class RoomBroker:
    """Groups live connections into rooms and fans messages out to them."""

    def __init__(self):
        self._senders: Dict[str, SendFunc] = {}
        self._rooms: Dict[str, Set[str]] = {}
        self._memberships: Dict[str, Set[str]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, connection_id: str, send: SendFunc) -> None:
        async with self._lock:
            self._senders[connection_id] = send
            self._memberships.setdefault(connection_id, set())
        logger.info(f"A user connected: {connection_id}")

    async def join(self, connection_id: str, room_id: str) -> None:
        async with self._lock:
            self._rooms.setdefault(room_id, set()).add(connection_id)
            self._memberships.setdefault(connection_id, set()).add(room_id)
        logger.info(f"User {connection_id} joined {room_id}")

    async def leave(self, connection_id: str, room_id: str) -> None:
        async with self._lock:
            self._remove_member(connection_id, room_id)
            rooms = self._memberships.get(connection_id)
            if rooms is not None:
                rooms.discard(room_id)
        logger.info(f"User {connection_id} left {room_id}")

    async def disconnect(self, connection_id: str) -> None:
        async with self._lock:
            for room_id in self._memberships.pop(connection_id, set()):
                self._remove_member(connection_id, room_id)
            self._senders.pop(connection_id, None)
        logger.info(f"User disconnected: {connection_id}")

    def _remove_member(self, connection_id: str, room_id: str) -> None:
        members = self._rooms.get(room_id)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room_id]

    async def relay(self, room_id: str, sender_id: str, event: str, payload: Any) -> int:
        """Send ``event`` to every room member except the sender.

        Delivery is best effort: a member whose send fails is skipped.
        Returns the number of members the event was handed to.
        """
        async with self._lock:
            targets = [
                (member, self._senders[member])
                for member in self._rooms.get(room_id, ())
                if member != sender_id and member in self._senders
            ]

        delivered = 0
        for member, send in targets:
            try:
                await send(event, payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropped {event} for {member} in {room_id}: {e}")
        logger.debug(f"Relayed {event} in {room_id} from {sender_id} to {delivered} member(s)")
        return delivered

    def members(self, room_id: str) -> FrozenSet[str]:
        return frozenset(self._rooms.get(room_id, ()))

    def rooms_of(self, connection_id: str) -> FrozenSet[str]:
        return frozenset(self._memberships.get(connection_id, ()))

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    @property
    def connection_count(self) -> int:
        return len(self._senders)
