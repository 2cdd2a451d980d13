"""Live mapping of room codes to role-scoped connection partitions.

Each room keeps four sets of connection handles (members, admins, broadcast
viewers, superadmins). The room-wide audience is the union of all four, so a
room-wide emit also reaches broadcast viewers. The registry is the only
in-memory shared state of the server and only the broadcaster mutates it.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol

logger = logging.getLogger(__name__)

ROOM = "room"
BROADCAST = "broadcast"


class Transport(Protocol):
    async def send_json(self, data: Any) -> None: ...


class Connection:
    """One live client. ``handle`` is the value recorded on ``User.socket_id``."""

    def __init__(self, transport: Transport, handle: str | None = None) -> None:
        self.transport = transport
        self.handle = handle or uuid.uuid4().hex
        self._send_lock = asyncio.Lock()

    async def send(self, event: str, data: Any = None) -> None:
        async with self._send_lock:
            await self.transport.send_json({"event": event, "data": data})

    def __repr__(self) -> str:
        return f"Connection({self.handle})"


@dataclass
class RoomPartitions:
    members: set[str] = field(default_factory=set)
    admins: set[str] = field(default_factory=set)
    broadcast: set[str] = field(default_factory=set)
    superadmins: set[str] = field(default_factory=set)

    def for_role(self, role: str) -> set[str]:
        return {
            "user": self.members,
            "admin": self.admins,
            "broadcast": self.broadcast,
            "superadmin": self.superadmins,
        }[role]

    def room_wide(self) -> set[str]:
        return self.members | self.admins | self.broadcast | self.superadmins

    def discard(self, handle: str) -> None:
        for bucket in (self.members, self.admins, self.broadcast, self.superadmins):
            bucket.discard(handle)

    def is_empty(self) -> bool:
        return not self.room_wide()


class SessionRegistry:
    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._rooms: dict[str, RoomPartitions] = {}
        # handle -> room codes it was admitted to, for disconnect cleanup
        self._memberships: dict[str, set[str]] = {}

    # -- connections -------------------------------------------------------

    def register(self, connection: Connection) -> None:
        self._connections[connection.handle] = connection
        self._memberships.setdefault(connection.handle, set())

    def unregister(self, handle: str) -> set[str]:
        """Forget a connection everywhere; returns the rooms it had joined."""
        self._connections.pop(handle, None)
        codes = self._memberships.pop(handle, set())
        for code in codes:
            self._discard_from_room(code, handle)
        return codes

    def get(self, handle: str | None) -> Connection | None:
        if not handle:
            return None
        return self._connections.get(handle)

    # -- partitions --------------------------------------------------------

    def admit(self, room_code: str, role: str, handle: str) -> None:
        partitions = self._rooms.setdefault(room_code, RoomPartitions())
        partitions.for_role(role).add(handle)
        self._memberships.setdefault(handle, set()).add(room_code)

    def leave(self, handle: str, room_code: str) -> None:
        self._discard_from_room(room_code, handle)
        self._memberships.get(handle, set()).discard(room_code)

    def drop_room(self, room_code: str) -> None:
        partitions = self._rooms.pop(room_code, None)
        if partitions is None:
            return
        for handle in partitions.room_wide():
            self._memberships.get(handle, set()).discard(room_code)

    def partitions(self, room_code: str) -> RoomPartitions | None:
        return self._rooms.get(room_code)

    def rooms_of(self, handle: str) -> set[str]:
        return set(self._memberships.get(handle, set()))

    def _discard_from_room(self, room_code: str, handle: str) -> None:
        partitions = self._rooms.get(room_code)
        if partitions is None:
            return
        partitions.discard(handle)
        if partitions.is_empty():
            del self._rooms[room_code]

    # -- delivery ----------------------------------------------------------

    def audience(self, room_code: str, scopes: Iterable[str] = (ROOM,)) -> set[str]:
        partitions = self._rooms.get(room_code)
        if partitions is None:
            return set()
        handles: set[str] = set()
        for scope in scopes:
            handles |= partitions.room_wide() if scope == ROOM else partitions.broadcast
        return handles

    async def emit(
        self,
        room_code: str,
        event: str,
        data: Any = None,
        *,
        scopes: Iterable[str] = (ROOM,),
        extra_handles: Iterable[str] = (),
    ) -> int:
        """Send once to every handle in the union of ``scopes`` and ``extra_handles``."""
        handles = self.audience(room_code, scopes) | {h for h in extra_handles if h}
        return await self.send_to(handles, event, data)

    async def emit_to_handle(self, handle: str | None, event: str, data: Any = None) -> bool:
        if not handle:
            return False
        return await self.send_to({handle}, event, data) == 1

    async def send_to(self, handles: Iterable[str], event: str, data: Any = None) -> int:
        connections = [c for c in (self._connections.get(h) for h in handles) if c is not None]
        if not connections:
            return 0
        results = await asyncio.gather(
            *[self._safe_send(conn, event, data) for conn in connections],
            return_exceptions=True,
        )
        delivered = 0
        for conn, ok in zip(connections, results):
            if ok is True:
                delivered += 1
            else:
                self.unregister(conn.handle)
        return delivered

    async def _safe_send(self, connection: Connection, event: str, data: Any) -> bool:
        try:
            await connection.send(event, data)
            return True
        except Exception as exc:
            logger.debug("Dropping connection %s after failed %s: %s", connection.handle, event, exc)
            return False
