"""Real-time event handlers and fan-out routing.

Every inbound frame is ``{"event": name, "data": payload}``. Handlers never raise
across the event boundary: failures are logged and the connection stays open.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable

from pydantic import BaseModel
from pydantic import ValidationError as PayloadError
from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings, get_settings
from ..errors import NotFound, RoomcastError
from ..models import Room, User
from ..schemas.events import (
    JoinRoomPayload,
    LeaveRoomPayload,
    MessageRefPayload,
    RoomCodePayload,
    SendMessagePayload,
    UserActionPayload,
)
from ..services import moderation, presence, room_directory
from ..services.moderation import ModerationResult, UserApproval
from ..services.serializers import serialize_roster_entry
from .registry import BROADCAST, ROOM, Connection, SessionRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[Connection, Any], Awaitable[None]]


class Broadcaster:
    """Routes moderation and membership changes to the right partitions."""

    def __init__(
        self,
        session_factory: sessionmaker,
        registry: SessionRegistry | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.registry = registry or SessionRegistry()
        self.settings = settings or get_settings()
        self._handlers: dict[str, tuple[type[BaseModel], Handler]] = {
            "join_room": (JoinRoomPayload, self.handle_join),
            "send_message": (SendMessagePayload, self.handle_send_message),
            "approve_message": (MessageRefPayload, self.handle_approve_message),
            "delete_message": (MessageRefPayload, self.handle_delete_message),
            "approve_user": (UserActionPayload, self.handle_approve_user),
            "kick_user": (UserActionPayload, self.handle_kick_user),
            "delete_room": (RoomCodePayload, self.handle_delete_room),
            "leave_room": (LeaveRoomPayload, self.handle_leave_room),
            "get_pending_messages": (RoomCodePayload, self.handle_get_pending_messages),
        }

    # -- connection lifecycle ---------------------------------------------

    def connect(self, connection: Connection) -> None:
        self.registry.register(connection)
        logger.info("Connected: %s", connection.handle)

    async def disconnect(self, connection: Connection) -> None:
        try:
            self.registry.unregister(connection.handle)
            with self.session_factory() as db:
                user = presence.mark_offline(db, connection.handle)
                if user is not None:
                    room = db.query(Room).filter(Room.id == user.room_id).one_or_none()
                    if room is not None:
                        await self.push_roster(db, room)
        except Exception:
            logger.exception("Disconnect cleanup failed for %s", connection.handle)
        logger.info("Disconnected: %s", connection.handle)

    async def dispatch(self, connection: Connection, raw: str) -> None:
        try:
            frame = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Invalid JSON from %s", connection.handle)
            await connection.send("error", {"message": "Invalid JSON format"})
            return
        if not isinstance(frame, dict):
            await connection.send("error", {"message": "Invalid frame"})
            return

        event = frame.get("event")
        entry = self._handlers.get(event)
        if entry is None:
            logger.warning("Unknown event %r from %s", event, connection.handle)
            await connection.send("error", {"message": "Unknown event"})
            return

        schema, handler = entry
        try:
            payload = schema.model_validate(frame.get("data") or {})
        except PayloadError as exc:
            logger.warning("Invalid %s payload from %s: %s", event, connection.handle, exc)
            await connection.send("error", {"message": f"Invalid {event} payload"})
            return

        try:
            await handler(connection, payload)
        except RoomcastError as exc:
            logger.info("%s dropped: %s", event, exc.message)
        except Exception:
            logger.exception("%s handler failed", event)

    # -- inbound events ------------------------------------------------------

    async def handle_join(self, connection: Connection, payload: JoinRoomPayload) -> None:
        if not payload.roomCode:
            return
        code = room_directory.normalize_code(payload.roomCode)

        expected = self.settings.role_password(payload.role)
        if expected is not None and payload.password != expected:
            logger.warning("auth_failed for %s joining %s as %s", connection.handle, code, payload.role)
            await connection.send("auth_failed", {"message": f"Invalid {payload.role} credentials"})
            return

        with self.session_factory() as db:
            room = room_directory.find_by_code(db, code)
            if room is None:
                await connection.send("room_not_found")
                return

            self.registry.admit(code, payload.role, connection.handle)

            if payload.userId is not None:
                user = presence.mark_online(db, payload.userId, connection.handle)
                if user is not None and user.status == moderation.APPROVED:
                    await connection.send("user_approved", user.id)

            if payload.role == "user":
                await connection.send("load_messages", moderation.room_history(db, room))
                await self.registry.emit(code, "refresh_user_lists")
            elif payload.role == "admin":
                await connection.send("load_pending_messages", moderation.pending_messages(db, room))
            elif payload.role == "broadcast":
                await connection.send("load_broadcast_messages", moderation.approved_messages(db, room))

            await self.push_roster(db, room)
        logger.info("Role %s joined room %s (user %s)", payload.role, code, payload.userId)

    async def handle_send_message(self, connection: Connection, payload: SendMessagePayload) -> None:
        with self.session_factory() as db:
            result = moderation.submit(db, payload.userId, payload.roomCode, payload.content)
        if result is None:
            return
        await self.registry.emit(result.room_code, "receive_message", result.message)
        await self.registry.emit(result.room_code, "new_pending_message", result.message)

    async def handle_approve_message(self, connection: Connection, payload: MessageRefPayload) -> None:
        with self.session_factory() as db:
            result = moderation.approve(db, payload.messageId)
        await self.notify_message_approved(result)

    async def handle_delete_message(self, connection: Connection, payload: MessageRefPayload) -> None:
        with self.session_factory() as db:
            result = moderation.delete(db, payload.messageId)
        await self.notify_message_deleted(result)

    async def handle_approve_user(self, connection: Connection, payload: UserActionPayload) -> None:
        with self.session_factory() as db:
            approval = moderation.approve_user(db, payload.userId)
            await self.notify_user_approved(db, approval, fallback_code=payload.roomCode)

    async def handle_kick_user(self, connection: Connection, payload: UserActionPayload) -> None:
        with self.session_factory() as db:
            await self.kick_user(db, payload.userId)

    async def handle_delete_room(self, connection: Connection, payload: RoomCodePayload) -> None:
        if not payload.roomCode:
            return
        with self.session_factory() as db:
            await self.delete_room(db, payload.roomCode)

    async def handle_leave_room(self, connection: Connection, payload: LeaveRoomPayload) -> None:
        code = room_directory.normalize_code(payload.roomCode) if payload.roomCode else None
        if code:
            self.registry.leave(connection.handle, code)
        with self.session_factory() as db:
            room = None
            if payload.userId is not None:
                user = db.query(User).filter(User.id == payload.userId).one_or_none()
                if user is not None:
                    presence.clear_presence(db, user)
                    room = db.query(Room).filter(Room.id == user.room_id).one_or_none()
            if room is None and code:
                room = room_directory.find_by_code(db, code)
            if room is not None:
                await self.push_roster(db, room)
                await self.registry.emit(room.room_code, "refresh_user_lists")
        logger.info("Connection %s left room %s", connection.handle, code)

    async def handle_get_pending_messages(self, connection: Connection, payload: RoomCodePayload) -> None:
        if not payload.roomCode:
            return
        with self.session_factory() as db:
            room = room_directory.find_by_code(db, room_directory.normalize_code(payload.roomCode))
            if room is None:
                return
            await connection.send("load_pending_messages", moderation.pending_messages(db, room))

    # -- routing shared with the HTTP surface --------------------------------

    async def notify_message_approved(self, result: ModerationResult) -> None:
        await self.registry.emit(result.room_code, "broadcast_message", result.message, scopes=(BROADCAST,))

    async def notify_message_deleted(self, result: ModerationResult) -> None:
        code = result.room_code
        await self.registry.emit(code, "message_deleted", result.message_id, scopes=(ROOM, BROADCAST))
        await self.registry.emit(code, "remove_message", result.message_id)
        await self.registry.emit(code, "remove_broadcast_message", result.message_id, scopes=(BROADCAST,))

    async def notify_user_approved(
        self, db: Session, approval: UserApproval, fallback_code: str | None = None
    ) -> None:
        code = approval.room_code or room_directory.normalize_code(fallback_code)
        if not code:
            await self.registry.emit_to_handle(approval.socket_id, "user_approved", approval.user_id)
            return
        await self.registry.emit(
            code, "user_approved", approval.user_id, extra_handles=[approval.socket_id]
        )
        await self.registry.emit(code, "refresh_user_lists")
        room = room_directory.find_by_code(db, code)
        if room is not None:
            await self.push_roster(db, room)

    async def kick_user(self, db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).one_or_none()
        if user is None:
            raise NotFound("User not found")
        handle = user.socket_id
        if handle:
            await self.registry.emit_to_handle(
                handle, "kicked_from_room", {"message": self.settings.kick_message}
            )
        presence.clear_presence(db, user)
        room = db.query(Room).filter(Room.id == user.room_id).one_or_none()
        if room is not None:
            if handle:
                self.registry.leave(handle, room.room_code)
            await self.registry.emit(room.room_code, "user_kicked", user.id)
            await self.registry.emit(room.room_code, "refresh_user_lists")
            await self.push_roster(db, room)
        logger.info("User kicked: %s", user.username)
        return user

    async def delete_room(self, db: Session, raw_code: str) -> room_directory.DeletedRoom:
        code = room_directory.normalize_code(raw_code)
        deleted = room_directory.delete_room(db, code)
        await self.registry.emit(code, "room_deleted")
        self.registry.drop_room(code)
        return deleted

    async def push_roster(self, db: Session, room: Room) -> None:
        live = presence.online_approved_users(db, room.id)
        await self.registry.emit(
            room.room_code, "superadmin_live_users", [serialize_roster_entry(u) for u in live]
        )
