from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import NotFound, PersistenceError
from ..models import Message, Room, User
from . import room_directory
from .serializers import serialize_message, serialize_messages, serialize_user

logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"
DELETED = "deleted"


@dataclass(frozen=True)
class ModerationResult:
    """What the broadcaster needs to route a moderation outcome.

    ``status`` is the message state after the transition; ``message`` is the wire
    shape with the sender resolved (for deletions, the record as it was removed).
    """

    message_id: int
    room_code: str
    status: str
    message: dict


@dataclass(frozen=True)
class UserApproval:
    user_id: int
    room_id: int
    room_code: str | None
    socket_id: str | None
    user: dict


def _room_code_for(db: Session, room_id: int) -> str | None:
    room = db.query(Room).filter(Room.id == room_id).one_or_none()
    return room.room_code if room else None


def _result(db: Session, message: Message, room_code: str, status: str) -> ModerationResult:
    sender = db.query(User).filter(User.id == message.sender_id).one_or_none()
    lookup = {sender.id: sender} if sender else {}
    payload = serialize_message(message, lookup, room_code)
    payload["status"] = status
    return ModerationResult(message_id=message.id, room_code=room_code, status=status, message=payload)


def submit(db: Session, user_id: int, room_code: str, content: str | None) -> ModerationResult | None:
    text = (content or "").strip()
    if not text:
        return None

    formatted = room_directory.normalize_code(room_code)
    room = room_directory.find_by_code(db, formatted)
    if room is None:
        logger.warning("send_message dropped: room %r not found", formatted)
        return None
    sender = db.query(User).filter(User.id == user_id).one_or_none()
    if sender is None:
        logger.warning("send_message dropped: sender %s not found", user_id)
        return None
    if sender.room_id != room.id:
        logger.warning("send_message dropped: sender %s is not a member of room %s", user_id, formatted)
        return None

    message = Message(room_id=room.id, sender_id=sender.id, content=text, status=PENDING)
    db.add(message)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to store message for room %s: %s", formatted, exc)
        raise PersistenceError() from exc
    return _result(db, message, room.room_code, PENDING)


def approve(db: Session, message_id: int) -> ModerationResult:
    """Move a message to approved. Re-approving returns the same result again."""
    message = db.query(Message).filter(Message.id == message_id).one_or_none()
    if message is None:
        raise NotFound("Message not found")
    if message.status != APPROVED:
        message.status = APPROVED
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Failed to approve message %s: %s", message_id, exc)
            raise PersistenceError() from exc
    room_code = _room_code_for(db, message.room_id)
    if room_code is None:
        raise NotFound("Room not found")
    return _result(db, message, room_code, APPROVED)


def delete(db: Session, message_id: int) -> ModerationResult:
    message = db.query(Message).filter(Message.id == message_id).one_or_none()
    if message is None:
        raise NotFound("Message not found")
    # resolve the routing target before the row disappears
    room_code = _room_code_for(db, message.room_id)
    if room_code is None:
        raise NotFound("Room not found")
    result = _result(db, message, room_code, DELETED)
    try:
        db.delete(message)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to delete message %s: %s", message_id, exc)
        raise PersistenceError() from exc
    logger.info("Message deleted permanently: %s", message_id)
    return result


def room_history(db: Session, room: Room) -> list[dict]:
    messages = (
        db.query(Message)
        .filter(Message.room_id == room.id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )
    return serialize_messages(db, messages, room.room_code)


def _by_status(db: Session, room: Room, status: str) -> list[dict]:
    messages = (
        db.query(Message)
        .filter(Message.room_id == room.id, Message.status == status)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )
    return serialize_messages(db, messages, room.room_code)


def pending_messages(db: Session, room: Room) -> list[dict]:
    return _by_status(db, room, PENDING)


def approved_messages(db: Session, room: Room) -> list[dict]:
    return _by_status(db, room, APPROVED)


def approve_user(db: Session, user_id: int) -> UserApproval:
    user = db.query(User).filter(User.id == user_id).one_or_none()
    if user is None:
        raise NotFound("User not found")
    if user.status != APPROVED:
        user.status = APPROVED
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Failed to approve user %s: %s", user_id, exc)
            raise PersistenceError() from exc
        logger.info("User approved: %s", user.username)
    return UserApproval(
        user_id=user.id,
        room_id=user.room_id,
        room_code=_room_code_for(db, user.room_id),
        socket_id=user.socket_id,
        user=serialize_user(user),
    )
