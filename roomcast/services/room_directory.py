from __future__ import annotations

import logging
import random
import string
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import NotFound, PersistenceError, ValidationError
from ..models import Message, Room, User
from ..models.room import ROOM_CODE_LENGTH

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass(frozen=True)
class DeletedRoom:
    room_id: int
    room_code: str
    name: str
    users_removed: int
    messages_removed: int


def normalize_code(raw: str | None) -> str:
    return (raw or "").strip().upper()


def generate_room_code(rng: random.Random | None = None) -> str:
    rng = rng or random
    return "".join(rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


def create_room(
    db: Session,
    name: str | None,
    *,
    created_by: int | None = None,
    rng: random.Random | None = None,
) -> Room:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Room name is required")

    while True:
        code = generate_room_code(rng)
        if find_by_code(db, code) is None:
            break
        logger.info("Room code %s already taken, drawing again", code)

    room = Room(name=cleaned, room_code=code, created_by=created_by)
    db.add(room)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to create room %s: %s", cleaned, exc)
        raise PersistenceError() from exc
    logger.info("Room created: %s (%s)", room.name, room.room_code)
    return room


def find_by_code(db: Session, code: str) -> Room | None:
    return db.query(Room).filter(Room.room_code == code).one_or_none()


def resolve_by_code(db: Session, code: str) -> Room:
    """Exact match on the stored code; callers normalize with ``normalize_code`` first."""
    room = find_by_code(db, code)
    if room is None:
        raise NotFound("Room not found")
    return room


def delete_room(db: Session, code: str) -> DeletedRoom:
    """Remove a room with its messages and users, in that order, as one transaction."""
    room = resolve_by_code(db, code)
    snapshot_id, snapshot_code, snapshot_name = room.id, room.room_code, room.name
    try:
        messages_removed = (
            db.query(Message).filter(Message.room_id == snapshot_id).delete(synchronize_session=False)
        )
        users_removed = db.query(User).filter(User.room_id == snapshot_id).delete(synchronize_session=False)
        db.delete(room)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to delete room %s: %s", snapshot_code, exc)
        raise PersistenceError() from exc
    logger.info(
        "Room deleted: %s (%d users, %d messages)", snapshot_code, users_removed, messages_removed
    )
    return DeletedRoom(
        room_id=snapshot_id,
        room_code=snapshot_code,
        name=snapshot_name,
        users_removed=users_removed,
        messages_removed=messages_removed,
    )


def request_join(db: Session, username: str | None, code: str | None) -> User:
    username = (username or "").strip()
    formatted = normalize_code(code)
    if not username or not formatted:
        raise ValidationError("Username and Room Code are required")

    room = resolve_by_code(db, formatted)
    user = User(username=username, room_id=room.id, role="user", status="pending")
    db.add(user)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to register join request for %s: %s", username, exc)
        raise PersistenceError() from exc
    logger.info("Join request from %s for room %s", username, formatted)
    return user


def pending_users(db: Session, room: Room) -> list[User]:
    return (
        db.query(User)
        .filter(User.room_id == room.id, User.status == "pending")
        .order_by(User.created_at.asc(), User.id.asc())
        .all()
    )


def all_users(db: Session, room: Room) -> list[User]:
    return (
        db.query(User)
        .filter(User.room_id == room.id)
        .order_by(User.created_at.asc(), User.id.asc())
        .all()
    )
