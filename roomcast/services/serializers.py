"""Read-side wire shapes.

Messages store only ``sender_id``; the sender's display name is joined in here so
every audience receives the same ``sender`` object regardless of which path
produced the message.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from ..models import Message, Room, User


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_room(room: Room) -> dict:
    return {
        "_id": room.id,
        "roomCode": room.room_code,
        "name": room.name,
        "createdBy": room.created_by,
        "createdAt": _iso(room.created_at),
    }


def serialize_user(user: User) -> dict:
    return {
        "_id": user.id,
        "username": user.username,
        "role": user.role,
        "room": user.room_id,
        "status": user.status,
        "isOnline": bool(user.is_online),
        "createdAt": _iso(user.created_at),
    }


def serialize_roster_entry(user: User) -> dict:
    return {
        "_id": user.id,
        "username": user.username,
        "role": user.role,
        "isOnline": bool(user.is_online),
    }


def serialize_message(message: Message, user_lookup: dict[int, User], room_code: str | None = None) -> dict:
    author = user_lookup.get(message.sender_id)
    return {
        "_id": message.id,
        "room": message.room_id,
        "roomCode": room_code,
        "sender": {"_id": author.id, "username": author.username} if author else None,
        "content": message.content,
        "status": message.status,
        "createdAt": _iso(message.created_at),
    }


def build_user_lookup(db: Session, messages: Iterable[Message]) -> dict[int, User]:
    sender_ids = {m.sender_id for m in messages}
    if not sender_ids:
        return {}
    return {user.id: user for user in db.query(User).filter(User.id.in_(sender_ids)).all()}


def serialize_messages(db: Session, messages: list[Message], room_code: str | None = None) -> list[dict]:
    user_lookup = build_user_lookup(db, messages)
    return [serialize_message(m, user_lookup, room_code) for m in messages]
