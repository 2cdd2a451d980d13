"""Per-user online flag and connection handle.

Presence is best effort: storage failures are logged and swallowed so they never
block message flow.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import User

logger = logging.getLogger(__name__)


def mark_online(db: Session, user_id: int, handle: str) -> User | None:
    try:
        user = db.query(User).filter(User.id == user_id).one_or_none()
        if user is None:
            logger.warning("Presence update for unknown user %s", user_id)
            return None
        # a connection speaks for one user at a time
        db.query(User).filter(User.socket_id == handle, User.id != user_id).update(
            {User.is_online: False, User.socket_id: None}, synchronize_session=False
        )
        user.is_online = True
        user.socket_id = handle
        db.commit()
        return user
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to mark user %s online: %s", user_id, exc)
        return None


def mark_offline(db: Session, handle: str) -> User | None:
    try:
        user = db.query(User).filter(User.socket_id == handle).first()
        if user is None:
            return None
        user.is_online = False
        user.socket_id = None
        db.commit()
        return user
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to clear presence for connection %s: %s", handle, exc)
        return None


def clear_presence(db: Session, user: User) -> User | None:
    try:
        user.is_online = False
        user.socket_id = None
        db.commit()
        return user
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to clear presence for user %s: %s", user.id, exc)
        return None


def online_approved_users(db: Session, room_id: int) -> list[User]:
    try:
        return (
            db.query(User)
            .filter(User.room_id == room_id, User.status == "approved", User.is_online.is_(True))
            .order_by(User.created_at.asc(), User.id.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to load live roster for room %s: %s", room_id, exc)
        return []
