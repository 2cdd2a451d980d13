"""Seed a demo room with an approved member, an admin and a few messages."""

from app_path import ensure_project_on_path

ensure_project_on_path()

from roomcast.db import SessionLocal  # noqa: E402
from roomcast.models import Message, Room, User  # noqa: E402
from roomcast.services import room_directory  # noqa: E402

DEMO_ROOM_NAME = "Demo Room"
DEMO_MESSAGES = [
    ("approved", "Welcome to the demo room"),
    ("pending", "Is the stream live yet?"),
]


def ensure_room(session) -> Room:
    room = session.query(Room).filter(Room.name == DEMO_ROOM_NAME).order_by(Room.id.asc()).first()
    if room is None:
        room = room_directory.create_room(session, DEMO_ROOM_NAME)
    return room


def ensure_user(session, room: Room, username: str, role: str) -> User:
    user = (
        session.query(User)
        .filter(User.room_id == room.id, User.username == username)
        .one_or_none()
    )
    if user:
        return user
    user = User(username=username, role=role, room_id=room.id, status="approved")
    session.add(user)
    session.flush()
    return user


def ensure_messages(session, room: Room, sender: User) -> None:
    if session.query(Message).filter(Message.room_id == room.id).count():
        return
    for status, content in DEMO_MESSAGES:
        session.add(Message(room_id=room.id, sender_id=sender.id, content=content, status=status))


def main() -> None:
    session = SessionLocal()
    try:
        room = ensure_room(session)
        member = ensure_user(session, room, "demo-member", "user")
        ensure_user(session, room, "demo-admin", "admin")
        ensure_messages(session, room, member)
        session.commit()
        print("Demo data ready:")
        print(f"  Room code: {room.room_code}")
        print(f"  Member user id: {member.id}")
    finally:
        session.close()


if __name__ == "__main__":
    main()
