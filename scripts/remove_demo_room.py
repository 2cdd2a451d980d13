#!/usr/bin/env python
"""Delete the seeded demo room with its users and messages."""

from __future__ import annotations

import argparse

from app_path import ensure_project_on_path

ensure_project_on_path()

from roomcast.db import SessionLocal  # noqa: E402
from roomcast.models import Message, Room, User  # noqa: E402
from roomcast.services import room_directory  # noqa: E402
from seed_demo import DEMO_ROOM_NAME  # noqa: E402


def purge_demo_rooms(session, *, force: bool) -> bool:
    rooms = session.query(Room).filter(Room.name == DEMO_ROOM_NAME).all()
    if not rooms:
        print("[remove_demo] Nothing to delete.")
        return False

    for room in rooms:
        users = session.query(User).filter(User.room_id == room.id).count()
        messages = session.query(Message).filter(Message.room_id == room.id).count()
        print(f"[remove_demo] Found demo room {room.room_code} (id={room.id}).")
        print(f"  - users: {users}")
        print(f"  - messages: {messages}")

    if not force:
        response = input("Proceed with deletion? Type 'yes' to continue: ").strip().lower()
        if response != "yes":
            print("[remove_demo] Aborted.")
            return False

    for code in [room.room_code for room in rooms]:
        room_directory.delete_room(session, code)
    print("[remove_demo] Demo data removed.")
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description="Delete the seeded demo room")
    parser.add_argument("--force", action="store_true", help="skip confirmation prompt")
    args = parser.parse_args()
    session = SessionLocal()
    try:
        changed = purge_demo_rooms(session, force=args.force)
    finally:
        session.close()
    return 0 if changed else 1


if __name__ == "__main__":
    raise SystemExit(main())
