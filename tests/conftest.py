import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["AUTO_MIGRATE"] = "false"
os.environ["CREATE_TABLES"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from roomcast.config import Settings  # noqa: E402
from roomcast.db import SessionLocal, build_engine  # noqa: E402
from roomcast.models import Base, Message, User  # noqa: E402
from roomcast.realtime import Broadcaster  # noqa: E402
from roomcast.services import room_directory  # noqa: E402


class ScriptedRandom:
    """Stand-in RNG that spells out the given room codes one character at a time."""

    def __init__(self, *codes: str) -> None:
        self._chars = iter("".join(codes))

    def choice(self, seq):
        return next(self._chars)


class FakeTransport:
    def __init__(self, fail: bool = False) -> None:
        self.frames: list[dict] = []
        self.fail = fail

    async def send_json(self, data) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.frames.append(data)

    def events(self) -> list[str]:
        return [frame["event"] for frame in self.frames]

    def data_for(self, event: str) -> list:
        return [frame["data"] for frame in self.frames if frame["event"] == event]


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    SessionLocal.configure(bind=engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return Settings(root_password=None, admin_password=None, broadcast_password=None)


@pytest.fixture
def broadcaster(engine, settings):
    return Broadcaster(SessionLocal, settings=settings)


@pytest.fixture
def app(broadcaster):
    from roomcast.main import app

    app.state.broadcaster = broadcaster
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def room(db):
    return room_directory.create_room(db, "Test", rng=ScriptedRandom("AB12CD"))


def make_user(db, room, username, *, status="approved", role="user", online=False, socket_id=None):
    user = User(
        username=username,
        room_id=room.id,
        role=role,
        status=status,
        is_online=online,
        socket_id=socket_id,
    )
    db.add(user)
    db.commit()
    return user


def make_message(db, room, sender, content, *, status="pending"):
    message = Message(room_id=room.id, sender_id=sender.id, content=content, status=status)
    db.add(message)
    db.commit()
    return message


def wait_for(ws, event, limit=50):
    """Read frames until ``event`` arrives and return its data."""
    for _ in range(limit):
        frame = ws.receive_json()
        if frame["event"] == event:
            return frame["data"]
    raise AssertionError(f"{event} not received within {limit} frames")


def drain(ws, limit=50):
    """Return the events delivered before a round-trip marker frame."""
    ws.send_json({"event": "__marker__", "data": {}})
    seen = []
    for _ in range(limit):
        frame = ws.receive_json()
        if frame["event"] == "error" and frame["data"] == {"message": "Unknown event"}:
            return seen
        seen.append(frame["event"])
    raise AssertionError("marker frame never came back")
