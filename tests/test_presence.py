from roomcast.models import User
from roomcast.services import presence

from .conftest import make_user


def test_mark_online_records_latest_handle(db, room):
    alice = make_user(db, room, "alice")

    presence.mark_online(db, alice.id, "first")
    user = presence.mark_online(db, alice.id, "second")

    assert user.is_online is True
    assert user.socket_id == "second"


def test_mark_online_unknown_user(db, room):
    assert presence.mark_online(db, 999, "handle") is None


def test_mark_offline_by_handle(db, room):
    alice = make_user(db, room, "alice", online=True, socket_id="h1")
    make_user(db, room, "bob", online=True, socket_id="h2")

    user = presence.mark_offline(db, "h1")

    assert user.id == alice.id
    db.expire_all()
    rows = {u.username: (u.is_online, u.socket_id) for u in db.query(User).all()}
    assert rows == {"alice": (False, None), "bob": (True, "h2")}
    assert presence.mark_offline(db, "unknown") is None


def test_roster_lists_only_online_approved_users(db, room):
    make_user(db, room, "online", online=True, socket_id="a")
    make_user(db, room, "offline")
    make_user(db, room, "waiting", status="pending", online=True, socket_id="b")

    assert [u.username for u in presence.online_approved_users(db, room.id)] == ["online"]


def test_clear_presence(db, room):
    alice = make_user(db, room, "alice", online=True, socket_id="h1")

    presence.clear_presence(db, alice)

    db.expire_all()
    stored = db.query(User).filter(User.id == alice.id).one()
    assert (stored.is_online, stored.socket_id) == (False, None)


def test_handle_moves_to_the_latest_user(db, room):
    alice = make_user(db, room, "alice")
    bob = make_user(db, room, "bob")

    presence.mark_online(db, alice.id, "shared")
    presence.mark_online(db, bob.id, "shared")

    db.expire_all()
    rows = {u.username: (u.is_online, u.socket_id) for u in db.query(User).all()}
    assert rows == {"alice": (False, None), "bob": (True, "shared")}

    assert presence.mark_offline(db, "shared").id == bob.id
    db.expire_all()
    assert db.query(User).filter(User.is_online.is_(True)).count() == 0
    assert db.query(User).filter(User.socket_id.isnot(None)).count() == 0
