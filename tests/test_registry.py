import asyncio

from roomcast.realtime.registry import BROADCAST, ROOM, Connection, SessionRegistry

from .conftest import FakeTransport


def _connect(registry, handle, fail=False):
    transport = FakeTransport(fail=fail)
    registry.register(Connection(transport, handle=handle))
    return transport


def test_room_wide_emit_reaches_every_partition():
    registry = SessionRegistry()
    member = _connect(registry, "member")
    admin = _connect(registry, "admin")
    screen = _connect(registry, "screen")
    outsider = _connect(registry, "outsider")
    registry.admit("AB12CD", "user", "member")
    registry.admit("AB12CD", "admin", "admin")
    registry.admit("AB12CD", "broadcast", "screen")
    registry.admit("ZZ9999", "user", "outsider")

    delivered = asyncio.run(registry.emit("AB12CD", "refresh_user_lists"))

    assert delivered == 3
    for transport in (member, admin, screen):
        assert transport.frames == [{"event": "refresh_user_lists", "data": None}]
    assert outsider.frames == []


def test_broadcast_scope_only_reaches_broadcast_partition():
    registry = SessionRegistry()
    member = _connect(registry, "member")
    screen = _connect(registry, "screen")
    registry.admit("AB12CD", "user", "member")
    registry.admit("AB12CD", "broadcast", "screen")

    asyncio.run(registry.emit("AB12CD", "broadcast_message", {"_id": 1}, scopes=(BROADCAST,)))

    assert member.frames == []
    assert screen.events() == ["broadcast_message"]


def test_emit_delivers_once_per_handle():
    registry = SessionRegistry()
    screen = _connect(registry, "screen")
    member = _connect(registry, "member")
    registry.admit("AB12CD", "broadcast", "screen")
    registry.admit("AB12CD", "user", "member")

    delivered = asyncio.run(
        registry.emit(
            "AB12CD", "message_deleted", 5, scopes=(ROOM, BROADCAST), extra_handles=["member", None]
        )
    )

    assert delivered == 2
    assert screen.data_for("message_deleted") == [5]
    assert member.data_for("message_deleted") == [5]


def test_emit_to_empty_room_is_a_noop():
    assert asyncio.run(SessionRegistry().emit("NOPE00", "room_deleted")) == 0


def test_failed_send_drops_only_that_connection():
    registry = SessionRegistry()
    healthy = _connect(registry, "healthy")
    _connect(registry, "broken", fail=True)
    registry.admit("AB12CD", "user", "healthy")
    registry.admit("AB12CD", "admin", "broken")

    delivered = asyncio.run(registry.emit("AB12CD", "receive_message", {"_id": 1}))

    assert delivered == 1
    assert healthy.events() == ["receive_message"]
    assert registry.get("broken") is None
    assert registry.audience("AB12CD") == {"healthy"}


def test_emit_to_handle():
    registry = SessionRegistry()
    target = _connect(registry, "target")

    assert asyncio.run(registry.emit_to_handle("target", "user_approved", 3)) is True
    assert asyncio.run(registry.emit_to_handle(None, "user_approved", 3)) is False
    assert asyncio.run(registry.emit_to_handle("gone", "user_approved", 3)) is False
    assert target.data_for("user_approved") == [3]


def test_unregister_and_leave_cleanup():
    registry = SessionRegistry()
    _connect(registry, "multi")
    _connect(registry, "other")
    registry.admit("AB12CD", "user", "multi")
    registry.admit("ZZ9999", "admin", "multi")
    registry.admit("ZZ9999", "user", "other")

    registry.leave("multi", "AB12CD")
    assert registry.partitions("AB12CD") is None
    assert registry.rooms_of("multi") == {"ZZ9999"}

    assert registry.unregister("multi") == {"ZZ9999"}
    assert registry.audience("ZZ9999") == {"other"}
    assert registry.get("multi") is None


def test_drop_room_forgets_partitions():
    registry = SessionRegistry()
    _connect(registry, "member")
    registry.admit("AB12CD", "user", "member")
    registry.admit("ZZ9999", "user", "member")

    registry.drop_room("AB12CD")

    assert registry.partitions("AB12CD") is None
    assert registry.rooms_of("member") == {"ZZ9999"}
    assert registry.get("member") is not None
