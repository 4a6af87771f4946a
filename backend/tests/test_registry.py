import random

from kuzgun.models import Phase
from kuzgun.services.game.registry import RoomRegistry


class FixedChoices:
    """Feeds generate_room_code a scripted sequence of characters."""

    def __init__(self, text):
        self._chars = iter(text)

    def choice(self, _alphabet):
        return next(self._chars)


def test_create_room_with_owner():
    registry = RoomRegistry(rng=random.Random(1))
    room = registry.create('sid-1', 'Oyuncu-1')
    assert len(room.room_id) == 5
    assert room.room_id == room.room_id.lower()
    assert [p.id for p in room.players] == ['sid-1']
    assert room.owner.username == 'Oyuncu-1'
    assert room.phase == Phase.LOBBY
    assert registry.get(room.room_id) is room
    assert room.room_id in registry


def test_colliding_code_is_regenerated():
    registry = RoomRegistry(code_length=3, rng=FixedChoices('abcabcxyz'))
    first = registry.create('a', 'Alice')
    second = registry.create('b', 'Bobby')
    assert first.room_id == 'abc'
    assert second.room_id == 'xyz'
    assert len(registry) == 2


def test_get_normalises_and_rejects_non_strings():
    registry = RoomRegistry(rng=random.Random(2))
    room = registry.create('sid-1', 'Alice')
    assert registry.get(f"  {room.room_id.upper()} ") is room
    assert registry.get(None) is None
    assert registry.get(123) is None
    assert registry.get('nope!') is None


def test_remove_and_rooms_for_player():
    registry = RoomRegistry(rng=random.Random(3))
    room = registry.create('sid-1', 'Alice')
    other = registry.create('sid-2', 'Bob')
    assert registry.rooms_for_player('sid-1') == [room]
    assert registry.remove(room.room_id) is room
    assert registry.get(room.room_id) is None
    assert registry.remove(room.room_id) is None
    assert registry.rooms_for_player('sid-1') == []
    assert registry.rooms_for_player('sid-2') == [other]


def test_reap_idle():
    now = [100.0]
    registry = RoomRegistry(rng=random.Random(4), clock=lambda: now[0])
    stale = registry.create('sid-1', 'Alice')
    now[0] = 200.0
    fresh = registry.create('sid-2', 'Bob')
    reaped = registry.reap_idle(60, now=now[0] + 30)
    assert reaped == [stale]
    assert registry.get(stale.room_id) is None
    assert registry.get(fresh.room_id) is fresh
    assert registry.reap_idle(0) == []


def test_contains_normalises_like_get():
    registry = RoomRegistry(rng=random.Random(5))
    room = registry.create('sid-1', 'Alice')
    assert room.room_id.upper() in registry
    assert f" {room.room_id} " in registry
    assert 'nope!' not in registry
    assert None not in registry


def test_reap_logs_room_age(caplog):
    now = [10.0]
    registry = RoomRegistry(rng=random.Random(6), clock=lambda: now[0])
    room = registry.create('sid-1', 'Alice')
    room.touch(50.0)
    with caplog.at_level('INFO', logger='kuzgun.services.game.registry'):
        registry.reap_idle(30, now=100.0)
    assert f"[room-reap] room={room.room_id} idle=50s age=90s" in caplog.text
