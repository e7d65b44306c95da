import pytest

from onetoten.services.rooms import COMPLETED, RoomNotFoundError, RoomRegistry


def test_create_returns_code_and_token(registry):
    code, token = registry.create('sid-1')
    assert len(code) == 6
    assert code == code.upper()
    assert len(token) >= 16
    room = registry.lookup(code)
    assert room.state == 'waiting'
    assert room.player1.connection_id == 'sid-1'
    assert room.player1.session_token == token
    assert room.player2 is None
    assert room.max_number == 10


def test_lookup_is_case_insensitive(registry):
    code, _ = registry.create('sid-1')
    assert registry.lookup(f'  {code.lower()} ').code == code
    assert code.lower() in registry


def test_lookup_unknown_code_raises(registry):
    with pytest.raises(RoomNotFoundError):
        registry.lookup('NOPE42')
    assert registry.get('NOPE42') is None
    assert registry.get(None) is None


def test_list_joinable_only_challenged_rooms_without_guesser_newest_first(registry, clock):
    waiting, _ = registry.create('a')
    clock.advance(1)
    older, _ = registry.create('b')
    clock.advance(1)
    newer, _ = registry.create('c')
    clock.advance(1)
    taken, _ = registry.create('d')

    for code in (older, newer, taken):
        registry.lookup(code).state = 'challenge_set'
        registry.lookup(code).challenge = f'challenge {code}'
    registry.lookup(newer).player1.name = 'Ada'
    registry.lookup(taken).player2 = registry.lookup(taken).player1

    listed = registry.list_joinable()
    assert [r['roomCode'] for r in listed] == [newer, older]
    assert waiting not in [r['roomCode'] for r in listed]
    assert listed[0]['player1Name'] == 'Ada'
    assert listed[0]['challenge'] == f'challenge {newer}'
    assert listed[0]['maxNumber'] == 10
    assert isinstance(listed[0]['createdAt'], int)


def test_new_session_token_differs_from_player1(registry):
    code, token = registry.create('a')
    room = registry.lookup(code)
    assert registry.new_session_token(room) != token


def test_expire_removes_room_and_retires_code(registry):
    code, _ = registry.create('a')
    assert registry.expire(code) is True
    assert code not in registry
    assert registry.expire(code) is False

    # A retired code is skipped even if the generator produces it again
    produced = iter([code, code, 'FRESH1'])
    registry._random_code = lambda: next(produced)
    new_code, _ = registry.create('b')
    assert new_code == 'FRESH1'


def test_idle_room_is_swept_after_ceiling(registry, clock):
    code, _ = registry.create('a')
    clock.advance(3599)
    assert registry.sweep() == []
    assert code in registry
    clock.advance(2)
    assert registry.sweep() == [code]
    assert code not in registry


def test_completed_room_is_swept_after_retention(registry, clock):
    code, _ = registry.create('a')
    room = registry.lookup(code)
    room.state = COMPLETED
    registry.schedule_cleanup(code)
    clock.advance(299)
    assert registry.sweep() == []
    clock.advance(1)
    assert registry.sweep() == [code]


def test_expire_if_due_waits_for_deadline(registry, clock):
    code, _ = registry.create('a')
    deadline = registry.schedule_cleanup(code)
    assert deadline == clock() + 300
    assert registry.expire_if_due(code, deadline) is False
    clock.advance(300)
    assert registry.expire_if_due(code, deadline) is True
    assert code not in registry


def test_stale_cleanup_deadline_is_ignored(registry, clock):
    code, _ = registry.create('a')
    first = registry.schedule_cleanup(code)
    clock.advance(10)
    second = registry.schedule_cleanup(code)
    clock.advance(300)
    assert registry.expire_if_due(code, first) is False
    assert code in registry
    assert registry.expire_if_due(code, second) is True


def test_from_config_reads_flask_style_mapping(clock):
    registry = RoomRegistry.from_config(
        {'ROOM_CODE_LENGTH': 8, 'ROOM_RETENTION_SEC': 5, 'ROOM_IDLE_EXPIRY_SEC': 60},
        clock=clock,
    )
    code, _ = registry.create('a')
    assert len(code) == 8
    assert registry.retention_sec == 5
    assert registry.idle_expiry_sec == 60
    assert registry.clock is clock


class _StateThatOpensRoom:
    """A room state whose comparison creates another room, as a handler would mid-sweep."""

    def __init__(self, registry):
        self.registry = registry
        self.fired = False

    def __eq__(self, other):
        if not self.fired:
            self.fired = True
            self.registry.create('late-arrival')
        return False

    __hash__ = object.__hash__


def test_sweep_tolerates_rooms_created_while_it_runs(registry, clock):
    first, _ = registry.create('a')
    registry.create('b')
    registry.lookup(first).state = _StateThatOpensRoom(registry)
    clock.advance(3601)
    expired = registry.sweep()
    assert first in expired
    assert len(expired) == 2
    # The room opened mid-sweep is fresh and survives
    assert len(registry) == 1
