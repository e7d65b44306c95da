from onetoten.services.history import HistoryStore
from onetoten.services.rooms.commitment import commit


def _record(code, matched=True, p1=4, p2=4):
    return {
        'room_code': code,
        'player1_name': 'Ada',
        'player2_name': 'Bob',
        'challenge': 'Pick',
        'max_number': 10,
        'player1_number': p1,
        'player2_number': p2,
        'matched': matched,
    }


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_history_empty(client):
    res = client.get('/api/history')
    assert res.status_code == 200
    assert res.get_json() == []


def test_history_newest_first_and_limited(flask_app, client):
    store = flask_app.extensions['rooms'].history
    for i in range(3):
        store.append(_record(f'ROOM{i:02d}', matched=bool(i % 2), p2=i))

    data = client.get('/api/history').get_json()
    assert [g['room_code'] for g in data] == ['ROOM02', 'ROOM01', 'ROOM00']
    assert data[1]['matched'] == 1
    assert data[0]['matched'] == 0
    assert data[0]['player2_number'] == 2

    limited = client.get('/api/history?limit=1').get_json()
    assert [g['room_code'] for g in limited] == ['ROOM02']

    # limit is clamped into [1, HISTORY_LIMIT]
    assert len(client.get('/api/history?limit=0').get_json()) == 1
    assert len(client.get('/api/history?limit=500').get_json()) == 3


def test_history_store_without_app_context_binding(flask_app):
    store = HistoryStore()
    row_id = store.append(_record('PLAIN1'))
    assert row_id is not None
    assert store.recent(5)[0]['room_code'] == 'PLAIN1'


def test_rooms_lists_joinable_only(flask_app, client, clock):
    machine = flask_app.extensions['rooms'].machine
    open_code = machine.create_room('host-a')['roomCode']
    machine.set_name('host-a', 'Ada')
    machine.submit_challenge('host-a', 'Pick one', 7, commit(2, 'salt'))

    clock.advance(1)
    machine.create_room('host-b')  # no challenge yet

    clock.advance(1)
    full_code = machine.create_room('host-c')['roomCode']
    machine.submit_challenge('host-c', 'Taken', 10, commit(2, 'salt'))
    machine.join(full_code, 'guest-c')

    res = client.get('/api/rooms')
    assert res.status_code == 200
    rooms = res.get_json()
    assert [r['roomCode'] for r in rooms] == [open_code]
    assert rooms[0]['player1Name'] == 'Ada'
    assert rooms[0]['challenge'] == 'Pick one'
    assert rooms[0]['maxNumber'] == 7


def test_idle_room_expires_through_registry_sweep(flask_app, clock):
    state = flask_app.extensions['rooms']
    code = state.machine.create_room('host')['roomCode']
    clock.advance(state.registry.idle_expiry_sec + 1)
    assert state.registry.sweep() == [code]
    assert state.registry.get(code) is None
