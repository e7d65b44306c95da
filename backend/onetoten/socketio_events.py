from functools import wraps

from flask import current_app, request
from flask_socketio import emit

from onetoten import socketio
from onetoten.services.rooms import InvalidInputError, RoomError
from onetoten.services.rooms.scheduler import ensure_sweeper

NAMESPACE = '/'


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _machine():
    return current_app.extensions['rooms'].machine


def _payload(data) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInputError('Malformed request')
    return data


def acknowledged(handler):
    """Turn room errors into ``{'success': False, 'error': ...}`` acks."""

    @wraps(handler)
    def wrapper(*args):
        try:
            return handler(*args)
        except RoomError as exc:
            current_app.logger.info(f"[rejected] event={handler.__name__} sid={_get_sid()} kind={exc.kind} error={exc.message}")
            return exc.to_dict()

    return wrapper


def handle_connect(auth=None):
    ensure_sweeper(current_app._get_current_object())
    emit('connected', {'message': 'Connected'})


def handle_disconnect(reason=None):
    _machine().disconnect(_get_sid())


@acknowledged
def handle_create_room(*_):
    return _machine().create_room(_get_sid())


@acknowledged
def handle_join_room(room_code=None, *_):
    if isinstance(room_code, dict):
        room_code = room_code.get('roomCode')
    return _machine().join(room_code, _get_sid())


@acknowledged
def handle_rejoin_room(data=None, *_):
    data = _payload(data)
    return _machine().rejoin(data.get('roomCode'), data.get('sessionToken'), _get_sid())


@acknowledged
def handle_set_name(name=None, *_):
    if isinstance(name, dict):
        name = name.get('name')
    return _machine().set_name(_get_sid(), name)


@acknowledged
def handle_submit_challenge(data=None, *_):
    data = _payload(data)
    return _machine().submit_challenge(
        _get_sid(),
        data.get('challenge'),
        data.get('maxNumber'),
        data.get('numberHash'),
    )


@acknowledged
def handle_submit_guess(data=None, *_):
    data = _payload(data)
    return _machine().submit_guess(_get_sid(), data.get('number'))


@acknowledged
def handle_reveal_number(data=None, *_):
    data = _payload(data)
    return _machine().reveal(_get_sid(), data.get('number'), data.get('salt'))


def push(event: str, to: str, payload=None) -> None:
    """Emit a server push to a single connection."""
    # socketio.emit works outside a request context, e.g. from background tasks
    if payload is None:
        socketio.emit(event, to=to, namespace=NAMESPACE)
    else:
        socketio.emit(event, payload, to=to, namespace=NAMESPACE)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the default namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('create-room', handle_create_room, namespace=NAMESPACE)
    socketio.on_event('join-room', handle_join_room, namespace=NAMESPACE)
    socketio.on_event('rejoin-room', handle_rejoin_room, namespace=NAMESPACE)
    socketio.on_event('set-name', handle_set_name, namespace=NAMESPACE)
    socketio.on_event('submit-challenge', handle_submit_challenge, namespace=NAMESPACE)
    socketio.on_event('submit-guess', handle_submit_guess, namespace=NAMESPACE)
    socketio.on_event('reveal-number', handle_reveal_number, namespace=NAMESPACE)
