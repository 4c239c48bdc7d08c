from flask import current_app, request
from flask_socketio import emit, join_room

from beauty_contest import EXTENSION_KEY, room_channel, socketio
from beauty_contest.services.games.voting import parse_submission

NAMESPACE = '/ws'


def _machine():
    return current_app.extensions[EXTENSION_KEY]


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room_code(data):
    """Accept either a bare room code or a payload carrying ``room_code``."""
    if isinstance(data, dict):
        data = data.get('room_code')
    if isinstance(data, (str, int)) and not isinstance(data, bool):
        code = str(data).strip()
        return code or None
    return None


def handle_connect(auth=None):
    emit('connected', {'sid': _get_sid()})


def handle_disconnect(reason=None):
    _machine().disconnect(_get_sid())


def handle_join(data):
    code = _room_code(data)
    if not code:
        emit('error', {'message': 'room_code is required'})
        return
    name = data.get('name') if isinstance(data, dict) else None
    if not isinstance(name, str):
        name = None
    join_room(room_channel(code))
    player = _machine().join(code, _get_sid(), name)
    emit('joined', {'room_code': code, 'player_id': player.id, 'name': player.name})


def handle_start(data):
    code = _room_code(data)
    if not code:
        emit('error', {'message': 'room_code is required'})
        return
    _machine().start(code, _get_sid())


def handle_submit(data):
    code = _room_code(data)
    if not code:
        emit('error', {'message': 'room_code is required'})
        return
    raw = data.get('number') if isinstance(data, dict) else None
    value = parse_submission(raw)
    if value is None:
        current_app.logger.debug(f"[ignored] event=submit room={code} sid={_get_sid()} invalid number")
        return
    _machine().submit(code, _get_sid(), value)


def handle_advance(data):
    code = _room_code(data)
    if not code:
        emit('error', {'message': 'room_code is required'})
        return
    _machine().advance(code, _get_sid())


def handle_ping(data=None):
    emit('pong', data or {})


def handle_error(exc):
    current_app.logger.exception(f"[socket-error] sid={_get_sid()} event={getattr(request, 'event', None)}")


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('join', handle_join, namespace=NAMESPACE)
    socketio.on_event('start', handle_start, namespace=NAMESPACE)
    socketio.on_event('submit', handle_submit, namespace=NAMESPACE)
    socketio.on_event('advance', handle_advance, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
    socketio.on_error(NAMESPACE)(handle_error)
