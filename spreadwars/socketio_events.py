from flask_socketio import join_room, leave_room, emit
from spreadwars import socketio

NAMESPACE = '/ws'


def match_room(match_id) -> str:
    return f"match:{int(match_id)}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_match(data):
    match_id = (data or {}).get('match_id')
    try:
        room = match_room(match_id)
    except (TypeError, ValueError):
        emit('error', {'message': 'match_id is required'})
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_match(data):
    match_id = (data or {}).get('match_id')
    try:
        room = match_room(match_id)
    except (TypeError, ValueError):
        emit('error', {'message': 'match_id is required'})
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def notify_match_update(match_id) -> None:
    """Tell clients in the match room to poll for a fresh snapshot."""
    socketio.emit('match_update', {'match_id': int(match_id)}, to=match_room(match_id), namespace=NAMESPACE)


def notify_match_ended(match_id) -> None:
    socketio.emit('match_ended', {'match_id': int(match_id)}, to=match_room(match_id), namespace=NAMESPACE)


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for ns in namespaces:
        socketio.on_event('connect', handle_connect, namespace=ns)
        socketio.on_event('join_match', handle_join_match, namespace=ns)
        socketio.on_event('leave_match', handle_leave_match, namespace=ns)
        socketio.on_event('ping', handle_ping, namespace=ns)
