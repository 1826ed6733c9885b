from flask import current_app, request
from flask_socketio import emit, join_room

from gifleague import socketio
from gifleague.errors import GameError
from gifleague.hub import Transport
from gifleague.services.games.state_machine import CALLER, OTHERS, ROOM


class SocketTransport(Transport):
    def __init__(self, namespace: str):
        self.namespace = namespace

    def enter(self, handle, room_id):
        join_room(room_id, sid=handle, namespace=self.namespace)

    def send(self, delivery, handle, room_id):
        if delivery.audience == CALLER or room_id is None:
            socketio.emit(delivery.event, delivery.payload, to=handle, namespace=self.namespace)
        elif delivery.audience == OTHERS:
            socketio.emit(delivery.event, delivery.payload, to=room_id, skip_sid=handle, namespace=self.namespace)
        elif delivery.audience == ROOM:
            socketio.emit(delivery.event, delivery.payload, to=room_id, namespace=self.namespace)


def _hub():
    return current_app.extensions['gifleague']


def _transport():
    return SocketTransport(current_app.config.get('SOCKETIO_NAMESPACE', '/'))


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    presented = (auth or {}).get('sessionId') if isinstance(auth, dict) else None
    _hub().connect(_get_sid(), presented, _transport())


def handle_disconnect(*args):
    _hub().disconnect(_get_sid())


def handle_ping(data=None):
    _hub().heartbeat(_get_sid())
    emit('pong', data or {})


def _action(name, method):
    """Wrap a hub method as a socket handler.

    User-actionable rejections go back to the caller as ``error``; the
    rest are logged and dropped so client retries stay harmless.
    """
    def handler(data=None):
        sid = _get_sid()
        try:
            getattr(_hub(), method)(sid, data if isinstance(data, dict) else {}, _transport())
        except GameError as exc:
            if exc.surface:
                current_app.logger.info(f"[rejected] action={name} sid={sid} reason={exc.message}")
                emit('error', {'message': exc.message})
            else:
                current_app.logger.debug(f"[ignored] action={name} sid={sid} reason={exc.message}")
    handler.__name__ = f"handle_{method}"
    return handler


ACTIONS = {
    'create-room': 'create_room',
    'join-room': 'join_room',
    'start-game': 'start_game',
    'submit-topic': 'submit_topic',
    'submit-gif': 'submit_gif',
    'submit-vote': 'submit_vote',
    'next-round': 'next_round',
}


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('ping', handle_ping, namespace=namespace)
    for event, method in ACTIONS.items():
        socketio.on_event(event, _action(event, method), namespace=namespace)
