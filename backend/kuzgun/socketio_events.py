from flask import current_app, request
from kuzgun import socketio
from kuzgun.services.game import KuzgunGameError


class SocketIOBroadcaster:
    """Delivers engine events over Socket.IO.

    Each game room maps to a Socket.IO room of the same name; every
    connection is also addressable by its own sid.
    """

    def __init__(self, sio, namespace='/'):
        self.sio = sio
        self.namespace = namespace

    def _emit(self, event, payload, to):
        if payload is None:
            self.sio.emit(event, to=to, namespace=self.namespace)
        else:
            self.sio.emit(event, payload, to=to, namespace=self.namespace)

    def to_room(self, room_id, event, payload=None):
        self._emit(event, payload, room_id)

    def to_player(self, player_id, event, payload=None):
        self._emit(event, payload, player_id)

    def enter(self, player_id, room_id):
        self.sio.server.enter_room(player_id, room_id, namespace=self.namespace)

    def close(self, room_id):
        self.sio.server.close_room(room_id, namespace=self.namespace)


def _engine():
    return current_app.extensions['kuzgun']


def _get_sid() -> str:
    return request.sid  # type: ignore


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid} reason={reason}")
    _engine().player_disconnected(sid)


def handle_create_room(data=None):
    return _engine().create_room(_get_sid())


def handle_join_room(data=None):
    room_id = _payload(data).get('roomId')
    try:
        _engine().join_room(room_id, _get_sid())
    except KuzgunGameError as exc:
        current_app.logger.info(f"[join-rejected] sid={_get_sid()} room={room_id} code={exc.code}")
        return exc.to_ack()
    return {'success': True}


def handle_set_username(data=None):
    data = _payload(data)
    _engine().set_username(data.get('roomId'), _get_sid(), data.get('username'))


def handle_start_game(data=None):
    _engine().start_game(_payload(data).get('roomId'), _get_sid())


def handle_play_card(data=None):
    data = _payload(data)
    card_index = data.get('cardIndex', data.get('selectedCardIndex'))
    guessed_kind = data.get('guessedKind', data.get('selectedWord'))
    _engine().play_card(data.get('roomId'), _get_sid(), card_index, guessed_kind)


def handle_player_reacted(data=None):
    _engine().player_reacted(_payload(data).get('roomId'), _get_sid())


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('createRoom', handle_create_room, namespace=namespace)
    socketio.on_event('joinRoom', handle_join_room, namespace=namespace)
    socketio.on_event('setUsername', handle_set_username, namespace=namespace)
    socketio.on_event('startGame', handle_start_game, namespace=namespace)
    socketio.on_event('playCard', handle_play_card, namespace=namespace)
    socketio.on_event('playerReacted', handle_player_reacted, namespace=namespace)
