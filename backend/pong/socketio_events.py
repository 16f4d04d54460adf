from flask_socketio import join_room, emit
from flask import current_app, request
from typing import Dict, Optional
import logging

from pong import socketio
from pong.models import MatchState, Session, Side

MODES = ('AI', 'PVP')
KEYS = ('up', 'down')


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == value


def _player_label(side: Side) -> str:
    return '1 (left paddle)' if side is Side.LEFT else '2 (right paddle)'


class SessionGateway:
    """Maps socket connections onto registry operations and paddle input.

    Each connection gets a ``Session`` record here; nothing is stored on the
    transport object. Protocol errors (unknown events payloads, input before
    a match is assigned) are dropped without telling anyone.
    """

    def __init__(self, registry, scheduler=None, paddle_key_speed: float = 5.0, logger=None,
                 autostart: bool = False):
        self.registry = registry
        self.scheduler = scheduler
        # Physics loop starts with the first socket connection
        self.autostart = autostart
        self.paddle_key_speed = paddle_key_speed
        self.logger = logger or logging.getLogger(__name__)
        self.sessions: Dict[str, Session] = {}

    def _ignored(self, sid: str, event: str, reason: str) -> None:
        self.logger.debug(f"[protocol-ignored] sid={sid} event={event} reason={reason}")

    def _assigned(self, sid: str, event: str) -> Optional[Session]:
        session = self.sessions.get(sid)
        if session is None or not session.is_assigned:
            self._ignored(sid, event, 'not assigned')
            return None
        return session

    def connect(self, sid: str) -> Session:
        session = self.sessions.setdefault(sid, Session(sid))
        if self.autostart and self.scheduler is not None:
            with self.registry.lock:
                self.scheduler.start()
        self.logger.info(f"[connect] sid={sid}")
        return session

    def join_game(self, sid: str, data) -> None:
        data = _payload(data)
        session = self.sessions.setdefault(sid, Session(sid))
        if session.is_assigned:
            self._ignored(sid, 'joinGame', f"already in {session.match_id}")
            return
        mode = data.get('mode')
        mode = mode.upper() if isinstance(mode, str) else None
        if mode not in MODES:
            self._ignored(sid, 'joinGame', f"mode={data.get('mode')!r}")
            return

        with self.registry.lock:
            if mode == 'AI':
                match, side = self.registry.join_vs_ai(sid, data.get('level'))
            else:
                match, side = self.registry.join_pvp(sid)
            session.match_id = match.id
            session.side = side
            session.held_keys.clear()

            join_room(match.id)
            if match.is_ready:
                emit('gameUpdate', match.to_dict())
            emit('playerAssignment', {
                'isPlayer1': side is Side.LEFT,
                'side': side.value,
                'roomId': match.id,
                'playersInRoom': len(match.participants),
                'message': f"Room {match.id} - You are Player {_player_label(side)}",
            })

            if match.ai is not None:
                emit('gameReady', {
                    'message': f"Game ready in {match.id}! You're playing against AI ({match.difficulty})",
                }, to=match.id)
            elif match.is_ready:
                emit('gameReady', {
                    'message': f"Game ready in {match.id}! Both players connected",
                }, to=match.id)
            else:
                emit('waitingForPlayer', {
                    'message': f"Waiting for an opponent to join room {match.id}...",
                })

    def paddle_move(self, sid: str, data) -> None:
        session = self._assigned(sid, 'paddleMove')
        if session is None:
            return
        y = _payload(data).get('y')
        if not _is_number(y):
            self._ignored(sid, 'paddleMove', f"y={y!r}")
            return
        with self.registry.lock:
            match = self.registry.get(session.match_id)
            if match is not None:
                match.set_paddle_y(session.side, float(y))

    def key_press(self, sid: str, data) -> None:
        self._key(sid, data, 'keyPress', pressed=True)

    def key_release(self, sid: str, data) -> None:
        self._key(sid, data, 'keyRelease', pressed=False)

    def _key(self, sid: str, data, event: str, pressed: bool) -> None:
        session = self._assigned(sid, event)
        if session is None:
            return
        key = _payload(data).get('key')
        if key not in KEYS:
            self._ignored(sid, event, f"key={key!r}")
            return
        if pressed:
            session.held_keys.add(key)
        else:
            session.held_keys.discard(key)
        direction = ('down' in session.held_keys) - ('up' in session.held_keys)
        with self.registry.lock:
            match = self.registry.get(session.match_id)
            if match is not None:
                match.set_paddle_intent(session.side, direction * self.paddle_key_speed)

    def set_difficulty(self, sid: str, data) -> None:
        session = self._assigned(sid, 'setDifficulty')
        if session is None:
            return
        level = _payload(data).get('level')
        if not self.registry.set_difficulty(session.match_id, level):
            self._ignored(sid, 'setDifficulty', f"level={level!r} match={session.match_id}")
            return
        emit('difficultyChanged', {'level': level.lower()})

    def disconnect(self, sid: str) -> None:
        session = self.sessions.pop(sid, None)
        self.logger.info(f"[disconnect] sid={sid}")
        if session is None or not session.is_assigned:
            return
        with self.registry.lock:
            result = self.registry.leave(sid)
            if result is None or result.destroyed:
                return
            match = result.match
            player = '1' if result.side is Side.LEFT else '2'
            if result.ai_attached:
                message = f"Player {player} disconnected. AI ({match.difficulty}) has taken over their paddle."
            else:
                message = f"Player {player} disconnected. Waiting for new player..."
            emit('playerDisconnected', {'message': message}, to=match.id, include_self=False)
            if match.state is MatchState.WAITING:
                emit('waitingForPlayer', {
                    'message': f"Waiting for an opponent to join room {match.id}...",
                }, to=match.id, include_self=False)


# ---- Socket.IO bindings ----

def _gateway() -> SessionGateway:
    return current_app.extensions['pong']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    _gateway().connect(_get_sid())


def handle_disconnect(reason=None):
    _gateway().disconnect(_get_sid())


def handle_join_game(data=None):
    _gateway().join_game(_get_sid(), data)


def handle_paddle_move(data=None):
    _gateway().paddle_move(_get_sid(), data)


def handle_key_press(data=None):
    _gateway().key_press(_get_sid(), data)


def handle_key_release(data=None):
    _gateway().key_release(_get_sid(), data)


def handle_set_difficulty(data=None):
    _gateway().set_difficulty(_get_sid(), data)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``.

    Handlers look the gateway up on the current app, so registering them
    again for a new app instance is harmless.
    """
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('joinGame', handle_join_game, namespace=namespace)
    socketio.on_event('paddleMove', handle_paddle_move, namespace=namespace)
    socketio.on_event('keyPress', handle_key_press, namespace=namespace)
    socketio.on_event('keyRelease', handle_key_release, namespace=namespace)
    socketio.on_event('setDifficulty', handle_set_difficulty, namespace=namespace)
