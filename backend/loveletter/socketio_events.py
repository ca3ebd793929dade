from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from typing import Dict

from loveletter import socketio
from loveletter.exceptions import GameNotFound, InvalidAction, LoveLetterError
from loveletter.sessions import registry

# socket id -> game code, for disconnect logging
_sid_to_code: Dict[str, str] = {}


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _error(message: str) -> None:
    """Report a rejected action to the calling socket only."""
    emit('errorMsg', {'message': message})


def _payload(data) -> dict:
    """Event body as a dict; anything else reads as empty."""
    return data if isinstance(data, dict) else {}


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ''


def handle_connect():
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    # The player stays listed: no elimination, no offline marker
    code = _sid_to_code.pop(_get_sid(), None)
    current_app.logger.info(f"[disconnect] sid={_get_sid()} game={code} reason={reason}")


def _broadcast_roster(outcome):
    emit('players', outcome.view['players'], to=outcome.view['code'])


def handle_create_game(data):
    name = _text(_payload(data).get('playerName'))
    if not name:
        return None
    sid = _get_sid()
    session = registry.create()
    join_room(session.code)
    try:
        session.add_player(sid, name, notify=_broadcast_roster)
    except InvalidAction as exc:
        leave_room(session.code)
        registry.remove(session.code)
        current_app.logger.info(f"[create-reject] name={name} reason={exc}")
        return None
    _sid_to_code[sid] = session.code
    current_app.logger.info(f"[create] code={session.code} by={name}")
    return session.code


def handle_join_game(data):
    data = _payload(data)
    code = _text(data.get('code')).upper()
    name = data.get('playerName')
    if not code or not isinstance(name, str):
        return False
    session = registry.get(code)
    if session is None:
        return False
    sid = _get_sid()
    join_room(session.code)
    try:
        session.add_player(sid, name, notify=_broadcast_roster)
    except LoveLetterError as exc:
        leave_room(session.code)
        current_app.logger.info(f"[join-reject] code={code} name={name} reason={exc}")
        return False
    _sid_to_code[sid] = session.code
    current_app.logger.info(f"[join] code={session.code} name={name}")
    return True


def handle_send_chat(data):
    data = _payload(data)
    message = data.get('message')
    if not isinstance(message, str):
        return
    session = registry.get(_text(data.get('code')))
    if session is None:
        return
    try:
        session.send_chat(_get_sid(), message, notify=lambda entry: emit('chat', entry, to=session.code))
    except GameNotFound:
        return


def _broadcast_start(outcome):
    emit('start', outcome.view, to=outcome.view['code'])
    emit('update', outcome.view, to=outcome.view['code'])


def handle_start_game(data):
    code = data.get('code') if isinstance(data, dict) else data
    if not isinstance(code, str):
        _error("Game code is required.")
        return
    try:
        session = registry.require(code)
        session.start(notify=_broadcast_start)
    except LoveLetterError as exc:
        _error(exc.message)


def _broadcast_play(outcome):
    code = outcome.view['code']
    if outcome.reveal is not None:
        emit('privateReveal', outcome.reveal.to_dict(), to=outcome.reveal.viewer_id)
    emit('update', outcome.view, to=code)
    if outcome.finished:
        winner_id = outcome.view.get('winnerId')
        winner = next((p for p in outcome.view['players'] if p['id'] == winner_id), None)
        emit('matchOver', {'winnerId': winner_id, 'name': winner['name'] if winner else None}, to=code)


def handle_play_card(data):
    if not isinstance(data, dict):
        _error("Invalid move.")
        return
    target_id = data.get('targetId')
    guessed_card = data.get('guessedCard')
    if target_id is not None and not isinstance(target_id, str):
        _error("Target not found.")
        return
    if guessed_card is not None and not isinstance(guessed_card, str):
        _error("Invalid guess for Guard.")
        return
    try:
        session = registry.require(_text(data.get('code')))
        outcome = session.play_card(
            _get_sid(),
            data.get('cardIndex'),
            target_id=target_id,
            guessed_card=guessed_card,
            notify=_broadcast_play,
        )
    except LoveLetterError as exc:
        _error(exc.message)
        return
    if outcome.finished:
        registry.remove(session.code, purge=True)
        current_app.logger.info(f"[match-over] code={session.code} winner={outcome.view.get('winnerId')}")


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('createGame', handle_create_game, namespace=namespace)
    socketio.on_event('joinGame', handle_join_game, namespace=namespace)
    socketio.on_event('sendChat', handle_send_chat, namespace=namespace)
    socketio.on_event('startGame', handle_start_game, namespace=namespace)
    socketio.on_event('playCard', handle_play_card, namespace=namespace)
