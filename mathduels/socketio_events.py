from flask_socketio import emit
from mathduels import socketio
from flask import current_app, request
from mathduels.auth import user_from_token
from mathduels.services.game import (
    BackgroundTicker,
    GameSession,
    Identity,
    ManualTicker,
    QuestionGenerator,
    SessionStateError,
)
from mathduels.services.scores import make_score_sink
from contextlib import nullcontext
from typing import Dict, Any
import threading

NAMESPACE = '/ws'

# Engine event -> socket event
_EVENT_NAMES = {
    'ended': 'game_over',
    'answer': 'answer_result',
}

# One hosted session per connected socket
play_sessions: Dict[str, GameSession] = {}
_session_locks: Dict[str, Any] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _make_listener(sid: str):
    def _listener(event: str, payload: Dict[str, Any]) -> None:
        socketio.emit(_EVENT_NAMES.get(event, event), payload, to=sid, namespace=NAMESPACE)
    return _listener


def _build_session(app, sid: str, token) -> GameSession:
    user = user_from_token(token) if token else None
    identity = Identity(id=user.id, name=user.name, picture=user.picture) if user else None
    score_sink = make_score_sink(app, user.id) if user else None

    # Real-time ticking is off in tests; they drive a ManualTicker instead
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        ticker = ManualTicker()
        lock = nullcontext()
    else:
        lock = threading.RLock()
        ticker = BackgroundTicker(
            socketio.start_background_task,
            socketio.sleep,
            interval=float(app.config.get('TICK_INTERVAL_SEC', 1)),
            lock=lock,
        )
    _session_locks[sid] = lock

    return GameSession(
        generator=QuestionGenerator(),
        ticker=ticker,
        duration=int(app.config.get('GAME_DURATION_SEC', 120)),
        identity=identity,
        score_sink=score_sink,
        listener=_make_listener(sid),
    )


def _discard_session(sid: str) -> None:
    session = play_sessions.pop(sid, None)
    lock = _session_locks.pop(sid, None) or nullcontext()
    if session is None:
        return
    with lock:
        # reset stops the ticker so an abandoned game cannot keep running
        session.listener = None
        session.reset()


def _current(sid: str):
    session = play_sessions.get(sid)
    if session is None:
        emit('error', {'message': 'No game in progress'})
        return None, nullcontext()
    return session, _session_locks.get(sid) or nullcontext()


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    sid = _get_sid()
    if sid in play_sessions:
        current_app.logger.info(f"[session-abandoned] sid={sid}")
    _discard_session(sid)


def handle_start_game(data=None):
    sid = _get_sid()
    _discard_session(sid)
    app = current_app._get_current_object()
    session = _build_session(app, sid, (data or {}).get('token'))
    play_sessions[sid] = session
    with _session_locks[sid]:
        session.start()
    player = session.identity.id if session.identity else 'guest'
    app.logger.info(f"[game-start] sid={sid} user={player} duration={session.duration}s")


def handle_pause_game(data=None):
    session, lock = _current(_get_sid())
    if session is None:
        return
    with lock:
        session.pause()


def handle_resume_game(data=None):
    session, lock = _current(_get_sid())
    if session is None:
        return
    with lock:
        session.resume()


def handle_end_game(data=None):
    session, lock = _current(_get_sid())
    if session is None:
        return
    with lock:
        session.end()


def handle_reset_game(data=None):
    session, lock = _current(_get_sid())
    if session is None:
        return
    with lock:
        session.reset()


def handle_get_state(data=None):
    session, lock = _current(_get_sid())
    if session is None:
        return
    with lock:
        emit('state', session.to_dict())


def handle_submit_answer(data=None):
    session, lock = _current(_get_sid())
    if session is None:
        return
    answer = (data or {}).get('answer')
    with lock:
        try:
            result = session.submit(answer)
        except SessionStateError as exc:
            current_app.logger.error(f"[answer-error] sid={_get_sid()} {exc}")
            emit('error', {'message': 'Game is not ready for answers'})
            return
    if result is None:
        emit('error', {'message': 'Not accepting answers right now'})


def handle_answer_input(data=None):
    """Grade partial input as soon as it matches, like typing into the box."""
    session, lock = _current(_get_sid())
    if session is None:
        return
    answer = (data or {}).get('answer')
    with lock:
        if session.check(answer):
            session.submit(answer)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('start_game', handle_start_game, namespace=NAMESPACE)
    socketio.on_event('pause_game', handle_pause_game, namespace=NAMESPACE)
    socketio.on_event('resume_game', handle_resume_game, namespace=NAMESPACE)
    socketio.on_event('end_game', handle_end_game, namespace=NAMESPACE)
    socketio.on_event('reset_game', handle_reset_game, namespace=NAMESPACE)
    socketio.on_event('get_state', handle_get_state, namespace=NAMESPACE)
    socketio.on_event('submit_answer', handle_submit_answer, namespace=NAMESPACE)
    socketio.on_event('answer_input', handle_answer_input, namespace=NAMESPACE)
