import os
import sys
import random
import pytest

# Ensure the project root (containing the `mathduels` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from mathduels import create_app, db, socketio
from mathduels.services.game import GameSession, ManualTicker, QuestionGenerator


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTH_TOKEN_SALT = 'test-auth'
    MIN_PASSWORD_LENGTH = 6
    GAME_DURATION_SEC = 120
    LEADERBOARD_SIZE = 10
    RECENT_SCORES_LIMIT = 10
    # Keep hashing fast in tests
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import mathduels.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
    from mathduels import socketio_events
    socketio_events.play_sessions.clear()
    socketio_events._session_locks.clear()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def register(client):
    """Register a user through the API and return (token, user)."""
    def _register(email='ada@example.com', name='Ada', password='secret123'):
        res = client.post('/api/register', json={'email': email, 'name': name, 'password': password})
        assert res.status_code == 201, res.get_json()
        data = res.get_json()
        return data['token'], data['user']
    return _register


@pytest.fixture()
def ticker():
    return ManualTicker()


@pytest.fixture()
def session(ticker):
    return GameSession(generator=QuestionGenerator(random.Random(1234)), ticker=ticker, duration=120)
