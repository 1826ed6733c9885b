import os
import sys
import pytest

# Ensure the backend root (containing the `gifleague` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from gifleague import create_app, socketio
from gifleague.services.games.state_machine import RoomStateMachine
from gifleague.services.room_store import RoomStore
from gifleague.services.session_registry import SessionRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    SOCKETIO_NAMESPACE = '/'
    MAX_ROUNDS = 10
    MIN_PLAYERS = 2
    ROOM_ID_MAX_ATTEMPTS = 50
    SESSION_TTL_SEC = 300
    SWEEP_INTERVAL_SEC = 60
    ROOM_IDLE_TTL_SEC = 3600


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(clock):
    return RoomStore(clock=clock)


@pytest.fixture()
def registry(clock):
    return SessionRegistry(ttl_sec=300, clock=clock)


@pytest.fixture()
def machine(clock):
    return RoomStateMachine(min_players=2, clock=clock)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def hub(flask_app):
    return flask_app.extensions['gifleague']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
    )
    yield test_client
    if test_client.is_connected():
        test_client.disconnect()
