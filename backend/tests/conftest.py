import os
import random
import sys
import pytest

# Ensure the backend root (containing the `kuzgun` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from kuzgun import create_app, socketio
from kuzgun.services.game import GameEngine, RoomRegistry, TimerHandle


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ALLOWED_ORIGINS = '*'
    LOG_LEVEL = 'INFO'
    MATCH_TIMEOUT_MS = 200
    HAND_SIZE = 8
    MAX_PLAYERS = 4
    MIN_PLAYERS = 1
    ROOM_CODE_LENGTH = 5
    USERNAME_MIN_LENGTH = 2
    USERNAME_MAX_LENGTH = 15
    ROOM_IDLE_TIMEOUT_SEC = 0
    TIMER_HEARTBEAT_SEC = 0


class RecordingBroadcaster:
    """Collects engine output instead of sending it."""

    def __init__(self):
        self.sent = []  # (target, event, payload)
        self.members = {}
        self.closed = []

    def to_room(self, room_id, event, payload=None):
        self.sent.append((room_id, event, payload))

    def to_player(self, player_id, event, payload=None):
        self.sent.append((player_id, event, payload))

    def enter(self, player_id, room_id):
        self.members.setdefault(room_id, []).append(player_id)

    def close(self, room_id):
        self.closed.append(room_id)

    def events(self, name):
        return [(target, payload) for target, event, payload in self.sent if event == name]

    def last(self, name):
        found = self.events(name)
        return found[-1][1] if found else None

    def clear(self):
        self.sent.clear()


class ManualScheduler:
    """Timers that only fire when the test says so."""

    def __init__(self):
        self.pending = []  # (handle, callback, delay)

    def schedule(self, delay_sec, callback, key=None):
        handle = TimerHandle(key, delay_sec)
        self.pending.append((handle, callback, delay_sec))
        return handle

    def fire_all(self):
        pending, self.pending = self.pending, []
        for handle, callback, _ in pending:
            if not handle.cancelled:
                handle.fired = True
                callback()

    def fire_ignoring_cancel(self):
        """Run every callback, as a late wake-up of a cancelled worker would."""
        pending, self.pending = self.pending, []
        for _, callback, _ in pending:
            callback()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def registry():
    return RoomRegistry(rng=random.Random(7))


@pytest.fixture()
def engine(registry, broadcaster, scheduler):
    return GameEngine(registry, broadcaster, scheduler, rng=random.Random(42))


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
