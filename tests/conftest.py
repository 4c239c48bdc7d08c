import os
import sys
import pytest

# Ensure the project root (containing the `beauty_contest` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from beauty_contest import EXTENSION_KEY, create_app, socketio
from beauty_contest.registry import RoomRegistry
from beauty_contest.services.games.scheduler import TimerHandle
from beauty_contest.services.games.state_machine import RoomStateMachine, Timings


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ROUND_DURATION_SEC = 180
    RULE_ANNOUNCE_DELAY_SEC = 5
    RESULTS_REVEAL_DELAY_SEC = 5
    SCOREBOARD_DURATION_SEC = 10
    CORS_ORIGINS = 'http://localhost:5173'
    LOG_LEVEL = 'DEBUG'


class ManualScheduler:
    """Collects continuations instead of sleeping; tests fire them explicitly."""

    def __init__(self):
        self.scheduled = []

    def call_later(self, delay, callback, *args):
        handle = TimerHandle(delay)
        self.scheduled.append((handle, callback, args))
        return handle

    @property
    def pending(self):
        return [entry for entry in self.scheduled if not entry[0].cancelled]

    def delays(self):
        return [handle.delay for handle, _, _ in self.pending]

    def fire_next(self):
        for i, (handle, callback, args) in enumerate(self.scheduled):
            if handle.cancelled:
                continue
            del self.scheduled[i]
            callback(*args)
            return handle.delay
        raise AssertionError('no pending timers')


class RecordingBroadcaster:
    def __init__(self):
        self.events = []

    def __call__(self, room_code, event, payload=None):
        self.events.append((room_code, event, payload))

    def names(self, room_code=None):
        return [e for code, e, _ in self.events if room_code is None or code == room_code]

    def last(self, event):
        for _, name, payload in reversed(self.events):
            if name == event:
                return payload
        return None

    def clear(self):
        self.events = []


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def machine(scheduler, broadcaster):
    return RoomStateMachine(RoomRegistry(), broadcaster, scheduler, Timings())


@pytest.fixture()
def flask_app(scheduler):
    application = create_app(TestConfig, scheduler=scheduler)
    with application.app_context():
        yield application


@pytest.fixture()
def app_machine(flask_app):
    return flask_app.extensions[EXTENSION_KEY]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass
