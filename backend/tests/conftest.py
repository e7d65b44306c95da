import os
import sys
import pytest

# Ensure the backend root (containing the `onetoten` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from onetoten import create_app, db, socketio
from onetoten.services.rooms import RoomRegistry, RoomStateMachine


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = False
    CORS_ORIGINS = ['http://localhost:5173']
    HISTORY_LIMIT = 50


class SchedulerTestConfig(TestConfig):
    ENABLE_SCHEDULER_IN_TESTS = True
    ROOM_RETENTION_SEC = 0.3
    ROOM_IDLE_EXPIRY_SEC = 0
    ROOM_SWEEP_INTERVAL_SEC = 0.05


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class EmitRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, event, to, payload=None):
        self.events.append((event, to, payload))

    def to(self, connection_id):
        return [(event, payload) for event, to, payload in self.events if to == connection_id]

    def named(self, event):
        return [(to, payload) for name, to, payload in self.events if name == event]


class FakeHistory:
    def __init__(self, fail=False):
        self.rows = []
        self.fail = fail

    def append(self, record):
        if self.fail:
            raise RuntimeError('database is locked')
        self.rows.append(record)
        return len(self.rows)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def registry(clock):
    return RoomRegistry(clock=clock)


@pytest.fixture()
def emitted():
    return EmitRecorder()


@pytest.fixture()
def history():
    return FakeHistory()


@pytest.fixture()
def broken_history():
    return FakeHistory(fail=True)


@pytest.fixture()
def machine(registry, history, emitted):
    return RoomStateMachine(registry, history=history, emit=emitted)


@pytest.fixture()
def flask_app(clock):
    application = create_app(TestConfig, clock=clock)
    with application.app_context():
        # Ensure models are imported so tables are created
        import onetoten.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    """Build Socket.IO test clients; each one is a separate connection."""
    clients = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
        )
        test_client.get_received()  # drop the 'connected' greeting
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def scheduled_app():
    """App with real background timers on the monotonic clock."""
    application = create_app(SchedulerTestConfig)
    with application.app_context():
        db.create_all()
        yield application
        application.extensions['rooms'].sweeper_started = False
        db.session.remove()
        db.drop_all()
