import os
import sys
import pytest

# Ensure the backend root (containing the `skullking` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from skullking import create_app, db, socketio
from skullking.socketio_events import presence


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    APP_ENV = 'test'
    ALLOWED_ORIGINS = ['http://localhost:3000']
    FORCE_HTTPS = False
    MIN_PLAYERS = 2
    DEFAULT_MAX_PLAYERS = 8
    ROOM_CODE_ATTEMPTS = 10
    LOG_LEVEL = 'DEBUG'
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    import skullking.models  # noqa: F401
    with application.app_context():
        db.create_all()
    # Requests must push their own app context; flask_login caches the user on `g`
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()
    presence.clear()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_client(flask_app):
    """Factory for extra, independently logged-in HTTP clients."""
    def _make(username, password='secret123'):
        c = flask_app.test_client()
        res = c.post('/api/users', json={'username': username, 'password': password})
        assert res.status_code == 201, res.get_json()
        return c
    return _make


@pytest.fixture()
def alice(make_client):
    return make_client('alice')


@pytest.fixture()
def bob(make_client):
    return make_client('bob')


@pytest.fixture()
def sio_client(flask_app, alice):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=alice,
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
