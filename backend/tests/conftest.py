import os
import sys
import pytest

# Ensure the backend root (containing the `pong` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from pong import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SOCKETIO_NAMESPACE = '/'
    TICK_RATE = 60
    DEFAULT_AI_DIFFICULTY = 'medium'
    AI_AUTO_ATTACH = True
    AI_STANDIN_YIELDS = False
    AI_MISTAKE_CHANCE = 0.0
    AI_DEAD_ZONE = 8.0
    PADDLE_KEY_SPEED = 5.0
    BALL_MAX_SPEED = 8.0
    RANDOM_SEED = 1234
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def gateway(flask_app):
    return flask_app.extensions['pong']


@pytest.fixture()
def registry(gateway):
    return gateway.registry


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app):
    created = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def sio_client(make_sio_client):
    return make_sio_client()

