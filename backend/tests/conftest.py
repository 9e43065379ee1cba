import os
import sys
import pytest

# Ensure the backend root (containing the `flagzim` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from flagzim import create_app, db, socketio
from flagzim.services.countries import CountryCatalog


SAMPLE_COUNTRIES = [
    ['ar', 'Argentina'],
    ['br', 'Brazil'],
    ['ca', 'Canada'],
    ['de', 'Germany'],
    ['es', 'Spain'],
    ['fr', 'France'],
    ['jp', 'Japan'],
    ['mx', 'Mexico'],
    ['pt', 'Portugal'],
    ['gb-sct', 'Scotland'],
    ['us', 'United States'],
    ['uy', 'Uruguay'],
]

NAME_BY_CODE = {code: name for code, name in SAMPLE_COUNTRIES}


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = '*'
    QUESTION_DURATION_SEC = 10
    DAILY_FLAG_COUNT = 10
    RANKING_SIZE = 10
    COUNTDOWN_TICK_SEC = 0.1


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig, catalog=CountryCatalog(entries=SAMPLE_COUNTRIES))
    with application.app_context():
        # Ensure models are imported so tables are created
        import flagzim.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


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
