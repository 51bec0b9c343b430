import pytest
from fastapi.testclient import TestClient

from apv.config import Settings
from apv.main import create_app

# SQLite stands in for PostgreSQL: an in-memory database is always reachable,
# a file inside a directory that does not exist can never be opened.
REACHABLE_DATABASE_URL = "sqlite://"


@pytest.fixture
def unreachable_database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'missing' / 'apv.db'}"


@pytest.fixture
def make_settings():
    """Build isolated settings; keyword arguments override the defaults."""
    def _make_settings(**overrides):
        values = {
            "DEPLOYMENT_PROFILE": "local",
            "DATABASE_URL": REACHABLE_DATABASE_URL,
            "DATABASE_DSN": None,
            "SESSION_START": None,
            "SECRET_KEY": "test-secret",
            "ENVIRONMENT": "test",
            "PAGE_TITLE": "My First Application",
        }
        values.update(overrides)
        return Settings(**values)

    return _make_settings


@pytest.fixture
def make_client(make_settings):
    """Create a test client for an app built from the given settings."""
    clients = []

    def _make_client(app=None, **overrides):
        app = app or create_app(make_settings(**overrides))
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make_client

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()
