import asyncio
import os
import sys
import tempfile

import pytest

# Ensure the backend root (containing the `geoscore` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

# Settings are read once at import time, so point them at a scratch database first.
TEST_DB_DIR = tempfile.mkdtemp(prefix="geoscore-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(TEST_DB_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ.pop("ANTHROPIC_API_KEY", None)

from fastapi.testclient import TestClient  # noqa: E402

from geoscore.database import drop_db, init_db  # noqa: E402
from geoscore.main import create_app  # noqa: E402
from geoscore.seed import import_gamedata  # noqa: E402

DEFAULT_PASSWORD = "Secret123"


async def _reset_schema() -> None:
    await drop_db()
    await init_db()


@pytest.fixture()
def app():
    asyncio.run(_reset_schema())
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def register(client):
    """Registers a user and returns ``(user, auth headers)``."""

    def _register(username: str, display_name: str | None = None):
        res = client.post(
            "/api/auth/register",
            json={"username": username, "password": DEFAULT_PASSWORD, "display_name": display_name},
        )
        assert res.status_code == 201, res.text
        data = res.json()
        return data["user"], {"Authorization": f"Bearer {data['access_token']}"}

    return _register


@pytest.fixture()
def legacy_import(client):
    """Runs the legacy import against the test database and returns its summary."""

    def _import(gamedata: dict | None = None):
        return asyncio.run(import_gamedata(gamedata))

    return _import
