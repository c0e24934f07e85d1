"""
Pytest configuration and fixtures.

The environment is pointed at a throw-away SQLite file and temporary
directories before anything from ``vizboard`` is imported, because settings
and the engine are created at import time.
"""
import os
import tempfile
from pathlib import Path

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="vizboard-tests-"))

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT / 'test.db'}"
os.environ["FILE_UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")
os.environ["FILE_DATA_DIR"] = str(_TEST_ROOT / "data")
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["JWT_BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from vizboard.api.dependencies.database import Base, SessionLocal, engine  # noqa: E402
from vizboard.api.main import app  # noqa: E402
from vizboard.core.config import settings  # noqa: E402
import vizboard.api.models  # noqa: E402,F401


@pytest.fixture(autouse=True)
def reset_database():
    """Every test starts from empty tables"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def data_dir() -> Path:
    """The configured data directory; CSV endpoints may read files here"""
    return Path(settings.files.data_dir)


@pytest.fixture
def write_csv(data_dir):
    """Write a CSV file into the data directory and return its path"""
    created = []

    def _write(name: str, content: str) -> Path:
        path = data_dir / name
        path.write_text(content, encoding="utf-8")
        created.append(path)
        return path

    yield _write

    for path in created:
        path.unlink(missing_ok=True)


@pytest.fixture
def register_user(client):
    """Register a user through the API and return (user, token)"""

    def _register(email="alice@vizboard.io", password="secret123", name="Alice"):
        response = client.post(
            "/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["user"], data["token"]

    return _register


@pytest.fixture
def auth_headers():
    def _headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    return _headers
