import os
import sys
import pathlib
import tempfile
import uuid
import pytest

# --- Project root on sys.path before importing the app ---
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# SQLite on a temp file (stable across TestClient threads)
TEST_DIR = tempfile.mkdtemp(prefix="taskmanager_tests_")
DB_PATH = pathlib.Path(TEST_DIR) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["AUTO_CREATE_SCHEMA"] = "false"

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from taskmanager_app.database import Base
from taskmanager_app import models
from taskmanager_app.main import app
from taskmanager_app import deps

# Engine and SessionLocal dedicated to the tests
engine = create_engine(
    os.environ["DATABASE_URL"],
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _schema():
    """
    Fresh schema for every test: the first registered user becomes admin,
    so tests must not see each other's users.
    """
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db() -> Session:
    """
    DB session per test.
    """
    s = TestingSessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def session_factory():
    """
    Session factory bound to the test engine, for tests that need several sessions.
    """
    return TestingSessionLocal


@pytest.fixture()
def client():
    """
    TestClient whose get_db yields a fresh session from the test engine.
    """
    def _get_db():
        s = TestingSessionLocal()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[deps.get_db] = _get_db

    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def register(client):
    """
    Register a user through the API and return the JSON body.
    """
    def _make(name: str | None = None, email: str | None = None, password: str = PASSWORD):
        email = email or f"user_{uuid.uuid4().hex[:8]}@example.com"
        payload = {
            "name": name or email.split("@", 1)[0],
            "email": email,
            "password": password,
            "password_confirmation": password,
        }
        r = client.post("/auth/register", json=payload)
        assert r.status_code == 201, r.text
        body = r.json()
        body["headers"] = bearer(body["authorization"]["token"])
        return body
    return _make


@pytest.fixture()
def admin_and_user(register):
    """
    (A, B): A registered first (admin), B second (user).
    """
    a = register(name="Alice", email="alice@example.com")
    b = register(name="Bob", email="bob@example.com")
    return a, b


@pytest.fixture()
def api_create(client):
    """
    Helper to create tasks concisely.
    """
    def _make(headers: dict, title: str, **extra):
        r = client.post("/tasks", json={"title": title, **extra}, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()["data"]
    return _make
