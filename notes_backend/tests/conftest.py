import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from notes_backend.api.config import Settings
from notes_backend.api.identity import IdentityService
from notes_backend.api.main import create_app
from notes_backend.api.note_store import NoteStore
from notes_database.db import make_session_factory
from notes_database.init_db import init_db
from notes_database.models import Base

TEST_SECRET = "test-signing-key"
TEST_SALT = "test-password-salt"


@pytest.fixture(scope="session")
def sqlite_url():
    """Fixture to provide a SQLite in-memory database URL for testing."""
    return "sqlite://"


@pytest.fixture(scope="session")
def engine(sqlite_url):
    """Fixture for a persistent in-memory SQLite engine for the test session."""
    return create_engine(
        sqlite_url, connect_args={"check_same_thread": False}, poolclass=StaticPool
    )


@pytest.fixture(scope="session")
def tables(engine):
    """Create tables for the test session and drop after done."""
    init_db(engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables(engine, tables):
    """Empty every table after each test so tests don't see each other's rows."""
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def settings(sqlite_url):
    return Settings(
        app_env="test",
        database_url=sqlite_url,
        secret_key=TEST_SECRET,
        password_salt=TEST_SALT,
        _env_file=None,
    )


@pytest.fixture
def identity():
    return IdentityService(secret_key=TEST_SECRET, password_salt=TEST_SALT)


@pytest.fixture
def db_session(engine, tables):
    """Provide a SQLAlchemy session for isolated test usage."""
    session = make_session_factory(engine)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def store(db_session):
    return NoteStore(db_session)


@pytest.fixture
def client(settings, engine, tables):
    """Fixture for a TestClient on an app bound to the test engine."""
    app = create_app(settings, engine=engine)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def user_data():
    """Returns default user data for registration."""
    return {"username": "alice", "password": "pw1"}


@pytest.fixture
def second_user_data():
    """Returns a second user's data."""
    return {"username": "bob", "password": "bobpassword456"}


def register_and_auth(client, username, password):
    """Helper for registering then logging in to get a bearer token."""
    r1 = client.post("/auth/register", json={"username": username, "password": password})
    assert r1.status_code == 201

    r2 = client.post("/auth/login", json={"username": username, "password": password})
    assert r2.status_code == 200
    return r2.json()["token"]


@pytest.fixture
def auth_header(client, user_data):
    """Returns {'Authorization': 'Bearer <token>'} for default user."""
    token = register_and_auth(client, user_data["username"], user_data["password"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def second_auth_header(client, second_user_data):
    """Returns auth header for second user."""
    token = register_and_auth(client, second_user_data["username"], second_user_data["password"])
    return {"Authorization": f"Bearer {token}"}
