# tests/conftest.py
from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Generator, Iterator

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-sessions")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_BACKEND"] = "database"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="vbv-uploads-"))

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from versebyverse.core.security import hash_password, sign_session_id  # noqa: E402
from versebyverse.core.settings import settings  # noqa: E402
from versebyverse.db.session import Base  # noqa: E402
from versebyverse.db.session import get_db as app_get_session  # noqa: E402
from versebyverse.main import app as fastapi_app  # noqa: E402
from versebyverse.models import Community, CommunityMembership, MembershipRole, User  # noqa: E402
from versebyverse.schemas.community import CommunityCreate  # noqa: E402
from versebyverse.services import community_service  # noqa: E402
from versebyverse.services.sessions import get_session_store  # noqa: E402

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "password123"


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def _create_user(db: Session, username: str, first_name: str, last_name: str) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        first_name=first_name,
        last_name=last_name,
        password_hash=hash_password(TEST_PASSWORD),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return a persisted test user."""
    return _create_user(db_session, "alice", "Alice", "Kim")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second persisted user."""
    return _create_user(db_session, "bob", "Bob", "Lee")


@pytest.fixture()
def third_user(db_session: Session) -> User:
    return _create_user(db_session, "carol", "Carol", "Park")


@pytest.fixture()
def login_as(app: FastAPI, db_session: Session) -> Iterator[Callable[[User], TestClient]]:
    """Return a factory producing a client whose session cookie belongs to a user."""
    clients: list[TestClient] = []

    def _login(user: User) -> TestClient:
        session_id = get_session_store().create(db_session, user.id)
        test_client = TestClient(app)
        test_client.cookies.set(settings.session_cookie_name, sign_session_id(session_id))
        clients.append(test_client)
        return test_client

    yield _login
    for test_client in clients:
        test_client.close()


@pytest.fixture()
def user_client(login_as: Callable[[User], TestClient], test_user: User) -> TestClient:
    """Client authenticated as `test_user`."""
    return login_as(test_user)


@pytest.fixture()
def other_client(login_as: Callable[[User], TestClient], other_user: User) -> TestClient:
    """Client authenticated as `other_user`."""
    return login_as(other_user)


@pytest.fixture()
def community(db_session: Session, test_user: User) -> Community:
    """Community owned by `test_user`."""
    return community_service.create_community(
        db_session,
        test_user,
        CommunityCreate(
            header="Morning Psalms",
            subheader="Reading a psalm a day",
            content="We read and discuss one psalm every morning.",
            type="Bible Study",
        ),
    )


def add_member(
    db: Session,
    community: Community,
    user: User,
    role: MembershipRole = MembershipRole.MEMBER,
) -> CommunityMembership:
    """Attach `user` to `community` keeping `members_count` in step."""
    membership = CommunityMembership(community_id=community.id, user_id=user.id, role=role.value)
    db.add(membership)
    community.members_count = Community.members_count + 1
    db.commit()
    db.refresh(community)
    return membership


@pytest.fixture()
def member(db_session: Session, community: Community, other_user: User) -> CommunityMembership:
    """`other_user` as a plain Member of `community`."""
    return add_member(db_session, community, other_user)
