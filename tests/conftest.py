# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from reef_connect.api.v1.dependencies import get_dispatcher
from reef_connect.core.settings import settings
from reef_connect.db.session import Base
from reef_connect.db.session import get_db as app_get_session
from reef_connect.main import app as fastapi_app
from reef_connect.models import Checkin, Profile
from reef_connect.services.notifications import NotificationDispatcher

from tests.helpers import FakePushTransport, auth_headers, make_checkin, make_profile

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
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
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def push_transport() -> FakePushTransport:
    return FakePushTransport()


@pytest.fixture()
def dispatcher(db_session: Session, push_transport: FakePushTransport) -> NotificationDispatcher:
    """Dispatcher whose background sessions are the test session."""

    @contextmanager
    def _session_factory() -> Iterator[Session]:
        yield db_session

    return NotificationDispatcher(transport=push_transport, session_factory=_session_factory)


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    dispatcher: NotificationDispatcher,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_dispatcher, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def location_restriction() -> Iterator[Callable[[bool], None]]:
    """Restore the check-in fence switch after each test; call to toggle it."""
    original = settings.location_restriction_enabled

    def _set(enabled: bool) -> None:
        settings.location_restriction_enabled = enabled

    try:
        yield _set
    finally:
        settings.location_restriction_enabled = original


@pytest.fixture()
def alice(db_session: Session) -> Profile:
    """Primary test user."""
    return make_profile(db_session, "Alice", vessel_name="Sea Breeze")


@pytest.fixture()
def bob(db_session: Session) -> Profile:
    """Secondary test user."""
    return make_profile(db_session, "Bob", vessel_name="Blue Heron")


@pytest.fixture()
def alice_headers(alice: Profile) -> dict[str, str]:
    return auth_headers(alice.id)


@pytest.fixture()
def bob_headers(bob: Profile) -> dict[str, str]:
    return auth_headers(bob.id)


@pytest.fixture()
def both_checked_in(db_session: Session, alice: Profile, bob: Profile) -> tuple[Checkin, Checkin]:
    """Alice and Bob both hold an active check-in."""
    return make_checkin(db_session, alice.id), make_checkin(db_session, bob.id)
