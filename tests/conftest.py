"""
Pytest fixtures for time clock tests.

Provides an in-memory database, a controllable clock, acting members and
a test client with identity and database dependencies overridden.
"""
import os

# Required settings must exist before timeclock.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ATLAS_APP_CODE"] = "TIMECLOCK"
os.environ["CONSOLE_JWT_SECRET"] = "test-console-secret"
os.environ["LOGGING_ENABLED"] = "false"

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from atams.db import Base
from timeclock import models  # noqa: F401
from timeclock.schemas.actor import Actor
from timeclock.services.ledger_service import LedgerService
from timeclock.services.console_service import ConsoleService
from timeclock.services.maintenance_service import MaintenanceService


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)

    def set(self, value: datetime) -> None:
        self.now = value


@pytest.fixture(scope='function')
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope='function')
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope='function')
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope='function')
def clock():
    return FakeClock(datetime(2026, 3, 2, 9, 0, 0))


@pytest.fixture(scope='function')
def ledger(clock):
    return LedgerService(clock=clock)


@pytest.fixture(scope='function')
def console(clock):
    return ConsoleService(clock=clock)


@pytest.fixture(scope='function')
def maintenance(clock):
    return MaintenanceService(clock=clock)


@pytest.fixture
def root():
    """The distinguished root administrator."""
    return Actor(code="10101", is_admin=True, is_root=True)


@pytest.fixture
def admin():
    return Actor(code="20202", is_admin=True)


@pytest.fixture
def member():
    return Actor(code="30303")


@pytest.fixture(scope='function')
def api(session_factory, admin):
    """
    Test client acting as ``admin`` by default.

    Call ``api.act_as(actor)`` to switch the authenticated member.
    """
    from timeclock.main import app
    from timeclock.db.session import get_db
    from timeclock.api.deps import get_actor

    acting = {"actor": admin}

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_actor] = lambda: acting["actor"]

    client = TestClient(app)
    client.act_as = lambda actor: acting.update(actor=actor)

    yield client

    app.dependency_overrides.clear()


@pytest.fixture(scope='function')
def anonymous_client(session_factory):
    """Test client with real Atlas identity dependencies and no credentials."""
    from timeclock.main import app
    from timeclock.db.session import get_db

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
