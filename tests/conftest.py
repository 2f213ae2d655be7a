"""
Global test configuration and fixtures for tablesession

Provides a throwaway SQLite database per test, settings factories, a
controllable clock, and a factory that opens one request's session handler.
"""

import random
from typing import Callable, Dict, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tablesession.core.config import SessionSettings, load_settings
from tablesession.db.init_db import init_database
from tablesession.db.session import create_session_engine, get_db_sync, make_session_factory
from tablesession.main import create_app
from tablesession.session import RequestContext, ResponseContext, SessionHandler, SessionStore

TEST_SALT = "s3cr3t"
START_TIME = 1_700_000_000


# ============================================================================
# Test Environment Setup
# ============================================================================

class FakeClock:
    """Callable clock whose time only moves when a test says so"""

    def __init__(self, start: int = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class NeverRandom(random.Random):
    """Random source that never triggers a probabilistic sweep"""

    def random(self) -> float:
        return 1.0


@pytest.fixture(scope="function")
def make_settings() -> Callable[..., SessionSettings]:
    """Build settings that ignore any .env file and never sweep by default"""
    def _make(**overrides) -> SessionSettings:
        values = {"salt": TEST_SALT, "gc_probability": 0.0, "_env_file": None}
        values.update(overrides)
        return load_settings(**values)
    return _make


@pytest.fixture(scope="function")
def settings(make_settings) -> SessionSettings:
    return make_settings(seconds_until_expiration=7200, renewal_time=300)


@pytest.fixture(scope="function")
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def engine(tmp_path):
    """Create a test database for each test function"""
    engine = create_session_engine(f"sqlite:///{tmp_path / 'sessions.db'}")
    init_database(engine, "session")
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    """Provide database session for tests"""
    with get_db_sync(make_session_factory(engine)) as session:
        yield session


@pytest.fixture(scope="function")
def store(db_session: Session) -> SessionStore:
    return SessionStore(db_session, "session")


# ============================================================================
# Session Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def open_session(db_session, settings, clock) -> Callable[..., SessionHandler]:
    """
    Open the session handler for one simulated request.

    Returns a factory taking the inbound cookie value plus optional request
    details and settings overrides.
    """
    def _open(
        session_id: Optional[str] = None,
        remote_addr: str = "10.0.0.1",
        user_agent: str = "pytest-agent/1.0",
        settings_override: Optional[SessionSettings] = None,
        **kwargs,
    ) -> SessionHandler:
        active = settings_override or settings
        cookies: Dict[str, str] = {}
        if session_id is not None:
            cookies[active.cookie_name] = session_id
        request = RequestContext(cookies=cookies, remote_addr=remote_addr, user_agent=user_agent)
        kwargs.setdefault("rng", NeverRandom())
        return SessionHandler(db_session, active, request, ResponseContext(), clock=clock, **kwargs)
    return _open


# ============================================================================
# Application Client Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def client(engine, make_settings):
    """Create FastAPI test client backed by the test database"""
    app = create_app(settings=make_settings(), engine=engine)
    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client


# ============================================================================
# Test Markers and Configuration
# ============================================================================

def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on file location"""
    for item in items:
        # Add markers based on file path
        if "security" in str(item.path):
            item.add_marker(pytest.mark.security)
