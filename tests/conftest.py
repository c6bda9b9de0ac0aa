"""
Shared fixtures: a file-backed SQLite store, a manual clock and the wired application.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.application.use_cases.context import TrackingServices
from app.config import Settings
from app.domain.events.base import EventDispatcher
from app.domain.models.caller import Caller, role_predicate
from app.domain.services.clock import ManualClock
from app.domain.services.concurrency_guard import ConcurrencyGuard, UserLockRegistry
from app.domain.services.duration import DurationAccumulator
from app.domain.services.stats_service import StatsAggregator
from app.domain.services.timer_service import TimerService
from app.infrastructure.cache.aggregate_cache import AggregateCache
from app.infrastructure.cache.backends import InMemoryCache
from app.infrastructure.db.database import make_engine, make_session_factory, create_all_tables
from app.infrastructure.repositories.project_repository import SQLAlchemyProjectRepository
from app.infrastructure.repositories.time_entry_repository import SQLAlchemyTimeEntryRepository
from app.main import create_application

TENANT = "tenant-1"
ELEVATED_ROLES = ["OWNER", "ADMIN"]
T0 = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return ManualClock(T0)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'tracker.db'}"


@pytest.fixture
def session_factory(database_url):
    engine = make_engine(database_url)
    create_all_tables(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def cache():
    return AggregateCache(InMemoryCache(), ttl_seconds=300)


@pytest.fixture
def services(session_factory, clock, cache):
    entries = SQLAlchemyTimeEntryRepository(session_factory)
    accumulator = DurationAccumulator()
    return TrackingServices(
        entries=entries,
        projects=SQLAlchemyProjectRepository(session_factory),
        guard=ConcurrencyGuard(entries, UserLockRegistry(timeout_seconds=2.0)),
        timer=TimerService(accumulator),
        stats=StatsAggregator(accumulator),
        cache=cache,
        clock=clock,
        is_elevated=role_predicate(ELEVATED_ROLES),
        dispatcher=EventDispatcher(),
    )


@pytest.fixture
def member():
    return Caller(user_id="user-1", tenant_id=TENANT, role="MEMBER")


@pytest.fixture
def admin():
    return Caller(user_id="admin-1", tenant_id=TENANT, role="ADMIN")


@pytest.fixture
def settings(database_url):
    return Settings(
        environment="testing",
        debug=False,
        database_url=database_url,
        jwt_secret_key="test-secret-key",
        elevated_roles="OWNER,ADMIN",
        redis_url=None,
        sentry_dsn=None,
    )


@pytest.fixture
def app(settings, session_factory, clock):
    return create_application(settings=settings, session_factory=session_factory, clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(app):
    """Build bearer headers for a user of the test tenant."""

    def build(user_id: str = "user-1", role: str = "MEMBER", tenant_id: str = TENANT):
        token = app.state.jwt_handler.issue_token(user_id, tenant_id, role)
        return {"Authorization": f"Bearer {token}"}

    return build
