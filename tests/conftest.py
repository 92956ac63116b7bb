"""Pytest configuration and shared fixtures for CareBudget tests.

Every test gets its own temporary SQLite database, a frozen clock (mid-2025
unless a test moves it) and its own lock registry and change bus, so services
can be exercised without touching a real app database.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlmodel import create_engine

from carebudget.ids import new_id
from carebudget.infra.database import create_session_factory, init_database
from carebudget.services.budget_store import BudgetStore
from carebudget.services.ledger_service import Ledger
from carebudget.services.locks import KeyedLocks
from carebudget.services.notifications import BudgetChangeBus
from carebudget.services.reports import BudgetReports

CURRENT_YEAR = 2025
FIXED_NOW = datetime(CURRENT_YEAR, 6, 15, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock whose time tests can move."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingPublisher:
    """Change publisher that remembers every (client, year) it was told about."""

    def __init__(self) -> None:
        self.events: list[tuple[str, int]] = []

    def publish(self, client_id: str, year: int) -> None:
        self.events.append((client_id, year))


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create an isolated SQLite database file for each test."""

    engine = create_engine(
        f"sqlite:///{tmp_path / 'carebudget-test.db'}",
        connect_args={"check_same_thread": False},
    )
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Transactional session scopes bound to the test engine."""

    return create_session_factory(db_engine)


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(FIXED_NOW)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def locks() -> KeyedLocks:
    return KeyedLocks()


@pytest.fixture
def store(session_factory, publisher, clock, locks) -> BudgetStore:
    return BudgetStore(session_factory, publisher=publisher, clock=clock, locks=locks)


@pytest.fixture
def ledger(session_factory, publisher, clock, locks) -> Ledger:
    return Ledger(session_factory, publisher=publisher, clock=clock, locks=locks)


@pytest.fixture
def reports(session_factory) -> BudgetReports:
    return BudgetReports(session_factory)


@pytest.fixture
def client_id() -> str:
    return new_id()


@pytest.fixture
def category_id() -> str:
    return new_id()


@pytest.fixture
def user_id() -> str:
    return new_id()


# =============================================================================
# Flask App Fixtures
# =============================================================================


@pytest.fixture()
def app(tmp_path, monkeypatch: pytest.MonkeyPatch, clock):
    db_path = tmp_path / "app.db"
    monkeypatch.setenv("CAREBUDGET_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CAREBUDGET_DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("CAREBUDGET_DEV_MODE", "true")

    from carebudget import create_app

    bus = BudgetChangeBus()
    return create_app("testing", publisher=bus, clock=clock)


@pytest.fixture()
def http(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def manager_headers(user_id) -> dict[str, str]:
    return {"X-Viewer-Id": user_id, "X-Viewer-Role": "management"}


@pytest.fixture
def carer_headers(user_id) -> dict[str, str]:
    return {"X-Viewer-Id": user_id, "X-Viewer-Role": "carer"}


@pytest.fixture
def family_headers(user_id) -> dict[str, str]:
    return {"X-Viewer-Id": user_id, "X-Viewer-Role": "family"}
