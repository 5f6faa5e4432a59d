"""
Pytest fixtures for the fuel engine test suite.

Provides:
- An in-memory SQLite database per test (or PostgreSQL via DATABASE_URL)
- A deterministic clock
- The default configuration snapshot
- Service fixtures wired to the session, snapshot and clock
- Structured log capture

Environment Variables:
- DATABASE_URL: run the database tests against this URL instead of
  in-memory SQLite.  The database must be empty; tables are created and
  dropped per test.
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from fuel_config import get_active_config
from fuel_config.schema import FuelConfigSnapshot
from fuel_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from fuel_kernel.domain.clock import DeterministicClock
from fuel_kernel.domain.values import Direction
from fuel_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from fuel_kernel.services.delivery_order_service import DeliveryOrderService
from fuel_kernel.services.ledger_service import LedgerService
from fuel_services.auto_fill_service import AutoFillService
from fuel_services.consistency import ConsistencyManager
from fuel_services.journey_service import JourneyService
from fuel_services.lpo_service import LPOService

TEST_ACTOR = "test-clerk"

# 2025-03-01, the clock every service test runs at
TEST_NOW = datetime(2025, 3, 1, 8, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture fuel_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.apply_checkpoint_debit(...)
            logs = captured_logs()
            assert any(r["message"] == "checkpoint_debited" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("fuel_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Configuration and time
# =============================================================================


@pytest.fixture(scope="session")
def config() -> FuelConfigSnapshot:
    """The default configuration set shipped in fuel_config/sets."""
    return get_active_config()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(TEST_NOW)


@pytest.fixture
def today(clock) -> date:
    return clock.today()


@pytest.fixture
def actor() -> str:
    return TEST_ACTOR


# =============================================================================
# Database
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", "sqlite://")


@pytest.fixture
def db_engine():
    """A fresh schema per test."""
    engine = init_engine_from_url(get_database_url())
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Session for one test.  Nothing is committed; teardown rolls back."""
    sess = get_session()
    yield sess
    try:
        sess.rollback()
    finally:
        sess.close()


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def ledger(session, clock) -> LedgerService:
    return LedgerService(session, clock)


@pytest.fixture
def order_service(session, clock) -> DeliveryOrderService:
    return DeliveryOrderService(session, clock)


@pytest.fixture
def journey(session, config, clock) -> JourneyService:
    return JourneyService(session, config, clock)


@pytest.fixture
def lpo_service(session, config, clock) -> LPOService:
    return LPOService(session, config, clock)


@pytest.fixture
def consistency(session, config, clock) -> ConsistencyManager:
    return ConsistencyManager(session, config, clock)


@pytest.fixture
def auto_fill_service(session, config, clock) -> AutoFillService:
    return AutoFillService(session, config, clock)


# =============================================================================
# Journey builders
# =============================================================================


@pytest.fixture
def record_going(journey, today):
    """Record an IMPORT order and open its fuel record."""

    def _record(
        order_number: str = "DO-1001",
        truck_no: str = "T103 DNH",
        destination: str = "LUBUMBASHI",
        loading_point: str = "DAR ES SALAAM",
        order_date: date | None = None,
    ):
        return journey.record_delivery_order(
            order_number=order_number,
            truck_no=truck_no,
            direction=Direction.IMPORT,
            loading_point=loading_point,
            destination=destination,
            order_date=order_date or today,
            actor=TEST_ACTOR,
        )

    return _record


@pytest.fixture
def record_return(journey, today):
    """Record an EXPORT order and attach it to the truck's open record."""

    def _record(
        order_number: str = "DO-2001",
        truck_no: str = "T103 DNH",
        destination: str = "KAMOA",
        loading_point: str = "KOLWEZI",
        order_date: date | None = None,
    ):
        return journey.record_delivery_order(
            order_number=order_number,
            truck_no=truck_no,
            direction=Direction.EXPORT,
            loading_point=loading_point,
            destination=destination,
            order_date=order_date or today,
            actor=TEST_ACTOR,
        )

    return _record
