"""
Pytest configuration and fixtures.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.pool import StaticPool

from shiftledger.domain.exceptions import PersistenceFailure
from shiftledger.domain.services import AccountLedgerService, LedgerAuditService, ShiftService
from shiftledger.domain.value_objects import ShiftFlowConfig
from shiftledger.infrastructure.database import create_db_engine, init_db, make_session_factory
from shiftledger.infrastructure.database.store import SqlLedgerStore
from shiftledger.infrastructure.memory_store import InMemoryLedgerStore
from shiftledger.infrastructure.seed import seed_defaults

CLOSE_TIME = datetime(2024, 8, 15, 23, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return lambda: CLOSE_TIME


@pytest.fixture
def accounting_date() -> date:
    return date(2024, 8, 15)


@pytest.fixture
def sql_engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(sql_engine):
    session = make_session_factory(sql_engine)()
    yield SqlLedgerStore(session)
    session.close()


@pytest.fixture
def memory_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Run the test once per backend."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def seeded_store(store):
    seed_defaults(store)
    return store


@pytest.fixture
def flow(seeded_store) -> ShiftFlowConfig:
    return seeded_store.get_flow_config()


@pytest.fixture
def ledger(seeded_store, clock) -> AccountLedgerService:
    return AccountLedgerService(seeded_store, clock=clock)


@pytest.fixture
def shifts(seeded_store, ledger, clock) -> ShiftService:
    return ShiftService(seeded_store, ledger=ledger, clock=clock)


@pytest.fixture
def audit(seeded_store) -> LedgerAuditService:
    return LedgerAuditService(seeded_store)


@pytest.fixture
def break_appends(monkeypatch):
    """Make ``store.append_transaction`` fail after ``after`` successful calls."""

    def _break(store, after: int, exc: Exception | None = None):
        original = store.append_transaction
        calls = {"n": 0}

        def flaky(transaction):
            calls["n"] += 1
            if calls["n"] > after:
                raise exc or PersistenceFailure("disk full", operation="append_transaction")
            return original(transaction)

        monkeypatch.setattr(store, "append_transaction", flaky)
        return monkeypatch

    return _break


@pytest.fixture
def worked_example() -> dict:
    """Sales 1000, cards 300, one 50 expense: expected cash 750 on a 100 float."""
    return {
        "total_sales": Decimal("1000"),
        "cards": Decimal("300"),
        "expenses": [{"category": "Supplies", "description": "Ice", "amount": Decimal("50")}],
    }
