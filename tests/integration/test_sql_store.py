"""
Integration tests - SQL store.
Testing: data survives across sessions, shift JSON fields round-trip, expected cash
cache column, posting order, rollback of a failed unit of work.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.pool import StaticPool

from shiftledger.core.config import Settings
from shiftledger.domain.exceptions import PersistenceFailure, ShiftNotFoundError
from shiftledger.domain.services import LedgerAuditService, ShiftService
from shiftledger.domain.value_objects import ShiftStatus
from shiftledger.infrastructure.database import create_db_engine
from shiftledger.infrastructure.database.models import ShiftRow, TransactionRow
from shiftledger.infrastructure.providers import MemoryStoreProvider, SqlStoreProvider, build_store_provider
from shiftledger.infrastructure.seed import seed_defaults


@pytest.fixture
def provider():
    provider = SqlStoreProvider(create_db_engine("sqlite://", poolclass=StaticPool))
    with provider.open() as store:
        seed_defaults(store)
    yield provider
    provider.dispose()


SHIFT_UPDATES = {
    "total_sales": "500",
    "cards": "100",
    "hiking_bar": "40",
    "foreign_currency": {"value": "60", "comment": "USD 50"},
    "credit_bills": [{"customer_id": "c1", "customer_name": "Regular Guest", "amount": "25"}],
    "injections": [{"source": "Business Bank", "amount": "50"}],
    "expenses": [{"category": "Supplies", "description": "Ice", "amount": "20"}],
}


class TestSqlPersistence:
    """Each unit of work uses its own session; committed data is visible to the next."""

    def test_shift_fields_round_trip(self, provider, clock):
        with provider.open() as store:
            shift = ShiftService(store, clock=clock).start_shift(Decimal("100"), accounting_date=date(2024, 8, 15))
            ShiftService(store, clock=clock).update_active_shift(SHIFT_UPDATES)

        with provider.open() as store:
            loaded = store.get_shift(shift.id)
            assert loaded.accounting_date == date(2024, 8, 15)
            assert loaded.foreign_currency.comment == "USD 50"
            assert loaded.foreign_currency.value == Decimal("60")
            assert loaded.credit_bills[0].customer_name == "Regular Guest"
            assert loaded.injections[0].amount == Decimal("50")
            assert loaded.expenses[0].description == "Ice"
            # 100 + (500 - 225) + 50 - 20
            assert loaded.expected_cash == Decimal("405")

            row = store.session.get(ShiftRow, shift.id)
            assert row.expected_cash == Decimal("405")

    def test_close_is_durable(self, provider, clock):
        with provider.open() as store:
            service = ShiftService(store, clock=clock)
            shift = service.start_shift(Decimal("100"), accounting_date=date(2024, 8, 15))
            service.update_active_shift(SHIFT_UPDATES)
            service.close_shift(Decimal("400"), closed_by="Master Chef")

        with provider.open() as store:
            closed = store.get_shift(shift.id)
            assert closed.status == ShiftStatus.CLOSED
            assert closed.difference == Decimal("-5")
            assert store.find_open_shift() is None
            assert LedgerAuditService(store).verify_balances().is_balanced

            seqs = store.session.scalars(select(TransactionRow.seq).order_by(TransactionRow.seq)).all()
            assert seqs == list(range(1, len(seqs) + 1))
            descriptions = [t.description for t in store.list_transactions_for_shift(shift.id)]
            assert descriptions[0] == "Sales Revenue (2024-08-15)"
            assert descriptions[-1] == "Cash Variance Correction"

    def test_failed_close_leaves_nothing_behind(self, provider, clock, break_appends):
        with provider.open() as store:
            service = ShiftService(store, clock=clock)
            shift = service.start_shift(Decimal("100"), accounting_date=date(2024, 8, 15))
            service.update_active_shift(SHIFT_UPDATES)
            break_appends(store, after=5)
            with pytest.raises(PersistenceFailure):
                service.close_shift(Decimal("400"))

        with provider.open() as store:
            assert store.list_transactions() == []
            assert store.get_shift(shift.id).is_open
            assert all(a.balance == 0 for a in store.list_accounts())

    def test_update_unknown_shift(self, sql_store):
        with pytest.raises(ShiftNotFoundError):
            sql_store.update_shift("missing", {"total_sales": Decimal("1")})


class TestStoreProviders:
    """Backend is picked once from settings."""

    def test_memory_backend(self):
        provider = build_store_provider(Settings(backend="memory"))
        assert isinstance(provider, MemoryStoreProvider)
        with provider.open() as first, provider.open() as second:
            assert first is second

    def test_sql_backend(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'nested' / 'ledger.db'}"
        provider = build_store_provider(Settings(backend="sql", database_url=url))
        try:
            assert isinstance(provider, SqlStoreProvider)
            with provider.open() as store:
                assert seed_defaults(store) is True
            with provider.open() as store:
                assert store.get_flow_config().is_complete()
        finally:
            provider.dispose()
        assert (tmp_path / "nested" / "ledger.db").exists()

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_store_provider(Settings(backend="redis"))
