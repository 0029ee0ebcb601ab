"""
Unit tests - close-of-shift sweep.
Testing: leg order and descriptions, sign of the variance legs, sales account nets
to zero, skipped zero channels, preconditions.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from shiftledger.domain.entities import Shift
from shiftledger.domain.exceptions import IncompleteConfigurationError, ValidationError
from shiftledger.domain.sweep import SweepEngine
from shiftledger.domain.value_objects import (
    CreditBillEntry,
    FlowRole,
    ForeignCurrency,
    ShiftExpense,
    ShiftFlowConfig,
    ShiftInjection,
)

CLOSED_AT = datetime(2024, 8, 15, 23, 30, tzinfo=timezone.utc)

CONFIG = ShiftFlowConfig(
    sales_account="sales",
    cards_account="bank",
    hiking_account="hiking",
    fx_account="fx",
    bills_account="bills",
    cash_account="cash",
    variance_account="variance",
)


def closed_shift(actual_cash, **kwargs) -> Shift:
    shift = Shift(accounting_date=date(2024, 8, 15), opening_float=Decimal("100"), **kwargs)
    return shift.close(Decimal(actual_cash), "Master Chef", CLOSED_AT)


def legs_of(transactions):
    return [(t.account_id, t.amount, t.description) for t in transactions]


@pytest.fixture
def engine() -> SweepEngine:
    return SweepEngine()


class TestSweepPlan:
    """Order and content of the sweep legs."""

    def test_worked_example(self, engine):
        """Sales 1000, cards 300, expense 50, counted 760 -> 10 over."""
        shift = closed_shift(
            "760",
            total_sales=Decimal("1000"),
            cards=Decimal("300"),
            expenses=[ShiftExpense(category="Supplies", description="Ice", amount=Decimal("50"))],
        )
        assert shift.difference == Decimal("10")

        legs = engine.plan(shift, CONFIG)

        assert legs_of(legs) == [
            ("sales", Decimal("1000"), "Sales Revenue (2024-08-15)"),
            ("sales", Decimal("-300"), "Sales Card Sweep"),
            ("bank", Decimal("300"), "Card Settlement Receipt"),
            ("cash", Decimal("-50"), "Shift Expense: Ice"),
            ("sales", Decimal("-700"), "Cash Sales Deposit"),
            ("cash", Decimal("700"), "Cash Sales Receipt"),
            ("variance", Decimal("10"), "Shift Cash Variance (Over)"),
            ("cash", Decimal("10"), "Cash Variance Correction"),
        ]
        assert [t.category for t in legs] == [
            "Revenue", "Transfer", "Transfer", "Supplies", "Transfer", "Transfer", "Adjustment", "Adjustment",
        ]
        assert all(t.shift_id == shift.id for t in legs)
        assert all(t.date == CLOSED_AT for t in legs)

    def test_every_channel_in_order(self, engine):
        shift = closed_shift(
            "200",
            total_sales=Decimal("500"),
            cards=Decimal("100"),
            hiking_bar=Decimal("40"),
            foreign_currency=ForeignCurrency(Decimal("60"), "USD 50"),
            credit_bills=[
                CreditBillEntry("c1", "Regular Guest", Decimal("25")),
                CreditBillEntry("c2", "VIP Table 5", Decimal("15")),
            ],
        )
        descriptions = [t.description for t in engine.plan(shift, CONFIG)]
        assert descriptions == [
            "Sales Revenue (2024-08-15)",
            "Sales Card Sweep",
            "Card Settlement Receipt",
            "Hiking Bar Shift Portion",
            "Hiking Bar Receivable Log",
            "FX Reserve Transfer",
            "FX Reserve: USD 50",
            "Credit Bill: Regular Guest",
            "Receivable: Regular Guest",
            "Credit Bill: VIP Table 5",
            "Receivable: VIP Table 5",
            "Cash Sales Deposit",
            "Cash Sales Receipt",
            "Shift Cash Variance (Short)",
            "Cash Variance Correction",
        ]

    def test_sales_account_nets_to_zero(self, engine):
        shift = closed_shift(
            "360",
            total_sales=Decimal("500"),
            cards=Decimal("100"),
            hiking_bar=Decimal("40"),
            foreign_currency=ForeignCurrency(Decimal("60"), ""),
            credit_bills=[CreditBillEntry("c1", "Regular Guest", Decimal("40"))],
        )
        nets = SweepEngine.net_by_account(engine.plan(shift, CONFIG))
        assert nets["sales"] == Decimal("0")
        assert nets["bank"] == Decimal("100")
        assert nets["hiking"] == Decimal("40")
        assert nets["fx"] == Decimal("60")
        assert nets["bills"] == Decimal("40")
        assert nets["cash"] == Decimal("260")
        assert "variance" not in nets

    def test_short_variance_posts_negative_on_both(self, engine):
        shift = closed_shift(
            "740",
            total_sales=Decimal("1000"),
            cards=Decimal("300"),
            expenses=[ShiftExpense(category="Supplies", description="Ice", amount=Decimal("50"))],
        )
        legs = engine.plan(shift, CONFIG)[-2:]
        assert legs_of(legs) == [
            ("variance", Decimal("-10"), "Shift Cash Variance (Short)"),
            ("cash", Decimal("-10"), "Cash Variance Correction"),
        ]

    def test_exact_count_posts_no_variance(self, engine):
        shift = closed_shift(
            "750",
            total_sales=Decimal("1000"),
            cards=Decimal("300"),
            expenses=[ShiftExpense(category="Supplies", description="Ice", amount=Decimal("50"))],
        )
        legs = engine.plan(shift, CONFIG)
        assert len(legs) == 6
        assert all(t.category != "Adjustment" for t in legs)

    def test_zero_channels_are_skipped(self, engine):
        shift = closed_shift(
            "100",
            credit_bills=[CreditBillEntry("c1", "Regular Guest", Decimal("0"))],
            injections=[ShiftInjection(source="Business Bank", amount=Decimal("0"))],
        )
        legs = engine.plan(shift, CONFIG)
        assert legs_of(legs) == [("sales", Decimal("0"), "Sales Revenue (2024-08-15)")]

    def test_injections_post_nothing(self, engine):
        shift = closed_shift("150", injections=[ShiftInjection(source="Business Bank", amount=Decimal("50"))])
        legs = engine.plan(shift, CONFIG)
        assert [t.description for t in legs] == ["Sales Revenue (2024-08-15)"]

    def test_negative_cash_sales_skips_cash_pair_and_warns(self, engine, caplog):
        shift = closed_shift("50", total_sales=Decimal("100"), cards=Decimal("150"))
        with caplog.at_level(logging.WARNING, logger="shiftledger.domain.sweep"):
            legs = engine.plan(shift, CONFIG)
        assert "Cash Sales Deposit" not in [t.description for t in legs]
        assert any(r.getMessage() == "sweep_negative_cash_sales" for r in caplog.records)


class TestSweepPreconditions:
    """The engine refuses to plan unless the shift is closed and every role is mapped."""

    def test_open_shift_rejected(self, engine):
        shift = Shift(accounting_date=date(2024, 8, 15), opening_float=Decimal("100"))
        with pytest.raises(ValidationError):
            engine.plan(shift, CONFIG)

    def test_incomplete_config_rejected(self, engine):
        config = ShiftFlowConfig(**{**CONFIG.to_dict(), "variance_account": ""})
        with pytest.raises(IncompleteConfigurationError) as exc:
            engine.plan(closed_shift("100"), config)
        assert exc.value.missing_roles == [FlowRole.VARIANCE.value]
