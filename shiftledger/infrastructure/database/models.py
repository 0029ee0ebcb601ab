"""
Infrastructure - SQLModel database models.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlmodel import Field, SQLModel

from shiftledger.domain.value_objects import MONEY_PLACES


class AccountRow(SQLModel, table=True):
    """Ledger account."""

    __tablename__ = "account"

    id: str = Field(primary_key=True)
    name: str
    account_type: str = Field(index=True)
    balance: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=MONEY_PLACES)
    created_at: datetime


class TransactionRow(SQLModel, table=True):
    """Immutable posting; ``seq`` preserves posting order."""

    __tablename__ = "ledger_transaction"

    id: str = Field(primary_key=True)
    seq: int = Field(index=True, unique=True)
    account_id: str = Field(foreign_key="account.id", index=True)
    amount: Decimal = Field(max_digits=18, decimal_places=MONEY_PLACES)
    category: str
    description: str
    date: datetime = Field(index=True)
    created_at: datetime
    shift_id: str | None = Field(default=None, index=True)


class ShiftRow(SQLModel, table=True):
    """Till shift. List fields are JSON text; expected_cash is a cache rewritten on every save."""

    __tablename__ = "shift"

    id: str = Field(primary_key=True)
    status: str = Field(index=True)
    start_time: datetime = Field(index=True)
    end_time: datetime | None = None
    accounting_date: date
    opening_float: Decimal = Field(max_digits=18, decimal_places=MONEY_PLACES)
    total_sales: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=MONEY_PLACES)
    cards: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=MONEY_PLACES)
    hiking_bar: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=MONEY_PLACES)
    foreign_currency: str = "{}"  # JSON: {"value": "0", "comment": ""}
    credit_bills: str = "[]"  # JSON array
    injections: str = "[]"  # JSON array
    expenses: str = "[]"  # JSON array
    expected_cash: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=MONEY_PLACES)
    actual_cash: Decimal | None = Field(default=None, max_digits=18, decimal_places=MONEY_PLACES)
    difference: Decimal | None = Field(default=None, max_digits=18, decimal_places=MONEY_PLACES)
    closed_by: str | None = None


class FlowConfigRow(SQLModel, table=True):
    """Role -> account mapping; a single row keyed ``shift_flow``."""

    __tablename__ = "flow_config"

    key: str = Field(default="shift_flow", primary_key=True)
    sales_account: str = ""
    cards_account: str = ""
    hiking_account: str = ""
    fx_account: str = ""
    bills_account: str = ""
    cash_account: str = ""
    variance_account: str = ""


class CustomerRow(SQLModel, table=True):
    """Customer that credit bills are charged to."""

    __tablename__ = "customer"

    id: str = Field(primary_key=True)
    name: str = Field(index=True)
    phone: str | None = None
