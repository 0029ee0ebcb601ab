"""
Domain Entities - accounts, transactions, shifts.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from .exceptions import ShiftClosedError, ValidationError
from .value_objects import (
    ZERO,
    AccountType,
    CreditBillEntry,
    ForeignCurrency,
    ShiftExpense,
    ShiftInjection,
    ShiftStatus,
    non_negative,
    to_decimal,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Account:
    """
    Entity - ledger account.
    ``balance`` only ever moves through ``apply``; it must equal the sum of
    the amounts of every transaction posted to this account.
    """
    name: str
    account_type: AccountType
    id: str = field(default_factory=new_id)
    balance: Decimal = ZERO
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Account name must not be empty", field="name")
        try:
            self.account_type = AccountType(self.account_type)
        except ValueError:
            raise ValidationError(f"Unknown account type: {self.account_type!r}", field="account_type")
        self.balance = to_decimal(self.balance, "balance")

    def apply(self, delta: Decimal) -> "Account":
        return replace(self, balance=self.balance + delta)


@dataclass(frozen=True)
class Transaction:
    """Entity - one immutable ledger posting. Positive amount increases the account."""
    account_id: str
    amount: Decimal
    category: str
    description: str
    date: datetime
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    shift_id: str | None = None

    def __post_init__(self) -> None:
        if not self.account_id:
            raise ValidationError("Transaction needs an account", field="account_id")
        object.__setattr__(self, "amount", to_decimal(self.amount))


@dataclass
class Customer:
    name: str
    id: str = field(default_factory=new_id)
    phone: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Customer name must not be empty", field="name")


@dataclass
class Shift:
    """
    Entity - one operating session of the till.

    ``expected_cash`` is derived from the other fields on every read and
    cannot be assigned. Once closed, a shift is immutable.
    """
    accounting_date: date
    opening_float: Decimal
    id: str = field(default_factory=new_id)
    status: ShiftStatus = ShiftStatus.OPEN
    start_time: datetime = field(default_factory=utcnow)
    end_time: datetime | None = None
    total_sales: Decimal = ZERO
    cards: Decimal = ZERO
    hiking_bar: Decimal = ZERO
    foreign_currency: ForeignCurrency = field(default_factory=ForeignCurrency)
    credit_bills: tuple[CreditBillEntry, ...] = ()
    injections: tuple[ShiftInjection, ...] = ()
    expenses: tuple[ShiftExpense, ...] = ()
    actual_cash: Decimal | None = None
    difference: Decimal | None = None
    closed_by: str | None = None

    MUTABLE_FIELDS = frozenset({
        "total_sales",
        "cards",
        "hiking_bar",
        "foreign_currency",
        "credit_bills",
        "injections",
        "expenses",
    })

    def __post_init__(self) -> None:
        self.status = ShiftStatus(self.status)
        self.opening_float = non_negative(self.opening_float, "opening_float")
        self.total_sales = non_negative(self.total_sales, "total_sales")
        self.cards = non_negative(self.cards, "cards")
        self.hiking_bar = non_negative(self.hiking_bar, "hiking_bar")
        self.credit_bills = tuple(self.credit_bills)
        self.injections = tuple(self.injections)
        self.expenses = tuple(self.expenses)
        if self.actual_cash is not None:
            self.actual_cash = to_decimal(self.actual_cash, "actual_cash")
        if self.difference is not None:
            self.difference = to_decimal(self.difference, "difference")

    @property
    def is_open(self) -> bool:
        return self.status == ShiftStatus.OPEN

    @property
    def total_bills(self) -> Decimal:
        return sum((b.amount for b in self.credit_bills), ZERO)

    @property
    def total_non_cash(self) -> Decimal:
        return self.cards + self.hiking_bar + self.foreign_currency.value + self.total_bills

    @property
    def cash_sales(self) -> Decimal:
        return self.total_sales - self.total_non_cash

    @property
    def total_injections(self) -> Decimal:
        return sum((i.amount for i in self.injections), ZERO)

    @property
    def total_expenses(self) -> Decimal:
        return sum((e.amount for e in self.expenses), ZERO)

    @property
    def expected_cash(self) -> Decimal:
        return self.opening_float + self.cash_sales + self.total_injections - self.total_expenses

    def with_updates(self, updates: dict[str, Any]) -> "Shift":
        """Merge mutable fields into a new Shift; expected cash follows automatically."""
        if not self.is_open:
            raise ShiftClosedError(self.id)
        unknown = set(updates) - self.MUTABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update shift field(s): {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        return replace(self, **updates)

    def close(self, actual_cash: Decimal, closed_by: str, closed_at: datetime) -> "Shift":
        if not self.is_open:
            raise ShiftClosedError(self.id)
        actual = non_negative(actual_cash, "actual_cash")
        return replace(
            self,
            status=ShiftStatus.CLOSED,
            end_time=closed_at,
            actual_cash=actual,
            difference=actual - self.expected_cash,
            closed_by=closed_by,
        )

    def closing_fields(self) -> dict[str, Any]:
        """Fields written to the store when the shift closes."""
        return {
            "status": self.status,
            "end_time": self.end_time,
            "actual_cash": self.actual_cash,
            "difference": self.difference,
            "closed_by": self.closed_by,
        }
