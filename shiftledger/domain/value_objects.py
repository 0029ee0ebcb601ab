"""
Domain Layer - Value objects for the shift ledger.
"""

import uuid
from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from .exceptions import ValidationError

ZERO = Decimal("0")

# Scale of every stored money column.
MONEY_PLACES = 4
MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_PLACES)


class AccountType(str, Enum):
    """Chart-of-accounts classification."""
    RECEIVABLE = "receivable"
    INCOME = "income"
    PAYABLE = "payable"
    ASSET = "asset"
    CASH = "cash"
    BANK = "bank"
    EQUITY = "equity"


class ShiftStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class FlowRole(str, Enum):
    """Sweep roles; each value is the matching ShiftFlowConfig slot name."""
    SALES = "sales_account"
    CARDS = "cards_account"
    HIKING = "hiking_account"
    FX = "fx_account"
    BILLS = "bills_account"
    CASH = "cash_account"
    VARIANCE = "variance_account"


class TransactionCategory:
    REVENUE = "Revenue"
    TRANSFER = "Transfer"
    ADJUSTMENT = "Adjustment"


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """
    Coerce user input to Decimal; floats go through str() to avoid binary noise.
    Amounts must be finite and fit the stored scale of MONEY_PLACES decimals.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, (int, float)):
            amount = Decimal(str(value))
        else:
            amount = Decimal(str(value).replace(",", "."))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field_name} is not a valid amount: {value!r}", field=field_name) from exc

    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a finite amount", field=field_name)
    try:
        fits_scale = amount == amount.quantize(MONEY_QUANTUM)
    except InvalidOperation:
        fits_scale = False
    if not fits_scale:
        raise ValidationError(
            f"{field_name} must have at most {MONEY_PLACES} decimal places: {value!r}", field=field_name
        )
    return amount


def non_negative(value: Any, field_name: str) -> Decimal:
    amount = to_decimal(value, field_name)
    if amount < 0:
        raise ValidationError(f"{field_name} must not be negative", field=field_name)
    return amount


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True, slots=True)
class ForeignCurrency:
    """Foreign notes taken at the till, valued in the house currency."""
    value: Decimal = ZERO
    comment: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", non_negative(self.value, "foreign_currency.value"))


@dataclass(frozen=True, slots=True)
class ShiftInjection:
    """Cash added to the till (float top-up from bank, owner equity, ...)."""
    source: str
    amount: Decimal
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", non_negative(self.amount, "injection.amount"))


@dataclass(frozen=True, slots=True)
class ShiftExpense:
    """Cash paid out of the till during the shift."""
    category: str
    description: str
    amount: Decimal
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", non_negative(self.amount, "expense.amount"))


@dataclass(frozen=True, slots=True)
class CreditBillEntry:
    """Sale deferred to a customer receivable."""
    customer_id: str
    customer_name: str
    amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", non_negative(self.amount, "credit_bill.amount"))


@dataclass(frozen=True, slots=True)
class ShiftFlowConfig:
    """
    Mapping from sweep roles to account ids.
    An empty string means the role is not mapped yet.
    """
    sales_account: str = ""
    cards_account: str = ""
    hiking_account: str = ""
    fx_account: str = ""
    bills_account: str = ""
    cash_account: str = ""
    variance_account: str = ""

    def account_for(self, role: FlowRole) -> str:
        return getattr(self, role.value)

    def missing_roles(self) -> list[FlowRole]:
        return [role for role in FlowRole if not (self.account_for(role) or "").strip()]

    def is_complete(self) -> bool:
        return not self.missing_roles()

    def account_ids(self) -> set[str]:
        return {self.account_for(role) for role in FlowRole if self.account_for(role)}

    def to_dict(self) -> dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
