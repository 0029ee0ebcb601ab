"""
API DTOs - Data Transfer Objects for API requests/responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shiftledger.domain.value_objects import AccountType, ShiftStatus


class AccountCreateDTO(BaseModel):
    """DTO - create an account."""
    name: str = Field(..., min_length=1, max_length=200, description="Account name")
    account_type: AccountType = Field(..., description="Chart-of-accounts type")

    model_config = ConfigDict(json_schema_extra={
        "example": {"name": "Main Cash Till", "account_type": "cash"}
    })


class AccountResponseDTO(BaseModel):
    id: str
    name: str
    account_type: AccountType
    balance: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionCreateDTO(BaseModel):
    """DTO - manual ledger entry."""
    account_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., description="Signed amount; positive increases the account")
    category: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=500)
    date: datetime | None = Field(None, description="Defaults to now")
    shift_id: str | None = None


class TransactionResponseDTO(BaseModel):
    id: str
    account_id: str
    amount: Decimal
    category: str
    description: str
    date: datetime
    created_at: datetime
    shift_id: str | None

    model_config = ConfigDict(from_attributes=True)


class ForeignCurrencyDTO(BaseModel):
    value: Decimal = Field(Decimal("0"), ge=0)
    comment: str = ""

    model_config = ConfigDict(from_attributes=True)


class InjectionDTO(BaseModel):
    id: str | None = None
    source: str = Field(..., min_length=1, description="Account id or label the cash came from")
    amount: Decimal = Field(..., ge=0)

    model_config = ConfigDict(from_attributes=True)


class ExpenseDTO(BaseModel):
    id: str | None = None
    category: str = Field(..., min_length=1)
    description: str = ""
    amount: Decimal = Field(..., ge=0)

    model_config = ConfigDict(from_attributes=True)


class CreditBillDTO(BaseModel):
    customer_id: str
    customer_name: str
    amount: Decimal = Field(..., ge=0)

    model_config = ConfigDict(from_attributes=True)


class ShiftStartDTO(BaseModel):
    """DTO - open a shift."""
    opening_float: Decimal = Field(..., ge=0)
    injections: list[InjectionDTO] = Field(default_factory=list)
    accounting_date: date | None = Field(None, description="Business date the shift belongs to")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "opening_float": 100,
            "injections": [{"source": "Business Bank", "amount": 50}],
            "accounting_date": "2024-08-15",
        }
    })


class ShiftUpdateDTO(BaseModel):
    """DTO - partial update of the active shift; only sent fields change."""
    total_sales: Decimal | None = Field(None, ge=0)
    cards: Decimal | None = Field(None, ge=0)
    hiking_bar: Decimal | None = Field(None, ge=0)
    foreign_currency: ForeignCurrencyDTO | None = None
    credit_bills: list[CreditBillDTO] | None = None
    injections: list[InjectionDTO] | None = None
    expenses: list[ExpenseDTO] | None = None

    model_config = ConfigDict(extra="forbid")

    def to_updates(self) -> dict[str, Any]:
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class ShiftCloseDTO(BaseModel):
    actual_cash: Decimal = Field(..., ge=0, description="Counted cash in the till")


class ShiftResponseDTO(BaseModel):
    id: str
    status: ShiftStatus
    start_time: datetime
    end_time: datetime | None
    accounting_date: date
    opening_float: Decimal
    total_sales: Decimal
    cards: Decimal
    hiking_bar: Decimal
    foreign_currency: ForeignCurrencyDTO
    credit_bills: list[CreditBillDTO]
    injections: list[InjectionDTO]
    expenses: list[ExpenseDTO]
    cash_sales: Decimal
    expected_cash: Decimal
    actual_cash: Decimal | None
    difference: Decimal | None
    closed_by: str | None

    model_config = ConfigDict(from_attributes=True)


class ShiftCloseResultDTO(BaseModel):
    shift: ShiftResponseDTO
    transactions: list[TransactionResponseDTO]
    already_closed: bool

    model_config = ConfigDict(from_attributes=True)


class FlowConfigDTO(BaseModel):
    """DTO - sweep role -> account id mapping. Empty string = unmapped."""
    sales_account: str = ""
    cards_account: str = ""
    hiking_account: str = ""
    fx_account: str = ""
    bills_account: str = ""
    cash_account: str = ""
    variance_account: str = ""

    model_config = ConfigDict(from_attributes=True, extra="forbid")


class FlowConfigResponseDTO(FlowConfigDTO):
    is_complete: bool
    missing_roles: list[str]

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class CustomerCreateDTO(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: str | None = None


class CustomerResponseDTO(BaseModel):
    id: str
    name: str
    phone: str | None

    model_config = ConfigDict(from_attributes=True)


class BalanceDiscrepancyDTO(BaseModel):
    account_id: str
    name: str
    balance: Decimal
    transaction_total: Decimal
    difference: Decimal

    model_config = ConfigDict(from_attributes=True)


class BalanceCheckResultDTO(BaseModel):
    """DTO - balance invariant audit."""
    is_balanced: bool
    accounts_checked: int
    discrepancies: list[BalanceDiscrepancyDTO] = []
    orphan_transactions: list[str] = []

    model_config = ConfigDict(from_attributes=True)


class TrialBalanceLineDTO(BaseModel):
    account_id: str
    name: str
    account_type: AccountType
    balance: Decimal

    model_config = ConfigDict(from_attributes=True)


class TrialBalanceDTO(BaseModel):
    lines: list[TrialBalanceLineDTO]
    total_positive: Decimal
    total_negative: Decimal
    net: Decimal

    model_config = ConfigDict(from_attributes=True)


class ShiftSummaryDTO(BaseModel):
    shift: ShiftResponseDTO
    total_non_cash: Decimal
    total_bills: Decimal
    total_injections: Decimal
    total_expenses: Decimal
    posted_nets: dict[str, Decimal]
    sales_net: Decimal | None
