"""Domain layer - Pure Python business logic."""

from shiftledger.domain.entities import Account, Customer, Shift, Transaction
from shiftledger.domain.exceptions import (
    AccountNotFoundError,
    IncompleteConfigurationError,
    NoActiveShiftError,
    NotFoundError,
    PersistenceFailure,
    PreconditionViolation,
    ShiftAlreadyOpenError,
    ShiftClosedError,
    ShiftLedgerError,
    ShiftNotFoundError,
    ValidationError,
)
from shiftledger.domain.services import (
    AccountLedgerService,
    CustomerService,
    FlowConfigService,
    ILedgerStore,
    LedgerAuditService,
    ShiftCloseResult,
    ShiftService,
)
from shiftledger.domain.sweep import SweepEngine
from shiftledger.domain.value_objects import (
    AccountType,
    CreditBillEntry,
    FlowRole,
    ForeignCurrency,
    ShiftExpense,
    ShiftFlowConfig,
    ShiftInjection,
    ShiftStatus,
    TransactionCategory,
)
