"""
Domain Services - account ledger, flow configuration, shift lifecycle, audit.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from .entities import Account, Customer, Shift, Transaction, utcnow
from .exceptions import (
    AccountNotFoundError,
    IncompleteConfigurationError,
    NoActiveShiftError,
    PersistenceFailure,
    ShiftAlreadyOpenError,
    ShiftClosedError,
    ShiftLedgerError,
    ShiftNotFoundError,
    ValidationError,
)
from .sweep import SweepEngine
from .value_objects import (
    ZERO,
    AccountType,
    CreditBillEntry,
    FlowRole,
    ForeignCurrency,
    ShiftExpense,
    ShiftFlowConfig,
    ShiftInjection,
    non_negative,
    to_decimal,
)

logger = logging.getLogger(__name__)


class ILedgerStore(ABC):
    """
    Persistence collaborator. One implementation per backend.
    Writes made inside ``atomic()`` become durable together or not at all.
    """

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        ...

    @abstractmethod
    def get_account(self, account_id: str) -> Account | None:
        ...

    @abstractmethod
    def create_account(self, account: Account) -> str:
        ...

    @abstractmethod
    def update_account_balance(self, account_id: str, delta: Decimal) -> None:
        ...

    @abstractmethod
    def list_transactions(self) -> list[Transaction]:
        ...

    @abstractmethod
    def append_transaction(self, transaction: Transaction) -> str:
        ...

    @abstractmethod
    def list_shifts(self) -> list[Shift]:
        ...

    @abstractmethod
    def get_shift(self, shift_id: str) -> Shift | None:
        ...

    @abstractmethod
    def create_shift(self, shift: Shift) -> str:
        ...

    @abstractmethod
    def update_shift(self, shift_id: str, fields: Mapping[str, Any]) -> None:
        ...

    @abstractmethod
    def get_flow_config(self) -> ShiftFlowConfig:
        ...

    @abstractmethod
    def put_flow_config(self, config: ShiftFlowConfig) -> None:
        ...

    @abstractmethod
    def list_customers(self) -> list[Customer]:
        ...

    @abstractmethod
    def create_customer(self, customer: Customer) -> str:
        ...

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        ...

    def find_open_shift(self) -> Shift | None:
        return next((s for s in self.list_shifts() if s.is_open), None)

    def list_transactions_for_shift(self, shift_id: str) -> list[Transaction]:
        return [t for t in self.list_transactions() if t.shift_id == shift_id]


class AccountLedgerService:
    """Accounts plus the append-only transaction log."""

    def __init__(self, store: ILedgerStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def create_account(self, name: str, account_type: AccountType | str) -> Account:
        account = Account(name=(name or "").strip(), account_type=account_type, created_at=self.clock())
        with self.store.atomic():
            self.store.create_account(account)
        logger.info("account_created", extra={"account_id": account.id, "account_type": account.account_type.value})
        return account

    def list_accounts(self) -> list[Account]:
        return self.store.list_accounts()

    def get_account(self, account_id: str) -> Account:
        account = self.store.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def record_transaction(
        self,
        account_id: str,
        amount: Decimal,
        category: str,
        description: str,
        date: datetime | None = None,
        shift_id: str | None = None,
    ) -> Transaction:
        now = self.clock()
        transaction = Transaction(
            account_id=account_id,
            amount=to_decimal(amount),
            category=category,
            description=description,
            date=date or now,
            created_at=now,
            shift_id=shift_id,
        )
        self.post_batch([transaction])
        return transaction

    def post_batch(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        """Append every transaction and its balance increment as one unit."""
        batch = list(transactions)
        with self.store.atomic():
            for account_id in dict.fromkeys(t.account_id for t in batch):
                if self.store.get_account(account_id) is None:
                    raise AccountNotFoundError(account_id)
            for txn in batch:
                self.store.append_transaction(txn)
                self.store.update_account_balance(txn.account_id, txn.amount)
        for txn in batch:
            logger.debug(
                "transaction_recorded",
                extra={"account_id": txn.account_id, "amount": str(txn.amount), "shift_id": txn.shift_id},
            )
        return batch

    def list_transactions(self, shift_id: str | None = None) -> list[Transaction]:
        if shift_id is not None:
            return self.store.list_transactions_for_shift(shift_id)
        return self.store.list_transactions()

    def transactions_for_account(self, account_id: str) -> list[Transaction]:
        self.get_account(account_id)
        return [t for t in self.store.list_transactions() if t.account_id == account_id]


class FlowConfigService:
    """Reads, validates and stores the role -> account mapping."""

    def __init__(self, store: ILedgerStore):
        self.store = store

    def get(self) -> ShiftFlowConfig:
        return self.store.get_flow_config()

    def update(self, config: ShiftFlowConfig | Mapping[str, str]) -> ShiftFlowConfig:
        if not isinstance(config, ShiftFlowConfig):
            unknown = set(config) - {role.value for role in FlowRole}
            if unknown:
                raise ValidationError(f"Unknown flow role(s): {', '.join(sorted(unknown))}")
            config = ShiftFlowConfig(**{k: (v or "").strip() for k, v in config.items()})
        self._check_accounts_exist(config)
        with self.store.atomic():
            self.store.put_flow_config(config)
        logger.info("flow_config_updated", extra={"missing": [r.value for r in config.missing_roles()]})
        return config

    def require_complete(self) -> ShiftFlowConfig:
        config = self.store.get_flow_config()
        missing = config.missing_roles()
        if missing:
            logger.warning("flow_config_incomplete", extra={"missing": [r.value for r in missing]})
            raise IncompleteConfigurationError(missing)
        self._check_accounts_exist(config)
        return config

    def _check_accounts_exist(self, config: ShiftFlowConfig) -> None:
        for account_id in sorted(config.account_ids()):
            if self.store.get_account(account_id) is None:
                raise AccountNotFoundError(account_id)


@dataclass
class ShiftCloseResult:
    shift: Shift
    transactions: list[Transaction]
    already_closed: bool = False


class ShiftService:
    """
    Shift lifecycle: no active shift -> open -> closed.
    Every call re-reads the shift from the store before acting.
    """

    def __init__(
        self,
        store: ILedgerStore,
        ledger: AccountLedgerService | None = None,
        flow_config: FlowConfigService | None = None,
        sweep: SweepEngine | None = None,
        clock: Callable[[], datetime] = utcnow,
        default_operator: str = "Unknown",
    ):
        self.store = store
        self.clock = clock
        self.ledger = ledger or AccountLedgerService(store, clock)
        self.flow_config = flow_config or FlowConfigService(store)
        self.sweep = sweep or SweepEngine()
        self.default_operator = default_operator

    def active_shift(self) -> Shift | None:
        return self.store.find_open_shift()

    def list_shifts(self) -> list[Shift]:
        return self.store.list_shifts()

    def get_shift(self, shift_id: str) -> Shift:
        shift = self.store.get_shift(shift_id)
        if shift is None:
            raise ShiftNotFoundError(shift_id)
        return shift

    def start_shift(
        self,
        opening_float: Decimal,
        initial_injections: Iterable[ShiftInjection | Mapping[str, Any]] = (),
        accounting_date: date | None = None,
    ) -> Shift:
        shift = Shift(
            accounting_date=accounting_date or self.clock().date(),
            opening_float=opening_float,
            start_time=self.clock(),
            injections=_coerce_injections(initial_injections),
        )
        with self.store.atomic():
            current = self.store.find_open_shift()
            if current is not None:
                raise ShiftAlreadyOpenError(current.id)
            self.store.create_shift(shift)
        logger.info(
            "shift_started",
            extra={"shift_id": shift.id, "expected_cash": str(shift.expected_cash)},
        )
        return shift

    def update_active_shift(self, updates: Mapping[str, Any]) -> Shift | None:
        shift = self.store.find_open_shift()
        if shift is None:
            logger.debug("shift_update_skipped_no_active_shift")
            return None
        changes = coerce_shift_updates(updates)
        updated = shift.with_updates(changes)
        with self.store.atomic():
            self.store.update_shift(shift.id, changes)
        logger.info(
            "shift_updated",
            extra={"shift_id": shift.id, "fields": sorted(changes), "expected_cash": str(updated.expected_cash)},
        )
        return self.store.get_shift(shift.id) or updated

    def close_shift(
        self,
        actual_cash: Decimal,
        closed_by: str | None = None,
        shift_id: str | None = None,
    ) -> ShiftCloseResult:
        """
        Close the active shift (or ``shift_id``) and sweep it into the ledger.

        All preconditions are checked before anything is written. The sweep
        legs and the closed shift record are committed in one atomic unit,
        so on failure the shift stays open and can be closed again. Closing
        an already-closed shift by id returns the stored result.
        """
        if shift_id is not None:
            shift = self.get_shift(shift_id)
        else:
            shift = self.store.find_open_shift()
            if shift is None:
                raise NoActiveShiftError()

        if not shift.is_open:
            logger.info("shift_close_idempotent", extra={"shift_id": shift.id})
            return ShiftCloseResult(
                shift=shift,
                transactions=self.store.list_transactions_for_shift(shift.id),
                already_closed=True,
            )

        config = self.flow_config.require_complete()
        closed = shift.close(actual_cash, closed_by or self.default_operator, self.clock())
        legs = self.sweep.plan(closed, config)

        try:
            with self.store.atomic():
                current = self.store.get_shift(shift.id)
                if current is None or not current.is_open:
                    raise ShiftClosedError(shift.id)
                self.ledger.post_batch(legs)
                self.store.update_shift(shift.id, closed.closing_fields())
        except PersistenceFailure:
            logger.error("shift_close_failed", extra={"shift_id": shift.id}, exc_info=True)
            raise
        except ShiftLedgerError:
            raise
        except Exception as exc:
            logger.error("shift_close_failed", extra={"shift_id": shift.id}, exc_info=True)
            raise PersistenceFailure(
                f"Closing shift {shift.id} failed; the shift is still open: {exc}",
                operation="close_shift",
            ) from exc

        logger.info(
            "shift_closed",
            extra={
                "shift_id": shift.id,
                "legs": len(legs),
                "difference": str(closed.difference),
                "closed_by": closed.closed_by,
            },
        )
        return ShiftCloseResult(shift=self.store.get_shift(shift.id) or closed, transactions=legs)


class CustomerService:

    def __init__(self, store: ILedgerStore):
        self.store = store

    def list_customers(self) -> list[Customer]:
        return sorted(self.store.list_customers(), key=lambda c: c.name.lower())

    def create_customer(self, name: str, phone: str | None = None) -> Customer:
        customer = Customer(name=(name or "").strip(), phone=phone)
        with self.store.atomic():
            self.store.create_customer(customer)
        return customer


@dataclass
class BalanceDiscrepancy:
    account_id: str
    name: str
    balance: Decimal
    transaction_total: Decimal

    @property
    def difference(self) -> Decimal:
        return self.balance - self.transaction_total


@dataclass
class BalanceCheckResult:
    accounts_checked: int
    discrepancies: list[BalanceDiscrepancy] = field(default_factory=list)
    orphan_transactions: list[str] = field(default_factory=list)

    @property
    def is_balanced(self) -> bool:
        return not self.discrepancies and not self.orphan_transactions


@dataclass
class TrialBalanceLine:
    account_id: str
    name: str
    account_type: AccountType
    balance: Decimal


@dataclass
class TrialBalance:
    lines: list[TrialBalanceLine]
    total_positive: Decimal
    total_negative: Decimal

    @property
    def net(self) -> Decimal:
        return self.total_positive + self.total_negative


@dataclass
class ShiftSummary:
    shift: Shift
    posted_nets: dict[str, Decimal]
    sales_net: Decimal | None


class LedgerAuditService:
    """
    Read-only checks over the ledger.
    Balance invariant: stored balance == sum of the account's transactions.
    """

    def __init__(self, store: ILedgerStore):
        self.store = store

    def verify_balances(self) -> BalanceCheckResult:
        accounts = self.store.list_accounts()
        totals = SweepEngine.net_by_account(self.store.list_transactions())
        known = {a.id for a in accounts}
        result = BalanceCheckResult(accounts_checked=len(accounts))
        for account in accounts:
            total = totals.get(account.id, ZERO)
            if account.balance != total:
                result.discrepancies.append(
                    BalanceDiscrepancy(account.id, account.name, account.balance, total)
                )
        result.orphan_transactions = sorted(set(totals) - known)
        if not result.is_balanced:
            logger.warning(
                "balance_check_failed",
                extra={
                    "discrepancies": [d.account_id for d in result.discrepancies],
                    "orphans": result.orphan_transactions,
                },
            )
        return result

    def trial_balance(self) -> TrialBalance:
        lines = [
            TrialBalanceLine(a.id, a.name, a.account_type, a.balance)
            for a in sorted(self.store.list_accounts(), key=lambda a: a.name.lower())
        ]
        return TrialBalance(
            lines=lines,
            total_positive=sum((line.balance for line in lines if line.balance > 0), ZERO),
            total_negative=sum((line.balance for line in lines if line.balance < 0), ZERO),
        )

    def shift_summary(self, shift_id: str) -> ShiftSummary:
        shift = self.store.get_shift(shift_id)
        if shift is None:
            raise ShiftNotFoundError(shift_id)
        nets = SweepEngine.net_by_account(self.store.list_transactions_for_shift(shift_id))
        sales_account = self.store.get_flow_config().sales_account
        sales_net = nets.get(sales_account, ZERO) if sales_account and not shift.is_open else None
        return ShiftSummary(shift=shift, posted_nets=nets, sales_net=sales_net)


def _coerce_injections(items: Iterable[ShiftInjection | Mapping[str, Any]]) -> tuple[ShiftInjection, ...]:
    return tuple(i if isinstance(i, ShiftInjection) else ShiftInjection(**_drop_none(i)) for i in items)


def _drop_none(data: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def coerce_shift_updates(updates: Mapping[str, Any]) -> dict[str, Any]:
    """Turn raw update values (numbers, dicts) into the Shift field types."""
    changes: dict[str, Any] = {}
    for name, value in updates.items():
        if name in ("total_sales", "cards", "hiking_bar"):
            changes[name] = non_negative(value, name)
        elif name == "foreign_currency":
            changes[name] = value if isinstance(value, ForeignCurrency) else ForeignCurrency(**_drop_none(value or {}))
        elif name == "credit_bills":
            changes[name] = tuple(
                b if isinstance(b, CreditBillEntry) else CreditBillEntry(**b) for b in value or ()
            )
        elif name == "injections":
            changes[name] = _coerce_injections(value or ())
        elif name == "expenses":
            changes[name] = tuple(
                e if isinstance(e, ShiftExpense) else ShiftExpense(**_drop_none(e)) for e in value or ()
            )
        else:
            changes[name] = value
    return changes
