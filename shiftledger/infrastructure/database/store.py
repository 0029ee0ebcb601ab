"""
SQL ledger store (SQLModel over SQLAlchemy) for the shared multi-user ("live") mode.
"""

import json
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import replace
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shiftledger.domain.entities import Account, Customer, Shift, Transaction
from shiftledger.domain.exceptions import AccountNotFoundError, PersistenceFailure, ShiftNotFoundError
from shiftledger.domain.services import ILedgerStore
from shiftledger.domain.value_objects import (
    CreditBillEntry,
    ForeignCurrency,
    ShiftExpense,
    ShiftFlowConfig,
    ShiftInjection,
    ShiftStatus,
)
from shiftledger.infrastructure.database.models import (
    AccountRow,
    CustomerRow,
    FlowConfigRow,
    ShiftRow,
    TransactionRow,
)

logger = logging.getLogger(__name__)

FLOW_CONFIG_KEY = "shift_flow"


class SqlLedgerStore(ILedgerStore):
    """
    One store per session. Writes outside ``atomic()`` commit immediately;
    inside it they share one database transaction that commits when the
    outermost block exits and rolls back if it raises.
    """

    def __init__(self, session: Session):
        self.session = session
        self._depth = 0

    @contextmanager
    def atomic(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self.session.rollback()
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                self._commit("atomic")

    def _commit(self, operation: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("store_commit_failed", extra={"operation": operation}, exc_info=True)
            raise PersistenceFailure(f"Database rejected {operation}: {exc}", operation=operation) from exc

    def _written(self, operation: str) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceFailure(f"Database rejected {operation}: {exc}", operation=operation) from exc
        if self._depth == 0:
            self._commit(operation)

    # Accounts

    def list_accounts(self) -> list[Account]:
        rows = self.session.scalars(select(AccountRow).order_by(AccountRow.created_at.desc())).all()
        return [_account_from_row(r) for r in rows]

    def get_account(self, account_id: str) -> Account | None:
        row = self.session.get(AccountRow, account_id)
        return _account_from_row(row) if row is not None else None

    def create_account(self, account: Account) -> str:
        self.session.add(AccountRow(
            id=account.id,
            name=account.name,
            account_type=account.account_type.value,
            balance=account.balance,
            created_at=account.created_at,
        ))
        self._written("create_account")
        return account.id

    def update_account_balance(self, account_id: str, delta: Decimal) -> None:
        result = self.session.execute(
            update(AccountRow)
            .where(AccountRow.id == account_id)
            .values(balance=AccountRow.balance + delta)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AccountNotFoundError(account_id)
        self.session.expire_all()
        self._written("update_account_balance")

    # Transactions

    def list_transactions(self) -> list[Transaction]:
        rows = self.session.scalars(select(TransactionRow).order_by(TransactionRow.seq)).all()
        return [_transaction_from_row(r) for r in rows]

    def list_transactions_for_shift(self, shift_id: str) -> list[Transaction]:
        rows = self.session.scalars(
            select(TransactionRow).where(TransactionRow.shift_id == shift_id).order_by(TransactionRow.seq)
        ).all()
        return [_transaction_from_row(r) for r in rows]

    def append_transaction(self, transaction: Transaction) -> str:
        last_seq = self.session.scalar(select(func.max(TransactionRow.seq)))
        self.session.add(TransactionRow(
            id=transaction.id,
            seq=(last_seq or 0) + 1,
            account_id=transaction.account_id,
            amount=transaction.amount,
            category=transaction.category,
            description=transaction.description,
            date=transaction.date,
            created_at=transaction.created_at,
            shift_id=transaction.shift_id,
        ))
        self._written("append_transaction")
        return transaction.id

    # Shifts

    def list_shifts(self) -> list[Shift]:
        rows = self.session.scalars(select(ShiftRow).order_by(ShiftRow.start_time.desc())).all()
        return [_shift_from_row(r) for r in rows]

    def find_open_shift(self) -> Shift | None:
        row = self.session.scalars(
            select(ShiftRow).where(ShiftRow.status == ShiftStatus.OPEN.value).limit(1)
        ).first()
        return _shift_from_row(row) if row is not None else None

    def get_shift(self, shift_id: str) -> Shift | None:
        row = self.session.get(ShiftRow, shift_id)
        return _shift_from_row(row) if row is not None else None

    def create_shift(self, shift: Shift) -> str:
        row = ShiftRow(id=shift.id)
        _fill_shift_row(row, shift)
        self.session.add(row)
        self._written("create_shift")
        return shift.id

    def update_shift(self, shift_id: str, fields: Mapping[str, Any]) -> None:
        row = self.session.get(ShiftRow, shift_id)
        if row is None:
            raise ShiftNotFoundError(shift_id)
        _fill_shift_row(row, replace(_shift_from_row(row), **fields))
        self._written("update_shift")

    # Flow configuration

    def get_flow_config(self) -> ShiftFlowConfig:
        row = self.session.get(FlowConfigRow, FLOW_CONFIG_KEY)
        if row is None:
            return ShiftFlowConfig()
        return ShiftFlowConfig(**{name: getattr(row, name) or "" for name in ShiftFlowConfig.__dataclass_fields__})

    def put_flow_config(self, config: ShiftFlowConfig) -> None:
        row = self.session.get(FlowConfigRow, FLOW_CONFIG_KEY) or FlowConfigRow(key=FLOW_CONFIG_KEY)
        for name, value in config.to_dict().items():
            setattr(row, name, value)
        self.session.add(row)
        self._written("put_flow_config")

    # Customers

    def list_customers(self) -> list[Customer]:
        rows = self.session.scalars(select(CustomerRow).order_by(CustomerRow.name)).all()
        return [Customer(id=r.id, name=r.name, phone=r.phone) for r in rows]

    def create_customer(self, customer: Customer) -> str:
        self.session.add(CustomerRow(id=customer.id, name=customer.name, phone=customer.phone))
        self._written("create_customer")
        return customer.id


def _account_from_row(row: AccountRow) -> Account:
    return Account(
        id=row.id,
        name=row.name,
        account_type=row.account_type,
        balance=Decimal(row.balance or 0),
        created_at=row.created_at,
    )


def _transaction_from_row(row: TransactionRow) -> Transaction:
    return Transaction(
        id=row.id,
        account_id=row.account_id,
        amount=Decimal(row.amount),
        category=row.category,
        description=row.description,
        date=row.date,
        created_at=row.created_at,
        shift_id=row.shift_id,
    )


def _fill_shift_row(row: ShiftRow, shift: Shift) -> None:
    row.status = shift.status.value
    row.start_time = shift.start_time
    row.end_time = shift.end_time
    row.accounting_date = shift.accounting_date
    row.opening_float = shift.opening_float
    row.total_sales = shift.total_sales
    row.cards = shift.cards
    row.hiking_bar = shift.hiking_bar
    row.foreign_currency = json.dumps(
        {"value": str(shift.foreign_currency.value), "comment": shift.foreign_currency.comment}
    )
    row.credit_bills = json.dumps([
        {"customer_id": b.customer_id, "customer_name": b.customer_name, "amount": str(b.amount)}
        for b in shift.credit_bills
    ])
    row.injections = json.dumps([
        {"id": i.id, "source": i.source, "amount": str(i.amount)} for i in shift.injections
    ])
    row.expenses = json.dumps([
        {"id": e.id, "category": e.category, "description": e.description, "amount": str(e.amount)}
        for e in shift.expenses
    ])
    row.expected_cash = shift.expected_cash
    row.actual_cash = shift.actual_cash
    row.difference = shift.difference
    row.closed_by = shift.closed_by


def _shift_from_row(row: ShiftRow) -> Shift:
    fx = json.loads(row.foreign_currency or "{}")
    return Shift(
        id=row.id,
        status=ShiftStatus(row.status),
        start_time=row.start_time,
        end_time=row.end_time,
        accounting_date=row.accounting_date,
        opening_float=row.opening_float,
        total_sales=row.total_sales,
        cards=row.cards,
        hiking_bar=row.hiking_bar,
        foreign_currency=ForeignCurrency(value=Decimal(fx.get("value", "0")), comment=fx.get("comment", "")),
        credit_bills=[CreditBillEntry(**b) for b in json.loads(row.credit_bills or "[]")],
        injections=[ShiftInjection(**i) for i in json.loads(row.injections or "[]")],
        expenses=[ShiftExpense(**e) for e in json.loads(row.expenses or "[]")],
        actual_cash=row.actual_cash,
        difference=row.difference,
        closed_by=row.closed_by,
    )
