"""
In-process ledger store for single-user ("sandbox") mode.
"""

import copy
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import replace
from decimal import Decimal
from typing import Any

from shiftledger.domain.entities import Account, Customer, Shift, Transaction
from shiftledger.domain.exceptions import AccountNotFoundError, ShiftNotFoundError, ValidationError
from shiftledger.domain.services import ILedgerStore
from shiftledger.domain.value_objects import ShiftFlowConfig


class InMemoryLedgerStore(ILedgerStore):
    """
    Dict-backed store. A re-entrant lock serialises access; ``atomic()``
    snapshots the state on entry and restores it if the block raises.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._depth = 0
        self._accounts: dict[str, Account] = {}
        self._transactions: list[Transaction] = []
        self._shifts: dict[str, Shift] = {}
        self._customers: dict[str, Customer] = {}
        self._flow_config = ShiftFlowConfig()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            snapshot = self._snapshot() if self._depth == 0 else None
            self._depth += 1
            try:
                yield
            except BaseException:
                if snapshot is not None:
                    self._restore(snapshot)
                raise
            finally:
                self._depth -= 1

    def _snapshot(self) -> dict[str, Any]:
        return {
            "accounts": dict(self._accounts),
            "transactions": list(self._transactions),
            "shifts": dict(self._shifts),
            "customers": dict(self._customers),
            "flow_config": self._flow_config,
        }

    def _restore(self, snapshot: dict[str, Any]) -> None:
        self._accounts = snapshot["accounts"]
        self._transactions = snapshot["transactions"]
        self._shifts = snapshot["shifts"]
        self._customers = snapshot["customers"]
        self._flow_config = snapshot["flow_config"]

    # Accounts

    def list_accounts(self) -> list[Account]:
        with self._lock:
            return [copy.copy(a) for a in self._accounts.values()]

    def get_account(self, account_id: str) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            return copy.copy(account) if account is not None else None

    def create_account(self, account: Account) -> str:
        with self._lock:
            if account.id in self._accounts:
                raise ValidationError(f"Account {account.id} already exists", field="id")
            self._accounts[account.id] = copy.copy(account)
            return account.id

    def update_account_balance(self, account_id: str, delta: Decimal) -> None:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            self._accounts[account_id] = account.apply(delta)

    # Transactions

    def list_transactions(self) -> list[Transaction]:
        with self._lock:
            return list(self._transactions)

    def append_transaction(self, transaction: Transaction) -> str:
        with self._lock:
            self._transactions.append(transaction)
            return transaction.id

    # Shifts

    def list_shifts(self) -> list[Shift]:
        with self._lock:
            return [copy.copy(s) for s in sorted(self._shifts.values(), key=lambda s: s.start_time, reverse=True)]

    def get_shift(self, shift_id: str) -> Shift | None:
        with self._lock:
            shift = self._shifts.get(shift_id)
            return copy.copy(shift) if shift is not None else None

    def create_shift(self, shift: Shift) -> str:
        with self._lock:
            self._shifts[shift.id] = copy.copy(shift)
            return shift.id

    def update_shift(self, shift_id: str, fields: Mapping[str, Any]) -> None:
        with self._lock:
            shift = self._shifts.get(shift_id)
            if shift is None:
                raise ShiftNotFoundError(shift_id)
            self._shifts[shift_id] = replace(shift, **fields)

    # Flow configuration

    def get_flow_config(self) -> ShiftFlowConfig:
        with self._lock:
            return self._flow_config

    def put_flow_config(self, config: ShiftFlowConfig) -> None:
        with self._lock:
            self._flow_config = config

    # Customers

    def list_customers(self) -> list[Customer]:
        with self._lock:
            return [copy.copy(c) for c in self._customers.values()]

    def create_customer(self, customer: Customer) -> str:
        with self._lock:
            self._customers[customer.id] = copy.copy(customer)
            return customer.id
