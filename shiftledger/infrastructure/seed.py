"""
Default chart of accounts, shift flow mapping and demo customers.
"""

import logging

from shiftledger.domain.entities import Account, Customer
from shiftledger.domain.services import ILedgerStore
from shiftledger.domain.value_objects import AccountType, FlowRole, ShiftFlowConfig

logger = logging.getLogger(__name__)

# (name, type, flow role or None)
DEFAULT_ACCOUNTS = [
    ("Main Sales Income", AccountType.INCOME, FlowRole.SALES),
    ("Business Bank", AccountType.BANK, FlowRole.CARDS),
    ("Hiking Bar Receivable", AccountType.RECEIVABLE, FlowRole.HIKING),
    ("FX Reserve", AccountType.ASSET, FlowRole.FX),
    ("Bills to Receive", AccountType.RECEIVABLE, FlowRole.BILLS),
    ("Main Cash Till", AccountType.CASH, FlowRole.CASH),
    ("Cash Variance", AccountType.EQUITY, FlowRole.VARIANCE),
    ("Owner Equity", AccountType.EQUITY, None),
]

DEFAULT_CUSTOMERS = ["Regular Guest", "VIP Table 5"]


def seed_defaults(store: ILedgerStore) -> bool:
    """Seed an empty store. Returns False (and writes nothing) if accounts already exist."""
    if store.list_accounts():
        return False

    mapping: dict[str, str] = {}
    with store.atomic():
        for name, account_type, role in DEFAULT_ACCOUNTS:
            account = Account(name=name, account_type=account_type)
            store.create_account(account)
            if role is not None:
                mapping[role.value] = account.id
        store.put_flow_config(ShiftFlowConfig(**mapping))
        if not store.list_customers():
            for name in DEFAULT_CUSTOMERS:
                store.create_customer(Customer(name=name))

    logger.info("seeded_defaults", extra={"accounts": len(DEFAULT_ACCOUNTS)})
    return True
