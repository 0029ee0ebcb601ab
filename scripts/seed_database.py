#!/usr/bin/env python3
"""
Database Seeding Script - Shift Ledger
Creates the tables and seeds the default chart of accounts, shift flow
mapping and demo customers into the SQL store.
"""

import sys

from shiftledger.core.config import get_engine_url
from shiftledger.core.logging import configure_logging
from shiftledger.infrastructure.database import create_db_engine
from shiftledger.infrastructure.providers import SqlStoreProvider
from shiftledger.infrastructure.seed import seed_defaults


def main() -> int:
    """Main function."""
    configure_logging("INFO")
    url = get_engine_url()
    print("=" * 60)
    print(f"Database Seeding - Shift Ledger ({url})")
    print("=" * 60)

    provider = SqlStoreProvider(create_db_engine(url))
    try:
        with provider.open() as store:
            if not seed_defaults(store):
                print("Accounts already exist, nothing seeded.")
                return 0
            config = store.get_flow_config()
            for account in store.list_accounts():
                print(f"  {account.account_type.value:<11} {account.name:<24} {account.id}")
            print(f"Shift flow complete: {config.is_complete()}")
    finally:
        provider.dispose()
    print("Database seeded successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
