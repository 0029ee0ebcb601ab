"""Infrastructure layer."""

from shiftledger.infrastructure.memory_store import InMemoryLedgerStore
from shiftledger.infrastructure.providers import MemoryStoreProvider, SqlStoreProvider, build_store_provider
from shiftledger.infrastructure.seed import seed_defaults
