"""
Store providers - the persistence backend is picked once at process start
and handed to the API layer, which opens one store per request.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.engine import Engine

from shiftledger.core.config import Settings
from shiftledger.domain.services import ILedgerStore
from shiftledger.infrastructure.database import create_db_engine, init_db, make_session_factory, session_scope
from shiftledger.infrastructure.database.store import SqlLedgerStore
from shiftledger.infrastructure.memory_store import InMemoryLedgerStore

logger = logging.getLogger(__name__)


class MemoryStoreProvider:
    """Hands out the same process-wide in-memory store."""

    backend = "memory"

    def __init__(self, store: InMemoryLedgerStore | None = None):
        self.store = store or InMemoryLedgerStore()

    @contextmanager
    def open(self) -> Iterator[ILedgerStore]:
        yield self.store

    def dispose(self) -> None:
        pass


class SqlStoreProvider:
    """Opens a fresh session-bound store per unit of work."""

    backend = "sql"

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = make_session_factory(engine)
        init_db(engine)

    @contextmanager
    def open(self) -> Iterator[ILedgerStore]:
        sessions = session_scope(self.session_factory)
        session = next(sessions)
        try:
            yield SqlLedgerStore(session)
        finally:
            sessions.close()

    def dispose(self) -> None:
        self.engine.dispose()


def build_store_provider(settings: Settings) -> MemoryStoreProvider | SqlStoreProvider:
    logger.info("store_backend_selected", extra={"backend": settings.backend})
    if settings.backend == "memory":
        return MemoryStoreProvider()
    if settings.backend == "sql":
        return SqlStoreProvider(create_db_engine(settings.database_url))
    raise ValueError(f"Unsupported ledger backend: {settings.backend}")
