"""
Database engine creation and session management.
"""

from collections.abc import Generator
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlmodel import SQLModel

from shiftledger.infrastructure.database.models import (
    AccountRow,
    CustomerRow,
    FlowConfigRow,
    ShiftRow,
    TransactionRow,
)


def create_db_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        db_file = url.split("sqlite:///", 1)[-1]
        if db_file and db_file != ":memory:" and "sqlite:///" in url:
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, echo=False, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Initialize database - create all tables."""
    SQLModel.metadata.create_all(bind=engine)


def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """Dependency-style generator yielding one session."""
    db = factory()
    try:
        yield db
    finally:
        db.close()
