"""
Runtime configuration read from the environment once at process start.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

BACKEND_ALIASES = {
    "memory": "memory",
    "sandbox": "memory",
    "sql": "sql",
    "live": "sql",
}


def get_engine_url(database_type: str | None = None) -> str:
    """Build the database URL from environment variables."""
    db_type = database_type or os.getenv("DATABASE_TYPE", "sqlite")

    if db_type == "sqlite":
        db_path = os.getenv("DATABASE_PATH", "./data/shiftledger.db")
        return f"sqlite:///{db_path}"
    elif db_type == "postgresql":
        host = os.getenv("DB_HOST", "localhost")
        port = os.getenv("DB_PORT", "5432")
        dbname = os.getenv("DB_NAME", "shiftledger")
        user = os.getenv("DB_USER", "postgres")
        password = os.getenv("DB_PASSWORD", "postgres")
        return f"postgresql://{user}:{password}@{host}:{port}/{dbname}"
    else:
        raise ValueError(f"Unsupported database type: {db_type}")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    backend: str = "memory"
    database_url: str = "sqlite:///./data/shiftledger.db"
    log_level: str = "INFO"
    default_operator: str = "Unknown"
    seed_demo_data: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        raw_backend = os.getenv("SHIFTLEDGER_BACKEND", "memory").strip().lower()
        if raw_backend not in BACKEND_ALIASES:
            raise ValueError(f"Unsupported ledger backend: {raw_backend}")
        backend = BACKEND_ALIASES[raw_backend]
        return cls(
            backend=backend,
            database_url=get_engine_url(),
            log_level=os.getenv("SHIFTLEDGER_LOG_LEVEL", "INFO").upper(),
            default_operator=os.getenv("SHIFTLEDGER_DEFAULT_OPERATOR", "Unknown"),
            seed_demo_data=_env_flag("SHIFTLEDGER_SEED_DEMO", backend == "memory"),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
