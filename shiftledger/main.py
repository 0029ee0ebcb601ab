"""
Main FastAPI application - Shift Ledger API.
"""

import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shiftledger import __version__
from shiftledger.api.routers import accounts, reports, settings, shifts
from shiftledger.core.config import Settings, get_settings
from shiftledger.core.logging import configure_logging
from shiftledger.domain.entities import utcnow
from shiftledger.domain.exceptions import (
    NotFoundError,
    PersistenceFailure,
    PreconditionViolation,
    ShiftLedgerError,
    ValidationError,
)
from shiftledger.infrastructure.providers import build_store_provider
from shiftledger.infrastructure.seed import seed_defaults

logger = logging.getLogger(__name__)

ERROR_STATUS: list[tuple[type[ShiftLedgerError], int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (PreconditionViolation, 409),
    (PersistenceFailure, 503),
]


def create_app(
    app_settings: Settings | None = None,
    store_provider=None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    """Build the app; the persistence backend is chosen here, once."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """Application lifespan - startup and shutdown events."""
        cfg = app.state.settings
        configure_logging(cfg.log_level)
        provider = store_provider or build_store_provider(cfg)
        app.state.store_provider = provider
        if cfg.seed_demo_data:
            with provider.open() as store:
                seed_defaults(store)
        logger.info("app_started", extra={"backend": provider.backend})
        yield
        provider.dispose()

    app = FastAPI(
        title="Shift Ledger API",
        description="""
## Shift Ledger

### Features:
- **Shifts**: open, update and close till shifts; expected cash is always derived
- **Sweep**: on close, gross sales are redistributed to cards, hiking bar, FX, receivables and the till
- **Ledger**: accounts whose balance always equals the sum of their postings
- **Reports**: balance check, trial balance, per-shift summary

### Rules:
- Only one shift can be open at a time
- A closed shift is never modified
- All sweep postings for a shift are saved together or not at all
        """,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = app_settings or get_settings()
    app.state.clock = clock

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(accounts.router)
    app.include_router(shifts.router)
    app.include_router(settings.router)
    app.include_router(reports.router)

    @app.get("/")
    def root():
        return {
            "name": "Shift Ledger API",
            "version": __version__,
            "backend": app.state.settings.backend,
            "docs": "/docs",
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "backend": app.state.settings.backend}

    @app.exception_handler(ShiftLedgerError)
    async def ledger_error_handler(request: Request, exc: ShiftLedgerError):
        status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 500)
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
