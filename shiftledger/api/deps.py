"""
FastAPI dependencies - one store per request, services built on top of it.
"""

from collections.abc import Iterator

from fastapi import Depends, Header, Request

from shiftledger.domain.services import (
    AccountLedgerService,
    CustomerService,
    FlowConfigService,
    ILedgerStore,
    LedgerAuditService,
    ShiftService,
)


def get_store(request: Request) -> Iterator[ILedgerStore]:
    with request.app.state.store_provider.open() as store:
        yield store


def get_ledger(request: Request, store: ILedgerStore = Depends(get_store)) -> AccountLedgerService:
    return AccountLedgerService(store, clock=request.app.state.clock)


def get_flow_config_service(store: ILedgerStore = Depends(get_store)) -> FlowConfigService:
    return FlowConfigService(store)


def get_shift_service(
    request: Request,
    store: ILedgerStore = Depends(get_store),
    ledger: AccountLedgerService = Depends(get_ledger),
) -> ShiftService:
    return ShiftService(
        store,
        ledger=ledger,
        clock=request.app.state.clock,
        default_operator=request.app.state.settings.default_operator,
    )


def get_customer_service(store: ILedgerStore = Depends(get_store)) -> CustomerService:
    return CustomerService(store)


def get_audit_service(store: ILedgerStore = Depends(get_store)) -> LedgerAuditService:
    return LedgerAuditService(store)


def get_operator(x_operator: str | None = Header(None)) -> str | None:
    """Display name of the signed-in operator, supplied by the auth front end."""
    return x_operator.strip() if x_operator and x_operator.strip() else None
