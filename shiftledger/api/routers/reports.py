"""
API Routers - ledger reports.
"""

from fastapi import APIRouter, Depends

from shiftledger.api.deps import get_audit_service
from shiftledger.application.dto.ledger_dto import (
    BalanceCheckResultDTO,
    ShiftResponseDTO,
    ShiftSummaryDTO,
    TrialBalanceDTO,
)
from shiftledger.domain.services import LedgerAuditService

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])


@router.get("/balance-check", response_model=BalanceCheckResultDTO)
def balance_check(audit: LedgerAuditService = Depends(get_audit_service)):
    """
    Check the balance invariant for every account.

    Rule: stored balance == sum of the account's postings
    """
    return BalanceCheckResultDTO.model_validate(audit.verify_balances())


@router.get("/trial-balance", response_model=TrialBalanceDTO)
def trial_balance(audit: LedgerAuditService = Depends(get_audit_service)):
    return TrialBalanceDTO.model_validate(audit.trial_balance())


@router.get("/shifts/{shift_id}/summary", response_model=ShiftSummaryDTO)
def shift_summary(shift_id: str, audit: LedgerAuditService = Depends(get_audit_service)):
    """Cash breakdown of one shift and the net its sweep posted per account."""
    summary = audit.shift_summary(shift_id)
    shift = summary.shift
    return ShiftSummaryDTO(
        shift=ShiftResponseDTO.model_validate(shift),
        total_non_cash=shift.total_non_cash,
        total_bills=shift.total_bills,
        total_injections=shift.total_injections,
        total_expenses=shift.total_expenses,
        posted_nets=summary.posted_nets,
        sales_net=summary.sales_net,
    )
