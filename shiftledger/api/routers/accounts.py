"""
API Routers - accounts and manual ledger entries.
"""

from fastapi import APIRouter, Depends, status

from shiftledger.api.deps import get_ledger
from shiftledger.application.dto.ledger_dto import (
    AccountCreateDTO,
    AccountResponseDTO,
    TransactionCreateDTO,
    TransactionResponseDTO,
)
from shiftledger.domain.services import AccountLedgerService

router = APIRouter(prefix="/api/v1", tags=["Ledger"])


@router.post("/accounts", response_model=AccountResponseDTO, status_code=status.HTTP_201_CREATED)
def create_account(dto: AccountCreateDTO, ledger: AccountLedgerService = Depends(get_ledger)):
    """Create an account with a zero balance."""
    account = ledger.create_account(dto.name, dto.account_type)
    return AccountResponseDTO.model_validate(account)


@router.get("/accounts", response_model=list[AccountResponseDTO])
def list_accounts(ledger: AccountLedgerService = Depends(get_ledger)):
    return [AccountResponseDTO.model_validate(a) for a in ledger.list_accounts()]


@router.get("/accounts/{account_id}", response_model=AccountResponseDTO)
def get_account(account_id: str, ledger: AccountLedgerService = Depends(get_ledger)):
    return AccountResponseDTO.model_validate(ledger.get_account(account_id))


@router.get("/accounts/{account_id}/transactions", response_model=list[TransactionResponseDTO])
def account_statement(account_id: str, ledger: AccountLedgerService = Depends(get_ledger)):
    """Every posting against one account, newest first."""
    transactions = ledger.transactions_for_account(account_id)
    return [TransactionResponseDTO.model_validate(t) for t in reversed(transactions)]


@router.post("/transactions", response_model=TransactionResponseDTO, status_code=status.HTTP_201_CREATED)
def record_transaction(dto: TransactionCreateDTO, ledger: AccountLedgerService = Depends(get_ledger)):
    """
    Manual ledger entry.

    - The account must exist
    - The balance moves by exactly ``amount`` together with the posting
    - Postings are never edited; correct with a compensating entry
    """
    transaction = ledger.record_transaction(
        account_id=dto.account_id,
        amount=dto.amount,
        category=dto.category,
        description=dto.description,
        date=dto.date,
        shift_id=dto.shift_id,
    )
    return TransactionResponseDTO.model_validate(transaction)


@router.get("/transactions", response_model=list[TransactionResponseDTO])
def list_transactions(shift_id: str | None = None, ledger: AccountLedgerService = Depends(get_ledger)):
    """Postings in the order they were made."""
    return [TransactionResponseDTO.model_validate(t) for t in ledger.list_transactions(shift_id)]
