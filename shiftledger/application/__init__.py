"""Application layer - DTOs."""

from shiftledger.application.dto.ledger_dto import (
    AccountCreateDTO,
    AccountResponseDTO,
    BalanceCheckResultDTO,
    FlowConfigDTO,
    ShiftCloseResultDTO,
    ShiftResponseDTO,
    TransactionResponseDTO,
    TrialBalanceDTO,
)
