"""
API Routers - shift lifecycle.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from shiftledger.api.deps import get_operator, get_shift_service
from shiftledger.application.dto.ledger_dto import (
    ShiftCloseDTO,
    ShiftCloseResultDTO,
    ShiftResponseDTO,
    ShiftStartDTO,
    ShiftUpdateDTO,
)
from shiftledger.domain.services import ShiftService

router = APIRouter(prefix="/api/v1/shifts", tags=["Shifts"])


@router.post("", response_model=ShiftResponseDTO, status_code=status.HTTP_201_CREATED)
def start_shift(dto: ShiftStartDTO, shifts: ShiftService = Depends(get_shift_service)):
    """Open a shift. Only one shift may be open at a time."""
    shift = shifts.start_shift(
        opening_float=dto.opening_float,
        initial_injections=[i.model_dump(exclude_none=True) for i in dto.injections],
        accounting_date=dto.accounting_date,
    )
    return ShiftResponseDTO.model_validate(shift)


@router.get("", response_model=list[ShiftResponseDTO])
def list_shifts(shifts: ShiftService = Depends(get_shift_service)):
    """All shifts, newest first."""
    return [ShiftResponseDTO.model_validate(s) for s in shifts.list_shifts()]


@router.get("/active", response_model=ShiftResponseDTO)
def get_active_shift(shifts: ShiftService = Depends(get_shift_service)):
    shift = shifts.active_shift()
    if shift is None:
        raise HTTPException(status_code=404, detail="No active shift")
    return ShiftResponseDTO.model_validate(shift)


@router.patch("/active", response_model=ShiftResponseDTO)
def update_active_shift(dto: ShiftUpdateDTO, shifts: ShiftService = Depends(get_shift_service)):
    """Merge the sent fields into the active shift; expected cash is recomputed."""
    shift = shifts.update_active_shift(dto.to_updates())
    if shift is None:
        raise HTTPException(status_code=404, detail="No active shift")
    return ShiftResponseDTO.model_validate(shift)


@router.post("/active/close", response_model=ShiftCloseResultDTO)
def close_active_shift(
    dto: ShiftCloseDTO,
    shifts: ShiftService = Depends(get_shift_service),
    operator: str | None = Depends(get_operator),
):
    """
    Close the active shift and sweep it into the ledger.

    - Every flow role must be mapped to an account first
    - All legs and the closed shift are saved together or not at all
    """
    result = shifts.close_shift(dto.actual_cash, closed_by=operator)
    return ShiftCloseResultDTO.model_validate(result)


@router.get("/{shift_id}", response_model=ShiftResponseDTO)
def get_shift(shift_id: str, shifts: ShiftService = Depends(get_shift_service)):
    return ShiftResponseDTO.model_validate(shifts.get_shift(shift_id))


@router.post("/{shift_id}/close", response_model=ShiftCloseResultDTO)
def close_shift(
    shift_id: str,
    dto: ShiftCloseDTO,
    shifts: ShiftService = Depends(get_shift_service),
    operator: str | None = Depends(get_operator),
):
    """Close a shift by id; safe to retry, an already-closed shift is returned unchanged."""
    result = shifts.close_shift(dto.actual_cash, closed_by=operator, shift_id=shift_id)
    return ShiftCloseResultDTO.model_validate(result)
