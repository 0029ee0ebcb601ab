"""
API Routers - shift flow mapping and customer registry.
"""

from fastapi import APIRouter, Depends, status

from shiftledger.api.deps import get_customer_service, get_flow_config_service
from shiftledger.application.dto.ledger_dto import (
    CustomerCreateDTO,
    CustomerResponseDTO,
    FlowConfigDTO,
    FlowConfigResponseDTO,
)
from shiftledger.domain.services import CustomerService, FlowConfigService
from shiftledger.domain.value_objects import ShiftFlowConfig

router = APIRouter(prefix="/api/v1", tags=["Settings"])


def _flow_response(config: ShiftFlowConfig) -> FlowConfigResponseDTO:
    return FlowConfigResponseDTO(
        **config.to_dict(),
        is_complete=config.is_complete(),
        missing_roles=[role.value for role in config.missing_roles()],
    )


@router.get("/settings/shift-flow", response_model=FlowConfigResponseDTO)
def get_shift_flow(flow: FlowConfigService = Depends(get_flow_config_service)):
    return _flow_response(flow.get())


@router.put("/settings/shift-flow", response_model=FlowConfigResponseDTO)
def put_shift_flow(dto: FlowConfigDTO, flow: FlowConfigService = Depends(get_flow_config_service)):
    """Map sweep roles to accounts. Every non-empty slot must name an existing account."""
    return _flow_response(flow.update(dto.model_dump()))


@router.get("/customers", response_model=list[CustomerResponseDTO])
def list_customers(customers: CustomerService = Depends(get_customer_service)):
    return [CustomerResponseDTO.model_validate(c) for c in customers.list_customers()]


@router.post("/customers", response_model=CustomerResponseDTO, status_code=status.HTTP_201_CREATED)
def create_customer(dto: CustomerCreateDTO, customers: CustomerService = Depends(get_customer_service)):
    return CustomerResponseDTO.model_validate(customers.create_customer(dto.name, dto.phone))
