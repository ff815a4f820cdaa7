"""Registry configuration routes.

Routes:
    GET    /api/v1/registry             Registry snapshot
    POST   /api/v1/registry/authority   Register the fee authority (once)
    PUT    /api/v1/registry/fee         Change the creation fee (once an authority is set)
    POST   /api/v1/registry/currencies  Allow-list a currency (once an authority is set)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from verifiable_escrow.api.deps import get_call_context, get_registry
from verifiable_escrow.conditions import ConditionPolicyFactory
from verifiable_escrow.domain.context import CallContext  # noqa: TC001
from verifiable_escrow.schemas.escrow import (
    AddCurrencyRequest,
    OperationResponse,
    RegistryResponse,
    SetAuthorityRequest,
    SetCreationFeeRequest,
)
from verifiable_escrow.services.escrow_registry import EscrowRegistry  # noqa: TC001

router = APIRouter(prefix="/api/v1/registry", tags=["Registry"])


@router.get("", response_model=RegistryResponse, summary="Registry configuration")
async def get_registry_state(
    registry: EscrowRegistry = Depends(get_registry),
) -> RegistryResponse:
    return RegistryResponse(
        authority=await registry.get_authority(),
        creation_fee=await registry.get_creation_fee(),
        escrow_count=await registry.get_escrow_count(),
        supported_currencies=await registry.get_supported_currencies(),
        supported_policies=ConditionPolicyFactory.get_supported_types(),
    )


@router.post(
    "/authority",
    response_model=OperationResponse,
    summary="Register the fee authority",
)
async def set_authority(
    request: SetAuthorityRequest,
    ctx: CallContext = Depends(get_call_context),
    registry: EscrowRegistry = Depends(get_registry),
) -> OperationResponse:
    """Write-once. Fails with ALREADY_SET if an authority already exists."""
    return OperationResponse(ok=await registry.set_authority(ctx, request.address))


@router.put("/fee", response_model=OperationResponse, summary="Set the creation fee")
async def set_creation_fee(
    request: SetCreationFeeRequest,
    ctx: CallContext = Depends(get_call_context),
    registry: EscrowRegistry = Depends(get_registry),
) -> OperationResponse:
    return OperationResponse(ok=await registry.set_creation_fee(ctx, request.fee))


@router.post(
    "/currencies",
    response_model=OperationResponse,
    summary="Add a supported currency",
)
async def add_currency(
    request: AddCurrencyRequest,
    ctx: CallContext = Depends(get_call_context),
    registry: EscrowRegistry = Depends(get_registry),
) -> OperationResponse:
    return OperationResponse(ok=await registry.add_currency(ctx, request.code))
