"""Escrow REST API routes.

The simulation script and the MCP tools call the same EscrowRegistry, so
every rule is enforced identically whichever surface is used.

Routes:
    POST   /api/v1/escrow                    Create an escrow
    GET    /api/v1/escrow/by-sender/{addr}   Ids created by a sender
    GET    /api/v1/escrow/{id}               Escrow details
    GET    /api/v1/escrow/{id}/events        Audit trail
    POST   /api/v1/escrow/{id}/release       Pay the recipient once the condition holds
    POST   /api/v1/escrow/{id}/cancel        Refund the sender (sender only)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from verifiable_escrow.api.deps import get_call_context, get_registry
from verifiable_escrow.domain.context import CallContext  # noqa: TC001
from verifiable_escrow.domain.exceptions import EscrowNotFoundError
from verifiable_escrow.schemas.escrow import (
    CreateEscrowRequest,
    CreateEscrowResponse,
    EscrowEventResponse,
    EscrowResponse,
    OperationResponse,
    SenderEscrowsResponse,
)
from verifiable_escrow.services.escrow_registry import EscrowRegistry  # noqa: TC001

router = APIRouter(prefix="/api/v1/escrow", tags=["Escrow"])


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=CreateEscrowResponse,
    status_code=201,
    summary="Create a new escrow",
)
async def create_escrow(
    request: CreateEscrowRequest,
    ctx: CallContext = Depends(get_call_context),
    registry: EscrowRegistry = Depends(get_registry),
) -> CreateEscrowResponse:
    """Charge the creation fee, register the condition and lock the funds.

    The caller (X-Caller-Address) is the sender.
    """
    escrow_id = await registry.create_escrow(
        ctx,
        recipient=request.recipient,
        amount=request.amount,
        policy_ref=request.policy,
        params=request.encoded_params(),
        currency=request.currency,
    )
    return CreateEscrowResponse(escrow_id=escrow_id)


# ---------------------------------------------------------------------------
# Release / Cancel
# ---------------------------------------------------------------------------


@router.post(
    "/{escrow_id}/release",
    response_model=OperationResponse,
    summary="Release funds to the recipient",
)
async def release_escrow(
    escrow_id: int = Path(..., ge=0),
    ctx: CallContext = Depends(get_call_context),
    registry: EscrowRegistry = Depends(get_registry),
) -> OperationResponse:
    """Anyone may trigger release; it only succeeds once the condition holds."""
    return OperationResponse(ok=await registry.release(ctx, escrow_id))


@router.post(
    "/{escrow_id}/cancel",
    response_model=OperationResponse,
    summary="Cancel and refund the sender",
)
async def cancel_escrow(
    escrow_id: int = Path(..., ge=0),
    ctx: CallContext = Depends(get_call_context),
    registry: EscrowRegistry = Depends(get_registry),
) -> OperationResponse:
    return OperationResponse(ok=await registry.cancel_escrow(ctx, escrow_id))


# ---------------------------------------------------------------------------
# Read endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/by-sender/{sender}",
    response_model=SenderEscrowsResponse,
    summary="List escrow ids created by a sender",
)
async def get_escrows_by_sender(
    sender: str,
    registry: EscrowRegistry = Depends(get_registry),
) -> SenderEscrowsResponse:
    escrow_ids = await registry.get_escrows_by_sender(sender)
    return SenderEscrowsResponse(sender=sender, escrow_ids=escrow_ids)


@router.get("/{escrow_id}", response_model=EscrowResponse, summary="Get escrow details")
async def get_escrow(
    escrow_id: int = Path(..., ge=0),
    registry: EscrowRegistry = Depends(get_registry),
) -> EscrowResponse:
    escrow = await registry.get_escrow(escrow_id)
    if escrow is None:
        raise EscrowNotFoundError(escrow_id)
    return EscrowResponse.model_validate(escrow)


@router.get(
    "/{escrow_id}/events",
    response_model=list[EscrowEventResponse],
    summary="Get audit trail",
)
async def get_events(
    escrow_id: int = Path(..., ge=0),
    registry: EscrowRegistry = Depends(get_registry),
) -> list[EscrowEventResponse]:
    """Return the audit trail, oldest first. Unknown ids yield an empty list."""
    events = await registry.get_events(escrow_id)
    return [EscrowEventResponse.model_validate(e) for e in events]
