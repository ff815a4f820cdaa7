"""Condition policy routes.

Routes:
    GET    /api/v1/conditions/{policy}/{handle}?beneficiary=   Evaluate a condition
    POST   /api/v1/conditions/attested_event/{handle}/attest  Attestor confirms the event
    POST   /api/v1/conditions/threshold_signature/{handle}/approve  Signer approves
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from verifiable_escrow.api.deps import (
    get_app_settings,
    get_call_context,
    get_db_session,
    get_read_context,
)
from verifiable_escrow.conditions import (
    AttestedEventPolicy,
    ConditionPolicyFactory,
    ThresholdSignaturePolicy,
)
from verifiable_escrow.config import Settings  # noqa: TC001
from verifiable_escrow.domain.context import CallContext  # noqa: TC001
from verifiable_escrow.schemas.escrow import (
    AttestRequest,
    ConditionStatusResponse,
    OperationResponse,
)

router = APIRouter(prefix="/api/v1/conditions", tags=["Conditions"])


@router.get(
    "/{policy}/{handle}",
    response_model=ConditionStatusResponse,
    summary="Evaluate a condition",
)
async def verify_condition(
    policy: str,
    handle: int = Path(..., ge=0),
    beneficiary: str = Query(..., min_length=1, max_length=64),
    ctx: CallContext = Depends(get_read_context),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> ConditionStatusResponse:
    """Deadlines are evaluated against the X-Block-Height header."""
    condition = ConditionPolicyFactory.create(policy, session, ctx, settings)
    verified = await condition.verify(beneficiary, handle)
    return ConditionStatusResponse(
        policy=policy,
        handle=handle,
        beneficiary=beneficiary,
        verified=verified,
    )


@router.post(
    "/attested_event/{handle}/attest",
    response_model=OperationResponse,
    summary="Attest that an event happened",
)
async def attest_event(
    request: AttestRequest,
    handle: int = Path(..., ge=0),
    ctx: CallContext = Depends(get_call_context),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> OperationResponse:
    condition = AttestedEventPolicy(session, ctx, settings)
    return OperationResponse(ok=await condition.attest(handle, request.proof.encode("utf-8")))


@router.post(
    "/threshold_signature/{handle}/approve",
    response_model=OperationResponse,
    summary="Approve as one of the signers",
)
async def approve_threshold(
    handle: int = Path(..., ge=0),
    ctx: CallContext = Depends(get_call_context),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> OperationResponse:
    condition = ThresholdSignaturePolicy(session, ctx, settings)
    return OperationResponse(ok=await condition.approve(handle))
