"""MCP tool definitions for the escrow service.

These tools expose the registry via the Model Context Protocol so that
agents can discover and call them programmatically.

Tools:
    - create_escrow: Lock funds behind a condition
    - release_escrow: Pay the recipient once the condition holds
    - cancel_escrow: Refund the sender
    - attest_event: Attestor confirms an attested_event condition
    - approve_threshold: Signer approves a threshold_signature condition
    - check_escrow: Read an escrow's current record
    - registry_info: Read registry-wide configuration

The MCP server is mounted into FastAPI at /mcp. Each tool runs one
``transaction()``: domain failures roll back and come back as an error dict.
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from verifiable_escrow.conditions import (
    AttestedEventPolicy,
    ConditionPolicyFactory,
    ThresholdSignaturePolicy,
)
from verifiable_escrow.domain.context import CallContext
from verifiable_escrow.domain.exceptions import EscrowError
from verifiable_escrow.infrastructure.database.engine import transaction
from verifiable_escrow.infrastructure.database.orm_models import MAX_STORED_INT
from verifiable_escrow.logging_config import bind_call_context, get_logger
from verifiable_escrow.services.escrow_registry import EscrowRegistry

logger = get_logger(__name__)

mcp = FastMCP(
    "Verifiable Escrow",
    json_response=True,
)

BlockHeight = Annotated[int, Field(ge=0, le=MAX_STORED_INT)]


def _context(tool: str, caller: str, block_height: int) -> CallContext:
    bind_call_context(tool=tool, caller=caller, block_height=block_height)
    return CallContext(caller=caller, block_height=block_height)


def _error(tool: str, exc: EscrowError) -> dict[str, Any]:
    logger.warning(f"mcp.{tool}.rejected", code=exc.code, error=exc.message)
    return {"error": exc.code, "category": str(exc.category), "message": exc.message}


@mcp.tool()
async def create_escrow(
    caller: str,
    recipient: str,
    amount: int,
    policy: str,
    params: dict,
    currency: str = "STX",
    block_height: BlockHeight = 0,
) -> dict:
    """Create an escrow that pays ``recipient`` once a condition is satisfied.

    Args:
        caller: Sender account; pays the creation fee and the escrowed amount.
        recipient: Account that receives the funds on release.
        amount: Positive amount in the currency's smallest unit.
        policy: One of 'deadline', 'attested_event', 'threshold_signature'.
        params: Policy parameters, e.g. {"release_height": 100}.
        currency: An allow-listed currency code.
        block_height: Current block height.

    Returns:
        The new escrow_id, or an error dict.
    """
    ctx = _context("create_escrow", caller, block_height)
    encoded = json.dumps(params, separators=(",", ":")).encode("utf-8")
    try:
        async with transaction() as session:
            escrow_id = await EscrowRegistry(session).create_escrow(
                ctx, recipient, amount, policy, encoded, currency
            )
    except EscrowError as exc:
        return _error("create_escrow", exc)
    return {"escrow_id": escrow_id, "status": "ACTIVE"}


@mcp.tool()
async def release_escrow(caller: str, escrow_id: int, block_height: BlockHeight = 0) -> dict:
    """Release an active escrow to its recipient if its condition holds."""
    ctx = _context("release_escrow", caller, block_height)
    try:
        async with transaction() as session:
            await EscrowRegistry(session).release(ctx, escrow_id)
    except EscrowError as exc:
        return _error("release_escrow", exc)
    return {"escrow_id": escrow_id, "status": "RELEASED"}


@mcp.tool()
async def cancel_escrow(caller: str, escrow_id: int, block_height: BlockHeight = 0) -> dict:
    """Cancel an active escrow and refund the sender. Only the sender may cancel."""
    ctx = _context("cancel_escrow", caller, block_height)
    try:
        async with transaction() as session:
            await EscrowRegistry(session).cancel_escrow(ctx, escrow_id)
    except EscrowError as exc:
        return _error("cancel_escrow", exc)
    return {"escrow_id": escrow_id, "status": "CANCELLED"}


@mcp.tool()
async def attest_event(caller: str, handle: int, proof: str, block_height: BlockHeight = 0) -> dict:
    """Confirm an attested event. ``proof`` must hash (SHA-256) to the fingerprint."""
    ctx = _context("attest_event", caller, block_height)
    try:
        async with transaction() as session:
            await AttestedEventPolicy(session, ctx).attest(handle, proof.encode("utf-8"))
    except EscrowError as exc:
        return _error("attest_event", exc)
    return {"handle": handle, "verified": True}


@mcp.tool()
async def approve_threshold(caller: str, handle: int, block_height: BlockHeight = 0) -> dict:
    """Add the caller's approval to a threshold signature condition."""
    ctx = _context("approve_threshold", caller, block_height)
    try:
        async with transaction() as session:
            policy = ThresholdSignaturePolicy(session, ctx)
            await policy.approve(handle)
    except EscrowError as exc:
        return _error("approve_threshold", exc)
    return {"handle": handle, "approved_by": caller}


@mcp.tool()
async def check_escrow(escrow_id: int) -> dict:
    """Return an escrow's record, or {"found": false}."""
    async with transaction() as session:
        escrow = await EscrowRegistry(session).get_escrow(escrow_id)
    if escrow is None:
        return {"escrow_id": escrow_id, "found": False}
    return {
        "escrow_id": escrow.id,
        "found": True,
        "sender": escrow.sender,
        "recipient": escrow.recipient,
        "amount": escrow.amount,
        "currency": escrow.currency,
        "policy": escrow.policy_ref,
        "condition_handle": escrow.condition_handle,
        "status": escrow.status,
    }


@mcp.tool()
async def registry_info() -> dict:
    """Return the authority, fee, id counter and allow-lists."""
    async with transaction() as session:
        registry = EscrowRegistry(session)
        return {
            "authority": await registry.get_authority(),
            "creation_fee": await registry.get_creation_fee(),
            "escrow_count": await registry.get_escrow_count(),
            "supported_currencies": await registry.get_supported_currencies(),
            "supported_policies": ConditionPolicyFactory.get_supported_types(),
        }
