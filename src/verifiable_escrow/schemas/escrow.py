"""Pydantic schemas for the escrow API.

These schemas define the request/response shapes for the REST API. They are
separate from the ORM models to keep the API and database layers apart.
Domain rules (null addresses, fee sign, allow-list membership) are enforced
by the services, not here, so that the API reports the same error codes as
any other caller.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class SetAuthorityRequest(BaseModel):
    """Request body for registering the fee authority."""

    address: str = Field(
        ...,
        max_length=64,
        description="Account that will receive creation fees",
        examples=["ST2AUTHORITY"],
    )


class SetCreationFeeRequest(BaseModel):
    fee: int = Field(..., description="New creation fee in the native currency")


class AddCurrencyRequest(BaseModel):
    code: str = Field(..., description="Currency code to allow-list", examples=["ETH"])


class CreateEscrowRequest(BaseModel):
    """Request body for creating a new escrow."""

    recipient: str = Field(
        ...,
        max_length=64,
        description="Account that receives the funds on release",
        examples=["ST3RECIPIENT"],
    )
    amount: int = Field(..., description="Amount to lock, in the currency's smallest unit")
    policy: str = Field(
        ...,
        description="Registered condition policy name",
        examples=["deadline"],
    )
    params: dict[str, Any] | str = Field(
        ...,
        description=(
            "Condition parameters. An object is JSON-encoded; a string is sent as-is. "
            'Examples: {"release_height": 100}, '
            '{"attestor": "ST6ORACLE", "event_fingerprint": "<64 hex chars>"}, '
            '{"signers": ["ST7A", "ST7B", "ST7C"], "required": 2}'
        ),
        examples=[{"release_height": 100}],
    )
    currency: str = Field(..., examples=["STX"])

    def encoded_params(self) -> bytes:
        if isinstance(self.params, str):
            return self.params.encode("utf-8")
        return json.dumps(self.params, separators=(",", ":")).encode("utf-8")


class AttestRequest(BaseModel):
    proof: str = Field(
        ...,
        description="Proof document; its SHA-256 digest must equal the event fingerprint",
    )


class DepositRequest(BaseModel):
    currency: str = Field(..., examples=["STX"])
    amount: int = Field(..., gt=0)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class OperationResponse(BaseModel):
    ok: bool = True


class CreateEscrowResponse(BaseModel):
    escrow_id: int


class EscrowResponse(BaseModel):
    """Response schema for an escrow."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    sender: str
    recipient: str
    amount: int
    currency: str
    policy_ref: str
    condition_handle: int
    status: str
    created_height: int
    created_at: datetime
    updated_at: datetime


class EscrowEventResponse(BaseModel):
    """Response schema for an audit event."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    escrow_id: int | None
    event_type: str
    actor: str
    block_height: int
    metadata: dict | None = Field(default=None, validation_alias="metadata_json")
    created_at: datetime


class SenderEscrowsResponse(BaseModel):
    sender: str
    escrow_ids: list[int]


class RegistryResponse(BaseModel):
    """Registry-wide configuration snapshot."""

    authority: str | None
    creation_fee: int
    escrow_count: int = Field(description="Id the next escrow will receive")
    supported_currencies: list[str]
    supported_policies: list[str]


class ConditionStatusResponse(BaseModel):
    policy: str
    handle: int
    beneficiary: str
    verified: bool


class BalanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    currency: str
    amount: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "unknown"
