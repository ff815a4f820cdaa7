"""Pydantic API schemas."""

from verifiable_escrow.schemas.escrow import (
    AddCurrencyRequest,
    AttestRequest,
    BalanceResponse,
    ConditionStatusResponse,
    CreateEscrowRequest,
    CreateEscrowResponse,
    DepositRequest,
    EscrowEventResponse,
    EscrowResponse,
    HealthResponse,
    OperationResponse,
    RegistryResponse,
    SenderEscrowsResponse,
    SetAuthorityRequest,
    SetCreationFeeRequest,
)

__all__ = [
    "AddCurrencyRequest",
    "AttestRequest",
    "BalanceResponse",
    "ConditionStatusResponse",
    "CreateEscrowRequest",
    "CreateEscrowResponse",
    "DepositRequest",
    "EscrowEventResponse",
    "EscrowResponse",
    "HealthResponse",
    "OperationResponse",
    "RegistryResponse",
    "SenderEscrowsResponse",
    "SetAuthorityRequest",
    "SetCreationFeeRequest",
]
