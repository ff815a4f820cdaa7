"""Domain layer: pure business rules with zero framework dependencies."""

from verifiable_escrow.domain.condition_protocol import ConditionPolicy
from verifiable_escrow.domain.context import CallContext
from verifiable_escrow.domain.enums import (
    EscrowStatus,
    EventType,
    PolicyType,
)
from verifiable_escrow.domain.exceptions import (
    ConditionNotMetError,
    ErrorCategory,
    EscrowError,
    EscrowNotFoundError,
    InvalidStatusError,
    TransferFailedError,
)
from verifiable_escrow.domain.state_machine import (
    EscrowStateMachine,
    TransitionNotAllowed,
    validate_transition,
)
from verifiable_escrow.domain.transfer_protocol import ValueTransfer

__all__ = [
    "CallContext",
    "ConditionNotMetError",
    "ConditionPolicy",
    "ErrorCategory",
    "EscrowError",
    "EscrowNotFoundError",
    "EscrowStateMachine",
    "EscrowStatus",
    "EventType",
    "InvalidStatusError",
    "PolicyType",
    "TransferFailedError",
    "TransitionNotAllowed",
    "ValueTransfer",
    "validate_transition",
]
