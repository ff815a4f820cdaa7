"""Domain enumerations for the escrow service.

These enums define the canonical states and types used throughout the system.
They are framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum


class EscrowStatus(enum.StrEnum):
    """Lifecycle states of an escrow.

    ACTIVE is the only non-terminal state. See domain/state_machine.py.
    """

    ACTIVE = "ACTIVE"
    RELEASED = "RELEASED"
    CANCELLED = "CANCELLED"


class EventType(enum.StrEnum):
    """Types of audit events recorded in the escrow_events table."""

    # Registry configuration
    AUTHORITY_SET = "AUTHORITY_SET"
    CREATION_FEE_UPDATED = "CREATION_FEE_UPDATED"
    CURRENCY_ADDED = "CURRENCY_ADDED"

    # Escrow lifecycle
    ESCROW_CREATED = "ESCROW_CREATED"
    ESCROW_RELEASED = "ESCROW_RELEASED"
    ESCROW_CANCELLED = "ESCROW_CANCELLED"

    # Condition side-channel
    CONDITION_ATTESTED = "CONDITION_ATTESTED"
    CONDITION_APPROVED = "CONDITION_APPROVED"


class PolicyType(enum.StrEnum):
    """Names under which condition policies are registered.

    An escrow stores one of these values as its policy reference.
    """

    DEADLINE = "deadline"
    ATTESTED_EVENT = "attested_event"
    THRESHOLD_SIGNATURE = "threshold_signature"
