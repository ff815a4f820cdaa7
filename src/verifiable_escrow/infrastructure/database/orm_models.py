"""SQLAlchemy 2.0 ORM models for the escrow service.

Tables:
    1. registry_state              Single row: authority, creation fee, id counter.
    2. supported_currencies        Bounded currency allow-list.
    3. escrows                     Custody records, owned by the EscrowLedger.
    4. escrow_sender_index         Registry's bounded by-sender index.
    5. account_balances            Value-transfer ledger balances.
    6. deadline_conditions         Deadline policy records.
    7. attested_event_conditions   Attested-event policy records.
    8. threshold_conditions        Threshold-signature policy records.
    9. escrow_events               Append-only audit log.

Design decisions:
    - Escrow ids are issued from registry_state.next_escrow_id, never by the
      database, so they stay monotonic and are never reused.
    - Each condition table has its own autoincrement handle space.
    - Integer amounts (smallest currency unit); no floating point.
    - CHECK constraints on status and amounts mirror the domain invariants.
    - JSON columns become JSONB on PostgreSQL.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    event,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

JsonType = JSON().with_variant(JSONB(), "postgresql")

REGISTRY_STATE_ID = 1

# Largest value a signed 64-bit BigInteger column holds.
MAX_STORED_INT = 2**63 - 1


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _set_updated_at(mapper, connection, target):  # noqa: ANN001
    """SQLAlchemy event listener that updates `updated_at` before flush."""
    if hasattr(target, "updated_at"):
        target.updated_at = _utcnow()


# ---------------------------------------------------------------------------
# 1. registry_state
# ---------------------------------------------------------------------------
class RegistryState(Base):
    """Process-wide registry configuration and counters (exactly one row)."""

    __tablename__ = "registry_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    authority: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        default=None,
        comment="Account receiving creation fees; set once",
    )
    creation_fee: Mapped[int] = mapped_column(BigInteger, nullable=False)
    next_escrow_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Id the next escrow will receive",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        CheckConstraint("creation_fee >= 0", name="ck_registry_fee_non_negative"),
        CheckConstraint("next_escrow_id >= 1", name="ck_registry_next_id_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<RegistryState authority={self.authority} fee={self.creation_fee} "
            f"next_id={self.next_escrow_id}>"
        )


# ---------------------------------------------------------------------------
# 2. supported_currencies
# ---------------------------------------------------------------------------
class SupportedCurrency(Base):
    __tablename__ = "supported_currencies"

    code: Mapped[str] = mapped_column(String(20), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<SupportedCurrency {self.code}>"


# ---------------------------------------------------------------------------
# 3. escrows
# ---------------------------------------------------------------------------
class Escrow(Base):
    """Value locked by a sender pending a condition-gated release or cancellation."""

    __tablename__ = "escrows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    # --- Participants ---
    sender: Mapped[str] = mapped_column(String(64), nullable=False)
    recipient: Mapped[str] = mapped_column(String(64), nullable=False)

    # --- Financials ---
    amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Locked amount in the smallest unit of `currency`",
    )
    currency: Mapped[str] = mapped_column(String(20), nullable=False)

    # --- Condition ---
    policy_ref: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Registered name of the condition policy",
    )
    condition_handle: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Handle within the policy's own handle space",
    )

    # --- Status ---
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="ACTIVE",
        comment="Current lifecycle state (guarded by EscrowStateMachine)",
    )

    # --- Timestamps ---
    created_height: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'RELEASED', 'CANCELLED')",
            name="ck_escrow_valid_status",
        ),
        CheckConstraint("amount > 0", name="ck_escrow_positive_amount"),
        UniqueConstraint("policy_ref", "condition_handle", name="uq_escrow_condition"),
        Index("idx_escrow_sender", "sender"),
        Index("idx_escrow_status", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Escrow id={self.id} status={self.status} "
            f"amount={self.amount} {self.currency}>"
        )


# ---------------------------------------------------------------------------
# 4. escrow_sender_index
# ---------------------------------------------------------------------------
class SenderIndexEntry(Base):
    __tablename__ = "escrow_sender_index"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sender: Mapped[str] = mapped_column(String(64), nullable=False)
    escrow_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("escrows.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("sender", "escrow_id", name="uq_sender_escrow"),
        Index("idx_sender_index_sender", "sender"),
    )


# ---------------------------------------------------------------------------
# 5. account_balances
# ---------------------------------------------------------------------------
class AccountBalance(Base):
    __tablename__ = "account_balances"

    account: Mapped[str] = mapped_column(String(64), primary_key=True)
    currency: Mapped[str] = mapped_column(String(20), primary_key=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_balance_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<AccountBalance {self.account} {self.amount} {self.currency}>"


# ---------------------------------------------------------------------------
# 6-8. Condition policy records
# ---------------------------------------------------------------------------
class DeadlineCondition(Base):
    __tablename__ = "deadline_conditions"

    handle: Mapped[int] = mapped_column(Integer, primary_key=True)
    release_height: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )


class AttestedEventCondition(Base):
    __tablename__ = "attested_event_conditions"

    handle: Mapped[int] = mapped_column(Integer, primary_key=True)
    attestor: Mapped[str] = mapped_column(String(64), nullable=False)
    event_fingerprint: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Hex SHA-256 digest the attestation proof must hash to",
    )
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attested_height: Mapped[int | None] = mapped_column(BigInteger, nullable=True, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )


class ThresholdCondition(Base):
    __tablename__ = "threshold_conditions"

    handle: Mapped[int] = mapped_column(Integer, primary_key=True)
    signers: Mapped[list] = mapped_column(JsonType, nullable=False)
    required: Mapped[int] = mapped_column(Integer, nullable=False)
    # Reassign (never mutate in place) so the change is flushed.
    approvals: Mapped[list] = mapped_column(JsonType, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        CheckConstraint("required >= 1", name="ck_threshold_required_positive"),
    )


# ---------------------------------------------------------------------------
# 9. escrow_events (Append-Only Audit Log)
# ---------------------------------------------------------------------------
class EscrowEvent(Base):
    """Immutable audit record of registry, escrow and condition changes.

    APPEND-ONLY: no UPDATE or DELETE at the application level.
    """

    __tablename__ = "escrow_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    escrow_id: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Escrow this event belongs to (null for registry configuration)",
    )
    event_type: Mapped[str] = mapped_column(String(40), nullable=False)
    actor: Mapped[str] = mapped_column(String(64), nullable=False, default="SYSTEM")
    block_height: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    metadata_json: Mapped[dict | None] = mapped_column(
        "metadata",
        JsonType,
        nullable=True,
        default=None,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        Index("idx_event_escrow", "escrow_id"),
        Index("idx_event_type", "event_type"),
    )

    def __repr__(self) -> str:
        return f"<EscrowEvent id={self.id} type={self.event_type} escrow={self.escrow_id}>"


event.listen(Escrow, "before_update", _set_updated_at)
event.listen(RegistryState, "before_update", _set_updated_at)
