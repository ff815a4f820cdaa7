"""Escrow Ledger: custody of escrowed funds.

The ledger owns the authoritative escrow record and is the only code that
moves value into or out of the custody account. It coordinates:
    - Domain state machine (transition guard)
    - Condition policies (release predicate, via the ConditionPolicy protocol)
    - Value-transfer ledger (fund movements)
    - Event log (audit trail)

Fund-moving operations follow one order: check status and condition, mark
the record terminal, then pay. A record is never terminal with funds still
locked, and never paid out twice.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verifiable_escrow.conditions import ConditionPolicyFactory
from verifiable_escrow.config import Settings, get_settings
from verifiable_escrow.domain.enums import EscrowStatus, EventType
from verifiable_escrow.domain.exceptions import (
    ConditionNotMetError,
    EscrowNotFoundError,
    InvalidStatusError,
)
from verifiable_escrow.domain.state_machine import EscrowStateMachine
from verifiable_escrow.infrastructure.database.orm_models import Escrow
from verifiable_escrow.infrastructure.database.repositories import (
    EscrowRepository,
    EventRepository,
)
from verifiable_escrow.logging_config import get_logger
from verifiable_escrow.services.transfer_service import TransferService

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from verifiable_escrow.domain.context import CallContext
    from verifiable_escrow.domain.transfer_protocol import ValueTransfer

logger = get_logger(__name__)


class EscrowLedger:
    """Locks, releases and refunds escrowed funds."""

    def __init__(
        self,
        session: AsyncSession,
        transfers: ValueTransfer | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._transfers = transfers or TransferService(session)
        self._escrow_repo = EscrowRepository(session)
        self._event_repo = EventRepository(session)

    @property
    def custody_account(self) -> str:
        return self._settings.custody_account

    # ------------------------------------------------------------------
    # Lock
    # ------------------------------------------------------------------

    async def init(
        self,
        ctx: CallContext,
        escrow_id: int,
        sender: str,
        recipient: str,
        amount: int,
        policy_ref: str,
        handle: int,
        currency: str,
    ) -> Escrow:
        """Record a new ACTIVE escrow and lock ``amount`` in custody.

        Raises:
            TransferFailedError: If the sender cannot cover ``amount``.
        """
        escrow = await self._escrow_repo.create(
            Escrow(
                id=escrow_id,
                sender=sender,
                recipient=recipient,
                amount=amount,
                currency=currency,
                policy_ref=policy_ref,
                condition_handle=handle,
                status=EscrowStatus.ACTIVE.value,
                created_height=ctx.block_height,
            )
        )
        await self._transfers.transfer(currency, amount, sender, self.custody_account)

        logger.info(
            "escrow.funds_locked",
            escrow_id=escrow_id,
            amount=amount,
            currency=currency,
            sender=sender,
        )
        return escrow

    # ------------------------------------------------------------------
    # Release (condition-gated)
    # ------------------------------------------------------------------

    async def release(self, ctx: CallContext, escrow_id: int) -> Escrow:
        """Pay the full amount to the recipient if the condition holds.

        Raises:
            EscrowNotFoundError: Unknown id.
            InvalidStatusError: The escrow is already RELEASED or CANCELLED.
            ConditionNotMetError: The policy's predicate is currently false.
        """
        escrow = await self._get_escrow_or_raise(escrow_id)
        sm = self._guard(escrow, "condition_met")

        policy = ConditionPolicyFactory.create(
            escrow.policy_ref, self._session, ctx, self._settings
        )
        if not await policy.verify(escrow.recipient, escrow.condition_handle):
            logger.info(
                "escrow.condition_not_met",
                escrow_id=escrow_id,
                policy=escrow.policy_ref,
                block_height=ctx.block_height,
            )
            raise ConditionNotMetError(escrow_id)

        sm.condition_met()
        await self._mark(escrow, sm, "condition_met")
        await self._transfers.transfer(
            escrow.currency, escrow.amount, self.custody_account, escrow.recipient
        )

        await self._event_repo.record(
            event_type=EventType.ESCROW_RELEASED,
            actor=ctx.caller,
            block_height=ctx.block_height,
            escrow_id=escrow_id,
            metadata={"recipient": escrow.recipient, "amount": escrow.amount},
        )
        logger.info(
            "escrow.released",
            escrow_id=escrow_id,
            recipient=escrow.recipient,
            amount=escrow.amount,
            currency=escrow.currency,
        )
        return escrow

    # ------------------------------------------------------------------
    # Refund (unconditional; caller authorization is the registry's job)
    # ------------------------------------------------------------------

    async def refund(self, ctx: CallContext, escrow_id: int) -> Escrow:
        """Return the full amount to the sender.

        Raises:
            EscrowNotFoundError: Unknown id.
            InvalidStatusError: The escrow is already RELEASED or CANCELLED.
        """
        escrow = await self._get_escrow_or_raise(escrow_id)
        sm = self._guard(escrow, "sender_cancelled")

        sm.sender_cancelled()
        await self._mark(escrow, sm, "sender_cancelled")
        await self._transfers.transfer(
            escrow.currency, escrow.amount, self.custody_account, escrow.sender
        )

        await self._event_repo.record(
            event_type=EventType.ESCROW_CANCELLED,
            actor=ctx.caller,
            block_height=ctx.block_height,
            escrow_id=escrow_id,
            metadata={"sender": escrow.sender, "amount": escrow.amount},
        )
        logger.info(
            "escrow.cancelled",
            escrow_id=escrow_id,
            sender=escrow.sender,
            amount=escrow.amount,
            currency=escrow.currency,
        )
        return escrow

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_escrow_or_raise(self, escrow_id: int) -> Escrow:
        escrow = await self._escrow_repo.get_by_id(escrow_id)
        if escrow is None:
            raise EscrowNotFoundError(escrow_id)
        return escrow

    async def _mark(self, escrow: Escrow, sm: EscrowStateMachine, event_name: str) -> None:
        """Persist the transition, failing if the row left ACTIVE since it was read."""
        previous = escrow.status
        if not await self._escrow_repo.transition_status(
            escrow, EscrowStatus(previous), EscrowStatus(sm.status)
        ):
            await self._session.refresh(escrow)
            logger.warning(
                "escrow.status_changed_concurrently",
                escrow_id=escrow.id,
                expected=previous,
                found=escrow.status,
            )
            raise InvalidStatusError(escrow.status, event_name)

    @staticmethod
    def _guard(escrow: Escrow, event_name: str) -> EscrowStateMachine:
        """Return a state machine for ``escrow`` once ``event_name`` is known to be allowed.

        Raises InvalidStatusError if the transition is illegal.
        """
        sm = EscrowStateMachine(current_status=escrow.status)
        if event_name not in sm.get_allowed_events():
            raise InvalidStatusError(escrow.status, event_name)
        return sm
