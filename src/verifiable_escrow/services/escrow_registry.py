"""Escrow Registry: entry point for escrow creation, cancellation and queries.

This is the application layer that coordinates between:
    - Registry configuration (authority, creation fee, currency allow-list)
    - Condition policies (one fresh handle per escrow)
    - The EscrowLedger (fund custody)
    - The by-sender index and the audit event log

Both REST routes and the simulation script call into this service, so every
rule lives in one place. The registry never commits: callers wrap each
operation in ``transaction()``, which makes a failure at any step (including
the sender-index capacity check that runs after the fee has been debited)
discard every effect of the call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verifiable_escrow.conditions import ConditionPolicyFactory
from verifiable_escrow.config import Settings, get_settings
from verifiable_escrow.domain.enums import EscrowStatus, EventType
from verifiable_escrow.domain.exceptions import (
    AlreadySetError,
    AuthorityNotSetError,
    CapacityExceededError,
    EscrowAlreadyExistsError,
    EscrowNotFoundError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidConditionError,
    InvalidCurrencyError,
    InvalidFeeError,
    InvalidParamsError,
    InvalidRecipientError,
    InvalidStatusError,
    NotAuthorizedError,
)
from verifiable_escrow.infrastructure.database.orm_models import MAX_STORED_INT
from verifiable_escrow.infrastructure.database.repositories import (
    EscrowRepository,
    EventRepository,
    RegistryStateRepository,
    SenderIndexRepository,
)
from verifiable_escrow.logging_config import get_logger
from verifiable_escrow.services.escrow_ledger import EscrowLedger
from verifiable_escrow.services.transfer_service import TransferService

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from verifiable_escrow.domain.context import CallContext
    from verifiable_escrow.domain.transfer_protocol import ValueTransfer
    from verifiable_escrow.infrastructure.database.orm_models import (
        Escrow,
        EscrowEvent,
        RegistryState,
    )

logger = get_logger(__name__)


class EscrowRegistry:
    """Validates and records escrows, and enforces registry-wide policy."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        transfers: ValueTransfer | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._transfers = transfers or TransferService(session)
        self._ledger = EscrowLedger(session, transfers=self._transfers, settings=self._settings)
        self._state_repo = RegistryStateRepository(session)
        self._escrow_repo = EscrowRepository(session)
        self._index_repo = SenderIndexRepository(session)
        self._event_repo = EventRepository(session)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    async def set_authority(self, ctx: CallContext, address: str) -> bool:
        """Register the account that receives creation fees. Allowed once."""
        if not address or address == self._settings.null_address:
            raise InvalidAddressError(address)

        state = await self._state_repo.get_or_create(self._settings)
        if state.authority is not None:
            raise AlreadySetError("authority")

        state.authority = address
        await self._state_repo.save(state)

        await self._event_repo.record(
            event_type=EventType.AUTHORITY_SET,
            actor=ctx.caller,
            block_height=ctx.block_height,
            metadata={"authority": address},
        )
        logger.info("registry.authority_set", authority=address, by=ctx.caller)
        return True

    async def set_creation_fee(self, ctx: CallContext, fee: int) -> bool:
        """Change the fee charged on every escrow creation. Zero is allowed."""
        state = await self._state_repo.get_or_create(self._settings)
        self._require_authority(state, ctx, "set the creation fee")
        if fee < 0 or fee > MAX_STORED_INT:
            raise InvalidFeeError(fee)

        old_fee = state.creation_fee
        state.creation_fee = fee
        await self._state_repo.save(state)

        await self._event_repo.record(
            event_type=EventType.CREATION_FEE_UPDATED,
            actor=ctx.caller,
            block_height=ctx.block_height,
            metadata={"old_fee": old_fee, "new_fee": fee},
        )
        logger.info("registry.fee_updated", old_fee=old_fee, new_fee=fee)
        return True

    async def add_currency(self, ctx: CallContext, code: str) -> bool:
        """Allow-list a currency code. Adding a listed code is a successful no-op."""
        state = await self._state_repo.get_or_create(self._settings)
        self._require_authority(state, ctx, "add a currency")
        if not code or len(code) > self._settings.max_currency_code_length:
            raise InvalidCurrencyError(code)

        if await self._state_repo.has_currency(code):
            return True
        if await self._state_repo.count_currencies() >= self._settings.max_currencies:
            raise CapacityExceededError("supported currencies", self._settings.max_currencies)

        await self._state_repo.add_currency(code)
        await self._event_repo.record(
            event_type=EventType.CURRENCY_ADDED,
            actor=ctx.caller,
            block_height=ctx.block_height,
            metadata={"currency": code},
        )
        logger.info("registry.currency_added", currency=code)
        return True

    # ------------------------------------------------------------------
    # Escrow Creation
    # ------------------------------------------------------------------

    async def create_escrow(
        self,
        ctx: CallContext,
        recipient: str,
        amount: int,
        policy_ref: str,
        params: bytes,
        currency: str,
    ) -> int:
        """Lock ``amount`` from the caller for ``recipient`` behind a new condition.

        Checks run in a fixed order and the first failure wins: capacity,
        recipient, amount, policy, params, currency, authority, id collision.

        Returns:
            The new escrow id.
        """
        settings = self._settings
        state = await self._state_repo.get_or_create(settings)
        escrow_id = state.next_escrow_id

        if escrow_id >= settings.max_escrows:
            raise CapacityExceededError("escrows", settings.max_escrows)
        if not recipient or recipient == settings.null_address:
            raise InvalidRecipientError(recipient)
        if amount <= 0 or amount > MAX_STORED_INT:
            raise InvalidAmountError(amount)
        if (
            not policy_ref
            or policy_ref == settings.null_address
            or not ConditionPolicyFactory.is_registered(policy_ref)
        ):
            raise InvalidConditionError(policy_ref)
        if not params:
            raise InvalidParamsError("Condition params are empty")
        if len(params) > settings.max_condition_params_bytes:
            raise InvalidParamsError(
                f"Condition params exceed {settings.max_condition_params_bytes} bytes"
            )
        if not await self._state_repo.has_currency(currency):
            raise InvalidCurrencyError(currency)
        if state.authority is None:
            raise AuthorityNotSetError()
        if await self._escrow_repo.exists(escrow_id):
            raise EscrowAlreadyExistsError(escrow_id)

        # --- Effects (rolled back together if any step below fails) ---
        await self._transfers.transfer(
            settings.native_currency, state.creation_fee, ctx.caller, state.authority
        )

        policy = ConditionPolicyFactory.create(policy_ref, self._session, ctx, settings)
        handle = await policy.create(params)

        await self._ledger.init(
            ctx,
            escrow_id=escrow_id,
            sender=ctx.caller,
            recipient=recipient,
            amount=amount,
            policy_ref=policy_ref,
            handle=handle,
            currency=currency,
        )

        position = await self._index_repo.count_for(ctx.caller)
        if position >= settings.max_escrows_per_sender:
            logger.warning(
                "escrow.sender_index_full",
                sender=ctx.caller,
                limit=settings.max_escrows_per_sender,
            )
            raise CapacityExceededError("escrows per sender", settings.max_escrows_per_sender)
        await self._index_repo.append(ctx.caller, escrow_id, position)

        state.next_escrow_id = escrow_id + 1
        await self._state_repo.save(state)

        await self._event_repo.record(
            event_type=EventType.ESCROW_CREATED,
            actor=ctx.caller,
            block_height=ctx.block_height,
            escrow_id=escrow_id,
            metadata={
                "recipient": recipient,
                "amount": amount,
                "currency": currency,
                "policy": policy_ref,
                "handle": handle,
                "fee": state.creation_fee,
            },
        )
        logger.info(
            "escrow.created",
            escrow_id=escrow_id,
            sender=ctx.caller,
            recipient=recipient,
            amount=amount,
            currency=currency,
            policy=policy_ref,
            handle=handle,
        )
        return escrow_id

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def cancel_escrow(self, ctx: CallContext, escrow_id: int) -> bool:
        """Refund an ACTIVE escrow to its sender. Only the sender may cancel.

        No condition is consulted: cancelling is the sender's unconditional
        right until the escrow resolves.
        """
        escrow = await self._escrow_repo.get_by_id(escrow_id)
        if escrow is None:
            raise EscrowNotFoundError(escrow_id)
        if ctx.caller != escrow.sender:
            raise NotAuthorizedError(ctx.caller, f"cancel escrow {escrow_id}")
        if escrow.status != EscrowStatus.ACTIVE.value:
            raise InvalidStatusError(escrow.status, "sender_cancelled")

        await self._ledger.refund(ctx, escrow_id)
        return True

    async def release(self, ctx: CallContext, escrow_id: int) -> bool:
        """Release an escrow to its recipient if its condition is met. Anyone may trigger it."""
        await self._ledger.release(ctx, escrow_id)
        return True

    # ------------------------------------------------------------------
    # Read helpers (never write, never raise for missing ids)
    # ------------------------------------------------------------------

    async def get_escrow(self, escrow_id: int) -> Escrow | None:
        return await self._escrow_repo.get_by_id(escrow_id)

    async def get_escrows_by_sender(self, sender: str) -> list[int]:
        return await self._index_repo.list_for(sender)

    async def get_escrow_count(self) -> int:
        """Return the id counter, i.e. the id the next escrow will receive."""
        state = await self._state_repo.get()
        return state.next_escrow_id if state is not None else 1

    async def get_creation_fee(self) -> int:
        state = await self._state_repo.get()
        return state.creation_fee if state is not None else self._settings.default_creation_fee

    async def get_supported_currencies(self) -> list[str]:
        state = await self._state_repo.get()
        if state is None:
            return self._settings.default_currency_list[: self._settings.max_currencies]
        return await self._state_repo.list_currencies()

    async def get_authority(self) -> str | None:
        state = await self._state_repo.get()
        return state.authority if state is not None else None

    async def get_events(self, escrow_id: int) -> list[EscrowEvent]:
        return await self._event_repo.get_by_escrow(escrow_id)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_authority(state: RegistryState, ctx: CallContext, action: str) -> None:
        """Configuration changes are open once an authority has been registered."""
        if state.authority is None:
            raise NotAuthorizedError(ctx.caller, action)
