"""Repository classes for database access.

Repositories encapsulate all SQL queries and provide a clean interface
to the service layer. They accept an AsyncSession and never manage
their own transactions (that's the caller's responsibility).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

from sqlalchemy import func, select, update

from verifiable_escrow.infrastructure.database.orm_models import (
    REGISTRY_STATE_ID,
    AccountBalance,
    Base,
    Escrow,
    EscrowEvent,
    RegistryState,
    SenderIndexEntry,
    SupportedCurrency,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from verifiable_escrow.config import Settings
    from verifiable_escrow.domain.enums import EscrowStatus, EventType

ConditionT = TypeVar("ConditionT", bound=Base)


class RegistryStateRepository:
    """Data access for the single registry_state row and the currency allow-list."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self) -> RegistryState | None:
        return await self._session.get(RegistryState, REGISTRY_STATE_ID)

    async def get_or_create(self, settings: Settings) -> RegistryState:
        """Return the registry row, seeding it (and the default currencies) on first use."""
        state = await self.get()
        if state is not None:
            return state

        state = RegistryState(
            id=REGISTRY_STATE_ID,
            authority=None,
            creation_fee=settings.default_creation_fee,
            next_escrow_id=1,
        )
        self._session.add(state)
        for position, code in enumerate(settings.default_currency_list[: settings.max_currencies]):
            self._session.add(SupportedCurrency(code=code, position=position))
        await self._session.flush()
        return state

    async def save(self, state: RegistryState) -> RegistryState:
        await self._session.flush()
        return state

    async def list_currencies(self) -> list[str]:
        result = await self._session.execute(
            select(SupportedCurrency.code).order_by(SupportedCurrency.position.asc())
        )
        return list(result.scalars().all())

    async def has_currency(self, code: str) -> bool:
        return await self._session.get(SupportedCurrency, code) is not None

    async def count_currencies(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(SupportedCurrency))
        return int(result.scalar_one())

    async def add_currency(self, code: str) -> SupportedCurrency:
        position = await self.count_currencies()
        currency = SupportedCurrency(code=code, position=position)
        self._session.add(currency)
        await self._session.flush()
        return currency


class EscrowRepository:
    """Data access for escrow custody records."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, escrow: Escrow) -> Escrow:
        """Insert a new escrow."""
        self._session.add(escrow)
        await self._session.flush()
        return escrow

    async def get_by_id(self, escrow_id: int) -> Escrow | None:
        result = await self._session.execute(select(Escrow).where(Escrow.id == escrow_id))
        return result.scalar_one_or_none()

    async def exists(self, escrow_id: int) -> bool:
        return await self.get_by_id(escrow_id) is not None

    async def transition_status(
        self, escrow: Escrow, expected: EscrowStatus, new_status: EscrowStatus
    ) -> bool:
        """Move ``escrow`` to ``new_status`` only while the stored row is still ``expected``.

        Call AFTER state machine validation. Returns False when another
        transaction changed the status first; nothing is written in that case.
        """
        result = await self._session.execute(
            update(Escrow)
            .where(Escrow.id == escrow.id, Escrow.status == expected.value)
            .values(status=new_status.value)
        )
        return result.rowcount == 1


class SenderIndexRepository:
    """Data access for the bounded by-sender index."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def count_for(self, sender: str) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(SenderIndexEntry)
            .where(SenderIndexEntry.sender == sender)
        )
        return int(result.scalar_one())

    async def append(self, sender: str, escrow_id: int, position: int) -> SenderIndexEntry:
        entry = SenderIndexEntry(sender=sender, escrow_id=escrow_id, position=position)
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def list_for(self, sender: str) -> list[int]:
        result = await self._session.execute(
            select(SenderIndexEntry.escrow_id)
            .where(SenderIndexEntry.sender == sender)
            .order_by(SenderIndexEntry.position.asc())
        )
        return list(result.scalars().all())


class BalanceRepository:
    """Data access for account balances."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, account: str, currency: str) -> AccountBalance | None:
        return await self._session.get(AccountBalance, (account, currency))

    async def get_or_create(self, account: str, currency: str) -> AccountBalance:
        balance = await self.get(account, currency)
        if balance is None:
            balance = AccountBalance(account=account, currency=currency, amount=0)
            self._session.add(balance)
            await self._session.flush()
        return balance

    async def list_for(self, account: str) -> list[AccountBalance]:
        result = await self._session.execute(
            select(AccountBalance)
            .where(AccountBalance.account == account)
            .order_by(AccountBalance.currency.asc())
        )
        return list(result.scalars().all())

    async def flush(self) -> None:
        await self._session.flush()


class ConditionRepository(Generic[ConditionT]):
    """Data access for one condition policy's record table.

    Each policy gets its own instance bound to its own model, so handles are
    scoped to that table.
    """

    def __init__(self, session: AsyncSession, model: type[ConditionT]) -> None:
        self._session = session
        self._model = model

    async def create(self, record: ConditionT) -> ConditionT:
        """Insert a record; the database assigns its handle on flush."""
        self._session.add(record)
        await self._session.flush()
        return record

    async def get(self, handle: int) -> ConditionT | None:
        return await self._session.get(self._model, handle)

    async def save(self, record: ConditionT) -> ConditionT:
        await self._session.flush()
        return record


class EventRepository:
    """Data access for the append-only audit event log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(
        self,
        event_type: EventType,
        actor: str,
        block_height: int = 0,
        escrow_id: int | None = None,
        metadata: dict | None = None,
    ) -> EscrowEvent:
        """Append a new audit event. This is the ONLY write operation allowed."""
        evt = EscrowEvent(
            escrow_id=escrow_id,
            event_type=event_type.value,
            actor=actor,
            block_height=block_height,
            metadata_json=metadata,
        )
        self._session.add(evt)
        await self._session.flush()
        return evt

    async def get_by_escrow(self, escrow_id: int) -> list[EscrowEvent]:
        """Fetch all events for an escrow in chronological order."""
        result = await self._session.execute(
            select(EscrowEvent)
            .where(EscrowEvent.escrow_id == escrow_id)
            .order_by(EscrowEvent.id.asc())
        )
        return list(result.scalars().all())
