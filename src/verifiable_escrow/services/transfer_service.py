"""Transfer Service: the value-transfer ledger the escrow core settles through.

Balances live in the account_balances table, so every movement joins the
caller's transaction: if any later step of the enclosing operation fails, the
transfer is rolled back with it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verifiable_escrow.domain.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    TransferFailedError,
)
from verifiable_escrow.infrastructure.database.orm_models import MAX_STORED_INT
from verifiable_escrow.infrastructure.database.repositories import BalanceRepository
from verifiable_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from verifiable_escrow.infrastructure.database.orm_models import AccountBalance

logger = get_logger(__name__)


class TransferService:
    """Moves balances between accounts. Satisfies the ValueTransfer protocol."""

    def __init__(self, session: AsyncSession) -> None:
        self._balances = BalanceRepository(session)

    async def transfer(self, currency: str, amount: int, sender: str, recipient: str) -> None:
        """Move ``amount`` of ``currency`` from ``sender`` to ``recipient``.

        A zero amount is a no-op. Raises InsufficientBalanceError (a
        TransferFailedError) without touching either balance when the sender
        cannot cover the amount.
        """
        if amount < 0:
            raise InvalidAmountError(amount)
        if amount == 0:
            return

        source = await self._balances.get_or_create(sender, currency)
        if source.amount < amount:
            logger.warning(
                "transfer.insufficient_balance",
                account=sender,
                currency=currency,
                required=amount,
                available=source.amount,
            )
            raise InsufficientBalanceError(sender, currency, amount, source.amount)

        target = await self._balances.get_or_create(recipient, currency)
        if target.amount + amount > MAX_STORED_INT:
            raise TransferFailedError(f"{currency} balance of {recipient} would overflow")
        source.amount -= amount
        target.amount += amount
        await self._balances.flush()

        logger.debug(
            "transfer.completed",
            currency=currency,
            amount=amount,
            from_account=sender,
            to_account=recipient,
        )

    async def deposit(self, account: str, currency: str, amount: int) -> int:
        """Credit ``account`` from outside the system and return the new balance.

        Used to fund accounts in development and tests; the escrow core never
        calls it.
        """
        if amount <= 0:
            raise InvalidAmountError(amount)
        balance = await self._balances.get_or_create(account, currency)
        if balance.amount + amount > MAX_STORED_INT:
            raise InvalidAmountError(amount)
        balance.amount += amount
        await self._balances.flush()
        logger.info("transfer.deposit", account=account, currency=currency, amount=amount)
        return balance.amount

    async def balance_of(self, account: str, currency: str) -> int:
        balance = await self._balances.get(account, currency)
        return balance.amount if balance is not None else 0

    async def balances(self, account: str) -> list[AccountBalance]:
        return await self._balances.list_for(account)
