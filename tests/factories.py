"""Test data builders and a transaction-per-call harness for the escrow services."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from verifiable_escrow.domain.context import CallContext
from verifiable_escrow.infrastructure.database.engine import transaction
from verifiable_escrow.services.escrow_registry import EscrowRegistry
from verifiable_escrow.services.transfer_service import TransferService

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from verifiable_escrow.config import Settings

AUTHORITY = "ST1AUTHORITY"
SENDER = "ST2SENDER"
RECIPIENT = "ST3RECIPIENT"
ATTESTOR = "ST6ORACLE"
NULL_ADDRESS = "SP000000000000000000002Q6VF78"
CUSTODY = "SP000000000000000000000ESCROW"


def deadline_params(release_height: int = 100) -> bytes:
    return json.dumps({"release_height": release_height}).encode("utf-8")


def threshold_params(signers: list[str], required: int) -> bytes:
    return json.dumps({"signers": signers, "required": required}).encode("utf-8")


def attested_params(attestor: str, fingerprint: str) -> bytes:
    return json.dumps({"attestor": attestor, "event_fingerprint": fingerprint}).encode("utf-8")


class EscrowHarness:
    """Runs each registry call in its own transaction, like the API does."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], settings: Settings):
        self.session_factory = session_factory
        self.settings = settings

    def unit_of_work(self):
        return transaction(self.session_factory)

    async def call(self, method: str, *args, **kwargs):
        async with self.unit_of_work() as session:
            registry = EscrowRegistry(session, settings=self.settings)
            return await getattr(registry, method)(*args, **kwargs)

    async def deposit(self, account: str, currency: str, amount: int) -> int:
        async with self.unit_of_work() as session:
            return await TransferService(session).deposit(account, currency, amount)

    async def balance(self, account: str, currency: str = "STX") -> int:
        async with self.unit_of_work() as session:
            return await TransferService(session).balance_of(account, currency)

    async def bootstrap(self, fund_sender: int = 100_000) -> None:
        """Register the authority and fund the default sender."""
        await self.call("set_authority", CallContext(AUTHORITY), AUTHORITY)
        if fund_sender:
            await self.deposit(SENDER, "STX", fund_sender)

    async def create(
        self,
        ctx: CallContext | None = None,
        recipient: str = RECIPIENT,
        amount: int = 1000,
        policy_ref: str = "deadline",
        params: bytes | None = None,
        currency: str = "STX",
    ) -> int:
        return await self.call(
            "create_escrow",
            ctx or CallContext(SENDER),
            recipient,
            amount,
            policy_ref,
            deadline_params() if params is None else params,
            currency,
        )


def as_caller(address: str, height: int = 0) -> dict[str, str]:
    """Request headers identifying the submitting account."""
    return {"X-Caller-Address": address, "X-Block-Height": str(height)}
