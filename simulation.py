#!/usr/bin/env python3
"""Verifiable Escrow: end-to-end simulation.

Runs three scenarios against an in-memory SQLite database:

    Scenario 1: Deadline
        - Sender locks 1000 STX until block 100
        - Release at height 0 fails (condition not met)
        - Release at height 100 pays the recipient

    Scenario 2: Threshold signature (2 of 3)
        - A approves -> not yet verified
        - B approves -> verified, escrow released
        - A approves again -> already signed; D approves -> not a signer

    Scenario 3: Input validation and the currency allow-list
        - Empty params -> invalid params
        - Currency ETH -> not allow-listed
        - Authority adds ETH, retry succeeds

Usage:
    python simulation.py
    python simulation.py --scenario 2
"""

from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import dataclass

from verifiable_escrow.config import Settings
from verifiable_escrow.logging_config import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

AUTHORITY = "ST1AUTHORITY"
SENDER = "ST2SENDER"
RECIPIENT = "ST3RECIPIENT"
SIGNERS = ["ST7SIGNERA", "ST7SIGNERB", "ST7SIGNERC"]
OUTSIDER = "ST7SIGNERD"

_settings = Settings(database_url="sqlite+aiosqlite:///:memory:", mcp_enabled=False)
_engine = None
_session_factory = None


# ---------------------------------------------------------------------------
# Database lifecycle helpers
# ---------------------------------------------------------------------------
async def init_database() -> None:
    global _engine, _session_factory
    from verifiable_escrow.infrastructure.database.engine import (
        create_engine_from_settings,
        create_tables,
        make_session_factory,
    )

    _engine = create_engine_from_settings(_settings)
    _session_factory = make_session_factory(_engine)
    await create_tables(_engine)
    logger.info("database.sqlite_initialized")


async def shutdown_database() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None


def unit_of_work():
    from verifiable_escrow.infrastructure.database.engine import transaction

    return transaction(_session_factory)


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------
@dataclass
class Actor:
    """A simulated account that submits operations at a given block height."""

    address: str

    def ctx(self, height: int = 0):
        from verifiable_escrow.domain.context import CallContext

        return CallContext(caller=self.address, block_height=height)

    async def fund(self, currency: str, amount: int) -> None:
        from verifiable_escrow.services.transfer_service import TransferService

        async with unit_of_work() as session:
            await TransferService(session).deposit(self.address, currency, amount)

    async def create_escrow(
        self, recipient: str, amount: int, policy: str, params: bytes, currency: str
    ) -> int:
        from verifiable_escrow.services.escrow_registry import EscrowRegistry

        async with unit_of_work() as session:
            return await EscrowRegistry(session, settings=_settings).create_escrow(
                self.ctx(), recipient, amount, policy, params, currency
            )

    async def release(self, escrow_id: int, height: int) -> bool:
        from verifiable_escrow.services.escrow_registry import EscrowRegistry

        async with unit_of_work() as session:
            return await EscrowRegistry(session, settings=_settings).release(
                self.ctx(height), escrow_id
            )

    async def approve(self, handle: int) -> bool:
        from verifiable_escrow.conditions import ThresholdSignaturePolicy

        async with unit_of_work() as session:
            return await ThresholdSignaturePolicy(session, self.ctx(), _settings).approve(handle)


async def expect_failure(label: str, coro) -> None:
    """Await ``coro`` and report the domain error it is expected to raise."""
    from verifiable_escrow.domain.exceptions import EscrowError

    try:
        await coro
    except EscrowError as exc:
        print(f"  ✔ {label}: rejected with {exc.code}")
        return
    raise RuntimeError(f"{label}: expected a failure but the call succeeded")


async def setup_registry() -> None:
    """Register the authority and fund the sender (idempotent per run)."""
    from verifiable_escrow.services.escrow_registry import EscrowRegistry

    async with unit_of_work() as session:
        registry = EscrowRegistry(session, settings=_settings)
        if await registry.get_authority() is None:
            await registry.set_authority(Actor(AUTHORITY).ctx(), AUTHORITY)
    await Actor(SENDER).fund("STX", 100_000)


async def print_balances(*addresses: str) -> None:
    from verifiable_escrow.services.transfer_service import TransferService

    async with unit_of_work() as session:
        svc = TransferService(session)
        for address in addresses:
            rows = await svc.balances(address)
            held = ", ".join(f"{b.amount} {b.currency}" for b in rows) or "nothing"
            print(f"    {address:<32} {held}")


async def print_audit_trail(escrow_id: int) -> None:
    from verifiable_escrow.services.escrow_registry import EscrowRegistry

    async with unit_of_work() as session:
        events = await EscrowRegistry(session, settings=_settings).get_events(escrow_id)
    print(f"\n  📜 Audit trail for escrow {escrow_id}:")
    for event in events:
        print(f"    @{event.block_height:<5} {event.event_type:<20} by {event.actor}")


def banner(text: str) -> None:
    print("\n" + "=" * 70)
    print(f"  {text}")
    print("=" * 70)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------
async def scenario_1_deadline() -> None:
    banner("SCENARIO 1: Deadline release")
    await setup_registry()
    sender = Actor(SENDER)

    escrow_id = await sender.create_escrow(
        RECIPIENT, 1000, "deadline", b'{"release_height":100}', "STX"
    )
    print(f"  Escrow {escrow_id} locks 1000 STX until block 100")

    await expect_failure("release at height 0", sender.release(escrow_id, height=0))
    await Actor(RECIPIENT).release(escrow_id, height=100)
    print("  ✔ release at height 100 succeeded")

    await print_balances(SENDER, RECIPIENT, AUTHORITY, _settings.custody_account)
    await print_audit_trail(escrow_id)


async def scenario_2_threshold() -> None:
    banner("SCENARIO 2: 2-of-3 threshold signature")
    await setup_registry()
    sender = Actor(SENDER)
    a, b, _c = (Actor(s) for s in SIGNERS)

    params = json.dumps({"signers": SIGNERS, "required": 2}).encode("utf-8")
    escrow_id = await sender.create_escrow(RECIPIENT, 250, "threshold_signature", params, "STX")

    from verifiable_escrow.services.escrow_registry import EscrowRegistry

    async with unit_of_work() as session:
        escrow = await EscrowRegistry(session, settings=_settings).get_escrow(escrow_id)
        handle = escrow.condition_handle
    print(f"  Escrow {escrow_id} uses threshold condition {handle}")

    await a.approve(handle)
    await expect_failure("release after 1 approval", sender.release(escrow_id, height=1))
    await b.approve(handle)
    await sender.release(escrow_id, height=2)
    print("  ✔ released after 2 approvals")

    await expect_failure("second approval by A", a.approve(handle))
    await expect_failure("approval by outsider D", Actor(OUTSIDER).approve(handle))
    await print_audit_trail(escrow_id)


async def scenario_3_validation() -> None:
    banner("SCENARIO 3: Validation and currency allow-list")
    await setup_registry()
    sender = Actor(SENDER)
    await sender.fund("ETH", 5_000)

    await expect_failure(
        "empty params", sender.create_escrow(RECIPIENT, 10, "deadline", b"", "STX")
    )
    await expect_failure(
        "ETH before allow-listing",
        sender.create_escrow(RECIPIENT, 10, "deadline", b'{"release_height":5}', "ETH"),
    )

    from verifiable_escrow.services.escrow_registry import EscrowRegistry

    async with unit_of_work() as session:
        await EscrowRegistry(session, settings=_settings).add_currency(
            Actor(AUTHORITY).ctx(), "ETH"
        )
    print("  Authority allow-listed ETH")

    escrow_id = await sender.create_escrow(
        RECIPIENT, 10, "deadline", b'{"release_height":5}', "ETH"
    )
    print(f"  ✔ escrow {escrow_id} created in ETH")
    await print_balances(SENDER, _settings.custody_account)


SCENARIOS = {
    1: scenario_1_deadline,
    2: scenario_2_threshold,
    3: scenario_3_validation,
}


async def run(selected: list[int]) -> None:
    await init_database()
    try:
        for num in selected:
            await SCENARIOS[num]()
        print("\n  ✅ ALL SELECTED SCENARIOS COMPLETED\n")
    finally:
        await shutdown_database()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Verifiable Escrow simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        choices=[0, *SCENARIOS],
        default=0,
        help="Run a specific scenario (1, 2, or 3). Default: run all.",
    )
    args = parser.parse_args()
    asyncio.run(run(list(SCENARIOS) if args.scenario == 0 else [args.scenario]))
