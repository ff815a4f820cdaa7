"""End-to-end scenarios through the registry, one transaction per call."""

from __future__ import annotations

import pytest

from tests.factories import AUTHORITY, RECIPIENT, SENDER, deadline_params, threshold_params
from verifiable_escrow.conditions import ThresholdSignaturePolicy
from verifiable_escrow.domain.context import CallContext
from verifiable_escrow.domain.exceptions import (
    AlreadySignedError,
    ConditionNotMetError,
    InvalidCurrencyError,
    InvalidParamsError,
    NotSignerError,
)

A, B, C, D = "ST7SIGNERA", "ST7SIGNERB", "ST7SIGNERC", "ST7SIGNERD"


@pytest.mark.asyncio
async def test_deadline_release(harness) -> None:
    await harness.bootstrap()
    escrow_id = await harness.create(amount=1000, currency="STX", params=deadline_params(100))

    with pytest.raises(ConditionNotMetError):
        await harness.call("release", CallContext(RECIPIENT, 0), escrow_id)

    await harness.call("release", CallContext(RECIPIENT, 100), escrow_id)
    assert await harness.balance(RECIPIENT) == 1000
    assert (await harness.call("get_escrow", escrow_id)).status != "ACTIVE"


@pytest.mark.asyncio
async def test_two_of_three_signatures(harness) -> None:
    await harness.bootstrap()
    escrow_id = await harness.create(
        policy_ref="threshold_signature", params=threshold_params([A, B, C], 2)
    )
    handle = (await harness.call("get_escrow", escrow_id)).condition_handle

    async def approve(signer: str) -> bool:
        async with harness.unit_of_work() as session:
            policy = ThresholdSignaturePolicy(session, CallContext(signer), harness.settings)
            return await policy.approve(handle)

    async def verified() -> bool:
        async with harness.unit_of_work() as session:
            policy = ThresholdSignaturePolicy(session, CallContext(RECIPIENT), harness.settings)
            return await policy.verify(RECIPIENT, handle)

    await approve(A)
    assert await verified() is False
    await approve(B)
    assert await verified() is True

    with pytest.raises(AlreadySignedError):
        await approve(A)
    with pytest.raises(NotSignerError):
        await approve(D)

    await harness.call("release", CallContext(C), escrow_id)
    assert await harness.balance(RECIPIENT) == 1000


@pytest.mark.asyncio
async def test_params_and_currency_allow_list(harness) -> None:
    await harness.bootstrap()
    await harness.deposit(SENDER, "ETH", 1000)

    with pytest.raises(InvalidParamsError):
        await harness.create(params=b"")
    with pytest.raises(InvalidCurrencyError):
        await harness.create(currency="ETH")

    await harness.call("add_currency", CallContext(AUTHORITY), "ETH")
    escrow_id = await harness.create(currency="ETH")
    assert (await harness.call("get_escrow", escrow_id)).currency == "ETH"
