"""Tests for ThresholdSignaturePolicy."""

from __future__ import annotations

import pytest

from tests.factories import NULL_ADDRESS, RECIPIENT, threshold_params
from verifiable_escrow.conditions import ThresholdSignaturePolicy
from verifiable_escrow.domain.context import CallContext
from verifiable_escrow.domain.exceptions import (
    AlreadySignedError,
    ConditionNotFoundError,
    InvalidParamsError,
    NotSignerError,
)

A, B, C, D = "ST7SIGNERA", "ST7SIGNERB", "ST7SIGNERC", "ST7SIGNERD"


def _as(session, settings, caller: str) -> ThresholdSignaturePolicy:
    return ThresholdSignaturePolicy(session, CallContext(caller), settings)


class TestThresholdCreate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [
            threshold_params([A, B], 3),
            threshold_params([A, B], 0),
            threshold_params([], 1),
            threshold_params([A, A], 1),
            threshold_params([A, NULL_ADDRESS], 1),
        ],
        ids=["required-over-signers", "zero-required", "no-signers", "duplicates", "null-signer"],
    )
    async def test_rejects_invalid_sets(self, session, settings, params: bytes) -> None:
        with pytest.raises(InvalidParamsError):
            await _as(session, settings, "ST2SENDER").create(params)

    @pytest.mark.asyncio
    async def test_signer_cap(self, session, settings) -> None:
        signers = [f"ST7SIGNER{i}" for i in range(settings.max_signers + 1)]
        with pytest.raises(InvalidParamsError):
            await _as(session, settings, "ST2SENDER").create(threshold_params(signers, 1))


class TestApprove:
    @pytest.mark.asyncio
    async def test_two_of_three(self, session, settings) -> None:
        handle = await _as(session, settings, "ST2SENDER").create(threshold_params([A, B, C], 2))

        await _as(session, settings, A).approve(handle)
        assert await _as(session, settings, "ANYONE").verify(RECIPIENT, handle) is False

        await _as(session, settings, B).approve(handle)
        assert await _as(session, settings, "ANYONE").verify(RECIPIENT, handle) is True

        with pytest.raises(AlreadySignedError):
            await _as(session, settings, A).approve(handle)
        with pytest.raises(NotSignerError):
            await _as(session, settings, D).approve(handle)

    @pytest.mark.asyncio
    async def test_approvals_persist_across_sessions(self, harness, settings) -> None:
        async with harness.unit_of_work() as s:
            handle = await _as(s, settings, "ST2SENDER").create(threshold_params([A, B], 2))
        async with harness.unit_of_work() as s:
            await _as(s, settings, A).approve(handle)
        async with harness.unit_of_work() as s:
            await _as(s, settings, B).approve(handle)
        async with harness.unit_of_work() as s:
            assert await _as(s, settings, "ANYONE").verify(RECIPIENT, handle) is True

    @pytest.mark.asyncio
    async def test_unknown_handle(self, session, settings) -> None:
        with pytest.raises(ConditionNotFoundError):
            await _as(session, settings, A).approve(12)
