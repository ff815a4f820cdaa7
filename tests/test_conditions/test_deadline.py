"""Tests for DeadlinePolicy."""

from __future__ import annotations

import pytest

from tests.factories import RECIPIENT, deadline_params
from verifiable_escrow.conditions import DeadlinePolicy
from verifiable_escrow.domain.context import CallContext
from verifiable_escrow.domain.exceptions import ConditionNotFoundError, InvalidParamsError


class TestDeadlineCreate:
    @pytest.mark.asyncio
    async def test_handles_are_sequential(self, session, settings) -> None:
        policy = DeadlinePolicy(session, CallContext("ST2SENDER"), settings)
        first = await policy.create(deadline_params(10))
        second = await policy.create(deadline_params(20))
        assert second == first + 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [
            b'{"release_height": -1}',
            b'{"release_height": "100"}',
            b'{"release_height": 100, "extra": true}',
            b"{}",
            b"[100]",
        ],
    )
    async def test_rejects_nonconforming_params(self, session, settings, params: bytes) -> None:
        policy = DeadlinePolicy(session, CallContext("ST2SENDER"), settings)
        with pytest.raises(InvalidParamsError) as exc_info:
            await policy.create(params)
        assert exc_info.value.details


class TestDeadlineVerify:
    @pytest.mark.asyncio
    async def test_true_once_height_reached(self, session, settings) -> None:
        handle = await DeadlinePolicy(session, CallContext("ST2SENDER"), settings).create(
            deadline_params(100)
        )

        def at(height: int) -> DeadlinePolicy:
            return DeadlinePolicy(session, CallContext("ANYONE", height), settings)

        assert await at(0).verify(RECIPIENT, handle) is False
        assert await at(99).verify(RECIPIENT, handle) is False
        assert await at(100).verify(RECIPIENT, handle) is True
        assert await at(5000).verify(RECIPIENT, handle) is True

    @pytest.mark.asyncio
    async def test_zero_height_is_immediately_true(self, session, settings) -> None:
        policy = DeadlinePolicy(session, CallContext("ST2SENDER"), settings)
        handle = await policy.create(deadline_params(0))
        assert await policy.verify(RECIPIENT, handle) is True

    @pytest.mark.asyncio
    async def test_unknown_handle(self, session, settings) -> None:
        policy = DeadlinePolicy(session, CallContext("ST2SENDER"), settings)
        with pytest.raises(ConditionNotFoundError):
            await policy.verify(RECIPIENT, 999)
