"""Tests for registry configuration: authority, creation fee, currency allow-list."""

from __future__ import annotations

import pytest

from tests.factories import AUTHORITY, NULL_ADDRESS, SENDER
from verifiable_escrow.domain.context import CallContext
from verifiable_escrow.domain.exceptions import (
    AlreadySetError,
    CapacityExceededError,
    InvalidAddressError,
    InvalidCurrencyError,
    InvalidFeeError,
    NotAuthorizedError,
)

AUTH = CallContext(AUTHORITY)


class TestSetAuthority:
    @pytest.mark.asyncio
    async def test_set_once(self, harness) -> None:
        assert await harness.call("get_authority") is None
        assert await harness.call("set_authority", CallContext(SENDER), AUTHORITY) is True
        assert await harness.call("get_authority") == AUTHORITY

        with pytest.raises(AlreadySetError):
            await harness.call("set_authority", AUTH, "ST9OTHER")
        assert await harness.call("get_authority") == AUTHORITY

    @pytest.mark.asyncio
    async def test_null_address_rejected_before_already_set(self, harness) -> None:
        with pytest.raises(InvalidAddressError):
            await harness.call("set_authority", AUTH, NULL_ADDRESS)
        await harness.call("set_authority", AUTH, AUTHORITY)
        with pytest.raises(InvalidAddressError):
            await harness.call("set_authority", AUTH, NULL_ADDRESS)


class TestCreationFee:
    @pytest.mark.asyncio
    async def test_default_fee(self, harness, settings) -> None:
        assert await harness.call("get_creation_fee") == settings.default_creation_fee

    @pytest.mark.asyncio
    async def test_requires_authority_set(self, harness) -> None:
        with pytest.raises(NotAuthorizedError):
            await harness.call("set_creation_fee", AUTH, 10)
        assert await harness.call("get_authority") is None

    @pytest.mark.asyncio
    async def test_any_caller_once_authority_set(self, harness) -> None:
        await harness.call("set_authority", AUTH, AUTHORITY)
        assert await harness.call("set_creation_fee", CallContext(SENDER), 1000) is True
        assert await harness.call("get_creation_fee") == 1000

    @pytest.mark.asyncio
    async def test_update(self, harness) -> None:
        await harness.call("set_authority", AUTH, AUTHORITY)
        assert await harness.call("set_creation_fee", AUTH, 0) is True
        assert await harness.call("get_creation_fee") == 0

        with pytest.raises(InvalidFeeError):
            await harness.call("set_creation_fee", AUTH, -1)
        assert await harness.call("get_creation_fee") == 0

    @pytest.mark.asyncio
    async def test_fee_must_fit_64_bits(self, harness) -> None:
        await harness.call("set_authority", AUTH, AUTHORITY)
        assert await harness.call("set_creation_fee", AUTH, 2**63 - 1) is True
        with pytest.raises(InvalidFeeError):
            await harness.call("set_creation_fee", AUTH, 2**64)
        assert await harness.call("get_creation_fee") == 2**63 - 1


class TestCurrencies:
    @pytest.mark.asyncio
    async def test_defaults(self, harness) -> None:
        assert await harness.call("get_supported_currencies") == ["STX", "USD", "BTC"]

    @pytest.mark.asyncio
    async def test_add_requires_authority_set(self, harness) -> None:
        with pytest.raises(NotAuthorizedError):
            await harness.call("add_currency", AUTH, "ETH")
        await harness.call("set_authority", AUTH, AUTHORITY)
        assert await harness.call("add_currency", CallContext(SENDER), "ETH") is True
        assert "ETH" in await harness.call("get_supported_currencies")

    @pytest.mark.asyncio
    async def test_add_and_duplicate_is_noop(self, harness) -> None:
        await harness.call("set_authority", AUTH, AUTHORITY)
        assert await harness.call("add_currency", AUTH, "ETH") is True
        assert await harness.call("add_currency", AUTH, "ETH") is True
        assert await harness.call("get_supported_currencies") == ["STX", "USD", "BTC", "ETH"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["", "X" * 21])
    async def test_invalid_codes(self, harness, code: str) -> None:
        await harness.call("set_authority", AUTH, AUTHORITY)
        with pytest.raises(InvalidCurrencyError):
            await harness.call("add_currency", AUTH, code)

    @pytest.mark.asyncio
    async def test_twenty_characters_allowed(self, harness) -> None:
        await harness.call("set_authority", AUTH, AUTHORITY)
        assert await harness.call("add_currency", AUTH, "X" * 20) is True

    @pytest.mark.asyncio
    async def test_capacity(self, harness, settings) -> None:
        await harness.call("set_authority", AUTH, AUTHORITY)
        for i in range(settings.max_currencies - 3):
            await harness.call("add_currency", AUTH, f"TOK{i}")
        assert len(await harness.call("get_supported_currencies")) == settings.max_currencies

        with pytest.raises(CapacityExceededError):
            await harness.call("add_currency", AUTH, "ONEMORE")
        # already listed codes still succeed at capacity
        assert await harness.call("add_currency", AUTH, "STX") is True
