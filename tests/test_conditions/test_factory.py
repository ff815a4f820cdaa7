"""Tests for ConditionPolicyFactory and shared params parsing."""

from __future__ import annotations

import pytest

from verifiable_escrow.conditions import (
    AttestedEventPolicy,
    ConditionPolicy,
    ConditionPolicyFactory,
    DeadlinePolicy,
    ThresholdSignaturePolicy,
)
from verifiable_escrow.domain.context import CallContext
from verifiable_escrow.domain.exceptions import InvalidConditionError, InvalidParamsError

CTX = CallContext("ST2SENDER")


class TestConditionPolicyFactory:
    @pytest.mark.parametrize(
        ("policy_ref", "expected"),
        [
            ("deadline", DeadlinePolicy),
            ("attested_event", AttestedEventPolicy),
            ("threshold_signature", ThresholdSignaturePolicy),
        ],
    )
    @pytest.mark.asyncio
    async def test_creates_registered_policy(
        self, session, settings, policy_ref, expected
    ) -> None:
        policy = ConditionPolicyFactory.create(policy_ref, session, CTX, settings)
        assert isinstance(policy, expected)
        assert isinstance(policy, ConditionPolicy)
        assert policy.policy_type == policy_ref

    @pytest.mark.asyncio
    async def test_unknown_policy(self, session, settings) -> None:
        with pytest.raises(InvalidConditionError, match="escrow_oracle"):
            ConditionPolicyFactory.create("escrow_oracle", session, CTX, settings)

    def test_supported_types(self) -> None:
        assert set(ConditionPolicyFactory.get_supported_types()) == {
            "deadline",
            "attested_event",
            "threshold_signature",
        }
        assert ConditionPolicyFactory.is_registered("deadline")
        assert not ConditionPolicyFactory.is_registered("")


class TestParseParams:
    @pytest.mark.parametrize(
        "params",
        [b"", b"\xff\xfe", b"not json", b'{"release_height": 1'],
        ids=["empty", "bad-utf8", "not-json", "truncated"],
    )
    @pytest.mark.asyncio
    async def test_rejects_undecodable(self, session, settings, params: bytes) -> None:
        with pytest.raises(InvalidParamsError):
            DeadlinePolicy(session, CTX, settings).parse_params(params)

    @pytest.mark.asyncio
    async def test_rejects_oversized(self, session, settings) -> None:
        padding = " " * settings.max_condition_params_bytes
        params = f'{{"release_height": 1}}{padding}'.encode()
        with pytest.raises(InvalidParamsError, match="exceed"):
            DeadlinePolicy(session, CTX, settings).parse_params(params)

    @pytest.mark.asyncio
    async def test_rejects_non_bytes(self, session, settings) -> None:
        with pytest.raises(InvalidParamsError):
            DeadlinePolicy(session, CTX, settings).parse_params('{"release_height": 1}')

    @pytest.mark.asyncio
    async def test_returns_document(self, session, settings) -> None:
        document = DeadlinePolicy(session, CTX, settings).parse_params(b'{"release_height": 7}')
        assert document == {"release_height": 7}
