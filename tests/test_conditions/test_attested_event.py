"""Tests for AttestedEventPolicy."""

from __future__ import annotations

import hashlib

import pytest

from tests.factories import ATTESTOR, NULL_ADDRESS, RECIPIENT, attested_params
from verifiable_escrow.conditions import AttestedEventPolicy, fingerprint_of
from verifiable_escrow.domain.context import CallContext
from verifiable_escrow.domain.exceptions import (
    AlreadyVerifiedError,
    ConditionNotFoundError,
    InvalidParamsError,
    InvalidProofError,
    NotAttestorError,
)

PROOF = b"shipment 42 delivered"
FINGERPRINT = hashlib.sha256(PROOF).hexdigest()


async def _create(session, settings, fingerprint: str = FINGERPRINT) -> int:
    policy = AttestedEventPolicy(session, CallContext("ST2SENDER"), settings)
    return await policy.create(attested_params(ATTESTOR, fingerprint))


def _as(session, settings, caller: str) -> AttestedEventPolicy:
    return AttestedEventPolicy(session, CallContext(caller, 7), settings)


def test_fingerprint_is_sha256_hex() -> None:
    assert fingerprint_of(PROOF) == FINGERPRINT
    assert len(fingerprint_of(b"")) == 64


class TestAttestedCreate:
    @pytest.mark.asyncio
    async def test_rejects_null_attestor(self, session, settings) -> None:
        policy = AttestedEventPolicy(session, CallContext("ST2SENDER"), settings)
        with pytest.raises(InvalidParamsError):
            await policy.create(attested_params(NULL_ADDRESS, FINGERPRINT))

    @pytest.mark.asyncio
    async def test_rejects_malformed_fingerprint(self, session, settings) -> None:
        with pytest.raises(InvalidParamsError):
            await _create(session, settings, fingerprint="not-a-digest")

    @pytest.mark.asyncio
    async def test_uppercase_fingerprint_is_normalized(self, session, settings) -> None:
        handle = await _create(session, settings, fingerprint=FINGERPRINT.upper())
        assert await _as(session, settings, ATTESTOR).attest(handle, PROOF) is True


class TestAttest:
    @pytest.mark.asyncio
    async def test_unverified_until_attested(self, session, settings) -> None:
        handle = await _create(session, settings)
        assert await _as(session, settings, "ANYONE").verify(RECIPIENT, handle) is False

        assert await _as(session, settings, ATTESTOR).attest(handle, PROOF) is True
        assert await _as(session, settings, "ANYONE").verify(RECIPIENT, handle) is True

    @pytest.mark.asyncio
    async def test_only_attestor_may_attest(self, session, settings) -> None:
        handle = await _create(session, settings)
        with pytest.raises(NotAttestorError):
            await _as(session, settings, "ST9MALLORY").attest(handle, PROOF)
        assert await _as(session, settings, "ANYONE").verify(RECIPIENT, handle) is False

    @pytest.mark.asyncio
    async def test_wrong_proof_is_rejected(self, session, settings) -> None:
        handle = await _create(session, settings)
        with pytest.raises(InvalidProofError):
            await _as(session, settings, ATTESTOR).attest(handle, b"something else")
        assert await _as(session, settings, "ANYONE").verify(RECIPIENT, handle) is False

    @pytest.mark.asyncio
    async def test_second_attest_fails_and_stays_verified(self, session, settings) -> None:
        handle = await _create(session, settings)
        attestor = _as(session, settings, ATTESTOR)
        await attestor.attest(handle, PROOF)
        with pytest.raises(AlreadyVerifiedError):
            await attestor.attest(handle, PROOF)
        assert await attestor.verify(RECIPIENT, handle) is True

    @pytest.mark.asyncio
    async def test_unknown_handle(self, session, settings) -> None:
        with pytest.raises(ConditionNotFoundError):
            await _as(session, settings, ATTESTOR).attest(404, PROOF)
