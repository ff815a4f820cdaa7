"""AttestedEventPolicy: releases once a designated attestor confirms an event.

Params: ``{"attestor": <address>, "event_fingerprint": <64 hex chars>}``

The fingerprint is the SHA-256 digest of the event's proof document. The
attestor confirms the event by calling ``attest`` with that proof; the record
flips from unverified to verified exactly once and never flips back.

A second ``attest`` by the attestor after success raises
AlreadyVerifiedError. The observed ``verify`` result stays True either way.
"""

from __future__ import annotations

import hashlib
from typing import Any

from verifiable_escrow.conditions.base import StoredConditionPolicy, address_schema
from verifiable_escrow.domain.enums import EventType, PolicyType
from verifiable_escrow.domain.exceptions import (
    AlreadyVerifiedError,
    InvalidProofError,
    NotAttestorError,
)
from verifiable_escrow.infrastructure.database.orm_models import AttestedEventCondition
from verifiable_escrow.logging_config import get_logger

logger = get_logger(__name__)


def fingerprint_of(proof: bytes) -> str:
    """Return the hex fingerprint an attestation proof must match."""
    return hashlib.sha256(proof).hexdigest()


class AttestedEventPolicy(StoredConditionPolicy[AttestedEventCondition]):
    policy_type = PolicyType.ATTESTED_EVENT.value
    model = AttestedEventCondition

    def params_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "attestor": address_schema(),
                "event_fingerprint": {"type": "string", "pattern": "^[0-9a-fA-F]{64}$"},
            },
            "required": ["attestor", "event_fingerprint"],
            "additionalProperties": False,
        }

    async def create(self, params: bytes) -> int:
        document = self.parse_params(params)
        self._reject_null_address(document["attestor"], "attestor")

        record = await self._records.create(
            AttestedEventCondition(
                attestor=document["attestor"],
                event_fingerprint=document["event_fingerprint"].lower(),
                verified=False,
            )
        )
        logger.info(
            "condition.attested_event.created",
            handle=record.handle,
            attestor=record.attestor,
        )
        return record.handle

    async def verify(self, beneficiary: str, handle: int) -> bool:
        record = await self._get_or_raise(handle)
        return bool(record.verified)

    async def attest(self, handle: int, proof: bytes) -> bool:
        """Mark the event as having happened.

        Raises:
            ConditionNotFoundError: Unknown handle.
            NotAttestorError: Caller is not the registered attestor.
            AlreadyVerifiedError: The event was already attested.
            InvalidProofError: ``proof`` does not hash to the event fingerprint.
        """
        record = await self._get_or_raise(handle)
        caller = self._context.caller

        if caller != record.attestor:
            raise NotAttestorError(caller, handle)
        if record.verified:
            raise AlreadyVerifiedError(handle)
        if fingerprint_of(proof) != record.event_fingerprint:
            raise InvalidProofError(handle)

        record.verified = True
        record.attested_height = self._context.block_height
        await self._records.save(record)

        await self._events.record(
            event_type=EventType.CONDITION_ATTESTED,
            actor=caller,
            block_height=self._context.block_height,
            metadata={"policy": self.policy_type, "handle": handle},
        )
        logger.info("condition.attested", handle=handle, attestor=caller)
        return True
