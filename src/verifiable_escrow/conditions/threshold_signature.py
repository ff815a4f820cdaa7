"""ThresholdSignaturePolicy: releases once M of N named signers approve.

Params: ``{"signers": [<address>, ...], "required": <int>}``

    - 1 to ``max_signers`` unique, non-null signer addresses
    - 1 <= required <= len(signers)

Approvals are always a duplicate-free subset of the signers, so a repeated
approval can never inflate the count.
"""

from __future__ import annotations

from typing import Any

from verifiable_escrow.conditions.base import StoredConditionPolicy, address_schema
from verifiable_escrow.domain.enums import EventType, PolicyType
from verifiable_escrow.domain.exceptions import (
    AlreadySignedError,
    InvalidParamsError,
    NotSignerError,
)
from verifiable_escrow.infrastructure.database.orm_models import ThresholdCondition
from verifiable_escrow.logging_config import get_logger

logger = get_logger(__name__)


class ThresholdSignaturePolicy(StoredConditionPolicy[ThresholdCondition]):
    policy_type = PolicyType.THRESHOLD_SIGNATURE.value
    model = ThresholdCondition

    def params_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "signers": {
                    "type": "array",
                    "items": address_schema(),
                    "minItems": 1,
                    "maxItems": self._settings.max_signers,
                    "uniqueItems": True,
                },
                "required": {"type": "integer", "minimum": 1},
            },
            "required": ["signers", "required"],
            "additionalProperties": False,
        }

    async def create(self, params: bytes) -> int:
        document = self.parse_params(params)
        signers: list[str] = list(document["signers"])
        required = int(document["required"])

        if required > len(signers):
            raise InvalidParamsError(
                f"required ({required}) exceeds the number of signers ({len(signers)})"
            )
        for signer in signers:
            self._reject_null_address(signer, "signer")

        record = await self._records.create(
            ThresholdCondition(signers=signers, required=required, approvals=[])
        )
        logger.info(
            "condition.threshold.created",
            handle=record.handle,
            signers=len(signers),
            required=required,
        )
        return record.handle

    async def verify(self, beneficiary: str, handle: int) -> bool:
        record = await self._get_or_raise(handle)
        return len(record.approvals) >= record.required

    async def approve(self, handle: int) -> bool:
        """Record the caller's approval.

        Raises:
            ConditionNotFoundError: Unknown handle.
            NotSignerError: Caller is not in the signer set.
            AlreadySignedError: Caller already approved.
        """
        record = await self._get_or_raise(handle)
        caller = self._context.caller

        if caller not in record.signers:
            raise NotSignerError(caller, handle)
        if caller in record.approvals:
            raise AlreadySignedError(caller, handle)

        record.approvals = [*record.approvals, caller]
        await self._records.save(record)

        await self._events.record(
            event_type=EventType.CONDITION_APPROVED,
            actor=caller,
            block_height=self._context.block_height,
            metadata={
                "policy": self.policy_type,
                "handle": handle,
                "approvals": len(record.approvals),
                "required": record.required,
            },
        )
        logger.info(
            "condition.approved",
            handle=handle,
            signer=caller,
            approvals=len(record.approvals),
            required=record.required,
        )
        return True
