"""DeadlinePolicy: releases once the chain reaches a given block height.

Params: ``{"release_height": <int, 0 through 2**63 - 1>}``

The record is never mutated after creation; ``verify`` is a pure function of
the caller's block height, so it is idempotent and monotonic: once true it
stays true.
"""

from __future__ import annotations

from typing import Any

from verifiable_escrow.conditions.base import StoredConditionPolicy
from verifiable_escrow.domain.enums import PolicyType
from verifiable_escrow.infrastructure.database.orm_models import (
    MAX_STORED_INT,
    DeadlineCondition,
)
from verifiable_escrow.logging_config import get_logger

logger = get_logger(__name__)


class DeadlinePolicy(StoredConditionPolicy[DeadlineCondition]):
    policy_type = PolicyType.DEADLINE.value
    model = DeadlineCondition

    def params_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "release_height": {
                    "type": "integer",
                    "minimum": 0,
                    "maximum": MAX_STORED_INT,
                },
            },
            "required": ["release_height"],
            "additionalProperties": False,
        }

    async def create(self, params: bytes) -> int:
        document = self.parse_params(params)
        record = await self._records.create(
            DeadlineCondition(release_height=int(document["release_height"]))
        )
        logger.info(
            "condition.deadline.created",
            handle=record.handle,
            release_height=record.release_height,
        )
        return record.handle

    async def verify(self, beneficiary: str, handle: int) -> bool:
        record = await self._get_or_raise(handle)
        return self._context.block_height >= record.release_height
