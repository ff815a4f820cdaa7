"""Condition policy implementations and factory.

Three policies:
    - DeadlinePolicy:            Release once a block height is reached
    - AttestedEventPolicy:       Release once a named attestor confirms an event
    - ThresholdSignaturePolicy:  Release once M of N signers approve

The ConditionPolicyFactory resolves the policy named by an escrow's
``policy_ref`` and binds it to the current session and call context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verifiable_escrow.conditions.attested_event import AttestedEventPolicy, fingerprint_of
from verifiable_escrow.conditions.base import StoredConditionPolicy
from verifiable_escrow.conditions.deadline import DeadlinePolicy
from verifiable_escrow.conditions.threshold_signature import ThresholdSignaturePolicy
from verifiable_escrow.domain.condition_protocol import ConditionPolicy
from verifiable_escrow.domain.enums import PolicyType
from verifiable_escrow.domain.exceptions import InvalidConditionError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from verifiable_escrow.config import Settings
    from verifiable_escrow.domain.context import CallContext


class ConditionPolicyFactory:
    """Factory that creates the policy registered under a ``policy_ref``.

    Usage:
        policy = ConditionPolicyFactory.create("deadline", session, ctx)
        handle = await policy.create(b'{"release_height": 100}')
        ready = await policy.verify(recipient, handle)
    """

    _registry: dict[str, type[StoredConditionPolicy]] = {
        PolicyType.DEADLINE.value: DeadlinePolicy,
        PolicyType.ATTESTED_EVENT.value: AttestedEventPolicy,
        PolicyType.THRESHOLD_SIGNATURE.value: ThresholdSignaturePolicy,
    }

    @classmethod
    def create(
        cls,
        policy_ref: str,
        session: AsyncSession,
        context: CallContext,
        settings: Settings | None = None,
    ) -> ConditionPolicy:
        """Create a policy instance bound to ``session`` and ``context``.

        Raises:
            InvalidConditionError: If no policy is registered under ``policy_ref``.
        """
        policy_class = cls._registry.get(policy_ref)
        if policy_class is None:
            raise InvalidConditionError(policy_ref)
        return policy_class(session, context, settings)

    @classmethod
    def is_registered(cls, policy_ref: str) -> bool:
        return policy_ref in cls._registry

    @classmethod
    def get_supported_types(cls) -> list[str]:
        """Return the list of registered policy names."""
        return list(cls._registry.keys())


__all__ = [
    "AttestedEventPolicy",
    "ConditionPolicy",
    "ConditionPolicyFactory",
    "DeadlinePolicy",
    "StoredConditionPolicy",
    "ThresholdSignaturePolicy",
    "fingerprint_of",
]
