"""Condition Policy Protocol.

Defines the interface that every release-condition policy must implement.
This is a Protocol (structural subtyping) so concrete policies don't need to
inherit from a base class; they just need to match the shape.

The registry and the ledger only ever talk to this protocol; adding a policy
never touches fund-custody code.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ConditionPolicy(Protocol):
    """Protocol that all condition policies must satisfy.

    Concrete implementations:
        - conditions/deadline.py            (block height reached)
        - conditions/attested_event.py      (designated attestor confirms an event)
        - conditions/threshold_signature.py (M-of-N signer approvals)
    """

    policy_type: str

    async def create(self, params: bytes) -> int:
        """Parse ``params`` and store a new condition record.

        Args:
            params: Opaque, policy-specific encoded parameters.

        Returns:
            A fresh handle, unique within this policy's handle space.

        Raises:
            InvalidParamsError: If the encoding is malformed.
        """
        ...

    async def verify(self, beneficiary: str, handle: int) -> bool:
        """Evaluate the release predicate for ``handle``.

        Must not mutate state; repeated calls return the same answer until a
        policy-specific side-channel call changes the record.

        Raises:
            ConditionNotFoundError: If ``handle`` is unknown.
        """
        ...
