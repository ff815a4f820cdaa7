"""Value Transfer Protocol.

The narrow interface to the value-transfer ledger that moves balances between
accounts. Implementations must be atomic: either the whole amount moves or
TransferFailedError is raised and nothing changes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ValueTransfer(Protocol):
    async def transfer(self, currency: str, amount: int, sender: str, recipient: str) -> None:
        """Move ``amount`` of ``currency`` from ``sender`` to ``recipient``.

        Raises:
            TransferFailedError: If the sender's balance is insufficient.
        """
        ...

    async def balance_of(self, account: str, currency: str) -> int:
        ...
