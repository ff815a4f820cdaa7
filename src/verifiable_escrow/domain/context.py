"""Per-call execution context.

Every state-changing operation runs on behalf of one caller at one block
height. Both are supplied by the environment that submits the call (the HTTP
layer reads them from request headers) and are never stored globally.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CallContext:
    """Who is calling, and at which chain height.

    Attributes:
        caller: Address of the account invoking the operation.
        block_height: Current height of the chain clock. Deadline conditions
            compare against this value.
    """

    caller: str
    block_height: int = 0

    def at_height(self, block_height: int) -> CallContext:
        return CallContext(caller=self.caller, block_height=block_height)

    def as_caller(self, caller: str) -> CallContext:
        return CallContext(caller=caller, block_height=self.block_height)
