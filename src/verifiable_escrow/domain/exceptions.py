"""Domain exceptions for the escrow service.

Every failed operation raises exactly one of these. Each carries a stable
``code`` and an ``ErrorCategory``; the API layer's middleware translates the
category into an HTTP status.
"""

from __future__ import annotations

import enum


class ErrorCategory(enum.StrEnum):
    """Coarse failure classes shared by all error codes."""

    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    STATE = "state"
    NOT_FOUND = "not_found"
    CONDITION = "condition"
    TRANSFER = "transfer"


class EscrowError(Exception):
    """Base exception for all domain errors."""

    category: ErrorCategory = ErrorCategory.VALIDATION

    def __init__(self, message: str, code: str = "ESCROW_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Input Validation ---


class InvalidAddressError(EscrowError):
    """Raised when the null/burn address is supplied where a real one is needed."""

    def __init__(self, address: str) -> None:
        super().__init__(message=f"Invalid address: {address}", code="INVALID_ADDRESS")
        self.address = address


class InvalidFeeError(EscrowError):
    def __init__(self, fee: int) -> None:
        super().__init__(message=f"Invalid creation fee: {fee}", code="INVALID_FEE")


class InvalidRecipientError(EscrowError):
    def __init__(self, recipient: str) -> None:
        super().__init__(message=f"Invalid recipient: {recipient}", code="INVALID_RECIPIENT")


class InvalidAmountError(EscrowError):
    def __init__(self, amount: int) -> None:
        super().__init__(message=f"Amount out of range: {amount}", code="INVALID_AMOUNT")


class InvalidConditionError(EscrowError):
    """Raised when the condition policy reference is null or not registered."""

    def __init__(self, policy_ref: str) -> None:
        super().__init__(
            message=f"Invalid condition policy: {policy_ref}",
            code="INVALID_CONDITION",
        )
        self.policy_ref = policy_ref


class InvalidParamsError(EscrowError):
    """Raised when condition parameters are empty, oversized or malformed."""

    def __init__(self, message: str, details: list | None = None) -> None:
        super().__init__(message=message, code="INVALID_PARAMS")
        self.details = details or []


class InvalidCurrencyError(EscrowError):
    def __init__(self, currency: str) -> None:
        super().__init__(message=f"Unsupported currency: {currency}", code="INVALID_CURRENCY")
        self.currency = currency


class InvalidProofError(EscrowError):
    def __init__(self, handle: int) -> None:
        super().__init__(
            message=f"Proof does not match the event fingerprint of condition {handle}",
            code="INVALID_PROOF",
        )


# --- Authorization ---


class NotAuthorizedError(EscrowError):
    category = ErrorCategory.AUTHORIZATION

    def __init__(self, caller: str, action: str) -> None:
        super().__init__(
            message=f"{caller} is not authorized to {action}",
            code="NOT_AUTHORIZED",
        )
        self.caller = caller


class AuthorityNotSetError(EscrowError):
    category = ErrorCategory.AUTHORIZATION

    def __init__(self) -> None:
        super().__init__(message="No authority has been registered", code="AUTHORITY_NOT_SET")


class NotAttestorError(EscrowError):
    category = ErrorCategory.AUTHORIZATION

    def __init__(self, caller: str, handle: int) -> None:
        super().__init__(
            message=f"{caller} is not the attestor of condition {handle}",
            code="NOT_ATTESTOR",
        )


class NotSignerError(EscrowError):
    category = ErrorCategory.AUTHORIZATION

    def __init__(self, caller: str, handle: int) -> None:
        super().__init__(
            message=f"{caller} is not a signer of condition {handle}",
            code="NOT_SIGNER",
        )


# --- State Conflicts ---


class AlreadySetError(EscrowError):
    category = ErrorCategory.STATE

    def __init__(self, what: str) -> None:
        super().__init__(message=f"{what} is already set", code="ALREADY_SET")


class CapacityExceededError(EscrowError):
    category = ErrorCategory.STATE

    def __init__(self, what: str, limit: int) -> None:
        super().__init__(
            message=f"Capacity exceeded for {what} (limit {limit})",
            code="CAPACITY_EXCEEDED",
        )
        self.limit = limit


class EscrowAlreadyExistsError(EscrowError):
    category = ErrorCategory.STATE

    def __init__(self, escrow_id: int) -> None:
        super().__init__(message=f"Escrow already exists: {escrow_id}", code="ALREADY_EXISTS")


class InvalidStatusError(EscrowError):
    """Raised when an escrow is not in a state that allows the requested transition.

    Example: cancelling an escrow that was already RELEASED.
    """

    category = ErrorCategory.STATE

    def __init__(self, current_status: str, attempted: str) -> None:
        super().__init__(
            message=f"Invalid status for {attempted}: escrow is {current_status}",
            code="INVALID_STATUS",
        )
        self.current_status = current_status
        self.attempted = attempted


class AlreadyVerifiedError(EscrowError):
    category = ErrorCategory.STATE

    def __init__(self, handle: int) -> None:
        super().__init__(
            message=f"Condition {handle} has already been attested",
            code="ALREADY_VERIFIED",
        )


class AlreadySignedError(EscrowError):
    category = ErrorCategory.STATE

    def __init__(self, caller: str, handle: int) -> None:
        super().__init__(
            message=f"{caller} has already approved condition {handle}",
            code="ALREADY_SIGNED",
        )


# --- Not Found ---


class EscrowNotFoundError(EscrowError):
    category = ErrorCategory.NOT_FOUND

    def __init__(self, escrow_id: int) -> None:
        super().__init__(message=f"Escrow not found: {escrow_id}", code="NOT_FOUND")
        self.escrow_id = escrow_id


class ConditionNotFoundError(EscrowError):
    category = ErrorCategory.NOT_FOUND

    def __init__(self, policy: str, handle: int) -> None:
        super().__init__(
            message=f"Condition not found: {policy}/{handle}",
            code="NOT_FOUND",
        )
        self.policy = policy
        self.handle = handle


# --- Condition ---


class ConditionNotMetError(EscrowError):
    """The release predicate is currently false. Retrying later is legitimate."""

    category = ErrorCategory.CONDITION

    def __init__(self, escrow_id: int) -> None:
        super().__init__(
            message=f"Release condition not met for escrow {escrow_id}",
            code="CONDITION_NOT_MET",
        )
        self.escrow_id = escrow_id


# --- Transfer ---


class TransferFailedError(EscrowError):
    """Raised by the value-transfer ledger; always aborts the enclosing operation."""

    category = ErrorCategory.TRANSFER

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="TRANSFER_FAILED")


class InsufficientBalanceError(TransferFailedError):
    def __init__(self, account: str, currency: str, required: int, available: int) -> None:
        super().__init__(
            message=(
                f"Insufficient {currency} balance for {account}: "
                f"required {required}, available {available}"
            ),
        )
        self.account = account
        self.required = required
        self.available = available
