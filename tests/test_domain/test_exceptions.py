"""Tests for the domain error catalogue."""

from __future__ import annotations

import pytest

from verifiable_escrow.domain.exceptions import (
    AlreadySignedError,
    ConditionNotFoundError,
    ConditionNotMetError,
    ErrorCategory,
    EscrowError,
    EscrowNotFoundError,
    InsufficientBalanceError,
    InvalidParamsError,
    InvalidStatusError,
    NotAuthorizedError,
    TransferFailedError,
)


class TestCategories:
    @pytest.mark.parametrize(
        ("exc", "category", "code"),
        [
            (InvalidParamsError("bad"), ErrorCategory.VALIDATION, "INVALID_PARAMS"),
            (NotAuthorizedError("ST9", "cancel"), ErrorCategory.AUTHORIZATION, "NOT_AUTHORIZED"),
            (InvalidStatusError("RELEASED", "release"), ErrorCategory.STATE, "INVALID_STATUS"),
            (AlreadySignedError("ST7A", 1), ErrorCategory.STATE, "ALREADY_SIGNED"),
            (EscrowNotFoundError(7), ErrorCategory.NOT_FOUND, "NOT_FOUND"),
            (ConditionNotFoundError("deadline", 3), ErrorCategory.NOT_FOUND, "NOT_FOUND"),
            (ConditionNotMetError(1), ErrorCategory.CONDITION, "CONDITION_NOT_MET"),
        ],
    )
    def test_category_and_code(self, exc: EscrowError, category: ErrorCategory, code: str) -> None:
        assert isinstance(exc, EscrowError)
        assert exc.category == category
        assert exc.code == code
        assert str(exc) == exc.message


class TestTransferErrors:
    def test_insufficient_balance_is_transfer_failure(self) -> None:
        exc = InsufficientBalanceError("ST2SENDER", "STX", 1500, 200)
        assert isinstance(exc, TransferFailedError)
        assert exc.code == "TRANSFER_FAILED"
        assert exc.category == ErrorCategory.TRANSFER
        assert exc.required == 1500
        assert exc.available == 200

    def test_params_error_keeps_details(self) -> None:
        exc = InvalidParamsError("bad", details=[{"path": ["required"], "message": "x"}])
        assert exc.details[0]["path"] == ["required"]
        assert InvalidParamsError("bad").details == []
