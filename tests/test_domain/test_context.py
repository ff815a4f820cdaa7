"""Tests for CallContext."""

from __future__ import annotations

import dataclasses

import pytest

from verifiable_escrow.domain.context import CallContext


def test_defaults_to_height_zero() -> None:
    assert CallContext("ST2SENDER").block_height == 0


def test_is_immutable() -> None:
    ctx = CallContext("ST2SENDER", 5)
    with pytest.raises(dataclasses.FrozenInstanceError):
        ctx.block_height = 6  # type: ignore[misc]


def test_derived_contexts() -> None:
    ctx = CallContext("ST2SENDER", 5)
    assert ctx.at_height(100) == CallContext("ST2SENDER", 100)
    assert ctx.as_caller("ST9OTHER") == CallContext("ST9OTHER", 5)
