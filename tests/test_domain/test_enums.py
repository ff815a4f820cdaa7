"""Tests for domain enumerations."""

from __future__ import annotations

from verifiable_escrow.domain.enums import EscrowStatus, EventType, PolicyType


class TestEscrowStatus:
    def test_all_statuses_exist(self) -> None:
        assert {s.value for s in EscrowStatus} == {"ACTIVE", "RELEASED", "CANCELLED"}

    def test_status_is_str_enum(self) -> None:
        assert isinstance(EscrowStatus.ACTIVE, str)
        assert EscrowStatus.ACTIVE == "ACTIVE"


class TestEventType:
    def test_all_event_types_exist(self) -> None:
        # 3 registry configuration + 3 lifecycle + 2 condition side-channel
        assert len(EventType) == 8

    def test_event_type_is_str_enum(self) -> None:
        assert isinstance(EventType.ESCROW_CREATED, str)


class TestPolicyType:
    def test_policy_names(self) -> None:
        assert PolicyType.DEADLINE == "deadline"
        assert PolicyType.ATTESTED_EVENT == "attested_event"
        assert PolicyType.THRESHOLD_SIGNATURE == "threshold_signature"
