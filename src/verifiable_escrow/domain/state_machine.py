"""Escrow State Machine Guard.

Uses python-statemachine to enforce legal status transitions at the domain
level. Whatever path triggers a change (registry, ledger, API), an illegal
transition such as RELEASED -> CANCELLED raises TransitionNotAllowed.

The machine is instantiated per escrow and validates a transition before the
ORM row's status field is updated.

Transition table:
    ACTIVE -> RELEASED   (condition_met)
    ACTIVE -> CANCELLED  (sender_cancelled)
"""

from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

__all__ = ["EscrowStateMachine", "TransitionNotAllowed", "validate_transition"]


class EscrowStateMachine(StateMachine):
    """State machine that guards escrow lifecycle transitions.

    Usage:
        sm = EscrowStateMachine(current_status="ACTIVE")
        sm.condition_met()   # transitions to RELEASED
        sm.status            # "RELEASED"
    """

    ACTIVE = State("ACTIVE", initial=True)
    RELEASED = State("RELEASED", final=True)
    CANCELLED = State("CANCELLED", final=True)

    condition_met = ACTIVE.to(RELEASED)
    sender_cancelled = ACTIVE.to(CANCELLED)

    def __init__(self, current_status: str = "ACTIVE") -> None:
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches EscrowStatus enum)."""
        return str(self.current_state_value)

    @property
    def is_terminal(self) -> bool:
        return self.status in {s.value for s in self.states if s.final}

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [event.id for event in self.allowed_events]


def validate_transition(current_status: str, event_name: str) -> str:
    """Validate a transition and return the new status.

    Raises:
        TransitionNotAllowed: If the transition is illegal.
        ValueError: If the status or event name is invalid.
    """
    sm = EscrowStateMachine(current_status=current_status)

    event_method = getattr(sm, event_name, None)
    if event_name not in {e.id for e in sm.events} or not callable(event_method):
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current_status}: {sm.get_allowed_events()}"
        )

    event_method()
    return sm.status
