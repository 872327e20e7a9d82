"""
Model lifecycle state machine definitions.

This module defines the canonical model states and the allowed transitions
between them. It is intentionally passive and validation-only: the model
coordinator reports unexpected transitions as events and log warnings, it
does not refuse them here.

Evaluation is a side loop that neither requires nor implies the enabled or
trained states, so it is not part of the state graph.
"""

from __future__ import annotations

MODEL_STATES: frozenset[str] = frozenset(
    {
        "created",
        "configured",
        "enabled",
        "trained",
    }
)


# Allowed model state transitions.
#
# Key   : previous state (or None if the model did not exist yet)
# Value : set of allowed next states
#
# Notes:
# - Re-enabling with a different time splitting method drops a trained
#   model back to "enabled" (its training data is purged).
# - Static targets go from "configured" straight to "trained" on enable.
MODEL_ALLOWED_TRANSITIONS: dict[str | None, frozenset[str]] = {
    None: frozenset({"created"}),

    "created": frozenset({"configured"}),

    "configured": frozenset(
        {
            "configured",
            "enabled",
            "trained",
        }
    ),

    "enabled": frozenset(
        {
            "enabled",
            "trained",
            "configured",
        }
    ),

    "trained": frozenset(
        {
            "trained",
            "enabled",
            "configured",
        }
    ),
}


def model_state(*, configured: bool, enabled: bool, trained: bool) -> str:
    """Derive the lifecycle state from the persisted model flags."""
    if not configured:
        return "created"
    if enabled and trained:
        return "trained"
    if enabled:
        return "enabled"
    return "configured"


def is_valid_transition(prev_state: str | None, next_state: str) -> bool:
    """Return True if the transition prev_state -> next_state is allowed."""
    allowed = MODEL_ALLOWED_TRANSITIONS.get(prev_state)
    if allowed is None:
        return False
    return next_state in allowed
