"""
Repair state machine.

States advance strictly in order; ``next_state`` is the only place the
order is encoded.

    PENDING -> DETERMINISTIC_REPAIR_APPLIED -> LLM_REPAIR_APPLIED -> MINIMAL_FALLBACK
        any state reached with a valid manifest -> VALIDATED
"""

from enum import Enum


class RepairState(Enum):
    """Where a manifest is in the repair flow."""
    PENDING = "pending"
    VALIDATED = "validated"
    DETERMINISTIC_REPAIR_APPLIED = "deterministic_repair_applied"
    LLM_REPAIR_APPLIED = "llm_repair_applied"
    MINIMAL_FALLBACK = "minimal_fallback"

    @property
    def is_terminal(self) -> bool:
        return self in (RepairState.VALIDATED, RepairState.MINIMAL_FALLBACK)


def next_state(state: RepairState, valid: bool, llm_available: bool = True) -> RepairState:
    """
    Decide the next repair state after a validation pass.

    Args:
        state: State whose output was just validated
        valid: Whether that output validated
        llm_available: Whether the LLM tier can run

    Returns:
        The state to enter next; terminal states return themselves
    """
    if state.is_terminal:
        return state
    if valid:
        return RepairState.VALIDATED
    if state == RepairState.PENDING:
        return RepairState.DETERMINISTIC_REPAIR_APPLIED
    if state == RepairState.DETERMINISTIC_REPAIR_APPLIED and llm_available:
        return RepairState.LLM_REPAIR_APPLIED
    return RepairState.MINIMAL_FALLBACK
