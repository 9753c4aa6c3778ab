"""
Repair tiers for invalid manifests: deterministic fixes, LLM-assisted
repair and the minimal fallback, sequenced by an explicit state machine.
"""

from .context import RepairContext
from .deterministic import DeterministicRepairer, RepairReport, apply_deterministic_repair
from .fallback import build_minimal_fallback
from .llm_repair import LLMRepairer
from .state_machine import RepairState, next_state

__all__ = [
    'DeterministicRepairer',
    'LLMRepairer',
    'RepairContext',
    'RepairReport',
    'RepairState',
    'apply_deterministic_repair',
    'build_minimal_fallback',
    'next_state',
]
