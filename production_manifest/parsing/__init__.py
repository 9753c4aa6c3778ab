"""
Treatment parsing: deterministic parser and optional LLM extractor.
"""

from .llm_extractor import LLMTreatmentExtractor
from .treatment_parser import TreatmentParser, parse_treatment

__all__ = [
    'LLMTreatmentExtractor',
    'TreatmentParser',
    'parse_treatment',
]
