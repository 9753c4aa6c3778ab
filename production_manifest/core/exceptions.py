"""
Production Manifest Exceptions

Exception hierarchy for the manifest pipeline. Only fallback construction
failures and decomposer graph defects are expected to reach callers; every
other error is caught by the repair tiers and recorded as a warning.
"""

from enum import Enum
from typing import List


class ErrorKind(Enum):
    """Names of the error taxonomy used in warnings and validation reports."""
    PARSE_INCOMPLETE = "ParseIncomplete"
    SCHEMA_VIOLATION = "SchemaViolation"
    LLM_REPAIR_FAILURE = "LLMRepairFailure"
    REPAIR_EXHAUSTED = "RepairExhausted"
    GRAPH_INTEGRITY_VIOLATION = "GraphIntegrityViolation"


class ManifestError(Exception):
    """Base exception for all manifest pipeline errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(ManifestError):
    """Raised when there's an issue with configuration."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""
    pass


# =============================================================================
# PARSING ERRORS
# =============================================================================

class ParseIncomplete(ManifestError):
    """A treatment was missing pieces that were filled with defaults.

    The parser records these as notes instead of raising; the class exists
    for callers that opt into strict parsing.
    """

    def __init__(self, notes: List[str]):
        message = f"Treatment parsed with {len(notes)} missing piece(s)"
        super().__init__(message, {"notes": notes})
        self.notes = notes


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class SchemaViolation(ManifestError):
    """Raised when a manifest is used as valid but fails validation."""

    def __init__(self, errors: list):
        message = f"Manifest failed validation with {len(errors)} error(s)"
        super().__init__(message, {"errors": [str(e) for e in errors]})
        self.errors = errors


# =============================================================================
# GRAPH ERRORS
# =============================================================================

class JobNotFoundError(ManifestError):
    """Raised when a job id is not in the graph."""

    def __init__(self, job_id: str):
        super().__init__(f"Job not found in graph: '{job_id}'", {"job_id": job_id})


class GraphIntegrityViolation(ManifestError):
    """Raised when a job graph has cycles, dangling or duplicate ids."""

    def __init__(self, violations: List[str]):
        message = f"Job graph integrity violated: {'; '.join(violations)}"
        super().__init__(message, {"violations": violations})
        self.violations = violations


# =============================================================================
# REPAIR ERRORS
# =============================================================================

class RepairError(ManifestError):
    """Base exception for repair tier errors."""
    pass


class LLMRepairFailure(RepairError):
    """Raised by the LLM repair tier; recovered by falling through to fallback."""

    def __init__(self, reason: str, details: dict = None):
        super().__init__(f"LLM repair failed: {reason}", details)
        self.reason = reason


class RepairExhausted(RepairError):
    """All repair tiers were attempted and the fallback manifest was used."""
    pass


class FallbackConstructionError(RepairError):
    """Raised when the minimal fallback manifest does not validate."""

    def __init__(self, errors: list):
        message = "Critical: fallback manifest failed validation"
        super().__init__(message, {"errors": [str(e) for e in errors]})
        self.errors = errors


# =============================================================================
# LLM ERRORS
# =============================================================================

class LLMError(ManifestError):
    """Base exception for LLM-related errors."""
    pass


class LLMProviderError(LLMError):
    """Raised when there's an issue with an LLM provider."""

    def __init__(self, provider: str, reason: str):
        message = f"LLM provider '{provider}' error: {reason}"
        super().__init__(message, {"provider": provider, "reason": reason})


class LLMResponseError(LLMError):
    """Raised when an LLM response is not the JSON object we asked for."""
    pass
