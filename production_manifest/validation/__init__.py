"""
Manifest validation against the JSON Schema and cross-field invariants.
"""

from .schema_validator import (
    IssueKind,
    ValidationIssue,
    ValidationResult,
    require_valid,
    validate_manifest,
)

__all__ = [
    'IssueKind',
    'ValidationIssue',
    'ValidationResult',
    'require_valid',
    'validate_manifest',
]
