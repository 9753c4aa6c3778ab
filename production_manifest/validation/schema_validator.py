"""
Schema Validator

Checks a manifest against the JSON Schema and the cross-field invariants
the schema cannot express (duration conservation, asset references, scene
timeline, job graph). Every violation is collected; nothing short-circuits.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional

from jsonschema import Draft7Validator
from pydantic import ValidationError as PydanticValidationError

from production_manifest.core.constants import DURATION_TOLERANCE
from production_manifest.core.exceptions import SchemaViolation
from production_manifest.core.logging_config import get_logger
from production_manifest.graph.job_graph import find_graph_violations
from production_manifest.models.manifest import ProductionManifest
from production_manifest.models.schema import load_manifest_schema

logger = get_logger("validation.schema")


class IssueKind(Enum):
    """Which check produced an issue."""
    SCHEMA = "schema_violation"
    REFERENTIAL = "referential"
    DURATION = "duration"
    TIMELINE = "timeline"
    GRAPH = "graph"


@dataclass(frozen=True)
class ValidationIssue:
    """A single violation with the field path it applies to."""
    path: str
    message: str
    kind: IssueKind = IssueKind.SCHEMA

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message, "kind": self.kind.value}


@dataclass
class ValidationResult:
    """Outcome of validating one manifest."""
    valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def errors_of(self, kind: IssueKind) -> List[ValidationIssue]:
        return [issue for issue in self.errors if issue.kind == kind]

    def paths(self) -> List[str]:
        return [issue.path for issue in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [issue.to_dict() for issue in self.errors],
        }


@lru_cache(maxsize=1)
def _schema_validator() -> Draft7Validator:
    schema = load_manifest_schema()
    Draft7Validator.check_schema(schema)
    return Draft7Validator(schema)


def format_path(parts: Iterable[Any]) -> str:
    """['scenes', 1, 'visuals', 0, 'assetId'] -> 'scenes[1].visuals[0].assetId'."""
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "(root)"


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _schema_issues(manifest: Any) -> List[ValidationIssue]:
    issues = [
        ValidationIssue(format_path(error.absolute_path), error.message)
        for error in _schema_validator().iter_errors(manifest)
    ]
    return sorted(issues, key=lambda issue: (issue.path, issue.message))


def _duration_issues(manifest: Dict[str, Any], scenes: List[Any], tolerance: float) -> List[ValidationIssue]:
    metadata = manifest.get("metadata")
    target = _number(metadata.get("durationSeconds")) if isinstance(metadata, dict) else None
    durations = [_number(s.get("durationSeconds")) for s in scenes if isinstance(s, dict)]
    if target is None or target <= 0 or not durations or None in durations:
        return []

    total = sum(durations)
    if abs(total - target) > tolerance:
        return [ValidationIssue(
            "scenes",
            f"Scene durations sum to {total:.2f}s but metadata.durationSeconds is {target:.2f}s",
            IssueKind.DURATION,
        )]
    return []


def _reference_issues(manifest: Dict[str, Any], scenes: List[Any]) -> List[ValidationIssue]:
    issues = []
    assets = manifest.get("assets")
    assets = assets if isinstance(assets, dict) else {}

    for key, asset in assets.items():
        if isinstance(asset, dict) and isinstance(asset.get("id"), str) and asset["id"] != key:
            issues.append(ValidationIssue(
                f"assets.{key}.id",
                f"Asset id '{asset['id']}' does not match its key '{key}'",
                IssueKind.REFERENTIAL,
            ))

    for i, scene in enumerate(scenes):
        if not isinstance(scene, dict) or not isinstance(scene.get("visuals"), list):
            continue
        for j, visual in enumerate(scene["visuals"]):
            if not isinstance(visual, dict):
                continue
            asset_id = visual.get("assetId")
            if isinstance(asset_id, str) and asset_id not in assets:
                issues.append(ValidationIssue(
                    f"scenes[{i}].visuals[{j}].assetId",
                    f"Asset '{asset_id}' is not defined in assets",
                    IssueKind.REFERENTIAL,
                ))
    return issues


def _timeline_issues(scenes: List[Any], tolerance: float) -> List[ValidationIssue]:
    issues = []
    ids = [s.get("id") for s in scenes if isinstance(s, dict) and isinstance(s.get("id"), str)]
    duplicates = {scene_id for scene_id, count in Counter(ids).items() if count > 1}

    expected_start = 0.0
    for i, scene in enumerate(scenes):
        if not isinstance(scene, dict):
            expected_start = None
            continue
        if isinstance(scene.get("id"), str) and scene["id"] in duplicates:
            issues.append(ValidationIssue(
                f"scenes[{i}].id",
                f"Duplicate scene id '{scene['id']}'",
                IssueKind.TIMELINE,
            ))

        start = _number(scene.get("startAtSec"))
        duration = _number(scene.get("durationSeconds"))
        if start is not None and expected_start is not None and abs(start - expected_start) > tolerance:
            kind = "gap" if start > expected_start else "overlap"
            issues.append(ValidationIssue(
                f"scenes[{i}].startAtSec",
                f"Scene starts at {start:.2f}s, expected {expected_start:.2f}s ({kind})",
                IssueKind.TIMELINE,
            ))
        expected_start = start + duration if start is not None and duration is not None else None
    return issues


def validate_manifest(manifest: Any, tolerance: float = DURATION_TOLERANCE) -> ValidationResult:
    """
    Validate a manifest dictionary, collecting every violation.

    Args:
        manifest: Candidate manifest in wire form; any JSON value is accepted
        tolerance: Allowed drift in seconds for durations and scene starts

    Returns:
        ValidationResult listing every violation found
    """
    issues = _schema_issues(manifest)

    if isinstance(manifest, dict):
        scenes = manifest.get("scenes") if isinstance(manifest.get("scenes"), list) else []
        issues.extend(_duration_issues(manifest, scenes, tolerance))
        issues.extend(_reference_issues(manifest, scenes))
        issues.extend(_timeline_issues(scenes, tolerance))
        issues.extend(
            ValidationIssue("jobs", violation, IssueKind.GRAPH)
            for violation in find_graph_violations(manifest.get("jobs"))
        )

    if issues:
        logger.debug(f"Manifest invalid: {len(issues)} issue(s)")
    return ValidationResult(valid=not issues, errors=issues)


def require_valid(manifest: Any, tolerance: float = DURATION_TOLERANCE) -> ProductionManifest:
    """
    Validate and freeze a manifest.

    Raises:
        SchemaViolation: With every issue, if the manifest is invalid
    """
    result = validate_manifest(manifest, tolerance)
    if not result.valid:
        raise SchemaViolation(result.errors)
    try:
        return ProductionManifest.from_dict(manifest)
    except PydanticValidationError as e:
        issues = [
            ValidationIssue(format_path(err["loc"]), err["msg"])
            for err in e.errors()
        ]
        raise SchemaViolation(issues)
