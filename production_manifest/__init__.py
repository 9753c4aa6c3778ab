"""
Production Manifest - treatment-to-manifest pipeline

Turns a loosely structured scene plan ("treatment") into a validated
Production Manifest: timed scenes, assets and a dependency-ordered graph
of TTS, image generation and render jobs for downstream workers.

Version: 1.0.0
"""

__version__ = "1.0.0"

from pathlib import Path

from production_manifest.core.env_loader import ensure_env_loaded
ensure_env_loaded()

PACKAGE_ROOT = Path(__file__).parent

from .graph import JobGraph, find_graph_violations, verify_job_graph
from .jobs import decompose_jobs
from .models import DraftManifest, ProductionManifest, TreatmentHints
from .parsing import parse_treatment
from .pipelines import ManifestBuilder, RepairOutcome, RepairPipeline, build_manifest_from_treatment
from .repair import RepairContext, RepairState, apply_deterministic_repair, build_minimal_fallback
from .validation import ValidationResult, validate_manifest

__all__ = [
    "__version__",
    "DraftManifest",
    "JobGraph",
    "ManifestBuilder",
    "ProductionManifest",
    "RepairContext",
    "RepairOutcome",
    "RepairPipeline",
    "RepairState",
    "TreatmentHints",
    "ValidationResult",
    "apply_deterministic_repair",
    "build_manifest_from_treatment",
    "build_minimal_fallback",
    "decompose_jobs",
    "find_graph_violations",
    "parse_treatment",
    "validate_manifest",
    "verify_job_graph",
]
