"""
Pipelines: treatment-to-manifest building and tiered manifest repair.
"""

from .manifest_builder import ManifestBuilder, build_manifest_from_treatment, distribute_durations
from .repair_pipeline import RepairOutcome, RepairPipeline
from .scene_enrichment import enrich_scenes

__all__ = [
    'ManifestBuilder',
    'RepairOutcome',
    'RepairPipeline',
    'build_manifest_from_treatment',
    'distribute_durations',
    'enrich_scenes',
]
