"""
Manifest data model: validated pydantic types, draft dataclasses and the
JSON Schema.
"""

from .draft import DraftManifest, DraftScene, TreatmentHints, VoicePreference
from .manifest import (
    Asset,
    Job,
    ManifestMetadata,
    ProductionManifest,
    RetryPolicy,
    Scene,
    SceneEffects,
    SceneVisual,
)
from .schema import load_manifest_schema

__all__ = [
    'Asset',
    'DraftManifest',
    'DraftScene',
    'Job',
    'ManifestMetadata',
    'ProductionManifest',
    'RetryPolicy',
    'Scene',
    'SceneEffects',
    'SceneVisual',
    'TreatmentHints',
    'VoicePreference',
    'load_manifest_schema',
]
