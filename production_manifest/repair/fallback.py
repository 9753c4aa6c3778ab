"""
Minimal Fallback Manifest

Last repair tier: a single scene covering the whole requested duration,
backed by one generated background. Built from the request context plus
whatever well-formed provenance and metadata the original manifest still
carries, so it is valid no matter how broken the rest of it was.
"""

import math
from typing import Any, Dict, List, Optional

from production_manifest.core.config import MetadataDefaults, RepairConfig
from production_manifest.core.constants import (
    DEFAULT_ALLOWED_EFFECTS,
    DEFAULT_TRANSITION,
    DEFAULT_TTS,
    FALLBACK_WARNING,
    AssetStatus,
    Intent,
    VisualSource,
)
from production_manifest.core.exceptions import FallbackConstructionError
from production_manifest.core.logging_config import get_logger
from production_manifest.jobs.decomposer import decompose_jobs
from production_manifest.validation.schema_validator import validate_manifest

from .context import RepairContext

logger = get_logger("repair.fallback")

FALLBACK_ASSET_ID = "gen_fallback_001"
FALLBACK_PROMPT = "professional video background, clean and simple"


def _original_metadata(original: Any) -> Dict[str, Any]:
    if isinstance(original, dict) and isinstance(original.get("metadata"), dict):
        return original["metadata"]
    return {}


def _text_or(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value.strip() else default


def _original_field(original: Any, key: str, kind: type) -> Any:
    value = original.get(key) if isinstance(original, dict) else None
    return value if isinstance(value, kind) else None


def build_minimal_fallback(
    context: RepairContext = None,
    original: Any = None,
    config: RepairConfig = None,
    defaults: MetadataDefaults = None,
    warnings: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Build and validate the minimal fallback manifest.

    Args:
        context: Request context; hints win over the original metadata
        original: The manifest that could not be repaired; only its
            well-formed id, userId, sourceRefs and metadata values are kept
        config: Repair settings (default duration)
        defaults: Metadata defaults
        warnings: Warnings accumulated so far, carried into the manifest

    Returns:
        A manifest dictionary that passes validate_manifest

    Raises:
        FallbackConstructionError: If the result does not validate
    """
    context = context or RepairContext()
    config = config or RepairConfig()
    defaults = defaults or MetadataDefaults()
    hints = context.hints
    previous = _original_metadata(original)

    duration = hints.total_duration_seconds
    if duration is None or not math.isfinite(duration) or duration <= 0:
        previous_duration = previous.get("durationSeconds")
        if isinstance(previous_duration, (int, float)) and not isinstance(previous_duration, bool) \
                and math.isfinite(previous_duration) and previous_duration > 0:
            duration = float(previous_duration)
        else:
            duration = config.default_duration_seconds

    intent = previous.get("intent")
    aspect = hints.aspect_ratio or _text_or(previous.get("aspectRatio"), defaults.aspect_ratio)
    profile = hints.profile or _text_or(previous.get("profile"), defaults.profile)
    tone = hints.tone or _text_or(previous.get("tone"), defaults.tone)

    metadata = {
        "intent": intent if intent in tuple(i.value for i in Intent) else defaults.intent,
        "durationSeconds": duration,
        "aspectRatio": aspect,
        "platform": hints.platform or _text_or(previous.get("platform"), defaults.platform),
        "language": hints.language or _text_or(previous.get("language"), defaults.language),
        "profile": profile,
        "tone": tone,
    }

    manifest: Dict[str, Any] = {
        "userId": hints.user_id or _text_or(_original_field(original, "userId", str), None),
        "sourceRefs": dict(context.source_refs or _original_field(original, "sourceRefs", dict) or {}),
        "metadata": metadata,
        "scenes": [{
            "id": "s1",
            "startAtSec": 0.0,
            "durationSeconds": duration,
            "purpose": "content",
            "narration": "",
            "visuals": [{
                "source": VisualSource.GENERATED.value,
                "assetId": FALLBACK_ASSET_ID,
                "role": "background",
            }],
            "effects": {"transitions": [DEFAULT_TRANSITION], "overlays": [], "filters": []},
        }],
        "assets": {
            FALLBACK_ASSET_ID: {
                "id": FALLBACK_ASSET_ID,
                "source": VisualSource.GENERATED.value,
                "role": "background",
                "status": AssetStatus.PENDING.value,
                "requiredEdits": [],
                "prompt": FALLBACK_PROMPT,
            }
        },
        "audio": {
            "ttsDefaults": dict(DEFAULT_TTS),
            "music": {"cueMap": {}, "globalVolumeDuckToVoices": True},
        },
        "visuals": {"defaultAspect": aspect},
        "effects": {"allowed": list(DEFAULT_ALLOWED_EFFECTS), "defaultTransition": DEFAULT_TRANSITION},
        "consistency": {"character_faces": "locked", "voice_style": "consistent", "tone": tone},
        "jobs": [],
        "warnings": list(warnings or []) + [FALLBACK_WARNING],
    }

    manifest_id = context.manifest_id or (original.get("id") if isinstance(original, dict) else None)
    if isinstance(manifest_id, str) and manifest_id:
        manifest["id"] = manifest_id

    manifest["jobs"] = decompose_jobs(manifest, callback_url=context.callback_url)

    result = validate_manifest(manifest, config.duration_tolerance)
    if not result.valid:
        logger.critical(f"Fallback manifest failed validation: {result.errors}")
        raise FallbackConstructionError(result.errors)

    logger.warning("Using minimal fallback manifest")
    return manifest
