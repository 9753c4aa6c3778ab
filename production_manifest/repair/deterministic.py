"""
Deterministic Repair

Rule-based fixups applied before any LLM is involved. The repairer works
on a deep copy, never raises, and is idempotent: repairing an already
repaired manifest reports no changes.

Assets are never fabricated. A visual pointing at a missing asset is
dropped instead.
"""

import copy
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from production_manifest.core.config import MetadataDefaults, RepairConfig
from production_manifest.core.constants import (
    ALLOWED_TOP_LEVEL_FIELDS,
    DEFAULT_ALLOWED_EFFECTS,
    DEFAULT_TRANSITION,
    DEFAULT_TTS,
    AssetStatus,
    Intent,
    VisualSource,
)
from production_manifest.core.logging_config import get_logger

logger = get_logger("repair.deterministic")

# Tuples: membership tests on untrusted values must not require hashing
INTENTS = tuple(intent.value for intent in Intent)
SOURCES = tuple(source.value for source in VisualSource)
STATUSES = tuple(status.value for status in AssetStatus)
SCENE_EFFECT_LISTS = ("transitions", "overlays", "filters", "layeredEffects")


@dataclass
class RepairReport:
    """Repaired manifest plus a description of every change made."""
    manifest: Dict[str, Any]
    changes: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


def _positive(value: Any) -> Optional[float]:
    """Finite positive float from a number or numeric string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        return None
    return float(value)


def _filled(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _strings(values: Any) -> List[str]:
    return [v for v in values if isinstance(v, str)] if isinstance(values, list) else []


class DeterministicRepairer:
    """Applies structural defaults, duration rescaling and field stripping."""

    def __init__(self, config: RepairConfig = None, defaults: MetadataDefaults = None):
        self.config = config or RepairConfig()
        self.defaults = defaults or MetadataDefaults()

    def repair(self, manifest: Any) -> RepairReport:
        """
        Repair a manifest without mutating the input.

        Args:
            manifest: Any JSON value; non-objects start from an empty manifest

        Returns:
            RepairReport with the repaired copy and the list of changes
        """
        changes: List[str] = []
        if isinstance(manifest, dict):
            data = copy.deepcopy(manifest)
        else:
            data = {}
            changes.append("Replaced non-object manifest with an empty one")

        self._strip_unknown_fields(data, changes)
        self._repair_provenance(data, changes)
        metadata = self._repair_metadata(data, changes)
        assets = self._repair_assets(data, changes)
        scenes = self._repair_scenes(data, assets, changes)
        self._rescale_durations(scenes, metadata["durationSeconds"], changes)
        self._set_start_times(scenes, changes)
        self._repair_audio(data, changes)
        self._repair_settings(data, metadata, changes)
        self._repair_lists(data, changes)

        if changes:
            logger.info(f"Deterministic repair applied {len(changes)} change(s)")
        return RepairReport(manifest=data, changes=changes)

    # =========================================================================
    #  TOP LEVEL
    # =========================================================================

    def _strip_unknown_fields(self, data: Dict[str, Any], changes: List[str]) -> None:
        for key in [k for k in data if k not in ALLOWED_TOP_LEVEL_FIELDS]:
            del data[key]
            changes.append(f"Removed unknown field '{key}'")

    def _repair_provenance(self, data: Dict[str, Any], changes: List[str]) -> None:
        for key in ("id", "createdAt"):
            if key in data and not _filled(data[key]):
                del data[key]
                changes.append(f"Removed invalid {key}")
        if "userId" in data and data["userId"] is not None and not isinstance(data["userId"], str):
            data["userId"] = str(data["userId"])
            changes.append("Converted userId to string")
        if "sourceRefs" in data and not isinstance(data["sourceRefs"], dict):
            data["sourceRefs"] = {}
            changes.append("Reset sourceRefs to an empty object")

    def _repair_metadata(self, data: Dict[str, Any], changes: List[str]) -> Dict[str, Any]:
        if not isinstance(data.get("metadata"), dict):
            data["metadata"] = {}
            changes.append("Created missing metadata")
        metadata = data["metadata"]

        if metadata.get("intent") not in INTENTS:
            metadata["intent"] = self.defaults.intent
            changes.append(f"Set metadata.intent to '{self.defaults.intent}'")

        for key, default in (
            ("language", self.defaults.language),
            ("platform", self.defaults.platform),
            ("aspectRatio", self.defaults.aspect_ratio),
            ("profile", self.defaults.profile),
        ):
            if not _filled(metadata.get(key)):
                metadata[key] = default
                changes.append(f"Set metadata.{key} to '{default}'")

        raw_duration = metadata.get("durationSeconds")
        duration = _positive(raw_duration)
        if duration is None:
            metadata["durationSeconds"] = self.config.default_duration_seconds
            changes.append(f"Set metadata.durationSeconds to {self.config.default_duration_seconds:g}")
        elif isinstance(raw_duration, str):
            metadata["durationSeconds"] = duration
            changes.append("Converted metadata.durationSeconds to a number")

        for key in ("title", "tone", "priority", "note"):
            if key in metadata and not isinstance(metadata[key], str):
                if metadata[key] is None:
                    del metadata[key]
                else:
                    metadata[key] = str(metadata[key])
                changes.append(f"Normalized metadata.{key}")
        return metadata

    # =========================================================================
    #  ASSETS AND SCENES
    # =========================================================================

    def _repair_assets(self, data: Dict[str, Any], changes: List[str]) -> Dict[str, Any]:
        if not isinstance(data.get("assets"), dict):
            data["assets"] = {}
            changes.append("Created missing assets map")
        assets = data["assets"]

        for key in list(assets):
            asset = assets[key]
            if not isinstance(asset, dict):
                del assets[key]
                changes.append(f"Removed malformed asset '{key}'")
                continue
            if asset.get("id") != key:
                asset["id"] = key
                changes.append(f"Set assets.{key}.id to its key")
            if asset.get("source") not in SOURCES:
                asset["source"] = VisualSource.GENERATED.value
                changes.append(f"Set assets.{key}.source to 'generated'")
            if not _filled(asset.get("role")):
                asset["role"] = "background"
                changes.append(f"Set assets.{key}.role to 'background'")
            if asset.get("status") not in STATUSES:
                asset["status"] = AssetStatus.PENDING.value
                changes.append(f"Set assets.{key}.status to 'pending'")
            edits = _strings(asset.get("requiredEdits"))
            if asset.get("requiredEdits") != edits:
                asset["requiredEdits"] = edits
                changes.append(f"Normalized assets.{key}.requiredEdits")
            if "prompt" in asset and not isinstance(asset["prompt"], str):
                del asset["prompt"]
                changes.append(f"Removed invalid assets.{key}.prompt")
            if "originUrl" in asset and asset["originUrl"] is not None and not isinstance(asset["originUrl"], str):
                del asset["originUrl"]
                changes.append(f"Removed invalid assets.{key}.originUrl")
        return assets

    def _repair_scenes(self, data: Dict[str, Any], assets: Dict[str, Any],
                       changes: List[str]) -> List[Dict[str, Any]]:
        raw = data.get("scenes")
        if not isinstance(raw, list):
            raw = []
            changes.append("Created missing scenes list")
        scenes = [scene for scene in raw if isinstance(scene, dict)]
        if len(scenes) != len(raw):
            changes.append(f"Removed {len(raw) - len(scenes)} malformed scene(s)")
        data["scenes"] = scenes

        seen = set()
        for i, scene in enumerate(scenes):
            scene_id = scene.get("id")
            if not _filled(scene_id) or scene_id in seen:
                new_id, n = f"s{i + 1}", 2
                while new_id in seen:
                    new_id = f"s{i + 1}_{n}"
                    n += 1
                scene["id"] = new_id
                changes.append(f"Assigned scene id '{new_id}' at scenes[{i}]")
            seen.add(scene["id"])
            self._repair_scene(scene, i, assets, changes)
        return scenes

    def _repair_scene(self, scene: Dict[str, Any], index: int, assets: Dict[str, Any],
                      changes: List[str]) -> None:
        label = f"scenes[{index}]"

        if not _filled(scene.get("purpose")):
            scene["purpose"] = "body"
            changes.append(f"Set {label}.purpose to 'body'")

        if "narration" in scene and not isinstance(scene["narration"], str):
            scene["narration"] = "" if scene["narration"] is None else str(scene["narration"])
            changes.append(f"Normalized {label}.narration")

        raw_duration = scene.get("durationSeconds")
        duration = _positive(raw_duration)
        if duration is None or isinstance(raw_duration, str):
            scene["durationSeconds"] = duration or 0.0
            changes.append(f"Normalized {label}.durationSeconds")

        visuals = scene.get("visuals")
        if not isinstance(visuals, list):
            visuals = []
            changes.append(f"Created {label}.visuals")
        kept = []
        for visual in visuals:
            if not isinstance(visual, dict):
                changes.append(f"Removed malformed visual in {label}")
                continue
            asset_id = visual.get("assetId")
            if not isinstance(asset_id, str) or asset_id not in assets:
                changes.append(f"Removed visual referencing missing asset '{asset_id}' in {label}")
                continue
            if visual.get("source") not in SOURCES:
                visual["source"] = assets[asset_id]["source"]
                changes.append(f"Set visual source for '{asset_id}' in {label}")
            for key in ("role", "description", "prompt"):
                if key in visual and not isinstance(visual[key], str):
                    del visual[key]
                    changes.append(f"Removed invalid visual {key} in {label}")
            kept.append(visual)
        scene["visuals"] = kept

        effects = scene.get("effects")
        if not isinstance(effects, dict):
            scene["effects"] = effects = {"transitions": []}
            changes.append(f"Created {label}.effects")
        for key in SCENE_EFFECT_LISTS:
            if key in effects and effects[key] != _strings(effects[key]):
                effects[key] = _strings(effects[key])
                changes.append(f"Normalized {label}.effects.{key}")
        if "gradePreset" in effects and not isinstance(effects["gradePreset"], str):
            del effects["gradePreset"]
            changes.append(f"Removed invalid {label}.effects.gradePreset")

        hint = scene.get("orderingHint")
        if "orderingHint" in scene and (isinstance(hint, bool) or not isinstance(hint, int) or hint < 1):
            scene["orderingHint"] = index + 1
            changes.append(f"Set {label}.orderingHint")
        if "musicCue" in scene and scene["musicCue"] is not None and not isinstance(scene["musicCue"], str):
            del scene["musicCue"]
            changes.append(f"Removed invalid {label}.musicCue")
        if "visualsText" in scene and not isinstance(scene["visualsText"], str):
            del scene["visualsText"]
            changes.append(f"Removed invalid {label}.visualsText")

    # =========================================================================
    #  TIMING
    # =========================================================================

    def _rescale_durations(self, scenes: List[Dict[str, Any]], target: float, changes: List[str]) -> None:
        """
        Scale durations proportionally so they sum to the target.

        Scenes whose share would fall under the floor are pinned to it and
        the rest of the target is shared among the others by weight. The
        last unpinned scene absorbs the rounding remainder, so the sum stays
        on target and a second pass changes nothing.
        """
        if not scenes:
            return
        floor = self.config.min_scene_duration
        durations = [scene["durationSeconds"] for scene in scenes]
        total = sum(durations)

        off_target = abs(total - target) > self.config.duration_tolerance
        too_short = any(d < floor for d in durations)
        if not off_target and not too_short:
            return

        if floor * len(scenes) > target:
            for scene in scenes:
                scene["durationSeconds"] = floor
            changes.append(
                f"Cannot fit {len(scenes)} scene(s) of at least {floor:.2f}s into {target:.2f}s"
            )
            return

        weights = durations if total > 0 else [1.0] * len(scenes)
        pinned = set()
        while True:
            free = [i for i in range(len(scenes)) if i not in pinned]
            budget = target - floor * len(pinned)
            weight_total = sum(weights[i] for i in free)
            below = {
                i for i in free
                if (budget * weights[i] / weight_total if weight_total > 0 else budget / len(free)) < floor
            }
            if not below:
                break
            pinned |= below

        anchor = free[-1]
        used = floor * len(pinned)
        for i in free[:-1]:
            share = budget * weights[i] / weight_total if weight_total > 0 else budget / len(free)
            scenes[i]["durationSeconds"] = max(floor, round(share, 2))
            used += scenes[i]["durationSeconds"]
        for i in pinned:
            scenes[i]["durationSeconds"] = floor
        scenes[anchor]["durationSeconds"] = max(floor, round(target - used, 2))

        changes.append(f"Rescaled {len(scenes)} scene duration(s) from {total:.2f}s to {target:.2f}s")

    def _set_start_times(self, scenes: List[Dict[str, Any]], changes: List[str]) -> None:
        cursor = 0.0
        moved = 0
        for scene in scenes:
            start = round(cursor, 3)
            if scene.get("startAtSec") != start:
                scene["startAtSec"] = start
                moved += 1
            cursor += scene["durationSeconds"]
        if moved:
            changes.append(f"Recomputed startAtSec for {moved} scene(s)")

    # =========================================================================
    #  STRUCTURAL DEFAULTS
    # =========================================================================

    def _repair_audio(self, data: Dict[str, Any], changes: List[str]) -> None:
        if not isinstance(data.get("audio"), dict):
            data["audio"] = {}
            changes.append("Created missing audio settings")
        audio = data["audio"]

        if not isinstance(audio.get("ttsDefaults"), dict):
            audio["ttsDefaults"] = dict(DEFAULT_TTS)
            changes.append("Set default audio.ttsDefaults")
        tts = audio["ttsDefaults"]
        for key in ("provider", "voiceId", "format"):
            if not _filled(tts.get(key)):
                tts[key] = DEFAULT_TTS[key]
                changes.append(f"Set audio.ttsDefaults.{key}")
        stability = tts.get("stability")
        if isinstance(stability, bool) or not isinstance(stability, (int, float)) or not 0 <= stability <= 1:
            tts["stability"] = DEFAULT_TTS["stability"]
            changes.append("Set audio.ttsDefaults.stability")

        if not isinstance(audio.get("music"), dict):
            audio["music"] = {"cueMap": {}, "globalVolumeDuckToVoices": True}
            changes.append("Set default audio.music")
        music = audio["music"]
        if not isinstance(music.get("cueMap"), dict):
            music["cueMap"] = {}
            changes.append("Set audio.music.cueMap")
        if not isinstance(music.get("globalVolumeDuckToVoices"), bool):
            music["globalVolumeDuckToVoices"] = True
            changes.append("Set audio.music.globalVolumeDuckToVoices")

    def _repair_settings(self, data: Dict[str, Any], metadata: Dict[str, Any], changes: List[str]) -> None:
        if not isinstance(data.get("visuals"), dict):
            data["visuals"] = {}
            changes.append("Created missing visuals settings")
        visuals = data["visuals"]
        if not _filled(visuals.get("defaultAspect")):
            visuals["defaultAspect"] = metadata["aspectRatio"]
            changes.append("Set visuals.defaultAspect")
        if "animeMode" in visuals and not isinstance(visuals["animeMode"], bool):
            del visuals["animeMode"]
            changes.append("Removed invalid visuals.animeMode")

        if not isinstance(data.get("effects"), dict):
            data["effects"] = {}
            changes.append("Created missing effects settings")
        effects = data["effects"]
        if not isinstance(effects.get("allowed"), list) or effects["allowed"] != _strings(effects["allowed"]):
            effects["allowed"] = _strings(effects.get("allowed")) or list(DEFAULT_ALLOWED_EFFECTS)
            changes.append("Set effects.allowed")
        if not _filled(effects.get("defaultTransition")):
            effects["defaultTransition"] = DEFAULT_TRANSITION
            changes.append("Set effects.defaultTransition")

        if not isinstance(data.get("consistency"), dict):
            data["consistency"] = {}
            changes.append("Created missing consistency rules")
        consistency = data["consistency"]
        tone = metadata.get("tone") or self.defaults.tone
        for key, default in (("character_faces", "locked"), ("voice_style", "consistent"), ("tone", tone)):
            if not isinstance(consistency.get(key), str):
                consistency[key] = default
                changes.append(f"Set consistency.{key}")

    def _repair_lists(self, data: Dict[str, Any], changes: List[str]) -> None:
        jobs = data.get("jobs")
        if not isinstance(jobs, list):
            data["jobs"] = []
            changes.append("Created missing jobs list")
        elif any(not isinstance(job, dict) for job in jobs):
            data["jobs"] = [job for job in jobs if isinstance(job, dict)]
            changes.append("Removed malformed jobs")

        warnings = data.get("warnings")
        if not isinstance(warnings, list):
            data["warnings"] = []
            changes.append("Created missing warnings list")
        elif any(not isinstance(w, str) for w in warnings):
            data["warnings"] = [w if isinstance(w, str) else str(w) for w in warnings]
            changes.append("Normalized warnings")


def apply_deterministic_repair(manifest: Any, config: RepairConfig = None,
                               defaults: MetadataDefaults = None) -> Dict[str, Any]:
    """Return a repaired copy of ``manifest``."""
    return DeterministicRepairer(config, defaults).repair(manifest).manifest
