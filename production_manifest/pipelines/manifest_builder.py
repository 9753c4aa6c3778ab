"""
Manifest Builder

End-to-end entry point: treatment text and hints in, validated manifest
and warnings out.

Flow:
1. Extract a draft (LLM extractor when enabled, deterministic parser otherwise)
2. Assemble a manifest dictionary from the draft
3. Decompose jobs
4. Run the repair pipeline
"""

import asyncio
import dataclasses
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from production_manifest.core.config import ManifestConfig, get_config
from production_manifest.core.constants import (
    DEFAULT_ALLOWED_EFFECTS,
    DEFAULT_TRANSITION,
    DEFAULT_TTS,
    DETERMINISTIC_PARSER_WARNING,
    AssetStatus,
    VisualSource,
)
from production_manifest.core.exceptions import ErrorKind
from production_manifest.core.logging_config import get_logger
from production_manifest.jobs.decomposer import decompose_jobs
from production_manifest.llm.providers import CompletionFn, CompletionOptions
from production_manifest.models.draft import DraftManifest, DraftScene, TreatmentHints
from production_manifest.models.manifest import ProductionManifest
from production_manifest.parsing.llm_extractor import LLMTreatmentExtractor
from production_manifest.parsing.treatment_parser import TreatmentParser
from production_manifest.repair.context import RepairContext

from .repair_pipeline import RepairOutcome, RepairPipeline
from .scene_enrichment import enrich_scenes, split_effects

logger = get_logger("pipelines.builder")

HintsLike = Union[TreatmentHints, Dict[str, Any], None]


def _as_hints(hints: HintsLike) -> TreatmentHints:
    return hints if isinstance(hints, TreatmentHints) else TreatmentHints.from_dict(hints)


def _first_number(*values: Any) -> Optional[float]:
    for value in values:
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if number > 0:
            return number
    return None


def distribute_durations(scenes: List[DraftScene], total: float) -> List[float]:
    """
    Turn explicit durations and weights into seconds.

    Explicit durations are kept. Weighted scenes share whatever time is
    left; when nothing is left they get an average-scene share and the
    repair pipeline rescales.
    """
    if not scenes:
        return []
    explicit = sum(scene.duration_seconds for scene in scenes if scene.has_duration)
    weighted = [scene for scene in scenes if not scene.has_duration]
    remaining = total - explicit
    pool = remaining if remaining > 0 else total * len(weighted) / len(scenes)

    durations = []
    for scene in scenes:
        if scene.has_duration:
            durations.append(round(scene.duration_seconds, 2))
        else:
            weight = scene.duration_weight or 1.0 / len(weighted)
            durations.append(round(pool * weight, 2))
    return durations


class ManifestBuilder:
    """Builds a validated ProductionManifest from a treatment."""

    def __init__(
        self,
        complete: Optional[CompletionFn] = None,
        config: ManifestConfig = None,
        parser: TreatmentParser = None,
    ):
        self.config = config or get_config()
        self.parser = parser or TreatmentParser()
        self.repair_pipeline = RepairPipeline(complete, self.config)
        self.extractor: Optional[LLMTreatmentExtractor] = None
        if complete is not None and self.config.extraction.llm_extraction_enabled:
            extraction = self.config.extraction
            self.extractor = LLMTreatmentExtractor(complete, CompletionOptions(
                temperature=extraction.temperature,
                max_tokens=extraction.max_tokens,
                timeout_ms=extraction.timeout_ms,
            ))

    async def extract(self, treatment_text: str, hints: TreatmentHints) -> Tuple[DraftManifest, List[str]]:
        """Draft from the LLM extractor when possible, else the parser."""
        warnings: List[str] = []
        if self.extractor is not None:
            draft = await self.extractor.extract(treatment_text, hints)
            if draft is not None:
                return draft, warnings
            warnings.append(DETERMINISTIC_PARSER_WARNING)
        return self.parser.parse(treatment_text, hints), warnings

    def assemble(
        self,
        draft: DraftManifest,
        hints: TreatmentHints = None,
        context: RepairContext = None,
    ) -> Dict[str, Any]:
        """
        Assemble a manifest dictionary from a draft.

        Metadata precedence is hints, then the treatment overview, then the
        configured defaults. The result is not validated.
        """
        hints = hints or draft.hints
        context = context or RepairContext(hints=hints)
        defaults = self.config.metadata_defaults
        overview = draft.overview

        explicit_total = sum(s.duration_seconds for s in draft.scenes) if draft.scenes and all(
            s.has_duration for s in draft.scenes) else None
        total = _first_number(
            hints.total_duration_seconds,
            overview.get("durationSeconds"),
            explicit_total,
        ) or self.config.repair.default_duration_seconds

        aspect = hints.aspect_ratio or overview.get("aspectRatio") or defaults.aspect_ratio
        platform = hints.platform or overview.get("platform") or defaults.platform
        profile = hints.profile or defaults.profile
        tone = hints.tone or overview.get("tone") or defaults.tone

        scenes: List[Dict[str, Any]] = []
        assets: Dict[str, Any] = {}
        cue_map: Dict[str, Any] = {}
        vocabulary = list(DEFAULT_ALLOWED_EFFECTS)

        for scene, duration in zip(draft.scenes, distribute_durations(draft.scenes, total)):
            asset_id = f"gen_{scene.id}_visual"
            description = " ".join(scene.visuals_text.split())
            assets[asset_id] = {
                "id": asset_id,
                "source": VisualSource.GENERATED.value,
                "role": "background",
                "status": AssetStatus.PENDING.value,
                "requiredEdits": [],
                "prompt": description[:300] or f"{scene.title} scene",
            }

            entry: Dict[str, Any] = {
                "id": scene.id,
                "durationSeconds": duration,
                "purpose": scene.purpose,
                "narration": scene.narration,
                "visuals": [{
                    "source": VisualSource.GENERATED.value,
                    "assetId": asset_id,
                    "role": "background",
                    "description": description,
                }],
                "effects": split_effects(scene.effects),
            }
            if scene.visuals_text:
                entry["visualsText"] = scene.visuals_text
            if scene.music_cue:
                cue_id = f"music_{len(cue_map) + 1:02d}"
                cue_map[cue_id] = {"description": scene.music_cue, "sceneIds": [scene.id]}
                entry["musicCue"] = cue_id
            scenes.append(entry)

        scenes = enrich_scenes(scenes, platform)
        for scene in scenes:
            for name in scene["effects"].get("transitions", []) + scene["effects"].get("layeredEffects", []):
                if name not in vocabulary:
                    vocabulary.append(name)

        tts = dict(DEFAULT_TTS)
        if draft.voice.provider:
            tts["provider"] = draft.voice.provider.lower().replace(" ", "")
        if draft.voice.style:
            tts["style"] = draft.voice.style
        if draft.voice.gender != "any":
            tts["gender"] = draft.voice.gender

        manifest: Dict[str, Any] = {
            "id": context.manifest_id or f"manifest_{uuid.uuid4().hex[:12]}",
            "createdAt": datetime.now(timezone.utc).isoformat(),
            "userId": hints.user_id,
            "sourceRefs": dict(context.source_refs),
            "metadata": {
                "intent": defaults.intent,
                "durationSeconds": total,
                "aspectRatio": aspect,
                "platform": platform,
                "language": hints.language or overview.get("language") or defaults.language,
                "profile": profile,
                "tone": tone,
                "title": hints.title or draft.title,
            },
            "scenes": scenes,
            "assets": assets,
            "audio": {
                "ttsDefaults": tts,
                "music": {"cueMap": cue_map, "globalVolumeDuckToVoices": True},
            },
            "visuals": {"defaultAspect": aspect, "animeMode": profile == "anime_mode"},
            "effects": {"allowed": vocabulary, "defaultTransition": DEFAULT_TRANSITION},
            "consistency": {"character_faces": "locked", "voice_style": "consistent", "tone": tone},
            "jobs": [],
            "warnings": [f"{ErrorKind.PARSE_INCOMPLETE.value}: {note}" for note in draft.notes],
        }
        manifest["jobs"] = decompose_jobs(manifest, callback_url=context.callback_url)

        logger.info(
            f"Assembled manifest {manifest['id']}: {len(scenes)} scenes, "
            f"{len(assets)} assets, {len(manifest['jobs'])} jobs"
        )
        return manifest

    async def run(
        self,
        treatment_text: str,
        hints: HintsLike = None,
        context: RepairContext = None,
    ) -> RepairOutcome:
        """
        Build and repair, returning the full RepairOutcome.

        The caller's context is never modified; the run works on a copy
        completed with the hints, treatment excerpt, callback URL and
        manifest id of this build.
        """
        base = context or RepairContext()
        hints = _as_hints(hints) if hints is not None else base.hints
        context = dataclasses.replace(
            base,
            hints=hints,
            source_refs=dict(base.source_refs),
            treatment_excerpt=base.treatment_excerpt or (treatment_text or "")[:1500],
            callback_url=(base.callback_url if base.callback_url is not None
                          else self.config.render.resolved_callback_url()),
        )

        draft, extraction_warnings = await self.extract(treatment_text, hints)
        if not draft.is_complete:
            logger.info(f"Treatment parsed with {len(draft.notes)} note(s)")

        manifest = self.assemble(draft, hints, context)
        manifest["warnings"] = extraction_warnings + manifest["warnings"]
        if context.manifest_id is None:
            context = dataclasses.replace(context, manifest_id=manifest["id"])

        return await self.repair_pipeline.run(manifest, context)

    async def build(
        self,
        treatment_text: str,
        hints: HintsLike = None,
        context: RepairContext = None,
    ) -> Tuple[ProductionManifest, List[str]]:
        """
        Build a validated manifest from a treatment.

        Returns:
            (manifest, warnings); the manifest always validates
        """
        outcome = await self.run(treatment_text, hints, context)
        return outcome.as_tuple()


def build_manifest_from_treatment(
    treatment_text: str,
    hints: HintsLike = None,
    complete: Optional[CompletionFn] = None,
    config: ManifestConfig = None,
) -> Tuple[ProductionManifest, List[str]]:
    """Synchronous wrapper for scripts; do not call from a running event loop."""
    builder = ManifestBuilder(complete=complete, config=config)
    return asyncio.run(builder.build(treatment_text, hints))
