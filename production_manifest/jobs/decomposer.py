"""
Job Decomposer

Derives the job graph for a manifest:
- one TTS job per narrated scene
- one image generation job per generated visual reference
- one lip-sync job per narrated scene showing a user visual, after its TTS
- one music generation job per cue in audio.music.cueMap
- one render job depending on every other job

The function is pure and re-runnable: repaired and fallback manifests go
through the same rules, and the same manifest always yields the same jobs.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from production_manifest.core.constants import (
    CONTENT_JOB_PRIORITY,
    DEFAULT_MUSIC_MOOD,
    DEFAULT_RESOLUTION,
    DEFAULT_TTS,
    IMAGE_MODEL_ANIME,
    IMAGE_MODEL_DEFAULT,
    LIP_SYNC_JOB_PRIORITY,
    LIP_SYNC_PROVIDER,
    MUSIC_JOB_PRIORITY,
    MUSIC_MOOD_BY_PROFILE,
    MUSIC_MOOD_BY_TONE,
    MUSIC_PROVIDER,
    MUSIC_STRUCTURE,
    PROFILE_PROMPT_SUFFIXES,
    RENDER_JOB_ID,
    RENDER_JOB_PRIORITY,
    RESOLUTION_BY_ASPECT,
    RETRY_DEFAULTS,
    TONE_PROMPT_SUFFIXES,
    TTS_SAMPLE_RATE,
    JobType,
    VisualSource,
)
from production_manifest.core.logging_config import get_logger
from production_manifest.graph.job_graph import verify_job_graph
from production_manifest.models.manifest import ProductionManifest

logger = get_logger("jobs.decomposer")

ManifestLike = Union[ProductionManifest, Mapping[str, Any]]


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _unique_id(base: str, taken: Set[str]) -> str:
    candidate, n = base, 2
    while candidate in taken:
        candidate = f"{base}_{n}"
        n += 1
    taken.add(candidate)
    return candidate


def resolution_for(aspect_ratio: str) -> str:
    return RESOLUTION_BY_ASPECT.get(aspect_ratio, DEFAULT_RESOLUTION)


def image_model_for(profile: str, anime_mode: bool = False) -> str:
    return IMAGE_MODEL_ANIME if anime_mode or profile == "anime_mode" else IMAGE_MODEL_DEFAULT


def build_image_prompt(base: str, profile: str, tone: str, aspect_ratio: str) -> str:
    """Scene prompt plus style suffixes for the profile and tone."""
    parts = [base.rstrip(". ")]
    for suffix in (PROFILE_PROMPT_SUFFIXES.get(profile), TONE_PROMPT_SUFFIXES.get(tone)):
        if suffix:
            parts.append(suffix)
    parts.append(f"{aspect_ratio} aspect ratio")
    parts.append("high resolution")
    return ", ".join(part for part in parts if part)


def music_mood_for(profile: str, tone: str) -> str:
    return MUSIC_MOOD_BY_PROFILE.get(profile) or MUSIC_MOOD_BY_TONE.get(tone) or DEFAULT_MUSIC_MOOD


def _seconds(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value) if value > 0 else 0.0


def _job(job_id: str, job_type: JobType, payload: Dict[str, Any], priority: int,
         depends_on: List[str]) -> Dict[str, Any]:
    return {
        "id": job_id,
        "type": job_type.value,
        "payload": payload,
        "priority": priority,
        "dependsOn": depends_on,
        "retryPolicy": dict(RETRY_DEFAULTS[job_type.value]),
    }


def decompose_jobs(manifest: ManifestLike, callback_url: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Build the job list for a manifest.

    Args:
        manifest: Manifest dictionary (draft-assembled or repaired) or a
            validated ProductionManifest
        callback_url: Where the renderer reports completion

    Returns:
        Job dictionaries in wire form, render job last

    Raises:
        GraphIntegrityViolation: If the produced graph is not a DAG over
            unique ids, which means the rules above are broken
    """
    data = manifest.to_dict() if isinstance(manifest, ProductionManifest) else manifest
    data = _dict(data)

    metadata = _dict(data.get("metadata"))
    profile = _text(metadata.get("profile"))
    tone = _text(metadata.get("tone")) or _text(_dict(data.get("consistency")).get("tone"))
    visual_settings = _dict(data.get("visuals"))
    aspect = _text(visual_settings.get("defaultAspect")) or _text(metadata.get("aspectRatio"))
    anime_mode = visual_settings.get("animeMode") is True
    assets = _dict(data.get("assets"))

    tts = dict(DEFAULT_TTS)
    tts.update({k: v for k, v in _dict(_dict(data.get("audio")).get("ttsDefaults")).items() if v is not None})

    taken: Set[str] = set()
    tts_jobs: List[Dict[str, Any]] = []
    image_jobs: List[Dict[str, Any]] = []
    lip_sync_jobs: List[Dict[str, Any]] = []
    timeline: List[Dict[str, Any]] = []
    scene_seconds: Dict[str, float] = {}

    for position, scene in enumerate(_list(data.get("scenes"))):
        if not isinstance(scene, dict):
            continue
        scene_id = _text(scene.get("id")) or f"s{position + 1}"
        narration = _text(scene.get("narration"))
        scene_seconds[scene_id] = scene_seconds.get(scene_id, 0.0) + _seconds(scene.get("durationSeconds"))
        tts_id = None

        if narration:
            tts_id = _unique_id(f"job_tts_{scene_id}", taken)
            tts_jobs.append(_job(
                tts_id,
                JobType.TTS,
                {
                    "sceneId": scene_id,
                    "text": narration,
                    "provider": tts.get("provider"),
                    "voiceId": tts.get("voiceId"),
                    "format": tts.get("format"),
                    "sampleRate": TTS_SAMPLE_RATE,
                    "stability": tts.get("stability"),
                },
                CONTENT_JOB_PRIORITY,
                [],
            ))

        asset_ids = []
        for visual in _list(scene.get("visuals")):
            if not isinstance(visual, dict):
                continue
            asset_id = _text(visual.get("assetId"))
            if asset_id:
                asset_ids.append(asset_id)
            if visual.get("source") != VisualSource.GENERATED.value:
                continue

            asset = _dict(assets.get(asset_id))
            base_prompt = (
                _text(visual.get("prompt"))
                or _text(asset.get("prompt"))
                or _text(visual.get("description"))
                or _text(scene.get("visualsText"))
                or f"{_text(scene.get('purpose')) or 'scene'} background"
            )
            image_jobs.append(_job(
                _unique_id(f"job_gen_{asset_id or scene_id}", taken),
                JobType.GENERATE_IMAGE,
                {
                    "sceneId": scene_id,
                    "prompt": build_image_prompt(base_prompt, profile, tone, aspect or "16:9"),
                    "model": image_model_for(profile, anime_mode),
                    "resultAssetId": asset_id,
                    "resolution": resolution_for(aspect),
                    "quality": "high",
                },
                CONTENT_JOB_PRIORITY,
                [],
            ))

        shows_user_visual = any(
            isinstance(visual, dict) and visual.get("source") == VisualSource.USER.value
            for visual in _list(scene.get("visuals"))
        )
        if tts_id and shows_user_visual:
            lip_sync_jobs.append(_job(
                _unique_id(f"job_lipsync_{scene_id}", taken),
                JobType.LIP_SYNC,
                {
                    "sceneId": scene_id,
                    "audioJobId": tts_id,
                    "provider": LIP_SYNC_PROVIDER,
                    "quality": "high",
                },
                LIP_SYNC_JOB_PRIORITY,
                [tts_id],
            ))

        effects = _dict(scene.get("effects"))
        transitions = _list(effects.get("transitions"))
        timeline.append({
            "sceneId": scene_id,
            "startAtSec": scene.get("startAtSec"),
            "durationSeconds": scene.get("durationSeconds"),
            "assetIds": asset_ids,
            "transition": transitions[0] if transitions else None,
        })

    cue_map = _dict(_dict(_dict(data.get("audio")).get("music")).get("cueMap"))
    music_jobs: List[Dict[str, Any]] = []
    for cue_id, cue in cue_map.items():
        cue = cue if isinstance(cue, dict) else {"description": _text(cue)}
        cue_scenes = [s for s in _list(cue.get("sceneIds")) if isinstance(s, str) and s in scene_seconds]
        seconds = sum(scene_seconds[s] for s in cue_scenes) or _seconds(metadata.get("durationSeconds"))
        music_jobs.append(_job(
            _unique_id(f"job_music_{cue_id}", taken),
            JobType.GENERATE_MUSIC,
            {
                "cueId": cue_id,
                "description": _text(cue.get("description")),
                "sceneIds": cue_scenes,
                "mood": music_mood_for(profile, tone),
                "structure": MUSIC_STRUCTURE,
                "durationSec": round(seconds, 2),
                "provider": MUSIC_PROVIDER,
            },
            MUSIC_JOB_PRIORITY,
            [],
        ))

    upstream = tts_jobs + image_jobs + lip_sync_jobs + music_jobs
    render_job = _job(
        _unique_id(RENDER_JOB_ID, taken),
        JobType.RENDER,
        {
            "manifestId": _text(data.get("id")) or None,
            "renderSpec": {
                "durationSeconds": metadata.get("durationSeconds"),
                "aspectRatio": aspect or None,
                "resolution": resolution_for(aspect),
                "timeline": timeline,
                "musicCues": copy.deepcopy(cue_map),
            },
            "callbackUrl": callback_url,
        },
        RENDER_JOB_PRIORITY,
        [job["id"] for job in upstream],
    )

    jobs = upstream + [render_job]
    verify_job_graph(jobs)

    logger.debug(
        f"Decomposed {len(timeline)} scenes into {len(tts_jobs)} TTS, {len(image_jobs)} image, "
        f"{len(lip_sync_jobs)} lip-sync, {len(music_jobs)} music and 1 render job"
    )
    return jobs
