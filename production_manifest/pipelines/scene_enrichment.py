"""
Scene enrichment for assembled manifests: timeline positions, ordering
hints, transition rotation and layered effects chosen by purpose and
platform. Effects the treatment already named are kept.
"""

from typing import Any, Dict, List

from production_manifest.core.constants import TRANSITION_ROTATION

GRADE_PRESET = "neutral_pro"

PURPOSE_EFFECTS: Dict[str, List[str]] = {
    "hook": ["cinematic_zoom"],
    "body": ["parallax_scroll"],
    "cta": ["cinematic_zoom", "overlay_text"],
}

PLATFORM_EFFECTS: Dict[str, Dict[str, List[str]]] = {
    "tiktok": {
        "hook": ["cinematic_zoom", "bokeh_transition"],
        "body": ["slow_pan", "data_highlight"],
        "cta": ["text_reveal", "logo_reveal"],
    },
    "youtube": {
        "hook": ["parallax_scroll", "overlay_text"],
        "body": ["slow_pan", "chart_animation"],
        "cta": ["crossfade", "logo_reveal"],
    },
    "instagram": {
        "hook": ["cinematic_zoom", "lens_flare"],
        "body": ["slow_pan", "overlay_text"],
        "cta": ["bokeh_transition", "text_reveal"],
    },
}

PLATFORM_TRANSITIONS: Dict[str, List[str]] = {
    "tiktok": ["bokeh_transition", "slide_up", "fade"],
    "youtube": ["crossfade", "slide_left", "fade"],
    "instagram": ["fade", "bokeh_transition", "slide_left"],
}


def purpose_category(purpose: str) -> str:
    """Collapse free-form purposes onto hook / body / cta."""
    purpose = (purpose or "").lower()
    if purpose.startswith(("hook", "intro", "opening")):
        return "hook"
    if any(word in purpose for word in ("cta", "call_to_action", "outro", "conclu", "wrap")):
        return "cta"
    return "body"


def enrich_scenes(scenes: List[Dict[str, Any]], platform: str = "") -> List[Dict[str, Any]]:
    """
    Return enriched copies of assembled scenes.

    Args:
        scenes: Scene dictionaries with durationSeconds set
        platform: Target platform; unknown platforms use generic effects

    Returns:
        New scene dictionaries with startAtSec, orderingHint and effects
    """
    platform = (platform or "").lower()
    transitions = PLATFORM_TRANSITIONS.get(platform, TRANSITION_ROTATION)
    effect_map = PLATFORM_EFFECTS.get(platform, PURPOSE_EFFECTS)

    enriched = []
    cursor = 0.0
    for index, scene in enumerate(scenes):
        effects = dict(scene.get("effects") or {})
        effects["transitions"] = effects.get("transitions") or [transitions[index % len(transitions)]]
        effects["layeredEffects"] = effects.get("layeredEffects") or list(
            effect_map[purpose_category(scene.get("purpose", ""))]
        )
        effects.setdefault("gradePreset", GRADE_PRESET)

        enriched.append({
            **scene,
            "startAtSec": round(cursor, 3),
            "orderingHint": index + 1,
            "effects": effects,
        })
        cursor += scene.get("durationSeconds") or 0.0
    return enriched


TRANSITION_NAMES = {
    "fade", "fade_in", "fade_out", "crossfade", "cut", "dissolve",
    "slide_left", "slide_right", "slide_up", "whip_pan", "bokeh_transition",
}


def split_effects(names: List[str]) -> Dict[str, List[str]]:
    """Sort treatment effect names into transitions and layered effects."""
    transitions, layered = [], []
    for name in names:
        key = name.strip().lower().replace(" ", "_").replace("-", "_")
        if not key:
            continue
        (transitions if key in TRANSITION_NAMES else layered).append(key)
    effects: Dict[str, List[str]] = {}
    if transitions:
        effects["transitions"] = transitions
    if layered:
        effects["layeredEffects"] = layered
    return effects
