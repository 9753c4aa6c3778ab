"""
Production Manifest Constants

Defaults, vocabularies and lookup tables shared by the parser, the job
decomposer and the repair tiers.
"""

from enum import Enum
from typing import Dict, List

# =============================================================================
# VERSION INFO
# =============================================================================
VERSION = "1.0.0"
PROJECT_NAME = "Production Manifest"

# =============================================================================
# MANIFEST VOCABULARY
# =============================================================================

class Intent(Enum):
    """What the production request ultimately renders."""
    VIDEO = "video"
    IMAGE = "image"
    AUDIO = "audio"


class VisualSource(Enum):
    """Where a scene visual or asset comes from."""
    GENERATED = "generated"
    USER = "user"
    STOCK = "stock"


class AssetStatus(Enum):
    """Lifecycle of an asset before rendering."""
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class JobType(Enum):
    """Kinds of downstream work a manifest can request."""
    TTS = "tts"
    GENERATE_IMAGE = "generate_image"
    GENERATE_MUSIC = "generate_music"
    LIP_SYNC = "lip_sync"
    RENDER = "render"


# Top-level fields a manifest may carry; anything else is stripped by repair
ALLOWED_TOP_LEVEL_FIELDS: List[str] = [
    "id", "createdAt", "userId", "sourceRefs", "metadata", "scenes", "assets",
    "audio", "visuals", "effects", "consistency", "jobs", "warnings",
]

# =============================================================================
# METADATA DEFAULTS
# =============================================================================
DEFAULT_INTENT = Intent.VIDEO.value
DEFAULT_LANGUAGE = "en"
DEFAULT_PLATFORM = "social"
DEFAULT_ASPECT_RATIO = "Smart Auto"
DEFAULT_PROFILE = "educational_explainer"
DEFAULT_TONE = "professional"
DEFAULT_DURATION_SECONDS = 60.0
DEFAULT_TITLE = "Auto Plan"

# Scene durations must sum to the target within this many seconds
DURATION_TOLERANCE = 0.1
MIN_SCENE_DURATION = 0.05

DEFAULT_TTS: Dict[str, object] = {
    "provider": "elevenlabs",
    "voiceId": "eva",
    "format": "mp3",
    "stability": 0.7,
}
TTS_SAMPLE_RATE = 22050

DEFAULT_ALLOWED_EFFECTS: List[str] = ["cinematic_zoom", "overlay_text", "fade"]
DEFAULT_TRANSITION = "fade"
TRANSITION_ROTATION: List[str] = ["fade", "slide_left", "bokeh_transition"]

# =============================================================================
# JOB DEFAULTS
# =============================================================================
CONTENT_JOB_PRIORITY = 10
MUSIC_JOB_PRIORITY = 5
LIP_SYNC_JOB_PRIORITY = 8
RENDER_JOB_PRIORITY = 12

RETRY_DEFAULTS: Dict[str, Dict[str, int]] = {
    JobType.TTS.value: {"maxRetries": 3, "backoffSeconds": 30},
    JobType.GENERATE_IMAGE.value: {"maxRetries": 3, "backoffSeconds": 30},
    JobType.GENERATE_MUSIC.value: {"maxRetries": 2, "backoffSeconds": 60},
    JobType.LIP_SYNC.value: {"maxRetries": 2, "backoffSeconds": 90},
    JobType.RENDER.value: {"maxRetries": 3, "backoffSeconds": 120},
}

RENDER_JOB_ID = "job_render"

MUSIC_PROVIDER = "elevenlabs-music"
MUSIC_STRUCTURE = "intro->build->outro"
DEFAULT_MUSIC_MOOD = "neutral_learning"
# Checked in order: profile first, then tone
MUSIC_MOOD_BY_PROFILE: Dict[str, str] = {
    "educational_explainer": "neutral_learning",
    "anime_mode": "energetic_upbeat",
}
MUSIC_MOOD_BY_TONE: Dict[str, str] = {
    "professional": "corporate_inspiring",
    "casual": "friendly_uplifting",
}

LIP_SYNC_PROVIDER = "lypsso"

IMAGE_MODEL_DEFAULT = "falai-image-v1"
IMAGE_MODEL_ANIME = "falai-anime-v1"

RESOLUTION_BY_ASPECT: Dict[str, str] = {
    "16:9": "1920x1080",
    "9:16": "1080x1920",
    "1:1": "1080x1080",
}
DEFAULT_RESOLUTION = "1920x1080"

PROFILE_PROMPT_SUFFIXES: Dict[str, str] = {
    "educational_explainer": "clean, professional, educational style",
    "cinematic_story": "cinematic lighting, dramatic composition, film grain",
    "product_showcase": "studio lighting, product photography, crisp detail",
    "social_short": "vibrant, eye-catching, bold colors",
    "anime_mode": "anime style, cel shading, expressive characters",
}

TONE_PROMPT_SUFFIXES: Dict[str, str] = {
    "professional": "polished, corporate",
    "friendly": "warm, approachable",
    "energetic": "dynamic, high energy",
    "calm": "soft, serene",
    "dramatic": "moody, high contrast",
}

# =============================================================================
# WARNINGS
# =============================================================================
FALLBACK_WARNING = "Used minimal fallback manifest due to validation failures"
DETERMINISTIC_PARSER_WARNING = "Used deterministic parser for treatment extraction"
LLM_REPAIR_WARNING = "Manifest repaired by LLM-assisted repair"
DETERMINISTIC_REPAIR_WARNING = "Manifest repaired by deterministic repair"
