"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import copy
import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Dict, Any

from production_manifest.core.config import ManifestConfig, RenderConfig
from production_manifest.jobs.decomposer import decompose_jobs


@pytest.fixture(autouse=True)
def no_render_callback_env(monkeypatch):
    """Keep a developer's RENDER_CALLBACK_URL out of job payloads."""
    monkeypatch.delenv("RENDER_CALLBACK_URL", raising=False)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def manifest_config() -> ManifestConfig:
    """Default configuration with a fixed render callback."""
    return ManifestConfig(render=RenderConfig(callback_url="https://render.test/callback"))


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Sample configuration file contents."""
    return {
        "llm": {
            "provider": "openai",
            "model": "gpt-4o",
            "api_key_env": "OPENAI_API_KEY",
            "temperature": 0.3
        },
        "repair": {
            "duration_tolerance": 0.2,
            "llm_timeout_ms": 5000
        },
        "extraction": {
            "llm_extraction_enabled": True
        },
        "render": {
            "callback_url": "https://render.test/callback"
        },
        "metadata_defaults": {
            "language": "fr"
        }
    }


@pytest.fixture
def sample_treatment() -> str:
    """Three-scene treatment with overview lines and a voice preference."""
    return """# Production Plan: Test Video
Tone: friendly
Platform: YouTube
Aspect Ratio: 16:9

### Scene 1: [Purpose: Hook]
- Duration: 10 sec
- Narration: "Welcome to the show."
- Visuals: A bright studio with a laptop
- Effects: [cinematic_zoom, fade_in]
- Voice: [ElevenLabs / Style: Friendly Female]

### Scene 2: [Purpose: Body]
- Duration: 15 sec
- Narration: "Here is how it works."
- Visuals: Animated diagram of the pipeline
- Effects: [slide_left]

### Scene 3: [Purpose: CTA]
- Duration: 5 sec
- Narration: "Subscribe for more."
- Visuals: Logo on a dark background
- Music: upbeat outro
"""


def _asset(asset_id: str, prompt: str) -> Dict[str, Any]:
    return {
        "id": asset_id,
        "source": "generated",
        "role": "background",
        "status": "pending",
        "requiredEdits": [],
        "prompt": prompt,
    }


def _scene(scene_id: str, start: float, duration: float, purpose: str,
           narration: str, asset_id: str) -> Dict[str, Any]:
    return {
        "id": scene_id,
        "startAtSec": start,
        "durationSeconds": duration,
        "purpose": purpose,
        "narration": narration,
        "visuals": [{"source": "generated", "assetId": asset_id, "role": "background"}],
        "effects": {"transitions": ["fade"], "overlays": [], "filters": []},
    }


@pytest.fixture
def valid_manifest() -> Dict[str, Any]:
    """A two-scene manifest that passes validation, jobs included."""
    manifest = {
        "id": "manifest_test000001",
        "createdAt": "2026-01-01T00:00:00+00:00",
        "userId": "user_1",
        "sourceRefs": {"treatmentId": "t_1"},
        "metadata": {
            "intent": "video",
            "durationSeconds": 30,
            "aspectRatio": "16:9",
            "platform": "youtube",
            "language": "en",
            "profile": "educational_explainer",
            "tone": "friendly",
            "title": "Test Video",
        },
        "scenes": [
            _scene("s1", 0.0, 10.0, "hook", "Welcome to the show.", "gen_s1_visual"),
            _scene("s2", 10.0, 20.0, "body", "Here is how it works.", "gen_s2_visual"),
        ],
        "assets": {
            "gen_s1_visual": _asset("gen_s1_visual", "bright studio"),
            "gen_s2_visual": _asset("gen_s2_visual", "pipeline diagram"),
        },
        "audio": {
            "ttsDefaults": {"provider": "elevenlabs", "voiceId": "eva", "format": "mp3", "stability": 0.7},
            "music": {"cueMap": {}, "globalVolumeDuckToVoices": True},
        },
        "visuals": {"defaultAspect": "16:9"},
        "effects": {"allowed": ["cinematic_zoom", "overlay_text", "fade"], "defaultTransition": "fade"},
        "consistency": {"character_faces": "locked", "voice_style": "consistent", "tone": "friendly"},
        "jobs": [],
        "warnings": [],
    }
    manifest["jobs"] = decompose_jobs(manifest)
    return manifest


@pytest.fixture
def make_manifest(valid_manifest):
    """Factory returning a fresh deep copy of the valid manifest."""
    def _make() -> Dict[str, Any]:
        return copy.deepcopy(valid_manifest)
    return _make


@pytest.fixture
def sample_jobs() -> list:
    """Small diamond-shaped job list."""
    retry = {"maxRetries": 3, "backoffSeconds": 30}
    return [
        {"id": "job_tts_s1", "type": "tts", "payload": {}, "priority": 10, "dependsOn": [], "retryPolicy": retry},
        {"id": "job_gen_a1", "type": "generate_image", "payload": {}, "priority": 10, "dependsOn": [], "retryPolicy": retry},
        {"id": "job_gen_a2", "type": "generate_image", "payload": {}, "priority": 11, "dependsOn": [], "retryPolicy": retry},
        {
            "id": "job_render",
            "type": "render",
            "payload": {},
            "priority": 12,
            "dependsOn": ["job_tts_s1", "job_gen_a1", "job_gen_a2"],
            "retryPolicy": {"maxRetries": 3, "backoffSeconds": 120},
        },
    ]
