"""
Validated Production Manifest models.

These are the types handed to job execution. They are only ever built from
a manifest that already passed ``validate_manifest``; draft states live in
``models.draft`` instead. Wire names are camelCase, attributes snake_case.
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from production_manifest.core.constants import AssetStatus, Intent, JobType, VisualSource


class WireModel(BaseModel):
    """Frozen base with camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class ManifestMetadata(WireModel):
    """Request-level metadata."""
    intent: Intent = Intent.VIDEO
    duration_seconds: float = Field(gt=0)
    aspect_ratio: str
    platform: str
    language: str
    profile: str
    title: Optional[str] = None
    tone: Optional[str] = None
    priority: Optional[str] = None
    note: Optional[str] = None


class SceneVisual(WireModel):
    """A visual placed in a scene, pointing at an asset."""
    source: VisualSource
    asset_id: str
    role: Optional[str] = None
    description: Optional[str] = None
    prompt: Optional[str] = None


class SceneEffects(WireModel):
    transitions: List[str] = Field(default_factory=list)
    overlays: List[str] = Field(default_factory=list)
    filters: List[str] = Field(default_factory=list)
    layered_effects: List[str] = Field(default_factory=list)
    grade_preset: Optional[str] = None


class Scene(WireModel):
    """One timed segment of the production."""
    id: str
    start_at_sec: float = Field(ge=0)
    duration_seconds: float = Field(gt=0)
    purpose: str
    narration: Optional[str] = None
    visuals: List[SceneVisual] = Field(default_factory=list)
    effects: SceneEffects = Field(default_factory=SceneEffects)
    ordering_hint: Optional[int] = None
    music_cue: Optional[str] = None
    visuals_text: Optional[str] = None

    @property
    def end_at_sec(self) -> float:
        return self.start_at_sec + self.duration_seconds


class Asset(WireModel):
    id: str
    source: VisualSource
    role: str
    status: AssetStatus = AssetStatus.PENDING
    required_edits: List[str] = Field(default_factory=list)
    prompt: Optional[str] = None
    origin_url: Optional[str] = None


class TTSDefaults(WireModel):
    provider: str
    voice_id: str
    format: str
    stability: Optional[float] = None
    style: Optional[str] = None
    gender: Optional[str] = None


class MusicSettings(WireModel):
    cue_map: Dict[str, Any] = Field(default_factory=dict)
    global_volume_duck_to_voices: Optional[bool] = None


class AudioSettings(WireModel):
    tts_defaults: TTSDefaults
    music: MusicSettings


class VisualSettings(WireModel):
    default_aspect: str
    anime_mode: Optional[bool] = None


class EffectSettings(WireModel):
    """Allowed transition/effect vocabulary."""
    allowed: List[str] = Field(default_factory=list)
    default_transition: str


class ConsistencyRules(WireModel):
    """Style-lock rules; keys are snake_case on the wire."""
    character_faces: str = Field(alias="character_faces")
    voice_style: str = Field(alias="voice_style")
    tone: str


class RetryPolicy(WireModel):
    """Declarative retry settings consumed by the external executor."""
    max_retries: int = Field(ge=0)
    backoff_seconds: float = Field(ge=0)


class Job(WireModel):
    """A unit of downstream work."""
    id: str
    type: JobType
    payload: Dict[str, Any] = Field(default_factory=dict)
    priority: int = Field(ge=0)
    depends_on: List[str] = Field(default_factory=list)
    retry_policy: RetryPolicy


class ProductionManifest(WireModel):
    """Validated, immutable manifest for one production request."""
    id: Optional[str] = None
    created_at: Optional[str] = None
    user_id: Optional[str] = None
    source_refs: Dict[str, Any] = Field(default_factory=dict)
    metadata: ManifestMetadata
    scenes: List[Scene] = Field(min_length=1)
    assets: Dict[str, Asset] = Field(default_factory=dict)
    audio: AudioSettings
    visuals: VisualSettings
    effects: EffectSettings
    consistency: ConsistencyRules
    jobs: List[Job] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def total_scene_duration(self) -> float:
        return sum(scene.duration_seconds for scene in self.scenes)

    def jobs_of_type(self, job_type: JobType) -> List[Job]:
        return [job for job in self.jobs if job.type == job_type]

    def to_dict(self) -> Dict[str, Any]:
        """JSON wire form."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProductionManifest':
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, text: str) -> 'ProductionManifest':
        return cls.model_validate_json(text)
