"""
Draft (pre-repair) types produced by treatment parsing.

Nothing here is validated. A DraftManifest is turned into a manifest
dictionary by the builder and only becomes a ProductionManifest after the
repair pipeline has validated it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present, non-empty value among camelCase/snake_case spellings."""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return default


def _pick_text(data: Dict[str, Any], *keys: str) -> Optional[str]:
    value = _pick(data, *keys)
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value).strip() or None


@dataclass
class TreatmentHints:
    """Caller-supplied context that outranks anything found in the treatment."""
    total_duration_seconds: Optional[float] = None
    profile: Optional[str] = None
    language: Optional[str] = None
    aspect_ratio: Optional[str] = None
    platform: Optional[str] = None
    tone: Optional[str] = None
    user_id: Optional[str] = None
    title: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'TreatmentHints':
        data = data or {}
        duration = _pick(data, 'totalDurationSeconds', 'total_duration_seconds', 'durationSeconds')
        try:
            duration = float(duration) if duration is not None else None
        except (TypeError, ValueError):
            duration = None
        return cls(
            total_duration_seconds=duration,
            profile=_pick_text(data, 'profile'),
            language=_pick_text(data, 'language'),
            aspect_ratio=_pick_text(data, 'aspectRatio', 'aspect_ratio'),
            platform=_pick_text(data, 'platform'),
            tone=_pick_text(data, 'tone'),
            user_id=_pick_text(data, 'userId', 'user_id'),
            title=_pick_text(data, 'title'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalDurationSeconds": self.total_duration_seconds,
            "profile": self.profile,
            "language": self.language,
            "aspectRatio": self.aspect_ratio,
            "platform": self.platform,
            "tone": self.tone,
            "userId": self.user_id,
            "title": self.title,
        }


@dataclass
class VoicePreference:
    """Voice hints pulled from a `Voice: [Provider / Style: X]` line."""
    provider: Optional[str] = None
    style: Optional[str] = None
    gender: str = "any"
    voice_id_hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "style": self.style,
            "gender": self.gender,
            "voiceIdHint": self.voice_id_hint,
        }


@dataclass
class DraftScene:
    """A scene as written in the treatment; duration may still be a weight."""
    id: str
    index: int
    purpose: str = "body"
    title: str = ""
    duration_seconds: Optional[float] = None
    duration_weight: Optional[float] = None
    narration: str = ""
    visuals_text: str = ""
    effects: List[str] = field(default_factory=list)
    music_cue: Optional[str] = None
    voice: Optional[VoicePreference] = None

    @property
    def has_duration(self) -> bool:
        return self.duration_seconds is not None and self.duration_seconds > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "index": self.index,
            "purpose": self.purpose,
            "title": self.title,
            "durationSeconds": self.duration_seconds,
            "durationWeight": self.duration_weight,
            "narration": self.narration,
            "visualsText": self.visuals_text,
            "effects": list(self.effects),
            "musicCue": self.music_cue,
            "voice": self.voice.to_dict() if self.voice else None,
        }


@dataclass
class DraftManifest:
    """Parser output: title, scenes and voice preference, not yet a manifest."""
    title: str
    scenes: List[DraftScene] = field(default_factory=list)
    voice: VoicePreference = field(default_factory=VoicePreference)
    overview: Dict[str, str] = field(default_factory=dict)
    hints: TreatmentHints = field(default_factory=TreatmentHints)
    notes: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.notes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "scenes": [scene.to_dict() for scene in self.scenes],
            "voice": self.voice.to_dict(),
            "overview": dict(self.overview),
            "hints": self.hints.to_dict(),
            "notes": list(self.notes),
        }
