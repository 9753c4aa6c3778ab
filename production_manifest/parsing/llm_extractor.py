"""
LLM Treatment Extractor

Optional first attempt at reading a treatment. The completion output is
untrusted: anything other than a well-formed JSON object with at least one
scene makes the extractor return None so the deterministic parser takes
over.
"""

import asyncio
from typing import Any, Dict, List, Optional

from production_manifest.core.constants import DEFAULT_TITLE
from production_manifest.core.logging_config import get_logger
from production_manifest.llm.json_utils import parse_json_object
from production_manifest.llm.providers import CompletionFn, CompletionOptions
from production_manifest.models.draft import (
    DraftManifest,
    DraftScene,
    TreatmentHints,
    VoicePreference,
)

from .treatment_parser import assign_duration_weights, infer_gender, normalize_purpose

logger = get_logger("parsing.llm_extractor")


EXTRACTION_PROMPT = """Extract the scene plan from the treatment below as JSON.

Return ONLY a JSON object of this shape, with no prose and no markdown:
{{
  "title": "string",
  "voice": {{"provider": "string or null", "style": "string or null"}},
  "scenes": [
    {{
      "purpose": "hook | body | cta | ...",
      "durationSeconds": number or null,
      "narration": "exact narration text or empty string",
      "visuals": "visual description",
      "effects": ["effect names"],
      "music": "music cue or null"
    }}
  ]
}}

Keep scenes in the order they appear. Target total duration: {duration} seconds.

TREATMENT:
{treatment}
"""


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _as_duration(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if value > 0 else None


class LLMTreatmentExtractor:
    """Extract a DraftManifest through a completion function."""

    def __init__(self, complete: CompletionFn, options: CompletionOptions = None):
        self.complete = complete
        self.options = options or CompletionOptions(temperature=0.2, max_tokens=2000, timeout_ms=8000)

    async def extract(self, treatment_text: str, hints: TreatmentHints = None) -> Optional[DraftManifest]:
        """
        Ask the LLM for a structured scene plan.

        Returns:
            DraftManifest, or None when the call or its output is unusable
        """
        hints = hints or TreatmentHints()
        prompt = EXTRACTION_PROMPT.format(
            duration=hints.total_duration_seconds or "unspecified",
            treatment=treatment_text or "",
        )

        try:
            text = await asyncio.wait_for(
                self.complete(prompt, self.options),
                timeout=self.options.timeout_seconds
            )
            data = parse_json_object(text)
        except asyncio.TimeoutError:
            logger.warning(f"LLM extraction timed out after {self.options.timeout_ms}ms")
            return None
        except Exception as e:
            logger.warning(f"LLM extraction unusable: {e}")
            return None

        draft = self._to_draft(data, hints)
        if draft is None:
            logger.warning("LLM extraction returned no scenes")
        return draft

    def _to_draft(self, data: Dict[str, Any], hints: TreatmentHints) -> Optional[DraftManifest]:
        raw_scenes = data.get("scenes")
        if not isinstance(raw_scenes, list):
            return None

        scenes: List[DraftScene] = []
        for raw in raw_scenes:
            if not isinstance(raw, dict):
                continue
            index = len(scenes)
            title = _as_text(raw.get("purpose")) or "Body"
            effects = raw.get("effects")
            music = _as_text(raw.get("music"))
            scenes.append(DraftScene(
                id=f"s{index + 1}",
                index=index,
                purpose=normalize_purpose(title),
                title=title,
                duration_seconds=_as_duration(raw.get("durationSeconds")),
                narration=_as_text(raw.get("narration")),
                visuals_text=_as_text(raw.get("visuals")),
                effects=[e.strip() for e in effects if isinstance(e, str) and e.strip()] if isinstance(effects, list) else [],
                music_cue=music or None,
            ))

        if not scenes:
            return None
        assign_duration_weights(scenes)

        voice_data = data.get("voice") if isinstance(data.get("voice"), dict) else {}
        style = _as_text(voice_data.get("style"))
        voice = VoicePreference(
            provider=_as_text(voice_data.get("provider")) or None,
            style=style or None,
            gender=infer_gender(style),
            voice_id_hint=style or None,
        )

        return DraftManifest(
            title=_as_text(data.get("title")) or DEFAULT_TITLE,
            scenes=scenes,
            voice=voice,
            hints=hints,
        )
