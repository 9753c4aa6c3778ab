"""
Deterministic Treatment Parser

Reads a loosely structured treatment and produces a DraftManifest. It
never raises on malformed text: anything missing becomes a default plus a
note on the draft.

Supported treatment shape:
    # Production Plan: Title
    Tone: friendly
    Platform: YouTube

    ### Scene 1: [Purpose: Hook]
    - Duration: 20 sec
    - Narration: "Welcome..."
    - Visuals: laptop footage
    - Effects: [cinematic_zoom, fade_in]
    - Voice: [ElevenLabs / Style: Friendly Female]
"""

import re
from typing import Dict, List, Optional

from production_manifest.core.constants import DEFAULT_TITLE
from production_manifest.core.logging_config import get_logger
from production_manifest.models.draft import (
    DraftManifest,
    DraftScene,
    TreatmentHints,
    VoicePreference,
)

logger = get_logger("parsing.treatment")


SCENE_HEADING = re.compile(
    r'^[ \t]*(?:#{1,6}[ \t]*)?(?:\*\*)?Scene[ \t]+(\d+)(?:\*\*)?[ \t]*'
    r'(?:$|[:.\-–—][ \t]*(?P<rest>.*)$|(?P<bracket>\[.*)$)',
    re.IGNORECASE | re.MULTILINE
)
TITLE_HEADING = re.compile(r'^[ \t]*#{1,6}[ \t]+(.+?)[ \t]*#*[ \t]*$', re.MULTILINE)
TITLE_PREFIX = re.compile(r'^(?:production\s+plan|treatment|title)\s*[:\-–—]\s*', re.IGNORECASE)
PURPOSE_TAG = re.compile(r'\[\s*Purpose\s*:\s*([^\]]+?)\s*\]', re.IGNORECASE)

FIELD_LINE = re.compile(
    r'^[ \t]*(?:[-*•][ \t]*)?(?:\*\*)?'
    r'(Duration|Narration|Voice[ -]?over|VO|Voice|Visuals?|Effects?|Music|Notes?)'
    r'(?:\*\*)?[ \t]*:(?:\*\*)?[ \t]*(.*)$',
    re.IGNORECASE
)
OVERVIEW_LINE = re.compile(
    r'^[ \t]*(?:[-*•][ \t]*)?(?:\*\*)?'
    r'(Tone|Platform|Aspect[ _]Ratio|Language|Title|Voice|Total[ _]Duration|Duration)'
    r'(?:\*\*)?[ \t]*:(?:\*\*)?[ \t]*(.+)$',
    re.IGNORECASE | re.MULTILINE
)
DURATION_VALUE = re.compile(
    r'(\d+(?:\.\d+)?)\s*(seconds?|secs?|s|minutes?|mins?|m)?\b',
    re.IGNORECASE
)
RULE_LINE = re.compile(r'^[ \t]*[-*_=]{3,}[ \t]*$')
BRACKETED = re.compile(r'\[([^\]]*)\]')
VOICE_PATTERN = re.compile(r'\[?\s*([^\]/\[]+?)\s*/\s*Style\s*:\s*([^\]]+?)\s*\]?\s*$', re.IGNORECASE)
ASPECT_VALUE = re.compile(r'\b(\d+)\s*:\s*(\d+)\b')

FEMALE_WORDS = re.compile(r'\b(female|woman|feminine)\b', re.IGNORECASE)
MALE_WORDS = re.compile(r'\b(male|man|masculine)\b', re.IGNORECASE)

OPENING_PURPOSES = ("hook", "intro", "opening")
CLOSING_PURPOSES = ("outro", "cta", "call_to_action", "conclu", "end", "wrap")

LANGUAGE_CODES = {
    "english": "en",
    "spanish": "es",
    "french": "fr",
    "german": "de",
    "portuguese": "pt",
    "italian": "it",
    "japanese": "ja",
    "korean": "ko",
    "chinese": "zh",
}

FIELD_ALIASES = {
    "duration": "duration",
    "narration": "narration",
    "voiceover": "narration",
    "voice over": "narration",
    "voice-over": "narration",
    "vo": "narration",
    "voice": "voice",
    "visual": "visuals",
    "visuals": "visuals",
    "effect": "effects",
    "effects": "effects",
    "music": "music",
    "note": "notes",
    "notes": "notes",
}

QUOTE_CHARS = '"“”'


def normalize_purpose(text: str) -> str:
    """'Call to Action' -> 'call_to_action'."""
    slug = re.sub(r'[^a-z0-9]+', '_', (text or "").lower()).strip('_')
    return slug or "body"


def parse_duration_seconds(text: str) -> Optional[float]:
    """
    Parse '20 sec', '~1.5 min', '1 min 30 sec' or '30' into seconds.

    Every number with a unit is added up; a bare number counts only when
    no number carries a unit. None if nothing usable is found.
    """
    matches = DURATION_VALUE.findall(text or "")
    if not matches:
        return None
    with_units = [(number, unit) for number, unit in matches if unit]
    parts = with_units or matches[:1]

    value = 0.0
    for number, unit in parts:
        value += float(number) * (60 if unit.lower().startswith("m") else 1)
    return value if value > 0 else None


def infer_gender(text: str) -> str:
    """Female is checked first since 'female' contains 'male'."""
    if FEMALE_WORDS.search(text or ""):
        return "female"
    if MALE_WORDS.search(text or ""):
        return "male"
    return "any"


def parse_voice(text: str) -> Optional[VoicePreference]:
    """Parse '[ElevenLabs / Style: Friendly Female]' or free text."""
    text = (text or "").strip()
    if not text:
        return None
    match = VOICE_PATTERN.search(text)
    if match:
        provider, style = match.group(1).strip(), match.group(2).strip()
    else:
        provider, style = None, text.strip("[] ")
    return VoicePreference(
        provider=provider or None,
        style=style or None,
        gender=infer_gender(style),
        voice_id_hint=style or None,
    )


def duration_weight_for(purpose: str) -> float:
    """Opening and closing scenes run shorter than body scenes."""
    if any(purpose.startswith(word) for word in OPENING_PURPOSES):
        return 0.8
    if any(word in purpose for word in CLOSING_PURPOSES):
        return 0.8
    return 1.2


def _strip_quotes(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] in QUOTE_CHARS and text[-1] in QUOTE_CHARS:
        return text[1:-1].strip()
    if len(text) >= 2 and text[0] == "'" and text[-1] == "'":
        return text[1:-1].strip()
    return text


def _split_list(text: str) -> List[str]:
    match = BRACKETED.search(text or "")
    body = match.group(1) if match else (text or "")
    items = [item.strip() for item in re.split(r'[,;]', body)]
    return [item for item in items if item and item.lower() != "none"]


class TreatmentParser:
    """Turns treatment text plus hints into a DraftManifest."""

    def parse(self, treatment_text: str, hints: TreatmentHints = None) -> DraftManifest:
        """
        Parse a treatment.

        Args:
            treatment_text: Raw treatment, markdown or plain text
            hints: Caller context; kept on the draft for assembly

        Returns:
            DraftManifest with scenes numbered s1, s2, ... in source order
        """
        text = treatment_text if isinstance(treatment_text, str) else ""
        text = text.replace("\r\n", "\n")
        hints = hints or TreatmentHints()
        notes: List[str] = []

        headings = list(SCENE_HEADING.finditer(text))
        preamble = text[:headings[0].start()] if headings else text

        overview = self._parse_overview(preamble)
        title = self._extract_title(text, overview)
        if title is None:
            title = DEFAULT_TITLE
            notes.append("No title heading found; using default title")

        scenes = []
        for i, heading in enumerate(headings):
            end = headings[i + 1].start() if i + 1 < len(headings) else len(text)
            block = text[heading.end():end]
            scenes.append(self._parse_scene(i, heading, block, notes))

        if not scenes:
            notes.append("No scene headings found in treatment")

        assign_duration_weights(scenes)

        voice = next((scene.voice for scene in scenes if scene.voice), None)
        if voice is None:
            voice = parse_voice(overview.get("voice", "")) or VoicePreference()

        logger.info(f"Parsed treatment '{title}': {len(scenes)} scenes, {len(notes)} notes")
        return DraftManifest(
            title=title,
            scenes=scenes,
            voice=voice,
            overview=overview,
            hints=hints,
            notes=notes,
        )

    def _extract_title(self, text: str, overview: Dict[str, str]) -> Optional[str]:
        for match in TITLE_HEADING.finditer(text):
            line = match.group(0)
            if SCENE_HEADING.match(line):
                continue
            title = TITLE_PREFIX.sub("", match.group(1).strip("*# ")).strip()
            if title:
                return title
        return overview.get("title") or None

    def _parse_overview(self, preamble: str) -> Dict[str, str]:
        overview: Dict[str, str] = {}
        for match in OVERVIEW_LINE.finditer(preamble):
            key = re.sub(r'[ _]', '', match.group(1).lower())
            value = match.group(2).strip().strip("*").strip()
            if not value:
                continue
            if key == "aspectratio":
                aspect = ASPECT_VALUE.search(value)
                overview["aspectRatio"] = f"{aspect.group(1)}:{aspect.group(2)}" if aspect else value
            elif key == "language":
                lowered = value.lower()
                overview["language"] = LANGUAGE_CODES.get(lowered, lowered[:2] if len(lowered) == 2 else lowered)
            elif key in ("duration", "totalduration"):
                seconds = parse_duration_seconds(value)
                if seconds:
                    overview["durationSeconds"] = f"{seconds:g}"
            else:
                overview.setdefault(key, value)
        return overview

    def _parse_scene(self, index: int, heading: re.Match, block: str, notes: List[str]) -> DraftScene:
        scene_id = f"s{index + 1}"
        heading_text = (heading.group("rest") or heading.group("bracket") or "").strip().strip("*").strip()

        purpose_match = PURPOSE_TAG.search(heading_text)
        if purpose_match:
            title = purpose_match.group(1).strip()
        else:
            title = heading_text.strip("[]() ").strip()
        if not title:
            notes.append(f"Scene {scene_id} has no purpose; using 'body'")

        fields = self._collect_fields(block)

        duration = parse_duration_seconds(fields.get("duration", ""))
        if duration is None:
            notes.append(f"Scene {scene_id} has no duration; weight assigned")

        narration = _strip_quotes(" ".join(fields.get("narration", "").split()))
        music = fields.get("music", "").strip().strip("[]").strip()

        return DraftScene(
            id=scene_id,
            index=index,
            purpose=normalize_purpose(title),
            title=title or "Body",
            duration_seconds=duration,
            narration=narration,
            visuals_text=fields.get("visuals", "").strip(),
            effects=_split_list(fields.get("effects", "")),
            music_cue=music or None,
            voice=parse_voice(fields.get("voice", "")),
        )

    def _collect_fields(self, block: str) -> Dict[str, str]:
        """Group `- Key: value` lines with their continuation lines."""
        collected: Dict[str, List[str]] = {}
        current: Optional[str] = None

        for line in block.split("\n"):
            match = FIELD_LINE.match(line)
            if match:
                key = FIELD_ALIASES.get(match.group(1).lower(), match.group(1).lower())
                current = key
                collected.setdefault(key, [])
                if match.group(2).strip():
                    collected[key].append(match.group(2).rstrip())
            elif current is not None and line.strip() and not RULE_LINE.match(line):
                collected[current].append(line.strip())

        return {key: "\n".join(lines) for key, lines in collected.items()}


def assign_duration_weights(scenes: List[DraftScene]) -> None:
    """Set normalized weights on the scenes that gave no duration."""
    missing = [scene for scene in scenes if not scene.has_duration]
    if not missing:
        return
    raw = [duration_weight_for(scene.purpose) for scene in missing]
    total = sum(raw)
    for scene, weight in zip(missing, raw):
        scene.duration_weight = round(weight / total, 4)


def parse_treatment(treatment_text: str, hints: TreatmentHints = None) -> DraftManifest:
    """Module-level convenience wrapper around TreatmentParser."""
    return TreatmentParser().parse(treatment_text, hints)
