"""
Repair context shared by the LLM repair tier and the minimal fallback.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from production_manifest.models.draft import TreatmentHints


@dataclass
class RepairContext:
    """What the repair tiers know about the request beyond the manifest."""
    hints: TreatmentHints = field(default_factory=TreatmentHints)
    treatment_excerpt: str = ""
    source_refs: Dict[str, Any] = field(default_factory=dict)
    manifest_id: Optional[str] = None
    callback_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'RepairContext':
        data = data or {}
        return cls(
            hints=TreatmentHints.from_dict(data.get("hints") or data),
            treatment_excerpt=data.get("treatmentExcerpt") or data.get("treatment") or "",
            source_refs=data.get("sourceRefs") or {},
            manifest_id=data.get("manifestId"),
            callback_url=data.get("callbackUrl"),
        )

    def describe(self, max_chars: int = 1500) -> str:
        """Plain-text context block for prompts."""
        lines = []
        for key, value in self.hints.to_dict().items():
            if value not in (None, ""):
                lines.append(f"- {key}: {value}")
        for key, value in self.source_refs.items():
            lines.append(f"- source {key}: {value}")
        if self.treatment_excerpt:
            lines.append(f"- treatment excerpt: {self.treatment_excerpt[:max_chars]}")
        return "\n".join(lines) or "- (none)"
