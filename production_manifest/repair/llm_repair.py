"""
LLM-Assisted Repair

Second repair tier. Sends the still-invalid manifest, every validation
error and the schema to a completion function, then parses the answer
strictly. Any timeout, exception or non-object answer raises
LLMRepairFailure; the caller decides what happens next.
"""

import asyncio
import json
from typing import Any, Dict, List

from production_manifest.core.config import RepairConfig
from production_manifest.core.exceptions import LLMRepairFailure, LLMResponseError
from production_manifest.core.logging_config import get_logger
from production_manifest.llm.json_utils import parse_json_object
from production_manifest.llm.providers import CompletionFn, CompletionOptions
from production_manifest.models.schema import schema_summary
from production_manifest.validation.schema_validator import ValidationIssue

from .context import RepairContext

logger = get_logger("repair.llm")

# Provenance the model may not rewrite
PINNED_FIELDS = ("id", "createdAt", "userId", "sourceRefs")

REPAIR_PROMPT = """You are a strict JSON repair specialist. Fix the following Production Manifest so it validates against the schema.

INVALID MANIFEST:
{manifest}

VALIDATION ERRORS:
{errors}

SCHEMA REQUIREMENTS:
{schema}

CONTEXT:
{context}

REPAIR RULES:
1. Keep every valid field exactly as it is.
2. Add missing required fields with sensible values taken from the context.
3. Scene durationSeconds values must sum to metadata.durationSeconds.
4. Scenes must be contiguous: each startAtSec equals the previous scene's end.
5. Every scene visual assetId must exist as a key in assets.
6. Do not invent narration; leave it empty when unknown.
7. Return ONLY the repaired JSON manifest, with no explanations and no markdown.
"""


class LLMRepairer:
    """Bounded, single-shot repair through a completion function."""

    def __init__(self, complete: CompletionFn, config: RepairConfig = None):
        self.complete = complete
        self.config = config or RepairConfig()
        self.options = CompletionOptions(
            temperature=self.config.llm_temperature,
            max_tokens=self.config.llm_max_tokens,
            timeout_ms=self.config.llm_timeout_ms,
        )

    def build_prompt(self, manifest: Any, errors: List[ValidationIssue], context: RepairContext) -> str:
        return REPAIR_PROMPT.format(
            manifest=json.dumps(manifest, indent=2, default=str),
            errors="\n".join(f"- {issue}" for issue in errors) or "- (none reported)",
            schema=schema_summary(),
            context=context.describe(),
        )

    async def repair(self, manifest: Any, errors: List[ValidationIssue],
                     context: RepairContext = None) -> Dict[str, Any]:
        """
        Ask the LLM for a repaired manifest.

        Args:
            manifest: The manifest after deterministic repair
            errors: Every remaining validation issue
            context: Request context for the prompt

        Returns:
            Parsed manifest object, not yet validated

        Raises:
            LLMRepairFailure: On timeout, provider error or non-JSON output
        """
        context = context or RepairContext()
        prompt = self.build_prompt(manifest, errors, context)
        logger.info(f"Requesting LLM repair for {len(errors)} validation error(s)")

        try:
            text = await asyncio.wait_for(
                self.complete(prompt, self.options),
                timeout=self.options.timeout_seconds
            )
        except asyncio.TimeoutError:
            raise LLMRepairFailure(
                f"timed out after {self.options.timeout_ms}ms",
                {"timeout_ms": self.options.timeout_ms}
            )
        except Exception as e:
            raise LLMRepairFailure(f"completion raised {type(e).__name__}: {e}")

        try:
            repaired = parse_json_object(text)
        except LLMResponseError as e:
            raise LLMRepairFailure(f"response was not a JSON object ({e.message})")

        if isinstance(manifest, dict):
            for key in PINNED_FIELDS:
                if key in manifest:
                    repaired[key] = manifest[key]
        return repaired
