"""
Repair Pipeline

Drives a manifest through the repair state machine until it is valid:

    validate -> deterministic repair -> LLM repair -> minimal fallback

Every tier re-validates. Jobs are re-derived by the decomposer after each
repair so the job graph always matches the repaired scenes. The caller
always gets a valid manifest plus the warnings describing every
degradation; only a broken fallback raises.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from production_manifest.core.config import ManifestConfig, get_config
from production_manifest.core.constants import (
    DETERMINISTIC_REPAIR_WARNING,
    LLM_REPAIR_WARNING,
)
from production_manifest.core.exceptions import ErrorKind, LLMRepairFailure, SchemaViolation
from production_manifest.core.logging_config import manifest_logger
from production_manifest.jobs.decomposer import decompose_jobs
from production_manifest.llm.providers import CompletionFn
from production_manifest.models.manifest import ProductionManifest
from production_manifest.repair.context import RepairContext
from production_manifest.repair.deterministic import DeterministicRepairer
from production_manifest.repair.fallback import build_minimal_fallback
from production_manifest.repair.llm_repair import LLMRepairer
from production_manifest.repair.state_machine import RepairState, next_state
from production_manifest.validation.schema_validator import (
    ValidationResult,
    require_valid,
    validate_manifest,
)


@dataclass
class RepairOutcome:
    """Result of a repair run."""
    manifest: ProductionManifest
    warnings: List[str] = field(default_factory=list)
    final_state: RepairState = RepairState.VALIDATED
    history: List[RepairState] = field(default_factory=list)
    tier_errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return self.final_state == RepairState.MINIMAL_FALLBACK

    def as_tuple(self) -> Tuple[ProductionManifest, List[str]]:
        return self.manifest, list(self.warnings)


def _merge_warnings(*groups: Any) -> List[str]:
    merged: List[str] = []
    for group in groups:
        for warning in group if isinstance(group, list) else []:
            if isinstance(warning, str) and warning not in merged:
                merged.append(warning)
    return merged


class RepairPipeline:
    """
    Tiered repair of one manifest at a time.

    The pipeline holds no per-manifest state, so one instance can repair
    many manifests concurrently.
    """

    def __init__(self, complete: Optional[CompletionFn] = None, config: ManifestConfig = None):
        self.config = config or get_config()
        self.deterministic = DeterministicRepairer(self.config.repair, self.config.metadata_defaults)
        self.llm: Optional[LLMRepairer] = None
        if complete is not None and self.config.repair.llm_repair_enabled:
            self.llm = LLMRepairer(complete, self.config.repair)

    def _check(self, manifest: Any) -> ValidationResult:
        """Schema and invariant validation, plus the typed model build."""
        result = validate_manifest(manifest, self.config.repair.duration_tolerance)
        if result.valid:
            try:
                require_valid(manifest, self.config.repair.duration_tolerance)
            except SchemaViolation as e:
                return ValidationResult(valid=False, errors=list(e.errors))
        return result

    def _with_jobs(self, manifest: Dict[str, Any], callback_url: Optional[str]) -> Dict[str, Any]:
        manifest["jobs"] = decompose_jobs(manifest, callback_url=callback_url)
        return manifest

    async def run(self, manifest: Any, context: RepairContext = None) -> RepairOutcome:
        """
        Repair a manifest until it validates.

        Args:
            manifest: Manifest in wire form (any JSON value) or a
                ProductionManifest
            context: Request context for the LLM tier and the fallback

        Returns:
            RepairOutcome with a validated manifest and every warning

        Raises:
            FallbackConstructionError: If even the fallback is invalid
            GraphIntegrityViolation: If decomposition produced a broken graph
        """
        context = context or RepairContext()
        callback_url = context.callback_url or self.config.render.resolved_callback_url()
        if isinstance(manifest, ProductionManifest):
            manifest = manifest.to_dict()
        log = manifest_logger("pipelines.repair", manifest.get("id") if isinstance(manifest, dict) else None)

        warnings: List[str] = []
        tier_errors: Dict[str, List[str]] = {}
        state = RepairState.PENDING
        history = [state]
        current = copy.deepcopy(manifest)
        result = self._check(current)
        if not result.valid:
            tier_errors["initial"] = [str(issue) for issue in result.errors]

        while True:
            previous, state = state, next_state(state, result.valid, self.llm is not None)
            history.append(state)
            log.info(f"Repair state: {previous.value} -> {state.value}")

            if state == RepairState.VALIDATED:
                break

            if state == RepairState.DETERMINISTIC_REPAIR_APPLIED:
                report = self.deterministic.repair(current)
                current = self._with_jobs(report.manifest, callback_url)
                result = self._check(current)
                if result.valid:
                    warnings.append(DETERMINISTIC_REPAIR_WARNING)
                else:
                    tier_errors["deterministic"] = [str(issue) for issue in result.errors]
                continue

            if state == RepairState.LLM_REPAIR_APPLIED:
                try:
                    repaired = await self.llm.repair(current, result.errors, context)
                    try:
                        repaired = self._with_jobs(repaired, callback_url)
                        llm_result = self._check(repaired)
                    except Exception as e:
                        # LLM output can have shapes no other tier produces
                        raise LLMRepairFailure(
                            f"result could not be checked: {type(e).__name__}: {e}"
                        ) from e
                    if not llm_result.valid:
                        raise LLMRepairFailure(
                            f"result still invalid with {llm_result.error_count} error(s)",
                            {"errors": [str(issue) for issue in llm_result.errors]}
                        )
                except LLMRepairFailure as e:
                    log.warning(str(e))
                    tier_errors["llm"] = [str(e)]
                    warnings.append(f"{ErrorKind.LLM_REPAIR_FAILURE.value}: {e.message}")
                    continue
                current, result = repaired, llm_result
                warnings.append(LLM_REPAIR_WARNING)
                continue

            # MINIMAL_FALLBACK
            warnings.append(
                f"{ErrorKind.REPAIR_EXHAUSTED.value}: no repair tier produced a valid manifest"
            )
            current = build_minimal_fallback(
                context=context,
                original=manifest,
                config=self.config.repair,
                defaults=self.config.metadata_defaults,
                warnings=_merge_warnings(
                    manifest.get("warnings") if isinstance(manifest, dict) else None,
                    warnings,
                ),
            )
            break

        carried = manifest.get("warnings") if isinstance(manifest, dict) else None
        current["warnings"] = _merge_warnings(carried, current.get("warnings"), warnings)
        final = ProductionManifest.from_dict(current)

        log.info(
            f"Repair finished in state '{state.value}' with {len(final.warnings)} warning(s)"
        )
        return RepairOutcome(
            manifest=final,
            warnings=list(final.warnings),
            final_state=state,
            history=history,
            tier_errors=tier_errors,
        )
