"""
Access to the ProductionManifest JSON Schema.

The schema file ships inside the package and is loaded once; callers get a
deep copy so nothing can mutate the cached document.
"""

import copy
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

SCHEMA_PATH = Path(__file__).parent / "production_manifest.schema.json"


@lru_cache(maxsize=1)
def _cached_schema() -> Dict[str, Any]:
    with open(SCHEMA_PATH, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_manifest_schema() -> Dict[str, Any]:
    """Return a private copy of the manifest JSON Schema."""
    return copy.deepcopy(_cached_schema())


def schema_summary() -> str:
    """Compact schema text for inclusion in LLM prompts."""
    return json.dumps(_cached_schema(), separators=(",", ":"))
