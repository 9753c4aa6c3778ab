"""
Strict JSON handling for LLM output.
"""

import json
from typing import Any, Dict

from production_manifest.core.exceptions import LLMResponseError


def parse_json_object(text: Any) -> Dict[str, Any]:
    """
    Parse a completion as a single JSON object.

    Surrounding whitespace is the only thing tolerated: prose, markdown
    fences, trailing text and non-object values are all rejected.

    Raises:
        LLMResponseError: If the text is not exactly one JSON object
    """
    if not isinstance(text, str):
        raise LLMResponseError(
            "Completion did not return text",
            {"type": type(text).__name__}
        )

    stripped = text.strip()
    if not stripped:
        raise LLMResponseError("Completion was empty")

    try:
        value = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise LLMResponseError(
            f"Completion is not valid JSON: {e.msg}",
            {"line": e.lineno, "column": e.colno}
        )

    if not isinstance(value, dict):
        raise LLMResponseError(
            "Completion JSON is not an object",
            {"type": type(value).__name__}
        )
    return value
