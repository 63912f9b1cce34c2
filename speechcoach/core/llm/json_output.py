from __future__ import annotations

import json
import re
from typing import Any

from speechcoach.core.llm.errors import LLMOutputError

_JSON_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")


def parse_json_object(text: str) -> dict[str, Any]:
    """
    Parse model output text into a JSON object.

    Schema-constrained generation normally yields clean JSON. When a provider wraps
    it in prose or code fences, fall back to the outermost `{...}` span.
    """

    if not text or not text.strip():
        raise LLMOutputError("No response text from model")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT_SPAN.search(text)
        if match is None:
            raise LLMOutputError("Model did not return valid JSON format") from None
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise LLMOutputError("Failed to parse JSON response from model") from exc

    if not isinstance(parsed, dict):
        raise LLMOutputError("Model JSON output must be an object")

    return parsed
