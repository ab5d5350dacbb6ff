"""JSON extraction shared by every LLM provider."""

from __future__ import annotations

import json
import re

JSON_INSTRUCTION = (
    "\n\nIMPORTANT: Respond ONLY with valid JSON. "
    "Do not include markdown code fences or any other text."
)

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def parse_json(text: str) -> dict:
    """Best-effort JSON object extraction from LLM output.

    Accepts plain JSON, JSON wrapped in markdown ```json fences, or the
    first ``{ ... }`` block embedded in prose.  Raises
    :class:`json.JSONDecodeError` when nothing parses to an object.
    """
    text = (text or "").strip()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    match = _FENCE_RE.search(text)
    if match:
        parsed = json.loads(match.group(1).strip())
        if isinstance(parsed, dict):
            return parsed

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        parsed = json.loads(text[start : end + 1])
        if isinstance(parsed, dict):
            return parsed

    raise json.JSONDecodeError("No JSON object found in response", text, 0)
