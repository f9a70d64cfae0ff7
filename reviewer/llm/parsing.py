"""Coerce free-text model output into a JSON object.

Some providers ignore ``response_format`` and wrap the object in markdown
fences or surround it with prose. Attempts, in order: strict parse, the
first fenced block, then the span from the first ``{`` to the last ``}``.
"""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\r?\n(.*?)\r?\n?```", re.DOTALL)


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def strip_fences(text: str) -> str:
    """Return the body of the first fenced block, or *text* stripped if there is none."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the JSON object held in *text*, or None if none can be recovered."""
    if not text or not text.strip():
        return None

    parsed = _loads_object(text.strip())
    if parsed is not None:
        return parsed

    if "```" in text:
        parsed = _loads_object(strip_fences(text))
        if parsed is not None:
            return parsed

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return _loads_object(text[start : end + 1])

    return None
