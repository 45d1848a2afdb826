# tools/json_utils.py
from __future__ import annotations

import json
import re
from typing import Any, Dict


def _extract_json_object(text: str) -> str:
    if not text:
        return ""
    text = text.strip()

    # strip ``` fences
    text = re.sub(r"^```(?:json)?\s*", "", text, flags=re.IGNORECASE)
    text = re.sub(r"\s*```$", "", text)

    # take first {...} block
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        return text[start : end + 1]
    return text


def _repair_jsonish(s: str) -> str:
    """
    Repairs common LLM "JSON-ish" mistakes:
    - NULL/True/False -> null/true/false
    - trailing commas before } or ]
    - missing commas between adjacent objects
    """
    if not s:
        return s

    s = s.strip()
    s = re.sub(r"\bNULL\b", "null", s)
    s = re.sub(r"\bTrue\b", "true", s)
    s = re.sub(r"\bFalse\b", "false", s)

    s = re.sub(r",\s*([}\]])", r"\1", s)

    #   } {  -> }, {
    s = re.sub(r"\}\s*\{", "},{", s)
    return s


def safe_json_loads(text: str) -> Dict[str, Any]:
    """
    Best-effort parse of structured model output:
    - extracts first JSON object
    - repairs common JSON-ish errors
    - json.loads
    Returns dict or {"error":..., "raw":...}
    """
    raw = _extract_json_object(text)
    if not raw:
        return {"error": "No JSON object found in model output.", "raw": (text or "")[:5000]}

    try:
        obj = json.loads(raw)
    except json.JSONDecodeError:
        repaired = _repair_jsonish(raw)
        try:
            obj = json.loads(repaired)
        except json.JSONDecodeError as e:
            return {"error": f"JSON parse failed after repair: {e}", "raw": repaired[:5000]}

    if isinstance(obj, dict):
        return obj
    return {"error": "Parsed JSON but not an object.", "raw": raw[:5000]}


def parse_error(obj: Dict[str, Any]) -> str:
    """Returns the parse error message if safe_json_loads failed, else ''."""
    if set(obj) <= {"error", "raw"} and "error" in obj:
        return str(obj["error"])
    return ""
