"""Structured-data extraction from free-form model output."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from utils.exceptions import ModelOutputParseError


def find_json_object_span(text: str) -> Optional[tuple[int, int]]:
    """
    Locate the first ``{`` and its matching outermost ``}``.

    Braces inside JSON string literals are ignored. Returns ``(start, end)``
    with ``end`` inclusive, or None when there is no balanced object.
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return start, idx
    return None


def extract_json_object(content: Any) -> Dict[str, Any]:
    """
    Parse the first JSON object embedded in model output.

    Raises:
        ModelOutputParseError: no balanced object, invalid JSON, or not an object
    """
    text = str(content or "")
    span = find_json_object_span(text)
    if span is None:
        raise ModelOutputParseError("no JSON object found in model output", preview=text[:120])

    candidate = text[span[0] : span[1] + 1]
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ModelOutputParseError(f"invalid JSON in model output: {exc.msg}", position=exc.pos) from exc

    if not isinstance(parsed, dict):
        raise ModelOutputParseError("model output JSON is not an object")
    return parsed


def _lookup(payload: Dict[str, Any], dotted: str) -> Any:
    node: Any = payload
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def missing_fields(payload: Dict[str, Any], required: Iterable[str]) -> List[str]:
    """Required (dotted) fields that are absent, null, or blank strings."""
    missing = []
    for name in required:
        value = _lookup(payload, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def extract_required(content: Any, required: Iterable[str]) -> Dict[str, Any]:
    """extract_json_object plus a required-field check."""
    payload = extract_json_object(content)
    absent = missing_fields(payload, required)
    if absent:
        raise ModelOutputParseError(
            f"model output missing required fields: {', '.join(absent)}",
            missing_fields=absent,
        )
    return payload
