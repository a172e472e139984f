"""
JSON Utilities for provider response parsing.

Two entry points:
- try_parse_json(): strict, never repairs. Used on the provider path to
  decide whether a completion arrived as a JSON object at all.
- parse_llm_json(): lenient. Strips fences, cuts the object out of
  surrounding prose and falls back to json-repair for single quotes,
  trailing commas and unquoted keys. Used by the repair pipeline before
  it spends a second provider call.
"""

import json
import re
from typing import Any, Dict, Optional

from json_repair import repair_json

# ```json ... ``` anywhere in the text
_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


def strip_markdown_fences(text: str) -> str:
    """
    Remove a markdown code fence around (or inside) the text.

    Args:
        text: Text that may be wrapped in ```json ... ``` blocks

    Returns:
        The fenced body when a fence is present, otherwise the stripped text
    """
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()

    result = text.strip()
    if result.startswith("```json"):
        result = result[7:]
    elif result.startswith("```"):
        result = result[3:]
    if result.endswith("```"):
        result = result[:-3]
    return result.strip()


def try_parse_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Best-effort strict JSON parse of a provider completion.

    Tries the raw text first, then the text with markdown fences removed.

    Returns:
        Parsed dictionary, or None when the text is not a JSON object
    """
    if not text or not text.strip():
        return None

    for candidate in (text.strip(), strip_markdown_fences(text)):
        try:
            value = json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(value, dict):
            return value
    return None


def parse_llm_json(text: str) -> Dict[str, Any]:
    """
    Parse JSON from a provider response with error recovery.

    Args:
        text: Raw completion text that may contain JSON

    Returns:
        Parsed dictionary

    Raises:
        ValueError: If no JSON object can be extracted or repaired

    Example:
        >>> parse_llm_json('```json\\n{"key": "value"}\\n```')
        {'key': 'value'}
        >>> parse_llm_json("{'name': 'test',}")
        {'name': 'test'}
    """
    if not text or not text.strip():
        raise ValueError("Empty input: no JSON content to parse")

    json_str = _extract_json_object(strip_markdown_fences(text))

    try:
        value = json.loads(json_str)
        if isinstance(value, dict):
            return value
    except json.JSONDecodeError:
        pass

    repaired = repair_json(json_str, return_objects=True)
    if isinstance(repaired, dict) and repaired:
        return repaired
    if isinstance(repaired, list):
        # Providers sometimes wrap the object in brackets: [{...}]
        dicts = [item for item in repaired if isinstance(item, dict)]
        if dicts:
            merged: Dict[str, Any] = {}
            for item in dicts:
                merged.update(item)
            return merged

    raise ValueError(
        f"Failed to parse or repair JSON. "
        f"Original text (first 500 chars): {text[:500]}"
    )


def _extract_json_object(text: str) -> str:
    """
    Cut the outermost {...} out of surrounding prose.

    Raises:
        ValueError: If no JSON object pattern is found
    """
    text = text.strip()
    if text.startswith("{"):
        return text

    match = re.search(r"\{.*\}", text, re.DOTALL)
    if match:
        return match.group(0)

    raise ValueError(f"No JSON object found in text: {text[:200]}")
