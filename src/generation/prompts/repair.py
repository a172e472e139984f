"""
Prompt for the single repair round-trip after a failed validation.
"""

import json
from typing import Any, List

from src.common.types import GenerationKind
from src.generation.prompts.shared import JSON_ONLY_INSTRUCTION, assemble, section

PREVIOUS_RESPONSE_PREVIEW_CHARS = 1500


def build_repair_prompt(
    kind: GenerationKind,
    errors: List[str],
    previous_response: Any,
    expected_shape: str,
) -> str:
    """
    Ask the provider to fix its previous output.

    Args:
        kind: Kind whose contract failed
        errors: Validation messages, included verbatim
        previous_response: Invalid output (dict or text)
        expected_shape: Schema description of the contract

    Returns:
        Repair prompt text
    """
    if isinstance(previous_response, (dict, list)):
        preview = json.dumps(previous_response, ensure_ascii=False, default=str)
    else:
        preview = str(previous_response if previous_response is not None else "")
    preview = preview[:PREVIOUS_RESPONSE_PREVIEW_CHARS]
    error_lines = "\n".join(f"- {error}" for error in errors) or "- response was not valid JSON"

    return assemble(
        f"Your previous {kind.value} response failed validation. Fix every error below "
        "and return the corrected object. Keep all valid content unchanged.",
        section("Validation Errors", error_lines),
        section("Previous Response", preview or "(empty)"),
        section("Expected Shape", expected_shape),
        JSON_ONLY_INSTRUCTION,
    )
