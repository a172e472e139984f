"""
Validation and bounded repair of provider output.

    first call -> parse -> validate -> ok
                                    -> repair call (temperature 0) -> validate -> ok
                                                                             -> failed

At most one repair call is made per logical request, so a request never
costs more than two provider calls. What happens after a failed repair
(fallback or terminal error) is the caller's decision.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Tuple

from src.common.ai_client import AIClient, ProviderError, ProviderOptions
from src.common.json_utils import parse_llm_json, try_parse_json
from src.common.prompt_sanitizer import sanitize_prompt
from src.common.types import GenerateResult, GenerationKind
from src.generation.prompts.repair import build_repair_prompt
from src.generation.schemas import describe_shape, validate_payload

logger = logging.getLogger(__name__)


@dataclass
class RepairOutcome:
    """Validated payload (or final errors) plus call accounting."""

    ok: bool
    value: Optional[dict] = None
    errors: List[str] = field(default_factory=list)
    provider_calls: int = 1
    repaired: bool = False
    repair_result: Optional[GenerateResult] = None


def extract_payload(result: GenerateResult) -> Tuple[Any, Optional[str]]:
    """
    Get a structured payload out of a provider result.

    The structured json is used as-is when present; otherwise the text is
    parsed strictly, then leniently (fences, surrounding prose, json-repair).

    Returns:
        (payload, parse_error) where payload is None when nothing parsed
    """
    if isinstance(result.json, dict):
        return result.json, None

    text = result.text or ""
    parsed = try_parse_json(text)
    if parsed is not None:
        return parsed, None
    try:
        return parse_llm_json(text), None
    except ValueError as e:
        return None, f"<root>: response is not a JSON object ({str(e).splitlines()[0]})"


class RepairPipeline:
    """Runs validation with one repair round-trip through an AIClient."""

    def __init__(self, client: AIClient, run_id: str = ""):
        self.client = client
        self.run_id = run_id

    def _log_prefix(self) -> str:
        return f"[{self.run_id[:24]}] " if self.run_id else ""

    async def run(
        self,
        kind: GenerationKind,
        first_result: GenerateResult,
        options: Optional[ProviderOptions] = None,
    ) -> RepairOutcome:
        """
        Validate the first result, repairing once if needed.

        Args:
            kind: Generation kind whose contract applies
            first_result: Result of the initial provider call
            options: Provider options used for the initial call

        Returns:
            RepairOutcome (ok=False after a failed repair)
        """
        options = options or ProviderOptions()
        payload, parse_error = extract_payload(first_result)
        if payload is not None:
            outcome = validate_payload(kind, payload)
            if outcome.ok:
                return RepairOutcome(ok=True, value=outcome.value, provider_calls=1)
            errors = outcome.errors
        else:
            errors = [parse_error or "<root>: response is not a JSON object"]

        logger.warning(
            f"{self._log_prefix()}{kind.value} output failed validation "
            f"({len(errors)} errors): {errors[:3]}; attempting one repair"
        )

        # Show the provider its own output verbatim when there is any
        previous = first_result.text or payload
        repair_prompt = sanitize_prompt(
            build_repair_prompt(kind, errors, previous, describe_shape(kind)),
            self.client.settings.prompt_max_chars,
        )
        repair_options = replace(options, temperature=0.0, json_mode=True)

        try:
            repair_result = await self.client.generate(kind, repair_prompt, repair_options)
        except ProviderError as e:
            logger.error(f"{self._log_prefix()}{kind.value} repair call failed: {e}")
            return RepairOutcome(
                ok=False,
                errors=errors + [f"repair call failed: {e}"],
                provider_calls=2,
            )

        repaired_payload, repaired_parse_error = extract_payload(repair_result)
        if repaired_payload is None:
            final_errors = [repaired_parse_error or "<root>: response is not a JSON object"]
        else:
            repaired_outcome = validate_payload(kind, repaired_payload)
            if repaired_outcome.ok:
                logger.info(f"{self._log_prefix()}{kind.value} output repaired")
                return RepairOutcome(
                    ok=True,
                    value=repaired_outcome.value,
                    provider_calls=2,
                    repaired=True,
                    repair_result=repair_result,
                )
            final_errors = repaired_outcome.errors

        logger.error(
            f"{self._log_prefix()}{kind.value} repair did not produce valid output: "
            f"{final_errors[:3]}"
        )
        return RepairOutcome(
            ok=False,
            errors=final_errors,
            provider_calls=2,
            repair_result=repair_result,
        )
