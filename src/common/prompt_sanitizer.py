"""
Prompt sanitization and model selection.

Every prompt passes through sanitize_prompt() before it reaches a provider,
mock mode included, so a stored profile field holding a pasted API key or
stray control bytes never leaves the process.
"""

import re
from typing import Optional, Sequence

DEFAULT_MAX_PROMPT_CHARS = 16_000
TRUNCATION_MARKER = "…"

# Control characters except tab, newline and carriage return
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

# Provider keys: OpenAI (sk-..., sk-proj-...) and Anthropic (sk-ant-...)
_PROVIDER_KEY = re.compile(r"sk-(?:ant-|proj-)?[A-Za-z0-9_\-]{16,}")

# key=value / key: value credentials
_CREDENTIAL_ASSIGNMENT = re.compile(
    r"\b(api[_-]?key|access[_-]?token|secret|token|password)\s*[:=]\s*[\"']?[^\s\"']+[\"']?",
    re.IGNORECASE,
)

# Authorization: Bearer <token>
_BEARER_TOKEN = re.compile(r"\b(Bearer)\s+[A-Za-z0-9_\-\.=]{16,}", re.IGNORECASE)


def redact_secrets(text: str) -> str:
    """Replace credential-looking substrings with redaction markers."""
    text = _PROVIDER_KEY.sub("[REDACTED_KEY]", text)
    text = _CREDENTIAL_ASSIGNMENT.sub(lambda m: f"{m.group(1)}=[REDACTED]", text)
    text = _BEARER_TOKEN.sub(lambda m: f"{m.group(1)} [REDACTED]", text)
    return text


def sanitize_prompt(text: Optional[str], max_len: int = DEFAULT_MAX_PROMPT_CHARS) -> str:
    """
    Make a prompt safe to send to a provider.

    - Control characters become spaces
    - Provider keys and key=value credentials are redacted
    - Output longer than max_len is cut to max_len - 1 chars plus "…"

    Args:
        text: Raw prompt text (None is treated as empty)
        max_len: Maximum output length in characters

    Returns:
        Sanitized prompt, never longer than max_len
    """
    if text is None:
        return ""
    cleaned = _CONTROL_CHARS.sub(" ", str(text))
    cleaned = redact_secrets(cleaned)
    if max_len <= 0:
        return ""
    if len(cleaned) > max_len:
        return cleaned[: max_len - 1] + TRUNCATION_MARKER
    return cleaned


def select_model(
    requested: Optional[str],
    default_model: str,
    allowed_models: Sequence[str] = (),
) -> str:
    """
    Pick the model for a call.

    A caller override is honored when the allow-list is empty or contains
    it; anything else falls back to the configured default.
    """
    candidate = (requested or "").strip()
    if candidate and (not allowed_models or candidate in allowed_models):
        return candidate
    return default_model
