"""
Configuration loader for the AI artifact generation pipeline.

Loads all settings from environment variables (.env file).
Validates required settings and provides type-safe access.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Longest prompt the provider client accepts
PROVIDER_MAX_PROMPT_CHARS = 20_000


def _env_float(name: str, default: float) -> float:
    """Read a float env var, falling back to default when missing or unparsable."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    """Read an int env var, falling back to default when missing or unparsable."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(float(raw))
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]


class Config:
    """
    Centralized configuration for all pipeline components.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== MongoDB =====
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "career_workspace")

    # ===== LLM Providers =====
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "")
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")

    # Provider selection: "openai" (primary), "anthropic" (reserved), "mock"
    AI_PROVIDER: str = os.getenv("AI_PROVIDER", "openai").strip().lower()
    # Test mode: forces the deterministic mock provider, no network I/O
    AI_MOCK_MODE: bool = _env_bool("AI_MOCK_MODE", False)

    # ===== Model Configuration =====
    AI_MODEL: str = os.getenv("AI_MODEL", "gpt-4o-mini")
    # Caller overrides are accepted only from this list (empty = any model)
    ALLOWED_AI_MODELS: List[str] = _env_list("ALLOWED_AI_MODELS")

    AI_TEMPERATURE: float = _env_float("AI_TEMPERATURE", 0.2)
    AI_MAX_TOKENS: int = _env_int("AI_MAX_TOKENS", 800)
    AI_TIMEOUT_SECONDS: float = _env_float("AI_TIMEOUT_SECONDS", 30.0)
    AI_MAX_RETRIES: int = _env_int("AI_MAX_RETRIES", 2)
    AI_BACKOFF_BASE_SECONDS: float = _env_float("AI_BACKOFF_BASE_SECONDS", 1.0)
    AI_BACKOFF_CAP_SECONDS: float = _env_float("AI_BACKOFF_CAP_SECONDS", 10.0)
    AI_BACKOFF_JITTER_SECONDS: float = _env_float("AI_BACKOFF_JITTER_SECONDS", 0.3)

    # ===== Prompt Sanitization =====
    PROMPT_MAX_CHARS: int = _env_int("PROMPT_MAX_CHARS", 16_000)

    # ===== Web Scraping =====
    SCRAPER_TIMEOUT_SECONDS: float = _env_float("SCRAPER_TIMEOUT_SECONDS", 15.0)
    SCRAPER_MAX_RETRIES: int = _env_int("SCRAPER_MAX_RETRIES", 3)
    BROWSER_HEADLESS: bool = _env_bool("BROWSER_HEADLESS", True)

    # ===== Company Research Cache =====
    COMPANY_RESEARCH_TTL_DAYS: int = _env_int("COMPANY_RESEARCH_TTL_DAYS", 7)

    # ===== In-process Cache =====
    MEMORY_CACHE_MAX_KEYS: int = _env_int("MEMORY_CACHE_MAX_KEYS", 10_000)
    MEMORY_CACHE_MAX_BYTES: int = _env_int("MEMORY_CACHE_MAX_BYTES", 100 * 1024 * 1024)
    MEMORY_CACHE_TTL_SECONDS: float = _env_float("MEMORY_CACHE_TTL_SECONDS", 300.0)

    # ===== Logging =====
    DEBUG_MODE: bool = _env_bool("DEBUG_MODE", False)

    @classmethod
    def is_mock_mode(cls) -> bool:
        """True when the deterministic mock provider must be used."""
        return cls.AI_MOCK_MODE or cls.AI_PROVIDER == "mock"

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required configuration is present.
        Raises ValueError if critical settings are missing.
        """
        required_settings = {
            "MONGODB_URI": cls.MONGODB_URI,
        }

        if not cls.is_mock_mode():
            if cls.AI_PROVIDER == "openai":
                required_settings["OPENAI_API_KEY"] = cls.OPENAI_API_KEY
            elif cls.AI_PROVIDER == "anthropic":
                required_settings["ANTHROPIC_API_KEY"] = cls.ANTHROPIC_API_KEY

        missing = [name for name, value in required_settings.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Please check your .env file."
            )

        if cls.AI_PROVIDER not in ("openai", "anthropic", "mock"):
            raise ValueError(
                f"Unknown AI_PROVIDER '{cls.AI_PROVIDER}'. "
                "Expected one of: openai, anthropic, mock."
            )

    @classmethod
    def get_llm_base_url(cls) -> Optional[str]:
        """Primary provider base URL (None to use OpenAI directly)."""
        return cls.OPENAI_BASE_URL or None

    @classmethod
    def summary(cls) -> str:
        """Return a summary of the current configuration (safe for logging)."""
        return f"""
Configuration Summary:
  MongoDB: {'✓ Configured' if cls.MONGODB_URI else '✗ Missing'}
  Provider: {'mock (test mode)' if cls.is_mock_mode() else cls.AI_PROVIDER}
  OpenAI: {'✓' if cls.OPENAI_API_KEY else '✗ Missing'}
  Default Model: {cls.AI_MODEL}
  Allowed Models: {', '.join(cls.ALLOWED_AI_MODELS) or 'any'}
  Temperature / Max Tokens: {cls.AI_TEMPERATURE} / {cls.AI_MAX_TOKENS}
  Timeout / Retries: {cls.AI_TIMEOUT_SECONDS}s / {cls.AI_MAX_RETRIES}
  Scraper: timeout={cls.SCRAPER_TIMEOUT_SECONDS}s retries={cls.SCRAPER_MAX_RETRIES} headless={cls.BROWSER_HEADLESS}
        """.strip()


@dataclass(frozen=True)
class GenerationSettings:
    """
    Snapshot of the provider knobs used for one generation.

    Handlers receive an explicit settings object instead of reading
    Config class attributes, which keeps tests independent of the
    environment at import time.
    """

    provider: str = "openai"
    mock_mode: bool = False
    default_model: str = "gpt-4o-mini"
    allowed_models: Tuple[str, ...] = field(default_factory=tuple)
    temperature: float = 0.2
    max_tokens: int = 800
    timeout_seconds: float = 30.0
    max_retries: int = 2
    backoff_base_seconds: float = 1.0
    backoff_cap_seconds: float = 10.0
    backoff_jitter_seconds: float = 0.3
    prompt_max_chars: int = 16_000

    @classmethod
    def from_config(cls) -> "GenerationSettings":
        """Build settings from the current environment-driven Config."""
        return cls(
            provider=Config.AI_PROVIDER,
            mock_mode=Config.is_mock_mode(),
            default_model=Config.AI_MODEL,
            allowed_models=tuple(Config.ALLOWED_AI_MODELS),
            temperature=Config.AI_TEMPERATURE,
            max_tokens=Config.AI_MAX_TOKENS,
            timeout_seconds=Config.AI_TIMEOUT_SECONDS,
            max_retries=Config.AI_MAX_RETRIES,
            backoff_base_seconds=Config.AI_BACKOFF_BASE_SECONDS,
            backoff_cap_seconds=Config.AI_BACKOFF_CAP_SECONDS,
            backoff_jitter_seconds=Config.AI_BACKOFF_JITTER_SECONDS,
            prompt_max_chars=min(Config.PROMPT_MAX_CHARS, PROVIDER_MAX_PROMPT_CHARS),
        )


# Validate configuration on import (fail fast if misconfigured)
# Comment this out during development if you want to test without all keys
# Config.validate()
