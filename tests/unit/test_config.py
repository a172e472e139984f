"""
Unit tests for src/common/config.py and src/common/logger.py
"""

import json
import logging

import pytest

from src.common.ai_client import MAX_PROMPT_CHARS, validate_prompt
from src.common.config import Config, GenerationSettings, _env_bool, _env_float, _env_int, _env_list
from src.common.logger import (
    JsonLineFormatter,
    PipelineLogger,
    SecretRedactionFilter,
    get_logger,
    setup_logging,
)
from src.common.prompt_sanitizer import sanitize_prompt


class TestEnvHelpers:
    """Tests for environment parsing helpers."""

    def test_float_and_int_fallbacks(self, monkeypatch):
        monkeypatch.setenv("X_FLOAT", "2.5")
        monkeypatch.setenv("X_INT", "garbage")
        assert _env_float("X_FLOAT", 1.0) == 2.5
        assert _env_int("X_INT", 7) == 7
        assert _env_float("X_MISSING", 3.0) == 3.0

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("on", True), ("no", False)])
    def test_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("X_BOOL", raw)
        assert _env_bool("X_BOOL", not expected) is expected

    def test_list(self, monkeypatch):
        monkeypatch.setenv("X_LIST", "gpt-4o-mini, gpt-4o ,,")
        assert _env_list("X_LIST") == ["gpt-4o-mini", "gpt-4o"]


class TestConfig:
    """Tests for Config validation."""

    def test_mock_mode_from_provider(self, monkeypatch):
        monkeypatch.setattr(Config, "AI_MOCK_MODE", False)
        monkeypatch.setattr(Config, "AI_PROVIDER", "mock")
        assert Config.is_mock_mode() is True

    def test_validate_requires_openai_key(self, monkeypatch):
        monkeypatch.setattr(Config, "MONGODB_URI", "mongodb://localhost")
        monkeypatch.setattr(Config, "AI_MOCK_MODE", False)
        monkeypatch.setattr(Config, "AI_PROVIDER", "openai")
        monkeypatch.setattr(Config, "OPENAI_API_KEY", "")

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            Config.validate()

    def test_validate_mock_mode_needs_no_key(self, monkeypatch):
        monkeypatch.setattr(Config, "MONGODB_URI", "mongodb://localhost")
        monkeypatch.setattr(Config, "AI_MOCK_MODE", True)
        monkeypatch.setattr(Config, "OPENAI_API_KEY", "")
        Config.validate()

    def test_validate_rejects_unknown_provider(self, monkeypatch):
        monkeypatch.setattr(Config, "MONGODB_URI", "mongodb://localhost")
        monkeypatch.setattr(Config, "AI_MOCK_MODE", True)
        monkeypatch.setattr(Config, "AI_PROVIDER", "cohere")

        with pytest.raises(ValueError, match="Unknown AI_PROVIDER"):
            Config.validate()

    def test_summary_hides_secrets(self, monkeypatch):
        monkeypatch.setattr(Config, "OPENAI_API_KEY", "sk-secret-value")
        assert "sk-secret-value" not in Config.summary()


class TestGenerationSettings:
    """Tests for the settings snapshot."""

    def test_from_config(self, monkeypatch):
        monkeypatch.setattr(Config, "AI_MOCK_MODE", False)
        monkeypatch.setattr(Config, "AI_PROVIDER", "openai")
        monkeypatch.setattr(Config, "AI_MODEL", "gpt-4o")
        monkeypatch.setattr(Config, "ALLOWED_AI_MODELS", ["gpt-4o", "gpt-4o-mini"])
        monkeypatch.setattr(Config, "AI_MAX_RETRIES", 4)

        settings = GenerationSettings.from_config()

        assert settings.mock_mode is False
        assert settings.default_model == "gpt-4o"
        assert settings.allowed_models == ("gpt-4o", "gpt-4o-mini")
        assert settings.max_retries == 4

    def test_prompt_limit_clamped_to_client_maximum(self, monkeypatch):
        monkeypatch.setattr(Config, "PROMPT_MAX_CHARS", 50_000)

        settings = GenerationSettings.from_config()

        assert settings.prompt_max_chars == MAX_PROMPT_CHARS
        prompt = sanitize_prompt("x" * 30_000, settings.prompt_max_chars)
        assert validate_prompt(prompt) == prompt

    def test_lower_prompt_limit_kept(self, monkeypatch):
        monkeypatch.setattr(Config, "PROMPT_MAX_CHARS", 8_000)
        assert GenerationSettings.from_config().prompt_max_chars == 8_000

    def test_frozen(self):
        settings = GenerationSettings()
        with pytest.raises(Exception):
            settings.max_retries = 9


class TestPipelineLogger:
    """Tests for run-tagged logging."""

    def test_prefix(self, caplog):
        log = get_logger("test.pipeline", run_id="gen_resume_0123456789ab", kind="resume")

        with caplog.at_level(logging.INFO, logger="test.pipeline"):
            log.info("started")

        assert "[run:456789ab] [resume] started" in caplog.text

    def test_no_context_no_prefix(self):
        assert PipelineLogger("x")._format_message("hello") == "hello"

    def test_record_carries_run_fields(self, caplog):
        log = get_logger("test.fields", run_id="gen_x_1", kind="prediction")

        with caplog.at_level(logging.INFO, logger="test.fields"):
            log.warning("fallback used")

        record = caplog.records[0]
        assert record.run_id == "gen_x_1"
        assert record.kind == "prediction"

    def test_run_messages_are_redacted(self, caplog):
        log = get_logger("test.redact", run_id="gen_x_1", kind="resume")

        with caplog.at_level(logging.INFO, logger="test.redact"):
            log.error("provider rejected api_key=abc123 for sk-proj-ABCDEFGHIJKLMNOPQRST")

        assert "abc123" not in caplog.text
        assert "ABCDEFGHIJKLMNOPQRST" not in caplog.text


class TestSecretRedactionFilter:
    """Tests for handler-level redaction of plain module loggers."""

    def test_redacts_formatted_args(self):
        record = logging.LogRecord(
            "src.services.content_extraction", logging.INFO, __file__, 1,
            "Fetching %s", ("https://example.com/?token=s3cr3t",), None,
        )

        assert SecretRedactionFilter().filter(record) is True
        assert "s3cr3t" not in record.getMessage()
        assert record.getMessage().startswith("Fetching https://example.com/?token=[REDACTED]")

    def test_clean_record_untouched(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "ok %d", (3,), None)

        SecretRedactionFilter().filter(record)

        assert record.args == (3,)
        assert record.getMessage() == "ok 3"


class TestJsonLineFormatter:
    """Tests for the JSON log format."""

    def test_emits_run_fields(self):
        record = logging.LogRecord("src.x", logging.INFO, __file__, 1, 'said "hi"', None, None)
        record.run_id = "gen_resume_1"
        record.kind = "resume"

        entry = json.loads(JsonLineFormatter().format(record))

        assert entry["message"] == 'said "hi"'
        assert entry["level"] == "INFO"
        assert entry["run_id"] == "gen_resume_1"
        assert entry["kind"] == "resume"

    def test_setup_logging_installs_filter(self):
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging(level="DEBUG", format="json")
            handler = root.handlers[-1]
            assert isinstance(handler.formatter, JsonLineFormatter)
            assert any(isinstance(f, SecretRedactionFilter) for f in handler.filters)
            assert root.level == logging.DEBUG
        finally:
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])
