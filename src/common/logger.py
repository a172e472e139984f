"""
Logging for the artifact generation pipeline.

Two concerns live here:
- Run tagging: PipelineLogger prefixes every line with the run id and
  generation kind so one request can be followed across provider
  attempts, repairs and content extraction.
- Redaction: SecretRedactionFilter scrubs provider keys and credentials
  from every record that reaches the configured handler, so an error
  message echoing a prompt or URL never writes a secret to the log.
"""

import json
import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

from src.common.prompt_sanitizer import redact_secrets

RUN_ID_CHARS = 8


class SecretRedactionFilter(logging.Filter):
    """Rewrite each record's message with credentials redacted."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line, carrying run_id/kind when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for field in ("run_id", "kind"):
            value = getattr(record, field, None)
            if value:
                entry[field] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class PipelineLogger(logging.LoggerAdapter):
    """
    Logger adapter for one generation run.

    Messages get a "[run:<last 8 of run_id>] [<kind>]" prefix and are
    redacted before they are handed to the underlying logger. run_id and
    kind are also attached to the record for the JSON formatter.
    """

    def __init__(self, name: str, run_id: Optional[str] = None, kind: Optional[str] = None):
        super().__init__(logging.getLogger(name), {"run_id": run_id, "kind": kind})
        self.run_id = run_id
        self.kind = kind

    def _format_message(self, message: str) -> str:
        prefix_parts = []
        if self.run_id:
            prefix_parts.append(f"[run:{self.run_id[-RUN_ID_CHARS:]}]")
        if self.kind:
            prefix_parts.append(f"[{self.kind}]")
        if prefix_parts:
            return f"{' '.join(prefix_parts)} {message}"
        return message

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[str, MutableMapping[str, Any]]:
        kwargs.setdefault("extra", {}).update(self.extra)
        return redact_secrets(self._format_message(str(msg))), kwargs


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Configure root logging for the CLIs.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: "simple" text lines or "json" lines
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(SecretRedactionFilter())
    if format == "json":
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))


def get_logger(name: str, run_id: Optional[str] = None, kind: Optional[str] = None) -> PipelineLogger:
    """Run-tagged logger for one generation request."""
    return PipelineLogger(name, run_id=run_id, kind=kind)
