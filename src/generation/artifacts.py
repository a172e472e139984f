"""
Artifact assembly.

Turns a sanitized payload plus call diagnostics into the immutable
Artifact record that is returned to the caller and optionally persisted.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from src.common.types import Artifact, GenerateResult, GenerationKind

PROMPT_STORE_CHARS = 2000
PROMPT_PREVIEW_CHARS = 400
DEFAULT_ROLE = "Target Role"

_TITLE_PREFIX = {
    GenerationKind.RESUME: "AI Resume for",
    GenerationKind.COVER_LETTER: "Cover Letter for",
    GenerationKind.SKILLS_OPTIMIZATION: "Skills Optimization for",
    GenerationKind.SALARY_RESEARCH: "Salary Research for",
    GenerationKind.JOB_MATCH: "Job Match for",
    GenerationKind.EXPERIENCE_TAILORING: "Experience Tailoring for",
}


def artifact_title(
    kind: GenerationKind,
    job: Optional[Dict[str, Any]] = None,
    company_name: Optional[str] = None,
) -> str:
    """Human title, e.g. "AI Resume for Backend Engineer"."""
    if kind == GenerationKind.PREDICTION:
        return "Job Search Prediction"
    if kind == GenerationKind.COMPANY_RESEARCH:
        name = company_name or (job or {}).get("company_name") or "Target Company"
        return f"Company Research: {name}"
    role = (job or {}).get("job_title") or (job or {}).get("title") or DEFAULT_ROLE
    return f"{_TITLE_PREFIX[kind]} {role}"


def build_artifact(
    kind: GenerationKind,
    user_id: str,
    job_id: Optional[str],
    prompt: str,
    model: str,
    content: Dict[str, Any],
    result: Optional[GenerateResult] = None,
    title: Optional[str] = None,
    job: Optional[Dict[str, Any]] = None,
    repaired: bool = False,
    fallback: bool = False,
    extra_metadata: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Artifact:
    """
    Assemble an Artifact.

    Args:
        kind: Requested kind (tailoring is stored as a resume with subkind)
        user_id: Owner
        job_id: Target job, if any
        prompt: Sanitized prompt sent to the provider
        model: Model that served the request
        content: Sanitized payload
        result: Provider result (None for cache hits and fallbacks)
        title: Explicit title (defaults to artifact_title())
        job: Job record, used for the default title
        repaired: Whether the payload came from the repair call
        fallback: Whether the payload is a local fallback
        extra_metadata: Kind-specific metadata merged last
        now: Creation time (defaults to utcnow)

    Returns:
        Frozen Artifact
    """
    created_at = now or datetime.utcnow()
    meta = result.meta if result is not None else None

    metadata: Dict[str, Any] = {
        "generated_at": created_at.isoformat(),
        "provider": meta.provider if meta else None,
        "tokens": result.tokens.total_tokens if result is not None else 0,
        "prompt_preview": prompt[:PROMPT_PREVIEW_CHARS],
        "mock": bool(meta.mock) if meta else False,
        "repaired": repaired,
        "fallback": fallback,
    }
    if meta is not None:
        metadata["attempts"] = meta.attempts
        metadata["retries"] = meta.retries
        metadata["latency_ms"] = meta.latency_ms
    if kind == GenerationKind.EXPERIENCE_TAILORING:
        metadata["subkind"] = GenerationKind.EXPERIENCE_TAILORING.value
    if extra_metadata:
        metadata.update(extra_metadata)

    return Artifact(
        id=str(uuid.uuid4()),
        user_id=user_id,
        job_id=job_id,
        kind=kind.stored_kind,
        title=title or artifact_title(kind, job),
        prompt=prompt[:PROMPT_STORE_CHARS],
        model=model,
        content=content,
        metadata=metadata,
        created_at=created_at,
    )
