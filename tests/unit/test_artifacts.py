"""
Unit tests for src/generation/artifacts.py
"""

from datetime import datetime

import pytest

from src.common.types import GenerateResult, GenerationKind, ProviderMeta, TokenUsage
from src.generation.artifacts import (
    PROMPT_PREVIEW_CHARS,
    PROMPT_STORE_CHARS,
    artifact_title,
    build_artifact,
)

JOB = {"job_title": "Backend Engineer", "company_name": "Acme"}


def _result():
    return GenerateResult(
        json={"summary": "x"},
        tokens=TokenUsage(prompt_tokens=10, completion_tokens=20, total_tokens=30),
        meta=ProviderMeta(provider="openai", model="gpt-4o-mini", attempts=2, retries=1, latency_ms=120),
    )


class TestArtifactTitle:
    """Tests for human titles."""

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (GenerationKind.RESUME, "AI Resume for Backend Engineer"),
            (GenerationKind.COVER_LETTER, "Cover Letter for Backend Engineer"),
            (GenerationKind.JOB_MATCH, "Job Match for Backend Engineer"),
            (GenerationKind.COMPANY_RESEARCH, "Company Research: Acme"),
            (GenerationKind.PREDICTION, "Job Search Prediction"),
        ],
    )
    def test_titles(self, kind, expected):
        assert artifact_title(kind, JOB) == expected

    def test_missing_job_uses_default_role(self):
        assert artifact_title(GenerationKind.RESUME) == "AI Resume for Target Role"


class TestBuildArtifact:
    """Tests for artifact assembly."""

    def test_metadata_from_provider_result(self):
        now = datetime(2024, 5, 1, 12, 0, 0)
        artifact = build_artifact(
            GenerationKind.RESUME, "u1", "j1", "prompt text", "gpt-4o-mini",
            {"summary": "x"}, result=_result(), job=JOB, now=now,
        )

        assert artifact.kind == "resume"
        assert artifact.created_at == now
        assert artifact.metadata["provider"] == "openai"
        assert artifact.metadata["tokens"] == 30
        assert artifact.metadata["attempts"] == 2
        assert artifact.metadata["retries"] == 1
        assert artifact.metadata["generated_at"] == now.isoformat()
        assert artifact.metadata["repaired"] is False

    def test_tailoring_stored_as_resume_subkind(self):
        artifact = build_artifact(
            GenerationKind.EXPERIENCE_TAILORING, "u1", "j1", "p", "m", {"roles": []}, job=JOB,
        )
        assert artifact.kind == "resume"
        assert artifact.metadata["subkind"] == "experience_tailoring"
        assert artifact.title == "Experience Tailoring for Backend Engineer"

    def test_prompt_truncated_for_storage_and_preview(self):
        prompt = "p" * 5000
        artifact = build_artifact(GenerationKind.RESUME, "u1", None, prompt, "m", {})
        assert len(artifact.prompt) == PROMPT_STORE_CHARS
        assert len(artifact.metadata["prompt_preview"]) == PROMPT_PREVIEW_CHARS

    def test_without_result_has_no_provider_diagnostics(self):
        artifact = build_artifact(GenerationKind.PREDICTION, "u1", None, "p", "heuristic", {}, fallback=True)
        assert artifact.metadata["provider"] is None
        assert artifact.metadata["tokens"] == 0
        assert artifact.metadata["fallback"] is True
        assert "attempts" not in artifact.metadata

    def test_extra_metadata_merged_last(self):
        artifact = build_artifact(
            GenerationKind.RESUME, "u1", None, "p", "m", {}, extra_metadata={"mock": "override", "variant": "one_page"},
        )
        assert artifact.metadata["variant"] == "one_page"
        assert artifact.metadata["mock"] == "override"

    def test_document_uses_mongo_id(self):
        artifact = build_artifact(GenerationKind.RESUME, "u1", None, "p", "m", {})
        doc = artifact.to_document()
        assert doc["_id"] == artifact.id
        assert "id" not in doc

    def test_artifact_is_frozen(self):
        artifact = build_artifact(GenerationKind.RESUME, "u1", None, "p", "m", {})
        with pytest.raises(Exception):
            artifact.title = "changed"
