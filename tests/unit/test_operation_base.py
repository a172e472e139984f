"""
Unit tests for src/services/operation_base.py

Tests the GenerationService lifecycle through a minimal job match
service wired to in-memory repositories:
- Authorization, input and not-found checks before any provider call
- Best-effort context loading and enrichment
- Provider error mapping, validation with one repair, persistence
- GenerationResult and OperationTimer helpers
"""

import json
import time
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import (
    JOB_ID,
    USER_ID,
    FakeArtifactRepository,
    ScriptedTransport,
    make_settings,
)
from src.common.ai_client import AIClient, PermanentProviderError, TransientProviderError
from src.common.mock_payloads import get_mock_payload
from src.common.types import (
    ErrorType,
    ExtractionMeta,
    ExtractionResult,
    GenerationKind,
    GenerationOptions,
    GenerationRequest,
)
from src.generation.artifacts import build_artifact
from src.services.operation_base import (
    GenerationRejected,
    GenerationResult,
    GenerationService,
    OperationTimer,
    summarize_errors,
)

VALID_MATCH = json.dumps(get_mock_payload(GenerationKind.JOB_MATCH.value))


class MatchService(GenerationService):
    kind = GenerationKind.JOB_MATCH


def _request(job_id=JOB_ID, user_id=USER_ID, **options):
    return GenerationRequest(
        kind=GenerationKind.JOB_MATCH,
        user_id=user_id,
        job_id=job_id,
        options=GenerationOptions(**options),
    )


@pytest.fixture
def make_service(context_repo, artifact_repo, memory_cache, remote_settings, no_sleep):
    """Build a MatchService around a scripted transport."""

    def _make(script=None, settings=None, **kwargs):
        settings = settings or remote_settings
        transport = ScriptedTransport(script or [])
        client = AIClient(settings, transport=transport, sleep=no_sleep)
        service = MatchService(
            client=client,
            context_repository=kwargs.pop("context_repository", context_repo),
            artifact_repository=kwargs.pop("artifact_repository", artifact_repo),
            cache=memory_cache,
            settings=settings,
            **kwargs,
        )
        return service, transport

    return _make


# ===== TESTS: GenerationResult / OperationTimer =====

class TestGenerationResult:
    """Tests for GenerationResult dataclass."""

    def test_defaults(self):
        result = GenerationResult(success=True, run_id="gen_resume_abc", kind="resume")

        assert result.artifact is None
        assert result.error is None
        assert result.error_type is None
        assert result.provider_calls == 0
        assert result.persisted is False
        assert isinstance(result.timestamp, datetime)

    def test_to_dict_serializes_artifact(self):
        artifact = build_artifact(GenerationKind.RESUME, "u1", "j1", "prompt", "m", {"summary": "x"})
        result = GenerationResult(
            success=True, run_id="gen_resume_abc", kind="resume", artifact=artifact, provider_calls=1
        )

        d = result.to_dict()

        assert d["artifact"]["id"] == artifact.id
        assert "_id" not in d["artifact"]
        assert d["artifact"]["created_at"] == artifact.created_at.isoformat()
        assert d["provider_calls"] == 1
        json.dumps(d)

    def test_to_dict_error(self):
        result = GenerationResult(
            success=False, run_id="r", kind="resume", error="missing jobId", error_type=ErrorType.INPUT
        )
        d = result.to_dict()
        assert d["error_type"] == "input"
        assert d["artifact"] is None


class TestOperationTimer:
    """Tests for OperationTimer utility."""

    def test_measures_duration(self):
        timer = OperationTimer()
        time.sleep(0.01)
        duration = timer.stop()

        assert duration >= 10
        assert timer.duration_ms == duration
        assert timer.duration_seconds == duration / 1000.0

    def test_running_timer_reports_elapsed(self):
        timer = OperationTimer()
        assert timer.end_time is None
        assert timer.duration_ms >= 0


class TestSummarizeErrors:
    def test_limits_errors(self):
        assert summarize_errors(["a", "b", "c"], limit=2) == "a; b"


# ===== TESTS: Request checks =====

class TestRequestChecks:
    """Authorization and input checks run before any provider call."""

    def test_run_id_format(self, make_service):
        service, _ = make_service()
        run_id = service.create_run_id()
        assert run_id.startswith("gen_job_match_")
        assert len(run_id) == len("gen_job_match_") + 12

    @pytest.mark.asyncio
    async def test_unauthenticated(self, make_service):
        service, transport = make_service()

        result = await service.execute(_request(user_id=None))

        assert result.success is False
        assert result.error == "unauthenticated"
        assert result.error_type == ErrorType.AUTHORIZATION
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_missing_job_id(self, make_service):
        service, transport = make_service()

        result = await service.execute(_request(job_id=None))

        assert result.error == "missing jobId"
        assert result.error_type == ErrorType.INPUT
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_profile_not_found(self, make_service):
        service, transport = make_service()

        result = await service.execute(_request(user_id="ghost"))

        assert result.error == "profile not found"
        assert result.error_type == ErrorType.NOT_FOUND
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_job_not_found(self, make_service):
        service, _ = make_service()

        result = await service.execute(_request(job_id="nope"))

        assert result.error == "job not found"
        assert result.error_type == ErrorType.NOT_FOUND

    @pytest.mark.asyncio
    async def test_foreign_job_rejected_without_provider_call(self, make_service, artifact_repo):
        service, transport = make_service()

        result = await service.execute(_request(job_id="job-foreign"))

        assert result.success is False
        assert result.error == "job does not belong to user"
        assert result.error_type == ErrorType.AUTHORIZATION
        assert result.provider_calls == 0
        assert transport.calls == []
        assert artifact_repo.artifacts == []


# ===== TESTS: Context =====

class TestContext:
    """Tests for context loading and enrichment."""

    @pytest.mark.asyncio
    async def test_failed_section_loads_as_empty(self, make_service, context_repo):
        context_repo.failing.add("skills")
        service, transport = make_service([VALID_MATCH])

        result = await service.execute(_request())

        assert result.success is True
        assert "Globex" in transport.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_profile_and_job_reads_are_cached(self, make_service, context_repo):
        context_repo.get_profile = MagicMock(side_effect=context_repo.get_profile)
        context_repo.get_job = MagicMock(side_effect=context_repo.get_job)
        service, _ = make_service([VALID_MATCH, VALID_MATCH])

        await service.execute(_request())
        await service.execute(_request())

        assert context_repo.get_profile.call_count == 1
        assert context_repo.get_job.call_count == 1

    @pytest.mark.asyncio
    async def test_thin_description_enriched_from_posting(self, make_service, context_repo):
        context_repo.jobs[JOB_ID]["job_url"] = "https://jobs.example.com/1"
        extractor = MagicMock()
        extractor.extract = AsyncMock(
            return_value=ExtractionResult(
                html="<p>x</p>",
                clean_text="We need Kafka and Go experience.",
                title="Posting",
                final_url="https://jobs.example.com/1",
                meta=ExtractionMeta(strategy="fetch-basic", success=True),
            )
        )
        service, transport = make_service([VALID_MATCH], extractor=extractor)

        result = await service.execute(_request())

        assert result.success is True
        extractor.extract.assert_awaited_once_with("https://jobs.example.com/1")
        assert "We need Kafka and Go experience." in transport.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_long_description_not_enriched(self, make_service, context_repo):
        context_repo.jobs[JOB_ID]["job_url"] = "https://jobs.example.com/1"
        context_repo.jobs[JOB_ID]["job_description"] = "d" * 500
        extractor = MagicMock()
        extractor.extract = AsyncMock()
        service, _ = make_service([VALID_MATCH], extractor=extractor)

        await service.execute(_request())

        extractor.extract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_enrichment_is_not_fatal(self, make_service, context_repo):
        context_repo.jobs[JOB_ID]["job_url"] = "https://jobs.example.com/1"
        extractor = MagicMock()
        extractor.extract = AsyncMock(side_effect=RuntimeError("all strategies failed"))
        service, _ = make_service([VALID_MATCH], extractor=extractor)

        result = await service.execute(_request())

        assert result.success is True

    @pytest.mark.asyncio
    async def test_user_additions_appended(self, make_service):
        service, transport = make_service([VALID_MATCH])

        await service.execute(_request(prompt="Mention my open source work."))

        assert "Mention my open source work." in transport.calls[0]["prompt"]


# ===== TESTS: Provider and validation =====

class TestGeneration:
    """Tests for the provider call, repair and persistence."""

    @pytest.mark.asyncio
    async def test_success_persists_artifact(self, make_service, artifact_repo):
        service, transport = make_service([VALID_MATCH])

        result = await service.execute(_request())

        assert result.success is True
        assert result.provider_calls == 1
        assert result.persisted is True
        assert result.duration_ms >= 0
        assert artifact_repo.artifacts == [result.artifact]
        artifact = result.artifact
        assert artifact.kind == "job_match"
        assert artifact.user_id == USER_ID
        assert artifact.job_id == JOB_ID
        assert artifact.title == "Job Match for Senior Backend Engineer"
        assert artifact.content["match_score"] == 78
        assert artifact.metadata["repaired"] is False

    @pytest.mark.asyncio
    async def test_model_override_outside_allow_list_ignored(self, make_service):
        settings = make_settings(allowed_models=("gpt-4o-mini",))
        service, transport = make_service([VALID_MATCH], settings=settings)

        await service.execute(_request(model="gpt-4o"))

        assert transport.calls[0]["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_invalid_output_repaired_once(self, make_service):
        service, transport = make_service(["Sorry, I cannot comply.", VALID_MATCH])

        result = await service.execute(_request())

        assert result.success is True
        assert result.provider_calls == 2
        assert result.artifact.metadata["repaired"] is True
        assert transport.calls[1]["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_validation_failure_after_repair(self, make_service, artifact_repo):
        service, transport = make_service(['{"foo": 1}', '{"foo": 2}'])

        result = await service.execute(_request())

        assert result.success is False
        assert result.error_type == ErrorType.VALIDATION
        assert result.error.startswith("AI output failed validation: ")
        assert result.provider_calls == 2
        assert len(transport.calls) == 2
        assert artifact_repo.artifacts == []

    @pytest.mark.asyncio
    async def test_permanent_provider_error(self, make_service):
        service, transport = make_service([PermanentProviderError("invalid api key", status=401)])

        result = await service.execute(_request())

        assert result.success is False
        assert result.error_type == ErrorType.PROVIDER_PERMANENT
        assert result.error.startswith("AI error: ")
        assert result.provider_calls == 1
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_transient_provider_error_after_retries(self, make_service, remote_settings):
        service, transport = make_service([TransientProviderError("503", status=503)] * 3)

        result = await service.execute(_request())

        assert result.error_type == ErrorType.PROVIDER_TRANSIENT
        assert len(transport.calls) == remote_settings.max_retries + 1

    @pytest.mark.asyncio
    async def test_persistence_failure_still_succeeds(self, make_service):
        service, _ = make_service([VALID_MATCH], artifact_repository=FakeArtifactRepository(fail=True))

        result = await service.execute(_request())

        assert result.success is True
        assert result.persisted is False
        assert result.artifact is not None

    @pytest.mark.asyncio
    async def test_persist_disabled(self, make_service, artifact_repo):
        service, _ = make_service([VALID_MATCH], persist=False)

        result = await service.execute(_request())

        assert result.persisted is False
        assert artifact_repo.artifacts == []

    @pytest.mark.asyncio
    async def test_unexpected_error_is_internal(self, make_service):
        class BrokenService(MatchService):
            async def build_prompt(self, context, request):
                raise KeyError("template")

        service, _ = make_service()
        broken = BrokenService(
            client=service.client,
            context_repository=service._context_repository,
            artifact_repository=service._artifact_repository,
            cache=service._cache,
            settings=service.settings,
        )

        result = await broken.execute(_request())

        assert result.success is False
        assert result.error_type == ErrorType.INTERNAL
        assert result.error.startswith("internal error: ")


class TestGenerationRejected:
    def test_carries_type_and_calls(self):
        error = GenerationRejected(ErrorType.VALIDATION, "bad", provider_calls=2)
        assert str(error) == "bad"
        assert error.error_type == ErrorType.VALIDATION
        assert error.provider_calls == 2
