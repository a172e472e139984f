"""
Base class for artifact generation services.

Each kind (resume, cover letter, company research, ...) extends this to get
the same request lifecycle:

    validate/authorize -> gather context -> enrich -> prompt -> provider
        -> validate (+ one repair) -> fallback? -> sanitize -> artifact -> persist

Failures are never raised to the caller; they come back as an error
GenerationResult with an ErrorType.
"""

import asyncio
import logging
import time
import uuid
from abc import ABC
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Generator, List, Optional, Tuple

from src.common.ai_client import (
    AIClient,
    PromptValidationError,
    ProviderError,
    ProviderOptions,
    TransientProviderError,
)
from src.common.config import GenerationSettings
from src.common.logger import PipelineLogger, get_logger
from src.common.memory_cache import CacheKeys, MemoryCache, get_memory_cache
from src.common.prompt_sanitizer import sanitize_prompt, select_model
from src.common.repositories import (
    ArtifactRepositoryInterface,
    ContextRepositoryInterface,
    get_artifact_repository,
    get_context_repository,
)
from src.common.types import (
    Artifact,
    ErrorType,
    GenerateResult,
    GenerationContext,
    GenerationKind,
    GenerationRequest,
)
from src.generation.artifacts import build_artifact
from src.generation.prompts import PROMPT_BUILDERS, append_user_additions
from src.generation.repair import RepairPipeline
from src.generation.sanitizers import sanitize_content

logger = logging.getLogger(__name__)

# Job descriptions shorter than this are topped up from the live posting
THIN_DESCRIPTION_CHARS = 400

SUPPLEMENTARY_SECTIONS = ("skills", "employment", "education", "projects", "certifications")


@dataclass
class GenerationResult:
    """Result of one generation request."""

    success: bool
    run_id: str
    kind: str
    artifact: Optional[Artifact] = None
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None
    provider_calls: int = 0
    persisted: bool = False
    duration_ms: int = 0
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for JSON serialization."""
        artifact = None
        if self.artifact is not None:
            artifact = self.artifact.to_document()
            artifact["id"] = artifact.pop("_id")
            artifact["created_at"] = self.artifact.created_at.isoformat()
        return {
            "success": self.success,
            "run_id": self.run_id,
            "kind": self.kind,
            "artifact": artifact,
            "error": self.error,
            "error_type": self.error_type.value if self.error_type else None,
            "provider_calls": self.provider_calls,
            "persisted": self.persisted,
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp.isoformat(),
        }


class GenerationRejected(Exception):
    """Request stopped before or during generation with a typed reason."""

    def __init__(self, error_type: ErrorType, message: str, provider_calls: int = 0):
        super().__init__(message)
        self.error_type = error_type
        self.provider_calls = provider_calls


class GenerationService(ABC):
    """
    Template for one generation kind.

    Subclasses set `kind` and override the hooks they need:
    build_prompt, enrich_context, fallback, artifact_metadata, after_generation.

    Args:
        client: Provider client (defaults to settings-driven AIClient)
        context_repository: Profile/job/enrichment reads
        artifact_repository: Artifact writes (None disables persistence)
        extractor: ContentExtractor for best-effort live enrichment
        settings: Provider knobs
        cache: In-process cache for profile/job reads
        persist: Whether to write artifacts
    """

    kind: GenerationKind  # Override in subclass
    context_sections: Tuple[str, ...] = SUPPLEMENTARY_SECTIONS

    def __init__(
        self,
        client: Optional[AIClient] = None,
        context_repository: Optional[ContextRepositoryInterface] = None,
        artifact_repository: Optional[ArtifactRepositoryInterface] = None,
        extractor: Optional[Any] = None,
        settings: Optional[GenerationSettings] = None,
        cache: Optional[MemoryCache] = None,
        persist: bool = True,
    ):
        self.settings = settings or (client.settings if client else GenerationSettings.from_config())
        self.client = client or AIClient(self.settings)
        self._context_repository = context_repository
        self._artifact_repository = artifact_repository
        self.extractor = extractor
        self._cache = cache
        self.persist = persist

    def _get_context_repository(self) -> ContextRepositoryInterface:
        if self._context_repository is None:
            self._context_repository = get_context_repository()
        return self._context_repository

    def _get_artifact_repository(self) -> ArtifactRepositoryInterface:
        if self._artifact_repository is None:
            self._artifact_repository = get_artifact_repository()
        return self._artifact_repository

    def _get_cache(self) -> MemoryCache:
        if self._cache is None:
            self._cache = get_memory_cache()
        return self._cache

    def create_run_id(self) -> str:
        """Unique run ID in format "gen_{kind}_{random_hex}"."""
        return f"gen_{self.kind.value}_{uuid.uuid4().hex[:12]}"

    # ===== Lifecycle =====

    async def execute(self, request: GenerationRequest) -> GenerationResult:
        """
        Run one generation request end to end.

        Returns:
            GenerationResult; success=False carries error and error_type
        """
        run_id = self.create_run_id()
        log = get_logger(__name__, run_id=run_id, kind=self.kind.value)

        with self.timed_execution() as timer:
            try:
                result = await self._run(request, run_id, log)
            except GenerationRejected as e:
                log.warning(f"Request rejected ({e.error_type.value}): {e}")
                result = self.create_error_result(run_id, str(e), e.error_type, e.provider_calls)
            except Exception as e:
                log.exception(f"Unexpected generation failure: {e}")
                result = self.create_error_result(run_id, f"internal error: {e}", ErrorType.INTERNAL)

        result.duration_ms = timer.duration_ms
        log.info(
            f"Finished success={result.success} provider_calls={result.provider_calls} "
            f"persisted={result.persisted} duration_ms={result.duration_ms}"
        )
        return result

    async def _run(self, request: GenerationRequest, run_id: str, log: PipelineLogger) -> GenerationResult:
        self.validate_request(request)
        context = await self.gather_context(request, log)

        cached = await self.from_cache(context, request, log)
        if cached is not None:
            return await self._finish(run_id, cached, context, request, provider_calls=0, log=log)

        await self.enrich_context(context, request, log)

        prompt = await self.build_prompt(context, request)
        prompt = append_user_additions(prompt, request.options.prompt)
        prompt = sanitize_prompt(prompt, self.settings.prompt_max_chars)
        model = select_model(request.options.model, self.settings.default_model, self.settings.allowed_models)
        provider_options = ProviderOptions(model=model)

        try:
            first = await self.client.generate(self.kind, prompt, provider_options)
        except ProviderError as e:
            return await self._on_provider_error(run_id, e, prompt, model, context, request, log)

        outcome = await RepairPipeline(self.client, run_id).run(self.kind, first, provider_options)
        served_by = outcome.repair_result or first
        fallback_used = False

        if outcome.ok:
            content = outcome.value
        else:
            content = self.fallback(context)
            if content is None:
                raise GenerationRejected(
                    ErrorType.VALIDATION,
                    "AI output failed validation: " + summarize_errors(outcome.errors),
                    provider_calls=outcome.provider_calls,
                )
            fallback_used = True
            log.warning(f"Validation failed after repair; using fallback ({outcome.errors[:3]})")

        artifact = self.assemble(
            context,
            request,
            prompt,
            model=served_by.meta.model if served_by.meta else model,
            content=content,
            result=served_by,
            repaired=outcome.repaired,
            fallback=fallback_used,
        )
        return await self._finish(run_id, artifact, context, request, outcome.provider_calls, log)

    async def _on_provider_error(
        self,
        run_id: str,
        error: ProviderError,
        prompt: str,
        model: str,
        context: GenerationContext,
        request: GenerationRequest,
        log: PipelineLogger,
    ) -> GenerationResult:
        if isinstance(error, PromptValidationError):
            raise GenerationRejected(ErrorType.INPUT, f"AI error: {error}")

        error_type = (
            ErrorType.PROVIDER_TRANSIENT
            if isinstance(error, TransientProviderError)
            else ErrorType.PROVIDER_PERMANENT
        )
        content = self.fallback(context)
        if content is not None:
            log.warning(f"Provider failed ({error_type.value}): {error}; using fallback")
            artifact = self.assemble(
                context, request, prompt, model=model, content=content,
                result=None, fallback=True,
            )
            return await self._finish(run_id, artifact, context, request, 1, log)

        raise GenerationRejected(error_type, f"AI error: {error}", provider_calls=1)

    async def _finish(
        self,
        run_id: str,
        artifact: Artifact,
        context: GenerationContext,
        request: GenerationRequest,
        provider_calls: int,
        log: PipelineLogger,
    ) -> GenerationResult:
        await self.after_generation(artifact, context, request, log)
        persisted = await self.persist_artifact(artifact, log) if self.persist else False
        return GenerationResult(
            success=True,
            run_id=run_id,
            kind=self.kind.value,
            artifact=artifact,
            provider_calls=provider_calls,
            persisted=persisted,
        )

    # ===== Steps =====

    def validate_request(self, request: GenerationRequest) -> None:
        """
        Authentication and required-input checks. No I/O.

        Raises:
            GenerationRejected: authorization or input error
        """
        if not request.user_id:
            raise GenerationRejected(ErrorType.AUTHORIZATION, "unauthenticated")
        if self.kind.requires_job and not request.job_id:
            raise GenerationRejected(ErrorType.INPUT, "missing jobId")

    async def gather_context(self, request: GenerationRequest, log: PipelineLogger) -> GenerationContext:
        """
        Load the profile and job, check ownership, then read the
        supplementary collections concurrently (each best-effort).

        Raises:
            GenerationRejected: not_found or authorization error
        """
        user_id = request.user_id
        profile, job = await asyncio.gather(
            self._load_profile(user_id),
            self._load_job(request.job_id) if request.job_id else _none(),
        )
        if not profile:
            raise GenerationRejected(ErrorType.NOT_FOUND, "profile not found")
        if request.job_id:
            if not job:
                raise GenerationRejected(ErrorType.NOT_FOUND, "job not found")
            if str(job.get("user_id")) != str(user_id):
                raise GenerationRejected(ErrorType.AUTHORIZATION, "job does not belong to user")

        repo = self._get_context_repository()
        readers = {
            "skills": repo.list_skills,
            "employment": repo.list_employment,
            "education": repo.list_education,
            "projects": repo.list_projects,
            "certifications": repo.list_certifications,
            "jobs": repo.list_jobs,
        }
        names = [name for name in self.context_sections if name in readers]
        rows = await asyncio.gather(
            *(asyncio.to_thread(readers[name], user_id) for name in names),
            return_exceptions=True,
        )

        context = GenerationContext(user_id=user_id, profile=profile, job=job)
        for name, value in zip(names, rows):
            if isinstance(value, Exception):
                log.warning(f"Could not load {name}: {value}")
                value = []
            setattr(context, name, list(value or []))
        log.debug(
            "Context loaded: " + ", ".join(f"{name}={len(getattr(context, name))}" for name in names)
        )
        return context

    async def _load_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        cache = self._get_cache()
        key = CacheKeys.profile(user_id)
        profile = cache.get(key)
        if profile is None:
            profile = await asyncio.to_thread(self._get_context_repository().get_profile, user_id)
            if profile:
                cache.set(key, profile)
        return profile

    async def _load_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        cache = self._get_cache()
        key = CacheKeys.job(job_id)
        job = cache.get(key)
        if job is None:
            job = await asyncio.to_thread(self._get_context_repository().get_job, job_id)
            if job:
                cache.set(key, job)
        return job

    async def enrich_context(
        self,
        context: GenerationContext,
        request: GenerationRequest,
        log: PipelineLogger,
    ) -> None:
        """Top up a thin job description from the live posting (best effort)."""
        job = context.job or {}
        url = job.get("job_url") or job.get("url")
        description = job.get("job_description") or job.get("description") or ""
        if self.extractor is None or not url or len(description) >= THIN_DESCRIPTION_CHARS:
            return
        context.posting_text = await self.extract_text(url, log)

    async def extract_text(self, url: str, log: PipelineLogger) -> Optional[str]:
        """Clean page text, or None when every strategy failed."""
        try:
            result = await self.extractor.extract(url)
        except Exception as e:
            log.warning(f"Enrichment from {url} failed: {e}")
            return None
        log.info(
            f"Enriched from {url} via {result.meta.strategy} "
            f"({len(result.clean_text)} chars, retries={result.meta.retries})"
        )
        return result.clean_text or None

    async def from_cache(
        self,
        context: GenerationContext,
        request: GenerationRequest,
        log: PipelineLogger,
    ) -> Optional[Artifact]:
        """Serve the request without a provider call. Off by default."""
        return None

    async def build_prompt(self, context: GenerationContext, request: GenerationRequest) -> str:
        return PROMPT_BUILDERS[self.kind](context, request.options)

    def fallback(self, context: GenerationContext) -> Optional[Dict[str, Any]]:
        """Local payload used when the provider output is unusable. None: no fallback."""
        return None

    def artifact_metadata(self, context: GenerationContext, request: GenerationRequest) -> Dict[str, Any]:
        return {}

    def assemble(
        self,
        context: GenerationContext,
        request: GenerationRequest,
        prompt: str,
        model: str,
        content: Dict[str, Any],
        result: Optional[GenerateResult],
        repaired: bool = False,
        fallback: bool = False,
        extra_metadata: Optional[Dict[str, Any]] = None,
    ) -> Artifact:
        """Sanitize the payload and build the artifact."""
        metadata = self.artifact_metadata(context, request)
        if extra_metadata:
            metadata.update(extra_metadata)
        return build_artifact(
            self.kind,
            user_id=request.user_id,
            job_id=request.job_id,
            prompt=prompt,
            model=model,
            content=sanitize_content(self.kind, content, context),
            result=result,
            job=context.job,
            repaired=repaired,
            fallback=fallback,
            extra_metadata=metadata,
        )

    async def after_generation(
        self,
        artifact: Artifact,
        context: GenerationContext,
        request: GenerationRequest,
        log: PipelineLogger,
    ) -> None:
        """Side effects after a successful generation (e.g. cache writes)."""

    async def persist_artifact(self, artifact: Artifact, log: PipelineLogger) -> bool:
        """
        Write the artifact. Failures are logged and reported, never raised.

        Returns:
            True if persisted successfully, False otherwise
        """
        try:
            stored = await asyncio.to_thread(self._get_artifact_repository().insert_artifact, artifact)
        except Exception as e:
            log.error(f"Failed to persist artifact {artifact.id}: {e}")
            return False
        if not stored:
            log.warning(f"Artifact {artifact.id} was not persisted")
        return bool(stored)

    # ===== Results =====

    def create_error_result(
        self,
        run_id: str,
        error: str,
        error_type: ErrorType,
        provider_calls: int = 0,
    ) -> GenerationResult:
        """
        Create a failed generation result.

        Args:
            run_id: The generation run ID
            error: Caller-facing message
            error_type: Failure category
            provider_calls: Provider calls spent before failing
        """
        return GenerationResult(
            success=False,
            run_id=run_id,
            kind=self.kind.value,
            error=error,
            error_type=error_type,
            provider_calls=provider_calls,
        )

    @contextmanager
    def timed_execution(self) -> Generator["OperationTimer", None, None]:
        """
        Context manager for timing execution.

        Usage:
            with self.timed_execution() as timer:
                # do work
                pass
            duration_ms = timer.duration_ms
        """
        timer = OperationTimer()
        try:
            yield timer
        finally:
            timer.stop()


async def _none() -> None:
    return None


def summarize_errors(errors: List[str], limit: int = 5) -> str:
    return "; ".join(errors[:limit])


@dataclass
class OperationTimer:
    """Timer utility for tracking operation duration."""

    start_time: float = field(default_factory=time.perf_counter)
    end_time: Optional[float] = None

    @property
    def duration_ms(self) -> int:
        """
        Get duration in milliseconds.

        Returns:
            Elapsed milliseconds so far if not stopped yet
        """
        if self.end_time is None:
            return int((time.perf_counter() - self.start_time) * 1000)
        return int((self.end_time - self.start_time) * 1000)

    @property
    def duration_seconds(self) -> float:
        return self.duration_ms / 1000.0

    def stop(self) -> int:
        """
        Stop the timer and return duration in milliseconds.
        """
        self.end_time = time.perf_counter()
        return self.duration_ms
