"""
Generation Orchestrator.

Routes a GenerationRequest to the service for its kind. All services share
one provider client, one set of repositories and one content extractor.

Usage:
    orchestrator = GenerationOrchestrator()
    result = await orchestrator.generate(
        GenerationRequest(kind=GenerationKind.RESUME, user_id=uid, job_id=jid)
    )
    # or per kind
    result = await orchestrator.handle_cover_letter(uid, jid, GenerationOptions(tone="warm"))
"""

import logging
from typing import Any, Dict, Optional, Type

from src.common.ai_client import AIClient
from src.common.config import GenerationSettings
from src.common.memory_cache import MemoryCache
from src.common.repositories import (
    ArtifactRepositoryInterface,
    CompanyRepositoryInterface,
    ContextRepositoryInterface,
)
from src.common.types import ErrorType, GenerationKind, GenerationOptions, GenerationRequest
from src.services.company_research_service import CompanyResearchService
from src.services.cover_letter_service import CoverLetterService
from src.services.operation_base import GenerationResult, GenerationService
from src.services.prediction_service import PredictionService
from src.services.resume_service import ExperienceTailoringService, ResumeService
from src.services.salary_research_service import SalaryResearchService
from src.services.skills_service import JobMatchService, SkillsOptimizationService

logger = logging.getLogger(__name__)

SERVICE_CLASSES: Dict[GenerationKind, Type[GenerationService]] = {
    GenerationKind.RESUME: ResumeService,
    GenerationKind.COVER_LETTER: CoverLetterService,
    GenerationKind.SKILLS_OPTIMIZATION: SkillsOptimizationService,
    GenerationKind.COMPANY_RESEARCH: CompanyResearchService,
    GenerationKind.SALARY_RESEARCH: SalaryResearchService,
    GenerationKind.PREDICTION: PredictionService,
    GenerationKind.JOB_MATCH: JobMatchService,
    GenerationKind.EXPERIENCE_TAILORING: ExperienceTailoringService,
}

# Services that also read/write the company stores
_COMPANY_AWARE = (CoverLetterService, CompanyResearchService)


class GenerationOrchestrator:
    """
    Kind -> service dispatcher.

    Args:
        settings: Provider knobs shared by every service
        client: Shared provider client
        context_repository: Profile/job/enrichment reads
        artifact_repository: Artifact writes
        company_repository: Durable/volatile company research
        extractor: ContentExtractor for live enrichment (None disables it)
        cache: In-process cache
        persist: Whether artifacts are written
    """

    def __init__(
        self,
        settings: Optional[GenerationSettings] = None,
        client: Optional[AIClient] = None,
        context_repository: Optional[ContextRepositoryInterface] = None,
        artifact_repository: Optional[ArtifactRepositoryInterface] = None,
        company_repository: Optional[CompanyRepositoryInterface] = None,
        extractor: Optional[Any] = None,
        cache: Optional[MemoryCache] = None,
        persist: bool = True,
    ):
        self.settings = settings or (client.settings if client else GenerationSettings.from_config())
        self.client = client or AIClient(self.settings)
        self.services: Dict[GenerationKind, GenerationService] = {}

        shared = dict(
            client=self.client,
            settings=self.settings,
            context_repository=context_repository,
            artifact_repository=artifact_repository,
            extractor=extractor,
            cache=cache,
            persist=persist,
        )
        for kind, service_cls in SERVICE_CLASSES.items():
            if issubclass(service_cls, _COMPANY_AWARE):
                self.services[kind] = service_cls(company_repository=company_repository, **shared)
            else:
                self.services[kind] = service_cls(**shared)

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate one artifact.

        Returns:
            GenerationResult (never raises for request-level failures)
        """
        try:
            kind = GenerationKind(request.kind)
        except ValueError:
            logger.warning(f"Unsupported generation kind: {request.kind!r}")
            return GenerationResult(
                success=False,
                run_id="",
                kind=str(request.kind),
                error=f"unsupported kind: {request.kind}",
                error_type=ErrorType.INPUT,
            )
        request.kind = kind
        return await self.services[kind].execute(request)

    async def _handle(
        self,
        kind: GenerationKind,
        user_id: Optional[str],
        job_id: Optional[str],
        options: Optional[GenerationOptions],
    ) -> GenerationResult:
        return await self.generate(
            GenerationRequest(kind=kind, user_id=user_id, job_id=job_id, options=options or GenerationOptions())
        )

    # ===== Per-kind handlers =====

    async def handle_resume(self, user_id, job_id, options=None) -> GenerationResult:
        return await self._handle(GenerationKind.RESUME, user_id, job_id, options)

    async def handle_cover_letter(self, user_id, job_id, options=None) -> GenerationResult:
        return await self._handle(GenerationKind.COVER_LETTER, user_id, job_id, options)

    async def handle_skills_optimization(self, user_id, job_id, options=None) -> GenerationResult:
        return await self._handle(GenerationKind.SKILLS_OPTIMIZATION, user_id, job_id, options)

    async def handle_company_research(self, user_id, job_id, options=None) -> GenerationResult:
        return await self._handle(GenerationKind.COMPANY_RESEARCH, user_id, job_id, options)

    async def handle_salary_research(self, user_id, job_id, options=None) -> GenerationResult:
        return await self._handle(GenerationKind.SALARY_RESEARCH, user_id, job_id, options)

    async def handle_prediction(self, user_id, job_id=None, options=None) -> GenerationResult:
        return await self._handle(GenerationKind.PREDICTION, user_id, job_id, options)

    async def handle_job_match(self, user_id, job_id, options=None) -> GenerationResult:
        return await self._handle(GenerationKind.JOB_MATCH, user_id, job_id, options)

    async def handle_experience_tailoring(self, user_id, job_id, options=None) -> GenerationResult:
        return await self._handle(GenerationKind.EXPERIENCE_TAILORING, user_id, job_id, options)
