"""
Cover Letter Service.

Writes a cover letter for a target job. When research on the company is
already cached it is woven into the prompt; no research call is made
from here.
"""

from typing import Any, Dict, Optional

from src.common.repositories import CompanyRepositoryInterface, get_company_repository
from src.common.types import GenerationContext, GenerationKind, GenerationRequest
from src.generation.prompts import build_cover_letter_prompt
from src.services.company_research_service import company_name_for, load_cached_research
from src.services.operation_base import GenerationService


class CoverLetterService(GenerationService):
    """Service for cover letters."""

    kind = GenerationKind.COVER_LETTER
    context_sections = ("skills", "employment", "projects")

    def __init__(self, company_repository: Optional[CompanyRepositoryInterface] = None, **kwargs):
        super().__init__(**kwargs)
        self._company_repository = company_repository

    def _get_company_repository(self) -> CompanyRepositoryInterface:
        if self._company_repository is None:
            self._company_repository = get_company_repository()
        return self._company_repository

    async def build_prompt(self, context: GenerationContext, request: GenerationRequest) -> str:
        research = await load_cached_research(
            company_name_for(context), self._get_company_repository(), self._get_cache()
        )
        company_research = None
        if research is not None:
            company_research = dict(research.durable)
            if research.is_fresh():
                company_research.update(research.volatile)
        return build_cover_letter_prompt(context, request.options, company_research)

    def artifact_metadata(self, context: GenerationContext, request: GenerationRequest) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {}
        if request.options.tone:
            metadata["tone"] = request.options.tone
        if request.options.length:
            metadata["length"] = request.options.length
        return metadata
