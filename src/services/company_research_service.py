"""
Company Research Service.

Researches the company behind a job. Results are split by lifetime:

- durable fields (industry, size, culture, leadership, ...) are shared
  across users in the companies collection and kept indefinitely;
- volatile fields (news, recent events) live in company_research_cache
  and expire after COMPANY_RESEARCH_TTL_DAYS.

A request is served from cache, without a provider call, when both a
durable record and fresh volatile research exist and force_refresh is off.
After a real generation the two parts are written through separate paths;
either write may fail without affecting the other or the result.

Usage:
    service = CompanyResearchService()
    result = await service.execute(
        GenerationRequest(GenerationKind.COMPANY_RESEARCH, user_id, job_id)
    )
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from src.common.config import Config
from src.common.logger import PipelineLogger
from src.common.memory_cache import CacheKeys, MemoryCache
from src.common.repositories import (
    CompanyRepositoryInterface,
    get_company_repository,
    normalize_company_key,
)
from src.common.types import (
    Artifact,
    CachedResearch,
    GenerationContext,
    GenerationKind,
    GenerationRequest,
)
from src.generation.prompts import build_company_research_prompt
from src.generation.schemas import validate_payload
from src.services.operation_base import GenerationService

logger = logging.getLogger(__name__)


def company_name_for(context: GenerationContext) -> str:
    job = context.job or {}
    return (job.get("company_name") or job.get("company") or "").strip()


async def load_cached_research(
    company_name: str,
    repository: CompanyRepositoryInterface,
    cache: MemoryCache,
    log: Optional[PipelineLogger] = None,
) -> Optional[CachedResearch]:
    """
    Look up both research parts for a company.

    Durable fields come from the in-process cache first, then the
    companies collection. Lookup failures are logged and treated as misses.

    Returns:
        CachedResearch (possibly with empty parts), or None without a durable record
    """
    log = log or logger
    key = normalize_company_key(company_name)
    if not key:
        return None

    durable = cache.get(CacheKeys.company(key))
    if durable is None:
        try:
            doc = await asyncio.to_thread(repository.find_company, key)
        except Exception as e:
            log.warning(f"Company lookup failed for {company_name}: {e}")
            doc = None
        if not doc:
            log.info(f"Company cache MISS for {company_name}")
            return None
        durable = CachedResearch.split(doc)[0]
        cache.set(CacheKeys.company(key), durable)
    else:
        log.debug(f"Company memory cache HIT for {company_name}")

    research = CachedResearch(company_name=company_name, durable=dict(durable))
    try:
        volatile_doc = await asyncio.to_thread(repository.find_research_cache, key)
    except Exception as e:
        log.warning(f"Research cache lookup failed for {company_name}: {e}")
        volatile_doc = None
    if volatile_doc:
        research.volatile = CachedResearch.split(volatile_doc)[1]
        research.expires_at = volatile_doc.get("expires_at")
    return research


class CompanyResearchService(GenerationService):
    """
    Service for company research with durable/volatile caching.

    Args:
        company_repository: Durable and volatile stores
        research_ttl_days: Volatile research lifetime
        **kwargs: GenerationService arguments
    """

    kind = GenerationKind.COMPANY_RESEARCH
    context_sections = ()

    def __init__(
        self,
        company_repository: Optional[CompanyRepositoryInterface] = None,
        research_ttl_days: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._company_repository = company_repository
        self.research_ttl_days = (
            Config.COMPANY_RESEARCH_TTL_DAYS if research_ttl_days is None else research_ttl_days
        )

    def _get_company_repository(self) -> CompanyRepositoryInterface:
        if self._company_repository is None:
            self._company_repository = get_company_repository()
        return self._company_repository

    async def from_cache(
        self,
        context: GenerationContext,
        request: GenerationRequest,
        log: PipelineLogger,
    ) -> Optional[Artifact]:
        company_name = company_name_for(context)
        if request.options.force_refresh:
            log.info(f"Force refresh requested, skipping cache for {company_name}")
            self._get_cache().delete(CacheKeys.company(normalize_company_key(company_name)))
            return None

        research = await load_cached_research(
            company_name, self._get_company_repository(), self._get_cache(), log
        )
        if research is None:
            return None
        if not research.is_fresh():
            log.info(f"Research cache EXPIRED or missing for {company_name}")
            return None

        content = {**research.durable, **research.volatile, "company_name": company_name}
        outcome = validate_payload(self.kind, content)
        if not outcome.ok:
            log.warning(f"Cached research for {company_name} is incomplete: {outcome.errors[:3]}")
            return None

        log.info(f"Research cache HIT for {company_name}")
        return self.assemble(
            context,
            request,
            prompt="",
            model="cache",
            content=outcome.value,
            result=None,
            extra_metadata={
                "source": "cache",
                "cache_expires_at": research.expires_at.isoformat(),
            },
        )

    async def enrich_context(
        self,
        context: GenerationContext,
        request: GenerationRequest,
        log: PipelineLogger,
    ) -> None:
        await super().enrich_context(context, request, log)
        job = context.job or {}
        website = job.get("company_website") or job.get("company_url")
        if self.extractor is not None and website:
            context.website_text = await self.extract_text(website, log)

    async def build_prompt(self, context: GenerationContext, request: GenerationRequest) -> str:
        return build_company_research_prompt(context, request.options, company_name_for(context))

    def artifact_metadata(self, context: GenerationContext, request: GenerationRequest) -> Dict[str, Any]:
        return {
            "source": "provider",
            "company_key": normalize_company_key(company_name_for(context)),
            "website_enriched": bool(context.website_text),
        }

    async def after_generation(
        self,
        artifact: Artifact,
        context: GenerationContext,
        request: GenerationRequest,
        log: PipelineLogger,
    ) -> None:
        if artifact.metadata.get("source") == "cache":
            return

        company_name = company_name_for(context) or str(artifact.content.get("company_name") or "")
        key = normalize_company_key(company_name)
        if not key:
            return

        durable, volatile = CachedResearch.split(artifact.content)
        repo = self._get_company_repository()

        try:
            stored = await asyncio.to_thread(repo.upsert_company, key, company_name, durable)
            if stored:
                self._get_cache().set(CacheKeys.company(key), durable)
            else:
                self._get_cache().delete(CacheKeys.company(key))
                log.warning(f"Durable company write skipped for {company_name}")
        except Exception as e:
            self._get_cache().delete(CacheKeys.company(key))
            log.error(f"Durable company write failed for {company_name}: {e}")

        expires_at = datetime.utcnow() + timedelta(days=self.research_ttl_days)
        try:
            stored = await asyncio.to_thread(repo.write_research_cache, key, volatile, expires_at)
            if not stored:
                log.warning(f"Volatile research write skipped for {company_name}")
        except Exception as e:
            log.error(f"Volatile research write failed for {company_name}: {e}")
