"""
Resume Generation Services.

ResumeService writes a full tailored resume for a target job.
ExperienceTailoringService rewrites only the employment bullets; its
artifacts are stored as resumes with metadata.subkind so they show up
alongside resume drafts.

Usage:
    service = ResumeService()
    result = await service.execute(GenerationRequest(GenerationKind.RESUME, user_id, job_id))
"""

import logging
from typing import Any, Dict

from src.common.types import GenerationContext, GenerationKind, GenerationRequest
from src.services.operation_base import GenerationService

logger = logging.getLogger(__name__)


class ResumeService(GenerationService):
    """
    Service for tailored resume generation.

    The sanitizer back-fills sections.experience from employment records
    when the model returns none, so the resume always lists real roles.
    """

    kind = GenerationKind.RESUME

    def artifact_metadata(self, context: GenerationContext, request: GenerationRequest) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"employment_rows": len(context.employment)}
        if request.options.variant:
            metadata["variant"] = request.options.variant
        return metadata


class ExperienceTailoringService(GenerationService):
    """Service for role-by-role bullet tailoring."""

    kind = GenerationKind.EXPERIENCE_TAILORING
    context_sections = ("skills", "employment")

    def artifact_metadata(self, context: GenerationContext, request: GenerationRequest) -> Dict[str, Any]:
        return {"employment_ids": [str(row["id"]) for row in context.employment if row.get("id")]}
