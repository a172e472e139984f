"""
Skills Services.

SkillsOptimizationService compares the candidate's skills with the target
job and recommends what to learn or emphasize. JobMatchService scores the
overall fit (skills, experience, education, culture).
"""

from typing import Any, Dict

from src.common.types import GenerationContext, GenerationKind, GenerationRequest
from src.services.operation_base import GenerationService


class SkillsOptimizationService(GenerationService):
    """Skill gap analysis for one job."""

    kind = GenerationKind.SKILLS_OPTIMIZATION
    context_sections = ("skills", "employment", "projects", "certifications")

    def artifact_metadata(self, context: GenerationContext, request: GenerationRequest) -> Dict[str, Any]:
        return {"skill_count": len(context.skills)}


class JobMatchService(GenerationService):
    """Scored candidate/job fit."""

    kind = GenerationKind.JOB_MATCH
