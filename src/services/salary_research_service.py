"""
Salary Research Service.

Benchmarks compensation for the target role. When the job posting carries
a salary band it is recorded in the artifact metadata next to the model's
estimate so the two can be compared.
"""

from typing import Any, Dict

from src.common.types import GenerationContext, GenerationKind, GenerationRequest
from src.services.operation_base import GenerationService


class SalaryResearchService(GenerationService):
    """Service for salary benchmarks."""

    kind = GenerationKind.SALARY_RESEARCH
    context_sections = ("skills", "employment", "education")

    def artifact_metadata(self, context: GenerationContext, request: GenerationRequest) -> Dict[str, Any]:
        job = context.job or {}
        posted = {key: job[key] for key in ("salary_min", "salary_max") if job.get(key) is not None}
        return {"posted_salary": posted} if posted else {}
