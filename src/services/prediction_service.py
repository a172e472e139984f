"""
Job Search Prediction Service.

Estimates interview and offer likelihood and time to offer from the
user's application pipeline. Not bound to a single job: job_id is
optional and only narrows the prompt when given.

This is the one kind with a deterministic fallback. When the provider is
unavailable or its output stays invalid after the repair call, the
heuristic estimate is returned instead of an error (marked fallback=True).
"""

import logging
from typing import Any, Dict, Optional

from src.common.types import GenerationContext, GenerationKind, GenerationRequest
from src.generation.heuristics import heuristic_prediction
from src.generation.prompts.prediction import pipeline_counts
from src.services.operation_base import GenerationService

logger = logging.getLogger(__name__)


class PredictionService(GenerationService):
    """Service for job search outcome predictions."""

    kind = GenerationKind.PREDICTION
    context_sections = ("skills", "employment", "education", "jobs")

    def fallback(self, context: GenerationContext) -> Optional[Dict[str, Any]]:
        return heuristic_prediction(context.profile, context.jobs, context.skills)

    def artifact_metadata(self, context: GenerationContext, request: GenerationRequest) -> Dict[str, Any]:
        return {
            "tracked_jobs": len(context.jobs),
            "pipeline": dict(pipeline_counts(context.jobs)),
        }
