"""
Prompt for job-search outcome prediction.

Built from the application pipeline (status counts) rather than a single
job, so prediction requests do not need a job id.
"""

from collections import Counter
from typing import Any, Dict, Iterable

from src.common.types import GenerationContext, GenerationOptions
from src.generation.prompts.shared import (
    JSON_ONLY_INSTRUCTION,
    assemble,
    format_job,
    format_profile,
    format_skills,
    section,
)

PREDICTION_SCHEMA = """{
  "interview_probability": 0.0,
  "offer_probability": 0.0,
  "expected_weeks_to_offer": 0,
  "confidence": "low|medium|high",
  "factors": [{"name": "...", "impact": "positive|negative|neutral", "detail": "..."}],
  "recommendations": ["..."],
  "summary": "..."
}"""


def pipeline_counts(jobs: Iterable[Dict[str, Any]]) -> Counter:
    """Count jobs per normalized status ("applied", "interview", "offer", ...)."""
    counts: Counter = Counter()
    for job in jobs:
        if not isinstance(job, dict):
            continue
        status = str(job.get("status") or job.get("job_status") or "unknown").strip().lower()
        counts[status] += 1
    return counts


def build_prediction_prompt(context: GenerationContext, options: GenerationOptions) -> str:
    """Outcome prediction from pipeline statistics and the candidate profile."""
    counts = pipeline_counts(context.jobs)
    stats = "\n".join(f"{status}: {count}" for status, count in sorted(counts.items()))
    stats = stats or "(no applications tracked yet)"

    return assemble(
        "Predict this candidate's job search outcomes from their application pipeline. "
        "Probabilities are decimals between 0 and 1, not percentages.",
        section("Candidate", format_profile(context.profile)),
        section("Application Pipeline", f"Total tracked: {sum(counts.values())}\n{stats}"),
        section("Skills", format_skills(context.skills, max_items=20)),
        section("Focus Job", format_job(context.job) if context.job else ""),
        section("Output Schema", PREDICTION_SCHEMA),
        JSON_ONLY_INSTRUCTION,
    )
