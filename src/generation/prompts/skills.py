"""
Prompts comparing the candidate against a job: skills optimization and
job match scoring.
"""

from src.common.types import GenerationContext, GenerationOptions
from src.generation.prompts.shared import (
    JSON_ONLY_INSTRUCTION,
    assemble,
    format_education,
    format_employment,
    format_job,
    format_profile,
    format_skills,
    safe_text,
    section,
)

SKILLS_OPTIMIZATION_SCHEMA = """{
  "summary": "one paragraph overview of fit",
  "matched_skills": ["skills the candidate has that the job needs"],
  "missing_skills": ["skills the job needs that the candidate lacks"],
  "emphasize_skills": ["existing skills to put first"],
  "recommendations": [{"skill": "...", "priority": "high|medium|low", "action": "concrete next step"}],
  "match_score": 0
}"""

JOB_MATCH_SCHEMA = """{
  "match_score": 0,
  "breakdown": {"skills": 0, "experience": 0, "education": 0, "cultural_fit": 0},
  "skills_gaps": ["max 5"],
  "strengths": ["max 5"],
  "recommendations": ["max 5 actionable steps"],
  "reasoning": "2-3 sentences explaining the score"
}"""


def build_skills_optimization_prompt(context: GenerationContext, options: GenerationOptions) -> str:
    """Skills gap analysis: profile, job and the skills list only."""
    instructions = (
        "Compare the candidate's skills with the target job. Identify matches and gaps, "
        "and recommend how to close the gaps. match_score is 0-100."
    )
    if options.focus:
        instructions += f" Focus on: {safe_text(options.focus, 200)}."

    return assemble(
        instructions,
        section("Candidate", format_profile(context.profile)),
        section("Target Job", format_job(context.job, context.posting_text)),
        section("Skills", format_skills(context.skills, max_items=50)),
        section("Output Schema", SKILLS_OPTIMIZATION_SCHEMA),
        JSON_ONLY_INSTRUCTION,
    )


def build_job_match_prompt(context: GenerationContext, options: GenerationOptions) -> str:
    """Weighted match score: skills 40%, experience 30%, education 20%, fit 10%."""
    instructions = (
        "Score how well the candidate matches the job from 0 to 100. Weight skills 40%, "
        "experience 30%, education 20% and cultural fit 10%. Every breakdown value is 0-100."
    )
    return assemble(
        instructions,
        section("Candidate", format_profile(context.profile)),
        section("Target Job", format_job(context.job, context.posting_text)),
        section("Skills", format_skills(context.skills)),
        section("Experience", format_employment(context.employment, max_rows=5)),
        section("Education", format_education(context.education)),
        section("Output Schema", JOB_MATCH_SCHEMA),
        JSON_ONLY_INSTRUCTION,
    )
