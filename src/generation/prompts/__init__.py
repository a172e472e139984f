"""
Prompt builders for each generation kind.

Each builder takes a GenerationContext and GenerationOptions and returns
raw prompt text; callers append user additions and sanitize afterwards.
"""

from src.common.types import GenerationKind
from src.generation.prompts.cover_letter import build_cover_letter_prompt
from src.generation.prompts.prediction import build_prediction_prompt
from src.generation.prompts.repair import build_repair_prompt
from src.generation.prompts.research import (
    build_company_research_prompt,
    build_salary_research_prompt,
)
from src.generation.prompts.resume import (
    build_experience_tailoring_prompt,
    build_resume_prompt,
)
from src.generation.prompts.shared import append_user_additions, join_list, safe_text
from src.generation.prompts.skills import (
    build_job_match_prompt,
    build_skills_optimization_prompt,
)

PROMPT_BUILDERS = {
    GenerationKind.RESUME: build_resume_prompt,
    GenerationKind.COVER_LETTER: build_cover_letter_prompt,
    GenerationKind.SKILLS_OPTIMIZATION: build_skills_optimization_prompt,
    GenerationKind.COMPANY_RESEARCH: build_company_research_prompt,
    GenerationKind.SALARY_RESEARCH: build_salary_research_prompt,
    GenerationKind.PREDICTION: build_prediction_prompt,
    GenerationKind.JOB_MATCH: build_job_match_prompt,
    GenerationKind.EXPERIENCE_TAILORING: build_experience_tailoring_prompt,
}

__all__ = [
    "PROMPT_BUILDERS",
    "append_user_additions",
    "build_company_research_prompt",
    "build_cover_letter_prompt",
    "build_experience_tailoring_prompt",
    "build_job_match_prompt",
    "build_prediction_prompt",
    "build_repair_prompt",
    "build_resume_prompt",
    "build_salary_research_prompt",
    "build_skills_optimization_prompt",
    "join_list",
    "safe_text",
]
