"""
Prompts for resume generation and per-role experience tailoring.

Resume output contract:
    {summary, bullets[], ordered_skills[], emphasize_skills[], add_skills[],
     ats_keywords[], sections: {experience: [{employment_id, role, company,
     dates, bullets[]}]}}

Experience tailoring output contract:
    {roles: [{employment_id, role, company, tailored_bullets[], relevance}],
     summary}
"""

from src.common.types import GenerationContext, GenerationOptions
from src.generation.prompts.shared import (
    ANTI_FABRICATION_RULES,
    JSON_ONLY_INSTRUCTION,
    assemble,
    format_certifications,
    format_education,
    format_employment,
    format_job,
    format_profile,
    format_projects,
    format_skills,
    safe_text,
    section,
)

RESUME_SCHEMA = """{
  "summary": "2-3 sentence professional summary tailored to the role",
  "bullets": ["top achievement bullet", "..."],
  "ordered_skills": ["skills ordered by relevance to the job"],
  "emphasize_skills": ["skills to emphasize"],
  "add_skills": ["skills the job asks for that the candidate can credibly claim"],
  "ats_keywords": ["keywords from the job description"],
  "sections": {
    "experience": [
      {"employment_id": "id from context", "role": "...", "company": "...", "dates": "YYYY-YYYY", "bullets": ["..."]}
    ]
  }
}"""

TAILORING_SCHEMA = """{
  "roles": [
    {
      "employment_id": "id from context",
      "role": "job title",
      "company": "company",
      "tailored_bullets": ["3-5 bullets rewritten for the target job"],
      "relevance": 0.0
    }
  ],
  "summary": "one sentence on what was emphasized"
}"""

_LENGTH_GUIDE = {
    "short": "Keep it to one page: at most 4 bullets per role.",
    "medium": "Aim for 5 bullets per role.",
    "long": "Up to 7 bullets per role for senior candidates.",
}


def build_resume_prompt(context: GenerationContext, options: GenerationOptions) -> str:
    """Resume prompt using profile, target job and all enrichment collections."""
    instructions = [
        "You are an expert resume writer. Write resume content for the candidate below, "
        "tailored to the target job.",
    ]
    if options.tone:
        instructions.append(f"Tone: {safe_text(options.tone, 60)}.")
    if options.length in _LENGTH_GUIDE:
        instructions.append(_LENGTH_GUIDE[options.length])
    if options.focus:
        instructions.append(f"Focus on: {safe_text(options.focus, 200)}.")
    if options.variant:
        instructions.append(f"Variant: {safe_text(options.variant, 60)}.")

    return assemble(
        " ".join(instructions),
        section("Candidate", format_profile(context.profile)),
        section("Target Job", format_job(context.job, context.posting_text)),
        section("Skills", format_skills(context.skills)),
        section("Employment", format_employment(context.employment, include_ids=True)),
        section("Education", format_education(context.education)),
        section("Projects", format_projects(context.projects)),
        section("Certifications", format_certifications(context.certifications)),
        ANTI_FABRICATION_RULES,
        section("Output Schema", RESUME_SCHEMA),
        JSON_ONLY_INSTRUCTION,
    )


def build_experience_tailoring_prompt(context: GenerationContext, options: GenerationOptions) -> str:
    """Per-role bullet rewrite using only employment history and the job."""
    instructions = (
        "Rewrite the candidate's experience bullets for each role so they speak to the "
        "target job. Keep every role; order bullets by relevance; rate each role's "
        "relevance from 0 to 1."
    )
    if options.focus:
        instructions += f" Focus on: {safe_text(options.focus, 200)}."

    return assemble(
        instructions,
        section("Target Job", format_job(context.job, context.posting_text)),
        section(
            "Employment",
            format_employment(context.employment, max_rows=8, description_len=600, include_ids=True),
        ),
        ANTI_FABRICATION_RULES,
        section("Output Schema", TAILORING_SCHEMA),
        JSON_ONLY_INSTRUCTION,
    )
