"""
Prompt for cover letter generation.

Output contract:
    {sections: {opening, body[], closing}, metadata: {wordCount, tone}}
"""

from typing import Any, Dict, Optional

from src.common.types import GenerationContext, GenerationOptions
from src.generation.prompts.shared import (
    ANTI_FABRICATION_RULES,
    JSON_ONLY_INSTRUCTION,
    assemble,
    format_education,
    format_employment,
    format_job,
    format_profile,
    format_projects,
    format_skills,
    join_list,
    safe_text,
    section,
)

COVER_LETTER_SCHEMA = """{
  "sections": {
    "opening": "hook naming the role and a specific company connection",
    "body": ["evidence paragraph", "evidence paragraph"],
    "closing": "value restatement and call to action"
  },
  "metadata": {"wordCount": 0, "tone": "tone used"}
}"""

_LENGTH_WORDS = {
    "short": "150-200",
    "medium": "250-350",
    "long": "350-450",
}


def format_company_research(research: Optional[Dict[str, Any]]) -> str:
    """Compact company facts from a research artifact, for personalization."""
    if not research:
        return ""
    lines = []
    mission = safe_text(research.get("mission"), 300)
    if mission:
        lines.append(f"Mission: {mission}")
    culture = research.get("culture") or {}
    values = join_list(culture.get("values") if isinstance(culture, dict) else [])
    if values:
        lines.append(f"Values: {values}")
    products = join_list(research.get("products") or [])
    if products:
        lines.append(f"Products: {products}")
    for item in (research.get("news") or [])[:2]:
        if isinstance(item, dict) and item.get("title"):
            lines.append(f"- {safe_text(item['title'], 150)}")
    return "\n".join(lines)


def build_cover_letter_prompt(
    context: GenerationContext,
    options: GenerationOptions,
    company_research: Optional[Dict[str, Any]] = None,
) -> str:
    """Cover letter prompt; company research is woven in when available."""
    tone = safe_text(options.tone, 60) or "professional"
    words = _LENGTH_WORDS.get(options.length or "medium", _LENGTH_WORDS["medium"])
    instructions = (
        f"Write a cover letter for the candidate below. Tone: {tone}. "
        f"Length: {words} words across an opening, 2-3 body paragraphs and a closing."
    )
    if options.focus:
        instructions += f" Emphasize: {safe_text(options.focus, 200)}."

    return assemble(
        instructions,
        section("Candidate", format_profile(context.profile)),
        section("Target Job", format_job(context.job, context.posting_text)),
        section("Company Research", format_company_research(company_research)),
        section("Skills", format_skills(context.skills, max_items=15)),
        section("Experience", format_employment(context.employment, max_rows=4)),
        section("Education", format_education(context.education)),
        section("Projects", format_projects(context.projects)),
        ANTI_FABRICATION_RULES,
        section("Output Schema", COVER_LETTER_SCHEMA),
        JSON_ONLY_INSTRUCTION,
    )
