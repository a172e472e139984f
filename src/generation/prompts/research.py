"""
Prompts for company research and salary research.

Company research separates slow-changing facts (industry, size, culture,
leadership) from time-sensitive items (news, recent events); the two are
cached with different lifetimes.
"""

from typing import Optional

from src.common.types import GenerationContext, GenerationOptions
from src.generation.prompts.shared import (
    JSON_ONLY_INSTRUCTION,
    assemble,
    format_employment,
    format_job,
    job_company,
    job_title,
    safe_text,
    section,
)

COMPANY_RESEARCH_SCHEMA = """{
  "company_name": "...",
  "industry": "...",
  "size": "1-10|11-50|51-200|201-500|501-1000|1000+",
  "location": "headquarters",
  "founded": 2010,
  "website": "https://...",
  "mission": "...",
  "description": "2-3 sentence overview",
  "news": [{"title": "...", "summary": "...", "date": "YYYY-MM-DD", "category": "funding|product|expansion|hiring|award|general", "url": "..."}],
  "recent_events": ["..."],
  "culture": {"type": "corporate|startup|creative|hybrid", "remote_policy": "on-site|hybrid|remote-first|fully-remote", "values": ["..."], "perks": ["..."]},
  "leadership": [{"name": "...", "title": "...", "bio": "..."}],
  "products": ["..."]
}"""

SALARY_RESEARCH_SCHEMA = """{
  "currency": "USD",
  "range": {"min": 0, "max": 0, "median": 0},
  "factors": ["what moves pay up or down for this role"],
  "negotiation_tips": ["..."],
  "market_trend": "rising|stable|declining",
  "confidence": "low|medium|high",
  "summary": "..."
}"""


def build_company_research_prompt(
    context: GenerationContext,
    options: GenerationOptions,
    company_name: Optional[str] = None,
) -> str:
    """Company profile prompt from the job posting and optional website text."""
    name = safe_text(company_name, 200) or job_company(context.job) or "the company"
    instructions = (
        f"Research {name} for a candidate applying to a {job_title(context.job) or 'role'} "
        "position. Use the posting and website text below when present; mark anything you "
        "are unsure of as null rather than guessing. Keep news to the last 12 months."
    )
    return assemble(
        instructions,
        section("Job Posting", format_job(context.job, context.posting_text)),
        section("Company Website Excerpt", safe_text(context.website_text, 3000)),
        section("Output Schema", COMPANY_RESEARCH_SCHEMA),
        JSON_ONLY_INSTRUCTION,
    )


def build_salary_research_prompt(context: GenerationContext, options: GenerationOptions) -> str:
    """Compensation benchmark for the target role and candidate seniority."""
    job = context.job or {}
    lines = [f"Role: {job_title(job)}", f"Company: {job_company(job)}"]
    for key, label in (("location", "Location"), ("industry", "Industry")):
        value = safe_text(job.get(key), 120)
        if value:
            lines.append(f"{label}: {value}")
    low, high = job.get("salary_min"), job.get("salary_max")
    if low or high:
        lines.append(f"Posted range: {low or '?'} - {high or '?'}")

    return assemble(
        "Estimate the market compensation range for the role below, for a candidate "
        "with the experience listed. Give base salary figures as numbers, min <= median <= max.",
        section("Role", "\n".join(lines)),
        section("Candidate Experience", format_employment(context.employment, max_rows=4, description_len=120)),
        section("Output Schema", SALARY_RESEARCH_SCHEMA),
        JSON_ONLY_INSTRUCTION,
    )
