"""
Shared prompt helpers and constants.

Single source of truth for text normalization and the rules that appear in
every generation prompt, so the per-kind builders only decide WHICH
context to include.
"""

import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

_WHITESPACE = re.compile(r"\s+")

USER_ADDITIONS_HEADER = "=== User Additions ==="
USER_ADDITIONS_FOOTER = "=== End User Additions ==="

ANTI_FABRICATION_RULES = """=== RULES ===

1. ONLY use achievements, skills and employers that appear in the provided context
2. ONLY use metrics that appear in the context; never invent numbers
3. If information is missing, omit it rather than fabricate
4. Keep language specific and free of cliches"""

JSON_ONLY_INSTRUCTION = (
    "Return ONLY a single valid JSON object matching the schema above. "
    "No markdown, no code fences, no commentary."
)


def safe_text(value: Any, max_len: int = 1500) -> str:
    """Collapse whitespace and cap length, appending " …" when cut."""
    if value is None:
        return ""
    text = _WHITESPACE.sub(" ", str(value)).strip()
    if len(text) > max_len:
        return text[:max_len] + " …"
    return text


def join_list(items: Any, max_items: int = 12, max_len: int = 100) -> str:
    """Comma-join the first max_items entries, each capped at max_len."""
    if not isinstance(items, (list, tuple)) or not items:
        return ""
    parts = [safe_text(item, max_len) for item in items[:max_items]]
    return ", ".join(part for part in parts if part)


def year_of(value: Any) -> str:
    """Year of a date-like value (datetime, date or ISO string), else ""."""
    if isinstance(value, (datetime, date)):
        return str(value.year)
    if isinstance(value, str) and len(value) >= 4 and value[:4].isdigit():
        return value[:4]
    return ""


def candidate_name(profile: Dict[str, Any]) -> str:
    full_name = profile.get("full_name")
    if full_name:
        return safe_text(full_name, 120)
    first = profile.get("first_name") or ""
    last = profile.get("last_name") or ""
    return safe_text(f"{first} {last}", 120)


def job_title(job: Optional[Dict[str, Any]]) -> str:
    if not job:
        return ""
    return safe_text(job.get("job_title") or job.get("title"), 200)


def job_company(job: Optional[Dict[str, Any]]) -> str:
    if not job:
        return ""
    return safe_text(job.get("company_name") or job.get("company"), 200)


def job_description(job: Optional[Dict[str, Any]], max_len: int = 2000) -> str:
    if not job:
        return ""
    return safe_text(job.get("job_description") or job.get("description"), max_len)


def format_profile(profile: Dict[str, Any]) -> str:
    lines = [f"Name: {candidate_name(profile)}"]
    title = safe_text(profile.get("professional_title"), 200)
    if title:
        lines.append(f"Title: {title}")
    summary = safe_text(profile.get("summary"), 800)
    if summary:
        lines.append(f"Summary: {summary}")
    location = safe_text(profile.get("location") or profile.get("city"), 120)
    if location:
        lines.append(f"Location: {location}")
    return "\n".join(lines)


def format_job(job: Optional[Dict[str, Any]], posting_text: Optional[str] = None) -> str:
    if not job:
        return "(no target job)"
    lines = [
        f"Title: {job_title(job)}",
        f"Company: {job_company(job)}",
    ]
    for key, label in (("industry", "Industry"), ("location", "Location"), ("job_type", "Type")):
        value = safe_text(job.get(key), 120)
        if value:
            lines.append(f"{label}: {value}")
    description = job_description(job)
    if description:
        lines.append(f"Description: {description}")
    if posting_text:
        lines.append(f"Live posting excerpt: {safe_text(posting_text, 2500)}")
    return "\n".join(lines)


def format_skills(skills: Iterable[Dict[str, Any]], max_items: int = 30) -> str:
    names = [
        safe_text(s.get("skill_name"), 60)
        for s in list(skills)[:max_items]
        if isinstance(s, dict) and s.get("skill_name")
    ]
    return ", ".join(names)


def format_employment(
    employment: Iterable[Dict[str, Any]],
    max_rows: int = 6,
    description_len: int = 300,
    include_ids: bool = False,
) -> str:
    blocks: List[str] = []
    for row in list(employment)[:max_rows]:
        if not isinstance(row, dict):
            continue
        role = safe_text(row.get("job_title") or row.get("title"), 120)
        company = safe_text(row.get("company_name") or row.get("company"), 120)
        start = year_of(row.get("start_date"))
        end = "Present" if row.get("current_position") else year_of(row.get("end_date"))
        dates = f" ({start}-{end})" if start or end else ""
        prefix = f"[id={row.get('id')}] " if include_ids and row.get("id") is not None else ""
        block = f"{prefix}{role} at {company}{dates}"
        description = safe_text(row.get("job_description") or row.get("description"), description_len)
        if description:
            block += f":\n  {description}"
        blocks.append(block)
    return "\n\n".join(blocks)


def format_education(education: Iterable[Dict[str, Any]], max_rows: int = 3) -> str:
    lines = []
    for row in list(education)[:max_rows]:
        if not isinstance(row, dict):
            continue
        degree = safe_text(row.get("degree_type"), 80)
        field = safe_text(row.get("field_of_study"), 80)
        institution = safe_text(row.get("institution_name"), 120)
        year = year_of(row.get("graduation_date"))
        line = f"{degree} in {field}, {institution}" if field else f"{degree}, {institution}"
        lines.append(f"{line} ({year})" if year else line)
    return "\n".join(lines)


def format_projects(projects: Iterable[Dict[str, Any]], max_rows: int = 3) -> str:
    blocks = []
    for row in list(projects)[:max_rows]:
        if not isinstance(row, dict):
            continue
        name = safe_text(row.get("proj_name") or row.get("name"), 120)
        description = safe_text(row.get("proj_description") or row.get("description"), 200)
        tech = join_list(row.get("tech_and_skills") or [], 8, 50)
        block = f"{name}:\n  {description}"
        if tech:
            block += f"\n  Technologies: {tech}"
        blocks.append(block)
    return "\n\n".join(blocks)


def format_certifications(certifications: Iterable[Dict[str, Any]], max_rows: int = 5) -> str:
    lines = []
    for row in list(certifications)[:max_rows]:
        if not isinstance(row, dict):
            continue
        name = safe_text(row.get("name"), 120)
        org = safe_text(row.get("issuing_org"), 120)
        year = year_of(row.get("date_earned"))
        line = name + (f" - {org}" if org else "") + (f" ({year})" if year else "")
        lines.append(line)
    return "\n".join(lines)


def section(title: str, body: str) -> str:
    """Render a titled block, or "" when body is empty."""
    if not body:
        return ""
    return f"=== {title} ===\n{body}"


def assemble(*blocks: str) -> str:
    """Join non-empty blocks with blank lines."""
    return "\n\n".join(block for block in blocks if block)


def append_user_additions(prompt: str, additions: Optional[str], max_len: int = 2000) -> str:
    """
    Append caller free text under a delimited heading.

    The additions are normalized like any other context value; empty or
    whitespace-only additions leave the prompt unchanged.
    """
    extra = safe_text(additions, max_len)
    if not extra:
        return prompt
    return f"{prompt}\n\n{USER_ADDITIONS_HEADER}\n{extra}\n{USER_ADDITIONS_FOOTER}"
