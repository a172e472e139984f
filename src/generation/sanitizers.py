"""
Post-validation normalizers per generation kind.

Validation guarantees shape; these functions guarantee ranges and
cleanliness: probabilities in [0, 1], scores in [0, 100], lists of plain
strings with bounded length, canonical company sizes, ordered salary
ranges. Every function returns a new dict and never raises on odd input.
"""

import copy
import math
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from src.common.types import GenerationContext, GenerationKind

COMPANY_SIZES = ("1-10", "11-50", "51-200", "201-500", "501-1000", "1000+")

# Whole-word labels, checked in order; first match wins
_SIZE_ALIASES = tuple(
    (re.compile(rf"\b{alias}\b"), bucket)
    for alias, bucket in (
        ("self-employed", "1-10"),
        ("micro", "1-10"),
        ("startup", "11-50"),
        ("small", "11-50"),
        ("mid-?sized?", "201-500"),
        ("medium", "51-200"),
        ("enterprise", "1000+"),
        ("large", "1000+"),
    )
)

_NUMBER = re.compile(r"\d+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_BULLET_SPLIT = re.compile(r"\r?\n|•")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


# ===== Primitive normalizers =====

def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.strip().rstrip("%").replace(",", "")
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def clamp_number(value: Any, low: float, high: float, default: Optional[float] = None) -> Optional[float]:
    """Clamp a numeric (or numeric string) value into [low, high]."""
    number = _to_float(value)
    if number is None:
        return default
    return max(low, min(high, number))


def normalize_probability(value: Any, default: Optional[float] = None) -> Optional[float]:
    """
    Normalize a probability onto [0, 1].

    Values in [2, 100] are treated as percentages and divided by 100;
    anything else is clamped. So 42 -> 0.42, 1.4 -> 1.0, -0.3 -> 0.0.
    """
    number = _to_float(value)
    if number is None:
        return default
    if 2 <= number <= 100:
        number = number / 100.0
    return round(max(0.0, min(1.0, number)), 4)


def coerce_string_list(values: Any, max_items: int = 20, max_len: int = 200) -> List[str]:
    """
    Keep primitive entries as trimmed strings.

    Dicts, lists, None and empty strings are dropped; numbers are kept as
    their string form.
    """
    if not isinstance(values, (list, tuple)):
        return []
    result: List[str] = []
    for item in values:
        if isinstance(item, bool) or item is None:
            continue
        if isinstance(item, (int, float)):
            item = str(item)
        if not isinstance(item, str):
            continue
        text = item.strip()
        if not text:
            continue
        result.append(text[:max_len])
        if len(result) >= max_items:
            break
    return result


def _dedupe(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        key = value.lower()
        if key not in seen:
            seen.add(key)
            result.append(value)
    return result


def _bucket_for_count(count: int) -> str:
    if count <= 10:
        return "1-10"
    if count <= 50:
        return "11-50"
    if count <= 200:
        return "51-200"
    if count <= 500:
        return "201-500"
    if count <= 1000:
        return "501-1000"
    return "1000+"


def normalize_company_size(value: Any) -> Optional[str]:
    """
    Map a free-form company size onto the canonical buckets.

    Order: exact bucket, alias label, digit inference ("N+" means more than
    N, a range uses its upper bound, a single number is the count). Labels
    match whole words and only apply when the text carries no headcount.
    Anything else is None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return _bucket_for_count(int(value)) if value > 0 else None
    if not isinstance(value, str):
        return None

    text = value.strip().lower()
    compact = text.replace(",", "").replace(" ", "")
    if not compact:
        return None
    if compact in COMPANY_SIZES:
        return compact

    numbers = [int(n) for n in _NUMBER.findall(compact)]
    if not numbers:
        for pattern, bucket in _SIZE_ALIASES:
            if pattern.search(text):
                return bucket
        return None
    if re.search(r"\d\+", compact):
        return _bucket_for_count(max(numbers) + 1)
    count = max(numbers)
    return _bucket_for_count(count) if count > 0 else None


def _clean_str(value: Any, max_len: int = 2000) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text[:max_len] if text else None


# ===== Resume =====

def _employment_dates(row: Dict[str, Any]) -> Optional[str]:
    start = str(row.get("start_date") or "")[:4]
    end = "Present" if row.get("current_position") else str(row.get("end_date") or "")[:4]
    if not start and not end:
        return None
    return f"{start}-{end}"


def _bullets_from_description(description: Any, max_items: int = 5) -> List[str]:
    if not isinstance(description, str):
        return []
    parts = [p.strip(" -•\t") for p in _BULLET_SPLIT.split(description)]
    parts = [p for p in parts if p]
    if len(parts) == 1:
        parts = _SENTENCE_SPLIT.split(parts[0])
    return coerce_string_list([p for p in parts if p], max_items=max_items, max_len=300)


def experience_from_employment(employment: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Build resume experience rows from stored employment records."""
    rows = []
    for record in employment:
        if not isinstance(record, dict):
            continue
        rows.append({
            "employment_id": record.get("id") or record.get("_id"),
            "role": _clean_str(record.get("job_title") or record.get("title"), 200),
            "company": _clean_str(record.get("company_name") or record.get("company"), 200),
            "dates": _employment_dates(record),
            "bullets": _bullets_from_description(record.get("job_description") or record.get("description")),
        })
    return [r for r in rows if r["bullets"] or r["role"] or r["company"]]


def sanitize_resume(content: Dict[str, Any], context: Optional[GenerationContext] = None) -> Dict[str, Any]:
    """
    Normalize resume output.

    Skill arrays keep strings only; experience rows are reshaped to
    {employment_id, role, company, dates, bullets}; when the provider
    omitted experience it is rebuilt from the stored employment rows.
    """
    out = copy.deepcopy(content) if isinstance(content, dict) else {}

    summary = out.get("summary")
    if summary is not None and not isinstance(summary, str):
        bullets = out.get("bullets") or []
        first = bullets[0] if bullets else None
        if isinstance(first, dict):
            first = first.get("text")
        summary = str(first) if first else None
    if isinstance(summary, str):
        out["summary"] = summary.strip()
    elif "summary" in out:
        out.pop("summary")

    out["bullets"] = coerce_string_list(out.get("bullets"), max_items=12, max_len=400)
    for key in ("ordered_skills", "emphasize_skills", "add_skills", "ats_keywords"):
        if key in out:
            out[key] = _dedupe(coerce_string_list(out.get(key), max_items=40, max_len=80))

    sections = out.get("sections")
    if not isinstance(sections, dict):
        sections = {}
    experience = sections.get("experience")
    rows: List[Dict[str, Any]] = []
    if isinstance(experience, list):
        for row in experience:
            if not isinstance(row, dict):
                continue
            normalized = {
                "employment_id": row.get("employment_id"),
                "role": _clean_str(row.get("role"), 200),
                "company": _clean_str(row.get("company"), 200),
                "dates": _clean_str(row.get("dates"), 60),
                "bullets": coerce_string_list(row.get("bullets"), max_items=10, max_len=400),
            }
            if normalized["bullets"] or normalized["role"] or normalized["company"]:
                rows.append(normalized)

    if not rows and context is not None and context.employment:
        rows = experience_from_employment(context.employment)
    sections["experience"] = rows
    out["sections"] = sections
    return out


# ===== Cover letter =====

def _paragraph(value: Any) -> str:
    text = _clean_str(value, 4000) or ""
    return re.sub(r"[ \t]+", " ", text)


def sanitize_cover_letter(content: Dict[str, Any], context: Optional[GenerationContext] = None) -> Dict[str, Any]:
    """Trim paragraphs, split a run-on body and recompute word count."""
    out = copy.deepcopy(content) if isinstance(content, dict) else {}
    sections = out.get("sections") if isinstance(out.get("sections"), dict) else {}

    body = sections.get("body")
    if isinstance(body, str):
        body = _PARAGRAPH_SPLIT.split(body)
    paragraphs = [_paragraph(p) for p in (body or []) if isinstance(p, str)]
    paragraphs = [p for p in paragraphs if p]

    sections = {
        **sections,
        "opening": _paragraph(sections.get("opening")),
        "body": paragraphs,
        "closing": _paragraph(sections.get("closing")),
    }
    out["sections"] = sections

    text = " ".join([sections["opening"], *paragraphs, sections["closing"]])
    metadata = out.get("metadata") if isinstance(out.get("metadata"), dict) else {}
    metadata = {**metadata, "wordCount": len(text.split())}
    if not isinstance(metadata.get("tone"), str):
        metadata["tone"] = "professional"
    out["metadata"] = metadata
    return out


# ===== Skills optimization =====

def sanitize_skills_optimization(content: Dict[str, Any], context: Optional[GenerationContext] = None) -> Dict[str, Any]:
    out = copy.deepcopy(content) if isinstance(content, dict) else {}
    out["summary"] = _clean_str(out.get("summary")) or ""
    for key in ("matched_skills", "missing_skills", "emphasize_skills"):
        out[key] = _dedupe(coerce_string_list(out.get(key), max_items=30, max_len=80))

    recommendations = []
    for item in out.get("recommendations") or []:
        if not isinstance(item, dict) or not _clean_str(item.get("skill")):
            continue
        priority = item.get("priority") if item.get("priority") in ("high", "medium", "low") else "medium"
        recommendations.append({
            "skill": _clean_str(item.get("skill"), 80),
            "priority": priority,
            "action": _clean_str(item.get("action"), 300),
        })
    out["recommendations"] = recommendations[:10]

    if "match_score" in out:
        score = clamp_number(out.get("match_score"), 0, 100)
        out["match_score"] = int(round(score)) if score is not None else None
    return out


# ===== Company research =====

def _normalize_founded(value: Any) -> Optional[int]:
    number = _to_float(value)
    if number is None:
        return None
    year = int(number)
    if 1600 <= year <= datetime.utcnow().year:
        return year
    return None


def _normalize_website(value: Any) -> Optional[str]:
    text = _clean_str(value, 300)
    if not text or " " in text or "." not in text:
        return None
    if not text.startswith(("http://", "https://")):
        text = f"https://{text}"
    return text


def sanitize_company_research(content: Dict[str, Any], context: Optional[GenerationContext] = None) -> Dict[str, Any]:
    """Canonical size, plausible founding year, bounded lists."""
    out = copy.deepcopy(content) if isinstance(content, dict) else {}
    out["company_name"] = _clean_str(out.get("company_name"), 200) or ""
    out["size"] = normalize_company_size(out.get("size"))
    out["founded"] = _normalize_founded(out.get("founded"))
    out["website"] = _normalize_website(out.get("website"))
    for key in ("industry", "location", "mission"):
        out[key] = _clean_str(out.get(key), 500)
    out["description"] = _clean_str(out.get("description"), 2000) or ""

    news = []
    for item in out.get("news") or []:
        if not isinstance(item, dict) or not _clean_str(item.get("title")):
            continue
        news.append({
            "title": _clean_str(item.get("title"), 300),
            "summary": _clean_str(item.get("summary"), 1000),
            "date": _clean_str(item.get("date"), 40),
            "category": item.get("category") or "general",
            "url": _clean_str(item.get("url"), 500),
        })
    out["news"] = news[:10]
    out["recent_events"] = coerce_string_list(out.get("recent_events"), max_items=10, max_len=300)

    culture = out.get("culture") if isinstance(out.get("culture"), dict) else {}
    out["culture"] = {
        "type": culture.get("type") or "corporate",
        "remote_policy": culture.get("remote_policy"),
        "values": coerce_string_list(culture.get("values"), max_items=10, max_len=80),
        "perks": coerce_string_list(culture.get("perks"), max_items=10, max_len=80),
    }

    leadership = []
    for leader in out.get("leadership") or []:
        if isinstance(leader, dict) and _clean_str(leader.get("name")) and _clean_str(leader.get("title")):
            leadership.append({
                "name": _clean_str(leader.get("name"), 120),
                "title": _clean_str(leader.get("title"), 120),
                "bio": _clean_str(leader.get("bio"), 600),
            })
    out["leadership"] = leadership[:10]
    out["products"] = coerce_string_list(out.get("products"), max_items=15, max_len=120)
    return out


# ===== Salary research =====

def sanitize_salary_research(content: Dict[str, Any], context: Optional[GenerationContext] = None) -> Dict[str, Any]:
    """Non-negative figures, min <= median <= max."""
    out = copy.deepcopy(content) if isinstance(content, dict) else {}
    salary_range = out.get("range") if isinstance(out.get("range"), dict) else {}

    low = clamp_number(salary_range.get("min"), 0, float("inf"), default=0.0)
    high = clamp_number(salary_range.get("max"), 0, float("inf"), default=0.0)
    if low > high:
        low, high = high, low
    normalized = {**salary_range, "min": low, "max": high}
    if salary_range.get("median") is not None:
        normalized["median"] = clamp_number(salary_range.get("median"), low, high, default=None)
    out["range"] = normalized

    currency = _clean_str(out.get("currency"), 10) or "USD"
    out["currency"] = currency.upper()
    out["factors"] = coerce_string_list(out.get("factors"), max_items=10, max_len=200)
    out["negotiation_tips"] = coerce_string_list(out.get("negotiation_tips"), max_items=10, max_len=300)
    out["summary"] = _clean_str(out.get("summary")) or ""
    return out


# ===== Prediction =====

def sanitize_prediction(content: Dict[str, Any], context: Optional[GenerationContext] = None) -> Dict[str, Any]:
    """Probabilities onto [0, 1], bounded weeks, bounded lists."""
    out = copy.deepcopy(content) if isinstance(content, dict) else {}
    out["interview_probability"] = normalize_probability(out.get("interview_probability"), default=0.0)
    out["offer_probability"] = normalize_probability(out.get("offer_probability"), default=0.0)
    if out.get("expected_weeks_to_offer") is not None:
        out["expected_weeks_to_offer"] = clamp_number(out.get("expected_weeks_to_offer"), 0, 104)

    factors = []
    for factor in out.get("factors") or []:
        if isinstance(factor, dict) and _clean_str(factor.get("name")):
            impact = factor.get("impact") if factor.get("impact") in ("positive", "negative", "neutral") else "neutral"
            factors.append({
                "name": _clean_str(factor.get("name"), 120),
                "impact": impact,
                "detail": _clean_str(factor.get("detail"), 400),
            })
    out["factors"] = factors[:10]
    out["recommendations"] = coerce_string_list(out.get("recommendations"), max_items=5, max_len=300)
    out["summary"] = _clean_str(out.get("summary")) or ""
    return out


# ===== Job match =====

def _score(value: Any) -> int:
    return int(round(clamp_number(value, 0, 100, default=0.0)))


def sanitize_job_match(content: Dict[str, Any], context: Optional[GenerationContext] = None) -> Dict[str, Any]:
    """Scores clamped to 0-100 integers, at most 5 items per list."""
    out = copy.deepcopy(content) if isinstance(content, dict) else {}
    out["match_score"] = _score(out.get("match_score"))
    breakdown = out.get("breakdown") if isinstance(out.get("breakdown"), dict) else {}
    out["breakdown"] = {
        key: _score(breakdown.get(key)) for key in ("skills", "experience", "education", "cultural_fit")
    }
    for key in ("skills_gaps", "strengths", "recommendations"):
        out[key] = coerce_string_list(out.get(key), max_items=5, max_len=300)
    out["reasoning"] = _clean_str(out.get("reasoning")) or ""
    return out


# ===== Experience tailoring =====

def sanitize_experience_tailoring(content: Dict[str, Any], context: Optional[GenerationContext] = None) -> Dict[str, Any]:
    out = copy.deepcopy(content) if isinstance(content, dict) else {}
    roles = []
    for role in out.get("roles") or []:
        if not isinstance(role, dict):
            continue
        bullets = coerce_string_list(role.get("tailored_bullets"), max_items=7, max_len=400)
        if not bullets:
            continue
        roles.append({
            "employment_id": role.get("employment_id"),
            "role": _clean_str(role.get("role"), 200),
            "company": _clean_str(role.get("company"), 200),
            "tailored_bullets": bullets,
            "relevance": normalize_probability(role.get("relevance")),
        })
    out["roles"] = roles
    if "summary" in out:
        out["summary"] = _clean_str(out.get("summary"))
    return out


Sanitizer = Callable[[Dict[str, Any], Optional[GenerationContext]], Dict[str, Any]]

SANITIZERS: Dict[GenerationKind, Sanitizer] = {
    GenerationKind.RESUME: sanitize_resume,
    GenerationKind.COVER_LETTER: sanitize_cover_letter,
    GenerationKind.SKILLS_OPTIMIZATION: sanitize_skills_optimization,
    GenerationKind.COMPANY_RESEARCH: sanitize_company_research,
    GenerationKind.SALARY_RESEARCH: sanitize_salary_research,
    GenerationKind.PREDICTION: sanitize_prediction,
    GenerationKind.JOB_MATCH: sanitize_job_match,
    GenerationKind.EXPERIENCE_TAILORING: sanitize_experience_tailoring,
}


def sanitize_content(
    kind: GenerationKind,
    content: Dict[str, Any],
    context: Optional[GenerationContext] = None,
) -> Dict[str, Any]:
    """Apply the kind's sanitizer."""
    return SANITIZERS[kind](content, context)
