"""
Output contracts per generation kind.

Each kind has a Pydantic model describing the minimum shape a provider
response must have: required fields, primitive types and enumerated
values. Unknown extra keys are allowed and preserved; range clamping is
left to the sanitizers so a probability reported on the wrong scale
(e.g. 42 instead of 0.42) still validates and gets normalized later.
"""

import json
from typing import Any, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.common.types import GenerationKind, ValidationOutcome


class _Contract(BaseModel):
    model_config = ConfigDict(extra="allow")


# ===== Resume =====

class ExperienceRowModel(_Contract):
    employment_id: Optional[Union[str, int]] = None
    role: Optional[str] = None
    company: Optional[str] = None
    dates: Optional[str] = None
    bullets: List[Any] = Field(default_factory=list)


class ResumeSectionsModel(_Contract):
    experience: Optional[List[ExperienceRowModel]] = None


class ResumeOutput(_Contract):
    summary: str = Field(..., description="2-3 sentence professional summary")
    bullets: List[str] = Field(..., description="Top achievement bullets")
    ordered_skills: Optional[List[Any]] = None
    emphasize_skills: Optional[List[Any]] = None
    add_skills: Optional[List[Any]] = None
    ats_keywords: Optional[List[Any]] = None
    sections: Optional[ResumeSectionsModel] = None


# ===== Cover letter =====

class CoverLetterSectionsModel(_Contract):
    opening: str = Field(..., description="Opening paragraph")
    body: List[str] = Field(..., min_length=1, description="Body paragraphs")
    closing: str = Field(..., description="Closing paragraph")


class CoverLetterMetadataModel(_Contract):
    wordCount: Optional[int] = None
    tone: Optional[str] = None


class CoverLetterOutput(_Contract):
    sections: CoverLetterSectionsModel
    metadata: Optional[CoverLetterMetadataModel] = None


# ===== Skills optimization =====

class SkillRecommendationModel(_Contract):
    skill: str
    priority: Literal["high", "medium", "low"]
    action: Optional[str] = None


class SkillsOptimizationOutput(_Contract):
    summary: str
    matched_skills: List[str]
    missing_skills: List[str]
    emphasize_skills: Optional[List[Any]] = None
    recommendations: List[SkillRecommendationModel] = Field(default_factory=list)
    match_score: Optional[float] = None


# ===== Company research =====

class CompanyNewsModel(_Contract):
    title: str
    summary: Optional[str] = None
    date: Optional[str] = None
    category: Literal["funding", "product", "expansion", "hiring", "award", "general"] = "general"
    url: Optional[str] = None


class CompanyCultureModel(_Contract):
    type: Literal["corporate", "startup", "creative", "hybrid"]
    remote_policy: Optional[Literal["on-site", "hybrid", "remote-first", "fully-remote"]] = None
    values: List[Any] = Field(default_factory=list)
    perks: List[Any] = Field(default_factory=list)


class CompanyLeaderModel(_Contract):
    name: str
    title: str
    bio: Optional[str] = None


class CompanyResearchOutput(_Contract):
    company_name: str
    industry: Optional[str] = None
    size: Optional[str] = None
    location: Optional[str] = None
    founded: Optional[Union[int, str]] = None
    website: Optional[str] = None
    mission: Optional[str] = None
    description: str
    news: List[CompanyNewsModel] = Field(default_factory=list)
    recent_events: List[Any] = Field(default_factory=list)
    culture: CompanyCultureModel
    leadership: List[CompanyLeaderModel] = Field(default_factory=list)
    products: List[Any] = Field(default_factory=list)


# ===== Salary research =====

class SalaryRangeModel(_Contract):
    min: float
    max: float
    median: Optional[float] = None


class SalaryResearchOutput(_Contract):
    currency: str
    range: SalaryRangeModel
    factors: List[str] = Field(default_factory=list)
    negotiation_tips: List[str] = Field(default_factory=list)
    market_trend: Literal["rising", "stable", "declining"]
    confidence: Literal["low", "medium", "high"]
    summary: str


# ===== Prediction =====

class PredictionFactorModel(_Contract):
    name: str
    impact: Literal["positive", "negative", "neutral"]
    detail: Optional[str] = None


class PredictionOutput(_Contract):
    interview_probability: float
    offer_probability: float
    expected_weeks_to_offer: Optional[float] = None
    confidence: Literal["low", "medium", "high"]
    factors: List[PredictionFactorModel] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    summary: str


# ===== Job match =====

class MatchBreakdownModel(_Contract):
    skills: float
    experience: float
    education: float
    cultural_fit: float


class JobMatchOutput(_Contract):
    match_score: float
    breakdown: MatchBreakdownModel
    skills_gaps: List[Any] = Field(default_factory=list)
    strengths: List[Any] = Field(default_factory=list)
    recommendations: List[Any] = Field(default_factory=list)
    reasoning: str


# ===== Experience tailoring =====

class TailoredRoleModel(_Contract):
    employment_id: Optional[Union[str, int]] = None
    role: str
    company: Optional[str] = None
    tailored_bullets: List[str] = Field(..., min_length=1)
    relevance: Optional[float] = None


class ExperienceTailoringOutput(_Contract):
    roles: List[TailoredRoleModel] = Field(..., min_length=1)
    summary: Optional[str] = None


CONTRACTS: Dict[GenerationKind, Type[BaseModel]] = {
    GenerationKind.RESUME: ResumeOutput,
    GenerationKind.COVER_LETTER: CoverLetterOutput,
    GenerationKind.SKILLS_OPTIMIZATION: SkillsOptimizationOutput,
    GenerationKind.COMPANY_RESEARCH: CompanyResearchOutput,
    GenerationKind.SALARY_RESEARCH: SalaryResearchOutput,
    GenerationKind.PREDICTION: PredictionOutput,
    GenerationKind.JOB_MATCH: JobMatchOutput,
    GenerationKind.EXPERIENCE_TAILORING: ExperienceTailoringOutput,
}


def format_validation_errors(exc: ValidationError) -> List[str]:
    """Turn a Pydantic error into "<field.path>: <message>" lines."""
    messages = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        messages.append(f"{path}: {error.get('msg', 'invalid value')}")
    return messages


def validate_payload(kind: GenerationKind, value: Any) -> ValidationOutcome:
    """
    Check a parsed provider payload against the kind contract.

    Args:
        kind: Generation kind whose contract applies
        value: Parsed payload (anything; non-dicts fail)

    Returns:
        ValidationOutcome with the validated dict on success, or the list
        of human-readable errors on failure
    """
    if not isinstance(value, dict):
        return ValidationOutcome(
            ok=False,
            errors=[f"<root>: expected a JSON object, got {type(value).__name__}"],
        )

    model = CONTRACTS[kind]
    try:
        parsed = model.model_validate(value)
    except ValidationError as e:
        return ValidationOutcome(ok=False, errors=format_validation_errors(e))

    return ValidationOutcome(ok=True, value=parsed.model_dump(mode="json", exclude_unset=True))


def describe_shape(kind: GenerationKind) -> str:
    """JSON schema of the kind contract, for repair prompts."""
    schema = CONTRACTS[kind].model_json_schema()
    return json.dumps(schema, indent=None, separators=(",", ":"))
