"""
Canonical Types for the Artifact Generation Pipeline

This module defines the data structures passed between the provider client,
the repair pipeline, the content extractor and the generation services.
Stored records (profiles, jobs, employment rows) stay plain dicts as they
come out of MongoDB; everything the pipeline produces is a dataclass.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class GenerationKind(str, Enum):
    """Artifact kinds the pipeline can generate."""

    RESUME = "resume"
    COVER_LETTER = "cover_letter"
    SKILLS_OPTIMIZATION = "skills_optimization"
    COMPANY_RESEARCH = "company_research"
    SALARY_RESEARCH = "salary_research"
    PREDICTION = "prediction"
    JOB_MATCH = "job_match"
    EXPERIENCE_TAILORING = "experience_tailoring"

    @property
    def requires_job(self) -> bool:
        """Every kind except prediction is bound to a target job."""
        return self is not GenerationKind.PREDICTION

    @property
    def stored_kind(self) -> str:
        """Kind written to the artifact store (tailoring is a resume variant)."""
        if self is GenerationKind.EXPERIENCE_TAILORING:
            return GenerationKind.RESUME.value
        return self.value


class ProviderKind(str, Enum):
    """Provider variants behind AIClient."""

    MOCK = "mock"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ErrorType(str, Enum):
    """Failure categories reported by generation services."""

    AUTHORIZATION = "authorization"
    INPUT = "input"
    NOT_FOUND = "not_found"
    PROVIDER_TRANSIENT = "provider_transient"
    PROVIDER_PERMANENT = "provider_permanent"
    VALIDATION = "validation"
    INTERNAL = "internal"


@dataclass
class GenerationOptions:
    """Caller-supplied knobs for one generation."""

    tone: Optional[str] = None          # e.g. "professional", "enthusiastic"
    length: Optional[str] = None        # "short" | "medium" | "long"
    focus: Optional[str] = None         # free-text emphasis
    model: Optional[str] = None         # override, subject to the allow-list
    prompt: Optional[str] = None        # extra user instructions
    variant: Optional[str] = None       # e.g. "one_page", "technical"
    force_refresh: bool = False         # bypass research caches


@dataclass
class GenerationRequest:
    """A request to generate one artifact for an authenticated user."""

    kind: GenerationKind
    user_id: Optional[str]
    job_id: Optional[str] = None
    options: GenerationOptions = field(default_factory=GenerationOptions)


@dataclass
class TokenUsage:
    """Token accounting reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class ProviderMeta:
    """Diagnostics about how a provider call was served."""

    provider: str
    model: str
    attempts: int = 1
    retries: int = 0
    latency_ms: int = 0
    mock: bool = False


@dataclass
class GenerateResult:
    """
    Outcome of one successful provider call.

    text is the completion as returned; json is set when it parsed as a
    JSON object. raw is kept for diagnostics and is never persisted.
    """

    text: str = ""
    json: Optional[Dict[str, Any]] = None
    raw: Any = None
    tokens: TokenUsage = field(default_factory=TokenUsage)
    meta: Optional[ProviderMeta] = None


@dataclass
class ValidationOutcome:
    """Result of checking a payload against its kind contract."""

    ok: bool
    value: Optional[Dict[str, Any]] = None
    errors: List[str] = field(default_factory=list)


@dataclass
class GenerationContext:
    """Everything a prompt builder may read for one request."""

    user_id: str
    profile: Dict[str, Any]
    job: Optional[Dict[str, Any]] = None
    skills: List[Dict[str, Any]] = field(default_factory=list)
    employment: List[Dict[str, Any]] = field(default_factory=list)
    education: List[Dict[str, Any]] = field(default_factory=list)
    projects: List[Dict[str, Any]] = field(default_factory=list)
    certifications: List[Dict[str, Any]] = field(default_factory=list)
    jobs: List[Dict[str, Any]] = field(default_factory=list)
    posting_text: Optional[str] = None  # live job posting text, best effort
    website_text: Optional[str] = None  # live company site text, best effort


@dataclass(frozen=True)
class Artifact:
    """Persisted output of a generation. Never mutated after assembly."""

    id: str
    user_id: str
    job_id: Optional[str]
    kind: str
    title: str
    prompt: str
    model: str
    content: Dict[str, Any]
    metadata: Dict[str, Any]
    created_at: datetime

    def to_document(self) -> Dict[str, Any]:
        """Convert to a MongoDB document."""
        doc = asdict(self)
        doc["_id"] = doc.pop("id")
        return doc


@dataclass
class ExtractionMeta:
    """Diagnostics for one content extraction."""

    strategy: Optional[str] = None      # "fetch-basic" | "fetch-headers" | "browser"
    status: Optional[int] = None
    latency_ms: int = 0
    retries: int = 0                    # failed attempts before the success
    success: bool = False
    error: Optional[str] = None


@dataclass
class ExtractionResult:
    """Fetched page with its cleaned text."""

    html: str
    clean_text: str
    title: str
    final_url: str
    meta: ExtractionMeta = field(default_factory=ExtractionMeta)


DURABLE_RESEARCH_FIELDS = (
    "industry",
    "size",
    "location",
    "founded",
    "website",
    "mission",
    "description",
    "culture",
    "leadership",
    "products",
)

VOLATILE_RESEARCH_FIELDS = ("news", "recent_events")


@dataclass
class CachedResearch:
    """
    Company research split by lifetime.

    Durable fields are slow-changing facts kept indefinitely; volatile
    fields (news, recent events) expire at expires_at.
    """

    company_name: str
    durable: Dict[str, Any] = field(default_factory=dict)
    volatile: Dict[str, Any] = field(default_factory=dict)
    expires_at: Optional[datetime] = None

    def is_fresh(self, now: Optional[datetime] = None) -> bool:
        """True while the volatile part may still be reused."""
        if self.expires_at is None:
            return False
        return (now or datetime.utcnow()) < self.expires_at

    @staticmethod
    def split(content: Dict[str, Any]) -> "tuple[Dict[str, Any], Dict[str, Any]]":
        """Split a research payload into (durable, volatile) field dicts."""
        durable = {k: content[k] for k in DURABLE_RESEARCH_FIELDS if k in content}
        volatile = {k: content[k] for k in VOLATILE_RESEARCH_FIELDS if k in content}
        return durable, volatile
