"""
Global fixtures for all unit tests.

This conftest provides autouse fixtures that prevent real external service calls:
- MongoDB connection attempts (would cause 5-30s timeout per test)
- Environment variable isolation (prevents credential leakage)
- Process-wide singletons (memory cache, repositories, browser pool)

It also provides in-memory fakes for the repositories and scripted
provider transports used by the service tests.
"""

import os
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock, patch

import pytest

# Set test environment BEFORE any imports to prevent Config from loading real values
os.environ["AI_MOCK_MODE"] = "true"

from src.common.ai_client import ChatCompletion, ChatTransport
from src.common.config import GenerationSettings
from src.common.memory_cache import MemoryCache, reset_memory_cache
from src.common.repositories import (
    ArtifactRepositoryInterface,
    CompanyRepositoryInterface,
    ContextRepositoryInterface,
    reset_artifact_repository,
    reset_company_repository,
    reset_context_repository,
)
from src.common.types import Artifact
from src.services.browser_pool import reset_browser_pool


@pytest.fixture(autouse=True)
def mock_mongodb():
    """
    Prevent MongoDB connection attempts in all unit tests.

    MongoClient("") defaults to localhost:27017, causing 5-30s timeout per test.
    """
    with patch("pymongo.MongoClient") as mock_client, patch(
        "src.common.repositories.base.MongoClient", mock_client
    ):
        mock_instance = MagicMock()
        mock_db = MagicMock()
        mock_collection = MagicMock()

        # Setup chain: client["db"]["collection"]
        mock_instance.__getitem__ = MagicMock(return_value=mock_db)
        mock_db.__getitem__ = MagicMock(return_value=mock_collection)
        mock_collection.find_one = MagicMock(return_value=None)
        mock_collection.find = MagicMock(return_value=[])

        mock_client.return_value = mock_instance
        yield mock_client


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real credentials and configurations.

    Mock API keys prevent real provider calls if a test forgets to stub
    the transport; mock mode is on unless a test passes explicit settings.
    """
    monkeypatch.setenv("AI_MOCK_MODE", "true")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-mock-key-0000000000")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test-mock-key")
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017")


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop process-wide singletons between tests."""
    yield
    reset_memory_cache()
    reset_context_repository()
    reset_artifact_repository()
    reset_company_repository()
    reset_browser_pool()


# ===== Settings =====

def make_settings(**overrides) -> GenerationSettings:
    values = dict(
        provider="openai",
        mock_mode=False,
        default_model="gpt-4o-mini",
        allowed_models=(),
        temperature=0.2,
        max_tokens=800,
        timeout_seconds=5.0,
        max_retries=2,
        backoff_base_seconds=1.0,
        backoff_cap_seconds=10.0,
        backoff_jitter_seconds=0.0,
        prompt_max_chars=16000,
    )
    values.update(overrides)
    return GenerationSettings(**values)


@pytest.fixture
def mock_settings() -> GenerationSettings:
    return make_settings(provider="mock", mock_mode=True)


@pytest.fixture
def remote_settings() -> GenerationSettings:
    return make_settings()


# ===== Provider transport =====

class ScriptedTransport(ChatTransport):
    """
    Transport replaying a script of outcomes.

    Each entry is either a string (completion text) or an exception to raise.
    Every call is recorded in `calls`.
    """

    def __init__(self, script: List[Any]):
        self.script = list(script)
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, prompt, model, temperature, max_tokens, json_mode) -> ChatCompletion:
        self.calls.append(
            {
                "prompt": prompt,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "json_mode": json_mode,
            }
        )
        if not self.script:
            raise AssertionError("unexpected provider call")
        outcome = self.script.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return ChatCompletion(text=outcome, prompt_tokens=40, completion_tokens=60, total_tokens=100)


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()


# ===== Repositories =====

class FakeContextRepository(ContextRepositoryInterface):
    """In-memory profiles, jobs and enrichment rows."""

    def __init__(self):
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.failing: set = set()

    def _rows(self, name: str, user_id: str) -> List[Dict[str, Any]]:
        if name in self.failing:
            raise RuntimeError(f"{name} unavailable")
        return [row for row in self.rows.get(name, []) if row.get("user_id") == user_id]

    def get_profile(self, user_id):
        return self.profiles.get(user_id)

    def get_job(self, job_id):
        return self.jobs.get(job_id)

    def list_skills(self, user_id):
        return self._rows("skills", user_id)

    def list_employment(self, user_id):
        return self._rows("employment", user_id)

    def list_education(self, user_id):
        return self._rows("education", user_id)

    def list_projects(self, user_id):
        return self._rows("projects", user_id)

    def list_certifications(self, user_id):
        return self._rows("certifications", user_id)

    def list_jobs(self, user_id):
        if "jobs" in self.failing:
            raise RuntimeError("jobs unavailable")
        return [job for job in self.jobs.values() if job.get("user_id") == user_id]


class FakeArtifactRepository(ArtifactRepositoryInterface):
    """Collects inserted artifacts; can be told to fail."""

    def __init__(self, fail: bool = False):
        self.artifacts: List[Artifact] = []
        self.fail = fail

    def insert_artifact(self, artifact):
        if self.fail:
            raise RuntimeError("store unavailable")
        self.artifacts.append(artifact)
        return True


class FakeCompanyRepository(CompanyRepositoryInterface):
    """Durable companies and volatile research cache in dicts."""

    def __init__(self):
        self.companies: Dict[str, Dict[str, Any]] = {}
        self.research: Dict[str, Dict[str, Any]] = {}
        self.fail_durable = False
        self.fail_volatile = False
        self.company_lookups = 0

    def find_company(self, company_key):
        self.company_lookups += 1
        return self.companies.get(company_key)

    def upsert_company(self, company_key, company_name, durable):
        if self.fail_durable:
            raise RuntimeError("durable store down")
        self.companies[company_key] = {**durable, "company_key": company_key, "company_name": company_name}
        return True

    def find_research_cache(self, company_key):
        return self.research.get(company_key)

    def write_research_cache(self, company_key, volatile, expires_at):
        if self.fail_volatile:
            raise RuntimeError("volatile store down")
        self.research[company_key] = {**volatile, "company_key": company_key, "expires_at": expires_at}
        return True

    def ensure_indexes(self):
        pass


USER_ID = "user-1"
OTHER_USER_ID = "user-2"
JOB_ID = "job-1"


@pytest.fixture
def context_repo() -> FakeContextRepository:
    repo = FakeContextRepository()
    repo.profiles[USER_ID] = {
        "user_id": USER_ID,
        "full_name": "Ada Lovelace",
        "professional_title": "Backend Engineer",
        "summary": "Engineer focused on data pipelines.",
    }
    repo.jobs[JOB_ID] = {
        "id": JOB_ID,
        "user_id": USER_ID,
        "job_title": "Senior Backend Engineer",
        "company_name": "Acme Corp",
        "job_description": "Build reliable Python services for payments.",
        "status": "applied",
        "industry": "Fintech",
        "location": "Remote",
    }
    repo.jobs["job-foreign"] = {
        "id": "job-foreign",
        "user_id": OTHER_USER_ID,
        "job_title": "Data Engineer",
        "company_name": "Other Inc",
    }
    repo.rows = {
        "skills": [
            {"user_id": USER_ID, "skill_name": "Python", "skill_category": "Technical"},
            {"user_id": USER_ID, "skill_name": "MongoDB", "skill_category": "Technical"},
        ],
        "employment": [
            {
                "user_id": USER_ID,
                "id": "emp-1",
                "job_title": "Backend Engineer",
                "company_name": "Globex",
                "start_date": "2020-01-01",
                "end_date": None,
                "current_position": True,
                "job_description": "Built ingestion services.\nCut latency by 40%.",
            }
        ],
        "education": [
            {"user_id": USER_ID, "institution_name": "State University", "degree_type": "BSc",
             "field_of_study": "Computer Science", "graduation_date": "2019-06-01"}
        ],
        "projects": [],
        "certifications": [],
    }
    return repo


@pytest.fixture
def artifact_repo() -> FakeArtifactRepository:
    return FakeArtifactRepository()


@pytest.fixture
def company_repo() -> FakeCompanyRepository:
    return FakeCompanyRepository()


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache(max_keys=100, max_bytes=1024 * 1024, default_ttl=300)
