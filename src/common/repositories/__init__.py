"""
Repository Pattern for MongoDB Operations

Abstraction layer over MongoDB so generation services depend on
interfaces, not on pymongo.

Public API:
- get_context_repository(): profiles, jobs and enrichment collections
- get_artifact_repository(): generated artifacts
- get_company_repository(): durable companies + volatile research cache

Usage:
    from src.common.repositories import get_context_repository

    repo = get_context_repository()
    profile = repo.get_profile(user_id)
"""

from .artifact_repository import (
    ArtifactRepositoryInterface,
    get_artifact_repository,
    reset_artifact_repository,
)
from .base import AtlasConnection
from .company_repository import (
    CompanyRepositoryInterface,
    get_company_repository,
    normalize_company_key,
    reset_company_repository,
)
from .context_repository import (
    ContextRepositoryInterface,
    get_context_repository,
    reset_context_repository,
)

__all__ = [
    "AtlasConnection",
    # Context
    "ContextRepositoryInterface",
    "get_context_repository",
    "reset_context_repository",
    # Artifacts
    "ArtifactRepositoryInterface",
    "get_artifact_repository",
    "reset_artifact_repository",
    # Companies
    "CompanyRepositoryInterface",
    "get_company_repository",
    "reset_company_repository",
    "normalize_company_key",
]
