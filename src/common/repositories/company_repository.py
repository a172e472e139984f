"""
Company Repository

Two stores with different lifetimes:
- companies: durable, slow-changing facts (industry, size, culture,
  leadership). Shared across users, no owner column, kept indefinitely.
- company_research_cache: volatile research (news, recent events) with an
  expires_at column; a TTL index removes expired rows.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from .base import AtlasConnection

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^a-z0-9]+")


def normalize_company_key(name: str) -> str:
    """Lowercase, punctuation-free key: "Acme, Inc." -> "acme inc"."""
    return _NON_WORD.sub(" ", (name or "").lower()).strip()


class CompanyRepositoryInterface(ABC):
    """
    Abstract interface for company collections.

    The durable and volatile paths are independent: a failed write on one
    must not affect the other.
    """

    @abstractmethod
    def find_company(self, company_key: str) -> Optional[Dict[str, Any]]:
        """
        Find the durable company record by normalized key.

        Returns:
            Document with company_name and durable fields, or None
        """

    @abstractmethod
    def upsert_company(self, company_key: str, company_name: str, durable: Dict[str, Any]) -> bool:
        """
        Insert or update durable company fields.

        Returns:
            True if successful
        """

    @abstractmethod
    def find_research_cache(self, company_key: str) -> Optional[Dict[str, Any]]:
        """
        Find volatile research by normalized key.

        Returns:
            Document with volatile fields and expires_at, or None
        """

    @abstractmethod
    def write_research_cache(
        self,
        company_key: str,
        volatile: Dict[str, Any],
        expires_at: datetime,
    ) -> bool:
        """
        Upsert volatile research with its expiry.

        Returns:
            True if successful
        """

    @abstractmethod
    def ensure_indexes(self) -> None:
        """Ensure required indexes exist (including TTL index)."""


class AtlasCompanyRepository(CompanyRepositoryInterface):
    """
    Atlas MongoDB implementation of CompanyRepository.
    """

    COMPANIES = "companies"
    RESEARCH_CACHE = "company_research_cache"

    def __init__(self, connection: Optional[AtlasConnection] = None):
        self._connection = connection or AtlasConnection()

    def find_company(self, company_key: str) -> Optional[Dict[str, Any]]:
        return self._connection.collection(self.COMPANIES).find_one({"company_key": company_key})

    def upsert_company(self, company_key: str, company_name: str, durable: Dict[str, Any]) -> bool:
        try:
            now = datetime.utcnow()
            self._connection.collection(self.COMPANIES).update_one(
                {"company_key": company_key},
                {
                    "$set": {**durable, "company_name": company_name, "updated_at": now},
                    "$setOnInsert": {"created_at": now},
                },
                upsert=True,
            )
            return True
        except Exception as e:
            logger.error(f"Error upserting company {company_key}: {e}")
            return False

    def find_research_cache(self, company_key: str) -> Optional[Dict[str, Any]]:
        return self._connection.collection(self.RESEARCH_CACHE).find_one({"company_key": company_key})

    def write_research_cache(
        self,
        company_key: str,
        volatile: Dict[str, Any],
        expires_at: datetime,
    ) -> bool:
        try:
            self._connection.collection(self.RESEARCH_CACHE).update_one(
                {"company_key": company_key},
                {"$set": {**volatile, "expires_at": expires_at, "cached_at": datetime.utcnow()}},
                upsert=True,
            )
            return True
        except Exception as e:
            logger.error(f"Error writing research cache for {company_key}: {e}")
            return False

    def ensure_indexes(self) -> None:
        try:
            self._connection.collection(self.COMPANIES).create_index(
                "company_key", unique=True, background=True
            )
            # Expire each row at its own expires_at
            self._connection.collection(self.RESEARCH_CACHE).create_index(
                "expires_at", expireAfterSeconds=0, background=True
            )
            logger.info("Company indexes ensured")
        except Exception as e:
            logger.warning(f"Error creating company indexes: {e}")


# Singleton instance
_company_repository_instance: Optional[CompanyRepositoryInterface] = None


def get_company_repository() -> CompanyRepositoryInterface:
    """
    Get the company repository instance (singleton).

    Returns:
        CompanyRepositoryInterface implementation
    """
    global _company_repository_instance

    if _company_repository_instance is None:
        repository = AtlasCompanyRepository()
        repository.ensure_indexes()
        _company_repository_instance = repository
        logger.info("Initialized company repository")

    return _company_repository_instance


def reset_company_repository() -> None:
    """Reset the repository singleton."""
    global _company_repository_instance

    if isinstance(_company_repository_instance, AtlasCompanyRepository):
        AtlasConnection.reset()

    _company_repository_instance = None
    logger.info("Company repository singleton reset")
