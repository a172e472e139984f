"""
Context Repository

Read-only access to the records prompts are built from: profiles, jobs,
skills, employment, education, projects and certifications.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING

from .base import AtlasConnection, stringify_id, to_object_id

logger = logging.getLogger(__name__)


class ContextRepositoryInterface(ABC):
    """
    Abstract interface for user context collections.

    All list_* methods return rows owned by user_id, oldest first.
    """

    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Profile for user_id, or None."""

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """
        Job by id, or None. Ownership is checked by the caller.

        Returns:
            Job document including its user_id
        """

    @abstractmethod
    def list_skills(self, user_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_employment(self, user_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_education(self, user_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_projects(self, user_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_certifications(self, user_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_jobs(self, user_id: str) -> List[Dict[str, Any]]:
        """The user's tracked jobs (application pipeline), newest first."""


class AtlasContextRepository(ContextRepositoryInterface):
    """MongoDB implementation of ContextRepositoryInterface."""

    def __init__(self, connection: Optional[AtlasConnection] = None):
        self._connection = connection or AtlasConnection()

    def _list(self, collection: str, user_id: str, sort_field: str) -> List[Dict[str, Any]]:
        cursor = self._connection.collection(collection).find({"user_id": user_id})
        cursor = cursor.sort(sort_field, ASCENDING)
        return [stringify_id(doc) for doc in cursor]

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        doc = self._connection.collection("profiles").find_one({"user_id": user_id})
        return stringify_id(doc)

    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        doc = self._connection.collection("jobs").find_one({"_id": to_object_id(job_id)})
        return stringify_id(doc)

    def list_skills(self, user_id: str) -> List[Dict[str, Any]]:
        return self._list("skills", user_id, "created_at")

    def list_employment(self, user_id: str) -> List[Dict[str, Any]]:
        return self._list("employment", user_id, "start_date")

    def list_education(self, user_id: str) -> List[Dict[str, Any]]:
        return self._list("education", user_id, "graduation_date")

    def list_projects(self, user_id: str) -> List[Dict[str, Any]]:
        return self._list("projects", user_id, "start_date")

    def list_certifications(self, user_id: str) -> List[Dict[str, Any]]:
        return self._list("certifications", user_id, "date_earned")

    def list_jobs(self, user_id: str) -> List[Dict[str, Any]]:
        cursor = self._connection.collection("jobs").find({"user_id": user_id})
        cursor = cursor.sort("created_at", DESCENDING)
        return [stringify_id(doc) for doc in cursor]


# Singleton instance
_context_repository_instance: Optional[ContextRepositoryInterface] = None


def get_context_repository() -> ContextRepositoryInterface:
    """
    Get the context repository instance (singleton).

    Returns:
        ContextRepositoryInterface implementation
    """
    global _context_repository_instance

    if _context_repository_instance is None:
        _context_repository_instance = AtlasContextRepository()
        logger.info("Initialized context repository")

    return _context_repository_instance


def reset_context_repository() -> None:
    """Reset the repository singleton."""
    global _context_repository_instance
    _context_repository_instance = None
