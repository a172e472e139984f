"""
Artifact Repository

Stores generated artifacts in the ai_artifacts collection. Each
generation inserts a new document; earlier versions are kept.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from src.common.types import Artifact

from .base import AtlasConnection

logger = logging.getLogger(__name__)


class ArtifactRepositoryInterface(ABC):
    """Abstract interface for the ai_artifacts collection."""

    @abstractmethod
    def insert_artifact(self, artifact: Artifact) -> bool:
        """
        Persist an artifact.

        Returns:
            True if stored. Implementations log failures instead of raising.
        """


class AtlasArtifactRepository(ArtifactRepositoryInterface):
    """MongoDB implementation of ArtifactRepositoryInterface."""

    COLLECTION = "ai_artifacts"

    def __init__(self, connection: Optional[AtlasConnection] = None):
        self._connection = connection or AtlasConnection()

    def insert_artifact(self, artifact: Artifact) -> bool:
        try:
            self._connection.collection(self.COLLECTION).insert_one(artifact.to_document())
            logger.info(f"Persisted artifact {artifact.id} ({artifact.kind}) for user {artifact.user_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to persist artifact {artifact.id}: {e}")
            return False

    def ensure_indexes(self) -> None:
        try:
            self._connection.collection(self.COLLECTION).create_index(
                [("user_id", 1), ("kind", 1), ("created_at", -1)],
                background=True,
            )
            logger.info("Artifact indexes ensured")
        except Exception as e:
            logger.warning(f"Error creating artifact indexes: {e}")


# Singleton instance
_artifact_repository_instance: Optional[ArtifactRepositoryInterface] = None


def get_artifact_repository() -> ArtifactRepositoryInterface:
    """Get the artifact repository instance (singleton)."""
    global _artifact_repository_instance

    if _artifact_repository_instance is None:
        repository = AtlasArtifactRepository()
        repository.ensure_indexes()
        _artifact_repository_instance = repository
        logger.info("Initialized artifact repository")

    return _artifact_repository_instance


def reset_artifact_repository() -> None:
    """Reset the repository singleton."""
    global _artifact_repository_instance
    _artifact_repository_instance = None
