"""
Services module for artifact generation.

Each service extends GenerationService to provide the same request
lifecycle (authorize, gather context, generate, validate, sanitize,
persist) for one generation kind.
"""

from src.services.operation_base import (
    GenerationRejected,
    GenerationResult,
    GenerationService,
    OperationTimer,
)
from src.services.orchestrator import SERVICE_CLASSES, GenerationOrchestrator

__all__ = [
    # Base classes
    "GenerationRejected",
    "GenerationResult",
    "GenerationService",
    "OperationTimer",
    # Dispatch
    "GenerationOrchestrator",
    "SERVICE_CLASSES",
]
