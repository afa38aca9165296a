"""
Repository-layer exceptions for client and run persistence.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for repository failures."""


class ClientNotFoundError(RepositoryError):
    """Raised when a referenced client does not exist."""


class RunPersistenceError(RepositoryError):
    """Raised when a pipeline run record cannot be stored."""
