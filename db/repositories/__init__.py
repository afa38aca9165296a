"""
Repository layer exports.
"""

from db.repositories.client_repository import ClientRepository
from db.repositories.errors import ClientNotFoundError, RepositoryError, RunPersistenceError
from db.repositories.pipeline_run_repository import PipelineRunRepository

__all__ = [
    "ClientRepository",
    "PipelineRunRepository",
    "RepositoryError",
    "ClientNotFoundError",
    "RunPersistenceError",
]
