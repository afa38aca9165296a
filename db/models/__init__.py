"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.client import Client
from db.models.pipeline_run import PipelineRun, RunMode, RunStatus

__all__ = [
    "Client",
    "PipelineRun",
    "RunMode",
    "RunStatus",
]
