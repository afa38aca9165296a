"""
db/session.py

Engine and session factory for client and run-history persistence.

Nothing connects at import time: the pipeline and its tests run without
a database, and only the API's persistence paths open a session.
"""

from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.config import _get_bool_env, _get_int_env
from db.config import resolve_database_url


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Shared PostgreSQL engine; pool sizing comes from DB_POOL_* variables."""
    database_url = resolve_database_url()
    if not database_url.startswith("postgresql"):
        raise RuntimeError("clients and pipeline_runs use JSONB columns; a PostgreSQL URL is required.")

    return create_engine(
        database_url,
        echo=_get_bool_env("SQL_ECHO", default=False),
        pool_pre_ping=True,
        pool_size=_get_int_env("DB_POOL_SIZE", 5),
        max_overflow=_get_int_env("DB_MAX_OVERFLOW", 10),
        pool_recycle=_get_int_env("DB_POOL_RECYCLE", 1800),
    )


@lru_cache(maxsize=1)
def _session_factory() -> sessionmaker[Session]:
    # Run records are read back after commit (run id in the API response).
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


def SessionLocal() -> Session:
    return _session_factory()()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""
    with SessionLocal() as db:
        yield db
