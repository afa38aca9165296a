from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from app.config import (
    get_external_http_settings,
    get_google_sheets_settings,
    get_llm_settings,
    get_log_level,
    get_pipeline_settings,
)


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - A database URL must be configured.
    - LLM API key check is skipped only when LLM_ADAPTER=mock.
    - LLM_ADAPTER must be 'openai' or 'mock'.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    if not any(
        os.getenv(name, "").strip()
        for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
    ):
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL or LOCAL_DATABASE_URL."
        )

    # --- LLM adapter ----------------------------------------------------
    llm_settings = get_llm_settings()
    if llm_settings.adapter not in {"openai", "mock"}:
        errors.append(f"LLM_ADAPTER='{llm_settings.adapter}' is not valid. Allowed values: ['openai', 'mock'].")
    elif llm_settings.adapter != "mock" and not llm_settings.api_key:
        errors.append(
            "LLM API key is not set. Provide LLM_API_KEY or OPENAI_API_KEY. "
            "Empty strings are not permitted."
        )

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    logging.basicConfig(
        level=getattr(logging, get_log_level(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except SQLAlchemyError as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Every table registered on Base.metadata must exist in the database.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        logging.getLogger(__name__).critical(
            "Schema mismatch: %d table(s) absent from the database: %s. "
            "Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


def _build_services(application: FastAPI) -> None:
    """
    Build the process-wide LLM client, Sheets client and run service once.

    Without service-account credentials the API still serves client
    management; sheet and run endpoints answer 503.
    """
    from app.connectors.product_feed_connector import ProductFeedConnector
    from app.services.run_service import RunService
    from app.sheets.google_sheets import GoogleSheetsClient, sheets_service_factory
    from llm_synthesis.client import build_llm_client

    log = logging.getLogger(__name__)
    llm_client = build_llm_client(get_llm_settings())

    sheets_settings = get_google_sheets_settings()
    application.state.sheets_client = None
    application.state.run_service = None
    if not sheets_settings.is_configured:
        log.warning("Google Sheets credentials not configured; sheet and run endpoints disabled")
        return

    sheets_client = GoogleSheetsClient(sheets_service_factory(sheets_settings))
    application.state.sheets_client = sheets_client
    application.state.run_service = RunService(
        sheets=sheets_client,
        llm=llm_client,
        feed=ProductFeedConnector(http_settings=get_external_http_settings()),
        settings=get_pipeline_settings(),
    )
    log.info("Pipeline services initialized")


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema, then wire the pipeline services."""
    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")
    _build_services(application)
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Campaign Planner API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import client_router, run_router, sheets_router

    application.include_router(client_router)
    application.include_router(run_router)
    application.include_router(sheets_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
