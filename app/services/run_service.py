"""
Run service: executes the pipeline for one client and week, writes the
results back to the client's workbook when asked, and records every
attempt in the run history.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Literal, Optional

from sqlalchemy.orm import Session, sessionmaker

from agent.errors import PipelineError, handle_pipeline_failure
from agent.pipeline import run_pipeline
from agent.state import PipelineDependencies, PipelineInput, ProgressCallback
from app.config import PipelineSettings, get_pipeline_settings
from app.connectors.product_feed_connector import ProductFeedConnector
from app.domain.pipeline_models import PipelineResult
from app.sheets.base import SheetsGateway, combine_fingerprints
from app.sheets.writer import RunLogEntry, write_nominations_to_sheet, write_run_log
from db.models import Client, PipelineRun
from db.repositories.errors import RunPersistenceError
from db.repositories.pipeline_run_repository import PipelineRunRepository
from llm_synthesis.client import StructuredLLMClient

logger = logging.getLogger(__name__)

RunMode = Literal["dry_run", "generate_write"]
RUN_MODES: tuple[str, ...] = ("dry_run", "generate_write")


class RunInProgressError(RuntimeError):
    """Raised when a write run for the same client and week is already active."""


# ---------------------------------------------------------------------------
# Per-(client, week) write locks
# ---------------------------------------------------------------------------

_locks_guard = threading.Lock()
_active_writes: set[tuple[str, str]] = set()


@contextmanager
def write_lock(client_id: str, week_start: str) -> Iterator[None]:
    """
    Hold the in-process write lock for one client and week.

    Replace-by-week write-back is not atomic, so two concurrent writers
    for the same key could interleave their delete and append steps.
    """
    key = (client_id, week_start)
    with _locks_guard:
        if key in _active_writes:
            raise RunInProgressError(f"A write run for client {client_id} week {week_start} is already in progress.")
        _active_writes.add(key)
    try:
        yield
    finally:
        with _locks_guard:
            _active_writes.discard(key)


@contextmanager
def _no_lock() -> Iterator[None]:
    yield


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def pipeline_input_for_client(client: Client, week_start: str) -> PipelineInput:
    return PipelineInput(
        week_start=week_start,
        process_sheet_id=client.process_sheet_id,
        master_tab=client.master_tab,
        actual_week_tab=client.actual_week_tab,
        product_sheet_id=client.product_sheet_id,
        product_tab=client.product_tab,
        brand_sheet_id=client.brand_sheet_id,
        brand_tab=client.brand_tab,
        feed_url=client.feed_url,
        feed_tag_mapping=client.feed_tag_mapping,
        guardrails_raw=client.guardrails,
    )


def result_payload(result: PipelineResult) -> dict[str, Any]:
    """JSON-ready subset of a result kept in the run history."""
    return result.model_dump(
        mode="json",
        include={"campaigns", "nominations", "risks", "final_rows", "stats"},
    )


def new_run_id() -> str:
    return f"run_{int(time.time() * 1000)}"


@dataclass(frozen=True)
class RunOutcome:
    run_id: Optional[uuid.UUID]
    mode: str
    result: PipelineResult


class RunService:
    """
    Executes pipeline runs with a time bound and records their outcome.
    """

    def __init__(
        self,
        *,
        sheets: SheetsGateway,
        llm: StructuredLLMClient,
        feed: ProductFeedConnector | None = None,
        session_factory: sessionmaker[Session] | Callable[[], Session] | None = None,
        settings: PipelineSettings | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._sheets = sheets
        self._llm = llm
        self._feed = feed
        self._settings = settings or get_pipeline_settings()

    def execute_run(
        self,
        client: Client,
        week_start: date,
        mode: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> RunOutcome:
        """
        Run the pipeline for ``client`` and ``week_start``.

        Raises:
            ValueError: unknown ``mode``.
            RunInProgressError: another write run holds the same key.
            PipelineError: any terminal failure, after it was recorded.
        """
        if mode not in RUN_MODES:
            raise ValueError(f"mode must be one of {', '.join(RUN_MODES)}")

        week = week_start.isoformat()
        guard = (
            write_lock(str(client.id), week)
            if mode == "generate_write" and self._settings.lock_writes
            else _no_lock()
        )
        with guard:
            try:
                result = self._run_bounded(pipeline_input_for_client(client, week), on_progress)
                if mode == "generate_write":
                    self._write_back(client, week, result)
            except PipelineError as exc:
                self._record_failure(client, week_start, mode, str(exc))
                raise

        run = self._record_success(client, week_start, mode, result)
        return RunOutcome(run_id=run.id, mode=mode, result=result)

    def _run_bounded(
        self,
        pipeline_input: PipelineInput,
        on_progress: Optional[ProgressCallback],
    ) -> PipelineResult:
        dependencies = PipelineDependencies(
            sheets=self._sheets,
            llm=self._llm,
            feed=self._feed,
            loader_workers=self._settings.loader_workers,
        )
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pipeline-run")
        future = executor.submit(run_pipeline, pipeline_input, dependencies, on_progress)
        try:
            return future.result(timeout=self._settings.timeout_seconds)
        except FutureTimeoutError as exc:
            handle_pipeline_failure(
                failure_code="pipeline_timeout",
                message=f"Pipeline exceeded {self._settings.timeout_seconds:g}s.",
                stage_name="run",
                week_start=pipeline_input.week_start,
                cause=exc,
            )
            raise
        finally:
            # A timed-out run keeps its worker thread until the current stage returns.
            executor.shutdown(wait=False, cancel_futures=True)

    def _write_back(self, client: Client, week: str, result: PipelineResult) -> None:
        try:
            write_nominations_to_sheet(
                self._sheets,
                client.process_sheet_id,
                client.next_week_tab,
                week,
                result.final_rows,
            )
            write_run_log(
                self._sheets,
                client.process_sheet_id,
                client.run_log_tab,
                RunLogEntry(
                    run_id=new_run_id(),
                    timestamp=datetime.now(timezone.utc).isoformat(),
                    client_name=client.name,
                    week_start=week,
                    campaign_count=result.stats.campaign_count,
                    product_count=result.stats.product_count,
                    join_rate=result.stats.join_rate,
                    sheets_hash=combine_fingerprints(result.fingerprints),
                    status=result.overall_status.value,
                ),
            )
        except Exception as exc:  # noqa: BLE001
            handle_pipeline_failure(
                failure_code="write_back_failed",
                message=f"Write-back failed: {exc}",
                stage_name="write_back",
                week_start=week,
                cause=exc,
            )
            raise

    def _record_success(self, client: Client, week_start: date, mode: str, result: PipelineResult) -> PipelineRun:
        with self._session_factory() as db:
            run = PipelineRunRepository(db).record_success(
                client_id=client.id,
                week_start=week_start,
                mode=mode,
                status=result.overall_status.value,
                campaign_count=result.stats.campaign_count,
                product_count=result.stats.product_count,
                join_rate=result.stats.join_rate,
                sheets_hash=dict(result.fingerprints),
                result=result_payload(result),
            )
            db.commit()
        logger.info(
            "Recorded pipeline run client=%s week=%s mode=%s status=%s",
            client.id,
            week_start,
            mode,
            run.status,
        )
        return run

    def _record_failure(self, client: Client, week_start: date, mode: str, error: str) -> None:
        with self._session_factory() as db:
            try:
                PipelineRunRepository(db).record_failure(
                    client_id=client.id,
                    week_start=week_start,
                    mode=mode,
                    error=error,
                )
                db.commit()
            except RunPersistenceError:
                db.rollback()
                logger.exception(
                    "Failed to record failed run client=%s week=%s",
                    client.id,
                    week_start,
                )
