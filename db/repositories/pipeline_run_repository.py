"""
Repository for pipeline run history.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.pipeline_run import PipelineRun, RunStatus
from db.repositories.errors import RunPersistenceError

RUN_HISTORY_LIMIT = 50


class PipelineRunRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def _add(self, run: PipelineRun) -> PipelineRun:
        try:
            self._session.add(run)
            self._session.flush()
            self._session.refresh(run)
        except SQLAlchemyError as exc:
            raise RunPersistenceError(f"Failed to store pipeline run: {exc}") from exc
        return run

    def record_success(
        self,
        *,
        client_id: uuid.UUID,
        week_start: date,
        mode: str,
        status: str,
        campaign_count: int,
        product_count: int,
        join_rate: float,
        sheets_hash: dict[str, Any],
        result: dict[str, Any],
    ) -> PipelineRun:
        return self._add(
            PipelineRun(
                client_id=client_id,
                week_start=week_start,
                mode=mode,
                status=status,
                campaign_count=campaign_count,
                product_count=product_count,
                join_rate=join_rate,
                sheets_hash=sheets_hash,
                result=result,
            )
        )

    def record_failure(
        self,
        *,
        client_id: uuid.UUID,
        week_start: date,
        mode: str,
        error: str,
    ) -> PipelineRun:
        return self._add(
            PipelineRun(
                client_id=client_id,
                week_start=week_start,
                mode=mode,
                status=RunStatus.FAIL,
                logs={"error": error},
            )
        )

    def list_runs_for_client(
        self,
        client_id: uuid.UUID,
        *,
        limit: int = RUN_HISTORY_LIMIT,
    ) -> list[PipelineRun]:
        stmt: Select[tuple[PipelineRun]] = (
            select(PipelineRun)
            .where(PipelineRun.client_id == client_id)
            .order_by(PipelineRun.created_at.desc())
            .limit(max(1, min(limit, RUN_HISTORY_LIMIT)))
        )
        return list(self._session.scalars(stmt).all())
