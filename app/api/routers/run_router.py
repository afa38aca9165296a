"""
app/api/routers/run_router.py

Pipeline run endpoint.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from agent.errors import PipelineError
from agent.state import PipelineProgress
from app.api.dependencies import get_run_service
from app.services.run_service import RunInProgressError, RunService
from db.repositories.client_repository import ClientRepository
from db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/runs", tags=["runs"])


class RunRequest(BaseModel):
    client_id: uuid.UUID
    week_start: date
    mode: Literal["dry_run", "generate_write"]


class RunResponse(BaseModel):
    run_id: uuid.UUID | None
    mode: str
    result: dict[str, Any]


def _log_progress(progress: PipelineProgress) -> None:
    logger.info("Pipeline progress step=%s message=%s", progress.step, progress.message)


@router.post("", response_model=RunResponse)
def create_run(
    body: RunRequest,
    db: Session = Depends(get_db),
    service: RunService = Depends(get_run_service),
) -> RunResponse | JSONResponse:
    """
    Run the pipeline synchronously; ``generate_write`` also writes the
    NEXT WEEK rows and a RUN_LOG entry.
    """
    client = ClientRepository(db).get_client(body.client_id)
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")

    try:
        outcome = service.execute_run(client, body.week_start, body.mode, on_progress=_log_progress)
    except RunInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PipelineError as exc:
        logger.error("Pipeline run failed client=%s stage=%s error=%s", client.id, exc.stage, exc.message)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Pipeline failed", "details": str(exc)},
        )

    return RunResponse(
        run_id=outcome.run_id,
        mode=outcome.mode,
        result=outcome.result.model_dump(mode="json"),
    )
