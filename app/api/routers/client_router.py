"""
app/api/routers/client_router.py

Client management endpoints and per-client run history.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.orm import Session

from app.connectors.product_feed_connector import FeedTagMapping
from app.domain.guardrails import DEFAULT_GUARDRAILS, Guardrails, merge_guardrails, resolve_guardrails
from app.sheets.templates import ACTUAL_WEEK_TAB, MASTER_TAB, NEXT_WEEK_TAB, RUN_LOG_TAB
from db.models.client import Client
from db.repositories.client_repository import ClientRepository
from db.repositories.errors import ClientNotFoundError
from db.repositories.pipeline_run_repository import RUN_HISTORY_LIMIT, PipelineRunRepository
from db.session import get_db

router = APIRouter(prefix="/clients", tags=["clients"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class ClientCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    process_sheet_id: str = Field(min_length=1)
    master_tab: str = MASTER_TAB
    next_week_tab: str = NEXT_WEEK_TAB
    actual_week_tab: str = ACTUAL_WEEK_TAB
    run_log_tab: str = RUN_LOG_TAB
    product_sheet_id: str = Field(min_length=1)
    product_tab: str = Field(min_length=1)
    brand_sheet_id: str = Field(min_length=1)
    brand_tab: str = Field(min_length=1)
    feed_url: str | None = None
    feed_tag_mapping: FeedTagMapping | None = None
    guardrails: Guardrails = DEFAULT_GUARDRAILS


class ClientUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    process_sheet_id: str | None = None
    master_tab: str | None = None
    next_week_tab: str | None = None
    actual_week_tab: str | None = None
    run_log_tab: str | None = None
    product_sheet_id: str | None = None
    product_tab: str | None = None
    brand_sheet_id: str | None = None
    brand_tab: str | None = None
    feed_url: str | None = None
    feed_tag_mapping: FeedTagMapping | None = None
    guardrails: dict[str, Any] | None = None


class ClientResponse(BaseModel):
    id: uuid.UUID
    name: str
    process_sheet_id: str
    master_tab: str
    next_week_tab: str
    actual_week_tab: str
    run_log_tab: str
    product_sheet_id: str
    product_tab: str
    brand_sheet_id: str
    brand_tab: str
    feed_url: str | None
    feed_tag_mapping: dict[str, Any] | None
    guardrails: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RunHistoryItem(BaseModel):
    id: uuid.UUID
    week_start: date
    mode: str
    status: str
    campaign_count: int | None
    product_count: int | None
    join_rate: float | None
    sheets_hash: dict[str, Any] | None
    logs: dict[str, Any] | None
    created_at: datetime

    model_config = {"from_attributes": True}


def _require_client(repository: ClientRepository, client_id: uuid.UUID) -> Client:
    try:
        return repository.require_client(client_id)
    except ClientNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_client(
    body: ClientCreateRequest,
    db: Session = Depends(get_db),
) -> ClientResponse:
    fields = body.model_dump(mode="json", exclude={"feed_tag_mapping", "guardrails"})
    fields["feed_tag_mapping"] = body.feed_tag_mapping.model_dump() if body.feed_tag_mapping else None
    fields["guardrails"] = body.guardrails.model_dump(mode="json")
    client = ClientRepository(db).create_client(**fields)
    db.commit()
    return ClientResponse.model_validate(client)


@router.get("", response_model=list[ClientResponse])
def list_clients(db: Session = Depends(get_db)) -> list[ClientResponse]:
    return [ClientResponse.model_validate(client) for client in ClientRepository(db).list_clients()]


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(client_id: uuid.UUID, db: Session = Depends(get_db)) -> ClientResponse:
    return ClientResponse.model_validate(_require_client(ClientRepository(db), client_id))


@router.put("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: uuid.UUID,
    body: ClientUpdateRequest,
    db: Session = Depends(get_db),
) -> ClientResponse:
    """
    Update the provided fields; guardrail overrides are merged onto the stored values.
    """
    repository = ClientRepository(db)
    client = _require_client(repository, client_id)

    fields = body.model_dump(exclude_unset=True, exclude={"feed_tag_mapping", "guardrails"})
    if "feed_tag_mapping" in body.model_fields_set:
        fields["feed_tag_mapping"] = body.feed_tag_mapping.model_dump() if body.feed_tag_mapping else None
    if body.guardrails is not None:
        try:
            merged = merge_guardrails(resolve_guardrails(client.guardrails), body.guardrails)
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=exc.errors(include_url=False),
            ) from exc
        fields["guardrails"] = merged.model_dump(mode="json")

    client = repository.update_client(client_id, **fields)
    db.commit()
    db.refresh(client)
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(client_id: uuid.UUID, db: Session = Depends(get_db)) -> None:
    repository = ClientRepository(db)
    _require_client(repository, client_id)
    repository.delete_client(client_id)
    db.commit()


@router.get("/{client_id}/runs", response_model=list[RunHistoryItem])
def list_client_runs(
    client_id: uuid.UUID,
    limit: int = RUN_HISTORY_LIMIT,
    db: Session = Depends(get_db),
) -> list[RunHistoryItem]:
    """
    Newest runs first, at most fifty.
    """
    _require_client(ClientRepository(db), client_id)
    runs = PipelineRunRepository(db).list_runs_for_client(client_id, limit=limit)
    return [RunHistoryItem.model_validate(run) for run in runs]
