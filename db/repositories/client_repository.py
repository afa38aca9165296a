"""
Repository for client configuration records.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.client import Client
from db.repositories.errors import ClientNotFoundError

# Columns a caller may set through create/update.
EDITABLE_FIELDS = frozenset(
    {
        "name",
        "process_sheet_id",
        "master_tab",
        "next_week_tab",
        "actual_week_tab",
        "run_log_tab",
        "product_sheet_id",
        "product_tab",
        "brand_sheet_id",
        "brand_tab",
        "feed_url",
        "feed_tag_mapping",
        "guardrails",
    }
)


class ClientRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_client(self, **fields: Any) -> Client:
        client = Client(**{key: value for key, value in fields.items() if key in EDITABLE_FIELDS})
        self._session.add(client)
        self._session.flush()
        self._session.refresh(client)
        return client

    def get_client(self, client_id: uuid.UUID) -> Client | None:
        return self._session.get(Client, client_id)

    def require_client(self, client_id: uuid.UUID) -> Client:
        client = self.get_client(client_id)
        if client is None:
            raise ClientNotFoundError(f"Client {client_id} not found.")
        return client

    def list_clients(self, *, limit: int = 100) -> list[Client]:
        stmt: Select[tuple[Client]] = select(Client).order_by(Client.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def update_client(self, client_id: uuid.UUID, **fields: Any) -> Client:
        """Apply only the given fields; omitted fields keep their values."""
        client = self.require_client(client_id)
        for key, value in fields.items():
            if key in EDITABLE_FIELDS:
                setattr(client, key, value)
        self._session.flush()
        return client

    def delete_client(self, client_id: uuid.UUID) -> None:
        client = self.require_client(client_id)
        self._session.delete(client)
        self._session.flush()
