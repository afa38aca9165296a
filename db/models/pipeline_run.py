"""
db/models/pipeline_run.py

History record of one pipeline execution, successful or failed.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

from sqlalchemy import Date, Float, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.client import Client


class RunMode:
    DRY_RUN = "dry_run"
    GENERATE_WRITE = "generate_write"


class RunStatus:
    OK = "OK"
    WARNING = "WARNING"
    FAIL = "FAIL"


class PipelineRun(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "pipeline_runs"

    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    )
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    mode: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="dry_run or generate_write",
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False)

    # Counts stay NULL on failed runs.
    campaign_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    product_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    join_rate: Mapped[float | None] = mapped_column(Float, nullable=True)

    sheets_hash: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Per-source content fingerprints",
    )
    result: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    logs: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    client: Mapped["Client"] = relationship("Client", back_populates="runs")

    __table_args__ = (
        Index("ix_pipeline_runs_client_id_created_at", "client_id", "created_at"),
        Index("ix_pipeline_runs_week_start", "week_start"),
    )

    def __repr__(self) -> str:
        return f"<PipelineRun id={self.id} client_id={self.client_id} week={self.week_start} status={self.status}>"
