"""
db/models/client.py

Client model: one retail account with its campaign workbook, sales
exports, optional product feed and guardrail overrides.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.sheets.templates import ACTUAL_WEEK_TAB, MASTER_TAB, NEXT_WEEK_TAB, RUN_LOG_TAB
from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.pipeline_run import PipelineRun


class Client(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Where a client's planning inputs live.

    guardrails and feed_tag_mapping hold raw JSON; they are validated when
    a run resolves them, so a bad value degrades to defaults instead of
    blocking the client.
    """

    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    process_sheet_id: Mapped[str] = mapped_column(String(128), nullable=False)
    master_tab: Mapped[str] = mapped_column(String(128), nullable=False, default=MASTER_TAB)
    next_week_tab: Mapped[str] = mapped_column(String(128), nullable=False, default=NEXT_WEEK_TAB)
    actual_week_tab: Mapped[str] = mapped_column(String(128), nullable=False, default=ACTUAL_WEEK_TAB)
    run_log_tab: Mapped[str] = mapped_column(String(128), nullable=False, default=RUN_LOG_TAB)

    product_sheet_id: Mapped[str] = mapped_column(String(128), nullable=False)
    product_tab: Mapped[str] = mapped_column(String(128), nullable=False)
    brand_sheet_id: Mapped[str] = mapped_column(String(128), nullable=False)
    brand_tab: Mapped[str] = mapped_column(String(128), nullable=False)

    feed_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    feed_tag_mapping: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Per-client XML feed tag names",
    )
    guardrails: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Per-client guardrail overrides",
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    runs: Mapped[list["PipelineRun"]] = relationship(
        "PipelineRun",
        back_populates="client",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_clients_name", "name"),)

    def __repr__(self) -> str:
        return f"<Client id={self.id} name={self.name!r}>"
