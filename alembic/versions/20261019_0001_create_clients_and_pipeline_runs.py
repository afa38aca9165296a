"""create clients and pipeline_runs tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("process_sheet_id", sa.String(length=128), nullable=False),
        sa.Column("master_tab", sa.String(length=128), nullable=False),
        sa.Column("next_week_tab", sa.String(length=128), nullable=False),
        sa.Column("actual_week_tab", sa.String(length=128), nullable=False),
        sa.Column("run_log_tab", sa.String(length=128), nullable=False),
        sa.Column("product_sheet_id", sa.String(length=128), nullable=False),
        sa.Column("product_tab", sa.String(length=128), nullable=False),
        sa.Column("brand_sheet_id", sa.String(length=128), nullable=False),
        sa.Column("brand_tab", sa.String(length=128), nullable=False),
        sa.Column("feed_url", sa.Text(), nullable=True),
        sa.Column(
            "feed_tag_mapping",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Per-client XML feed tag names",
        ),
        sa.Column(
            "guardrails",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Per-client guardrail overrides",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_clients"),
    )
    op.create_index("ix_clients_name", "clients", ["name"], unique=False)

    op.create_table(
        "pipeline_runs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("mode", sa.String(length=32), nullable=False, comment="dry_run or generate_write"),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("campaign_count", sa.Integer(), nullable=True),
        sa.Column("product_count", sa.Integer(), nullable=True),
        sa.Column("join_rate", sa.Float(), nullable=True),
        sa.Column(
            "sheets_hash",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Per-source content fingerprints",
        ),
        sa.Column("result", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("logs", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["client_id"],
            ["clients.id"],
            name="fk_pipeline_runs_client_id_clients",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_pipeline_runs"),
    )
    op.create_index(
        "ix_pipeline_runs_client_id_created_at",
        "pipeline_runs",
        ["client_id", "created_at"],
        unique=False,
    )
    op.create_index("ix_pipeline_runs_week_start", "pipeline_runs", ["week_start"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_pipeline_runs_week_start", table_name="pipeline_runs")
    op.drop_index("ix_pipeline_runs_client_id_created_at", table_name="pipeline_runs")
    op.drop_table("pipeline_runs")
    op.drop_index("ix_clients_name", table_name="clients")
    op.drop_table("clients")
