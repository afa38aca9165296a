"""
tests/test_sheets_writer.py

NEXT WEEK write-back and run-log rows.
"""

from __future__ import annotations

from app.domain.pipeline_models import NominationRow
from app.sheets.writer import (
    NEXT_WEEK_HEADERS,
    WEEK_COLUMN,
    RunLogEntry,
    write_nominations_to_sheet,
    write_run_log,
)
from tests.fakes import FakeSheetsGateway


def _row(sku: str) -> NominationRow:
    return NominationRow(
        week="2026-10-19",
        theme="Immunity week",
        discount_type="percent",
        sku=sku,
        product_name=f"Product {sku}",
        reason="strong seller",
        action="-20 %",
    )


def test_nominations_replace_the_target_week() -> None:
    gateway = FakeSheetsGateway()

    write_nominations_to_sheet(gateway, "process", "NEXT WEEK", "2026-10-19", [_row("A"), _row("B")])

    (spreadsheet_id, tab, key_column, key_value, rows), = gateway.replaced
    assert (spreadsheet_id, tab, key_column, key_value) == ("process", "NEXT WEEK", WEEK_COLUMN, "2026-10-19")
    assert [row[3] for row in rows] == ["A", "B"]
    assert all(len(row) == len(NEXT_WEEK_HEADERS) for row in rows)
    assert gateway.appended == []


def test_empty_week_still_clears_previous_rows() -> None:
    gateway = FakeSheetsGateway()

    write_nominations_to_sheet(gateway, "process", "NEXT WEEK", "2026-10-19", [])

    assert gateway.replaced[0][4] == []


def test_run_log_is_appended() -> None:
    gateway = FakeSheetsGateway()
    entry = RunLogEntry(
        run_id="run_1",
        timestamp="2026-10-19T08:00:00+00:00",
        client_name="VitalPoint",
        week_start="2026-10-19",
        campaign_count=2,
        product_count=7,
        join_rate=0.5,
        sheets_hash='{"master":"abc"}',
        status="WARNING",
    )

    write_run_log(gateway, "process", "RUN_LOG", entry)

    assert gateway.appended == [
        (
            "process",
            "RUN_LOG",
            [["run_1", "2026-10-19T08:00:00+00:00", "VitalPoint", "2026-10-19", "2", "7", "0.5", '{"master":"abc"}', "WARNING"]],
        )
    ]
