"""
app/sheets/writer.py

Write-back of approved-pending nominations and run-log rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from app.domain.pipeline_models import NominationRow
from app.sheets.base import SheetsGateway

logger = logging.getLogger(__name__)

WEEK_COLUMN = "Týden"

NEXT_WEEK_HEADERS = [
    WEEK_COLUMN,
    "TÉMA (Zadaní)",
    "Typ pro slevu",
    "SKU",
    "Název produktu",
    "Důvod",
    "AKCE",
    "STATUS",
    "Notes",
]

RUN_LOG_HEADERS = [
    "run_id",
    "timestamp",
    "klient",
    "week_start",
    "počet kampaní",
    "počet produktů",
    "join rate",
    "hash",
    "status",
]


@dataclass(frozen=True)
class RunLogEntry:
    run_id: str
    timestamp: str
    client_name: str
    week_start: str
    campaign_count: int
    product_count: int
    join_rate: float
    sheets_hash: str
    status: str

    def to_sheet_values(self) -> list[str]:
        return [
            self.run_id,
            self.timestamp,
            self.client_name,
            self.week_start,
            str(self.campaign_count),
            str(self.product_count),
            str(self.join_rate),
            self.sheets_hash,
            self.status,
        ]


def write_nominations_to_sheet(
    gateway: SheetsGateway,
    spreadsheet_id: str,
    tab_name: str,
    week_start: str,
    rows: Sequence[NominationRow],
) -> None:
    """
    Replace the target week's NEXT WEEK rows; other weeks stay untouched.
    """

    gateway.replace_rows_for_key(
        spreadsheet_id,
        tab_name,
        WEEK_COLUMN,
        week_start,
        [row.to_sheet_values() for row in rows],
        NEXT_WEEK_HEADERS,
    )
    logger.info(
        "Wrote nominations spreadsheet=%s tab=%s week=%s rows=%d",
        spreadsheet_id,
        tab_name,
        week_start,
        len(rows),
    )


def write_run_log(
    gateway: SheetsGateway,
    spreadsheet_id: str,
    tab_name: str,
    entry: RunLogEntry,
) -> None:
    """
    Append one run-log row; existing log rows are never replaced.
    """

    gateway.append_rows(spreadsheet_id, tab_name, [entry.to_sheet_values()])
