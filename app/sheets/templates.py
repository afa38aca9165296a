"""
app/sheets/templates.py

Process workbook tab layout and the one-off initialization that creates it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from app.sheets.google_sheets import GoogleSheetsClient
from app.sheets.writer import NEXT_WEEK_HEADERS, RUN_LOG_HEADERS, WEEK_COLUMN

logger = logging.getLogger(__name__)

MASTER_TAB = "Kampaně_vitalpoint"
NEXT_WEEK_TAB = "NEXT WEEK (Nominace)"
ACTUAL_WEEK_TAB = "ACTUAL WEEK (Live Přehled)"
RUN_LOG_TAB = "RUN_LOG"

MASTER_HEADERS = [
    WEEK_COLUMN,
    "TÉMA (Zadaní)",
    "Typ pro slevu",
    "START",
    "KONEC",
    "STATUS",
    "Cílová kategorie",
    "Cílový brand",
    "Max produktů",
    "Poznámky",
]

ACTUAL_WEEK_HEADERS = [
    WEEK_COLUMN,
    "TÉMA (Zadaní)",
    "SKU",
    "Název produktu",
    "Typ pro slevu",
    "AKCE",
    "STATUS",
    "Notes",
]

SEEDED_WEEKS = 9


@dataclass(frozen=True)
class TabTemplate:
    name: str
    headers: list[str]
    seed_weeks: bool = False


PROCESS_TABS: tuple[TabTemplate, ...] = (
    TabTemplate(MASTER_TAB, MASTER_HEADERS, seed_weeks=True),
    TabTemplate(NEXT_WEEK_TAB, NEXT_WEEK_HEADERS),
    TabTemplate(ACTUAL_WEEK_TAB, ACTUAL_WEEK_HEADERS),
    TabTemplate(RUN_LOG_TAB, RUN_LOG_HEADERS),
)


def upcoming_mondays(today: date, count: int = SEEDED_WEEKS) -> list[str]:
    """
    ISO dates of this week's Monday and the following ``count - 1`` Mondays.
    """

    monday = today - timedelta(days=today.weekday())
    return [(monday + timedelta(weeks=offset)).isoformat() for offset in range(count)]


def master_seed_rows(today: date) -> list[list[str]]:
    return [
        [week, "", "", week, "", "PLANNED", "", "", "", ""]
        for week in upcoming_mondays(today)
    ]


def initialize_process_tabs(client: GoogleSheetsClient, spreadsheet_id: str, today: date) -> list[str]:
    """
    Create missing process tabs and write their header rows.

    Existing header rows are overwritten; MASTER is seeded with planned weeks.
    """

    added = client.ensure_tabs(spreadsheet_id, [tab.name for tab in PROCESS_TABS])
    initialized: list[str] = []
    for tab in PROCESS_TABS:
        values = [list(tab.headers)]
        if tab.seed_weeks:
            values.extend(master_seed_rows(today))
        client.write_values(spreadsheet_id, tab.name, values)
        initialized.append(tab.name)
    logger.info(
        "Initialized process tabs spreadsheet=%s added=%s",
        spreadsheet_id,
        ",".join(added) or "-",
    )
    return initialized
