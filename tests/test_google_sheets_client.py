"""
tests/test_google_sheets_client.py

GoogleSheetsClient over an in-memory spreadsheets() resource.
"""

from __future__ import annotations

from datetime import date

from app.sheets.google_sheets import GoogleSheetsClient, rows_matching_key
from app.sheets.templates import MASTER_TAB, PROCESS_TABS, initialize_process_tabs
from app.sheets.writer import NEXT_WEEK_HEADERS, WEEK_COLUMN
from tests.fakes import FakeSheetsService

TAB = "NEXT WEEK (Nominace)"


def _client(service: FakeSheetsService) -> GoogleSheetsClient:
    return GoogleSheetsClient(lambda: service, num_retries=3)


def _row(week: str, sku: str) -> list[str]:
    return [week, "Theme", "percent", sku, f"Name {sku}", "reason", "-20 %", "pending", ""]


class TestReplaceRowsForKey:
    def test_replaces_only_target_week(self) -> None:
        service = FakeSheetsService(
            {
                TAB: [
                    NEXT_WEEK_HEADERS,
                    _row("2026-10-12", "OLD1"),
                    _row("2026-10-19", "W1"),
                    _row("2026-10-12", "OLD2"),
                    _row("2026-10-19", "W2"),
                ]
            }
        )

        _client(service).replace_rows_for_key(
            "sheet-1", TAB, WEEK_COLUMN, "2026-10-19", [_row("2026-10-19", "NEW")], NEXT_WEEK_HEADERS
        )

        grid = service.tabs[TAB]
        assert [row[3] for row in grid[1:]] == ["OLD1", "OLD2", "NEW"]
        # Deletes run bottom-up so earlier indices stay valid.
        starts = [request["deleteDimension"]["range"]["startIndex"] for request in service.batch_requests[0]]
        assert starts == [4, 2]

    def test_rerun_is_idempotent(self) -> None:
        service = FakeSheetsService({TAB: [NEXT_WEEK_HEADERS, _row("2026-10-12", "OLD")]})
        client = _client(service)
        new_rows = [_row("2026-10-19", "A"), _row("2026-10-19", "B")]

        client.replace_rows_for_key("sheet-1", TAB, WEEK_COLUMN, "2026-10-19", new_rows, NEXT_WEEK_HEADERS)
        first = [list(row) for row in service.tabs[TAB]]
        client.replace_rows_for_key("sheet-1", TAB, WEEK_COLUMN, "2026-10-19", new_rows, NEXT_WEEK_HEADERS)

        assert service.tabs[TAB] == first

    def test_empty_tab_gets_header_and_rows(self) -> None:
        service = FakeSheetsService({TAB: []})

        _client(service).replace_rows_for_key(
            "sheet-1", TAB, WEEK_COLUMN, "2026-10-19", [_row("2026-10-19", "A")], NEXT_WEEK_HEADERS
        )

        assert service.tabs[TAB][0] == NEXT_WEEK_HEADERS
        assert service.tabs[TAB][1][3] == "A"

    def test_missing_key_column_appends(self) -> None:
        service = FakeSheetsService({TAB: [["Something else"], ["x"]]})

        _client(service).replace_rows_for_key(
            "sheet-1", TAB, WEEK_COLUMN, "2026-10-19", [_row("2026-10-19", "A")], NEXT_WEEK_HEADERS
        )

        assert len(service.tabs[TAB]) == 3
        assert service.batch_requests == []


def test_read_range_builds_snapshot() -> None:
    service = FakeSheetsService({MASTER_TAB: [["Týden", "STATUS"], ["2026-10-19", "PLANNED"]]})

    snapshot = _client(service).read_range("sheet-1", MASTER_TAB)

    assert snapshot.rows == ({"Týden": "2026-10-19", "STATUS": "PLANNED"},)


def test_rows_matching_key_handles_short_rows() -> None:
    values = [["Týden", "SKU"], [], ["2026-10-19"], [None, "A"], ["2026-10-19", "B"]]
    assert rows_matching_key(values, 0, "2026-10-19") == [2, 4]


def test_validate_sheet_access_reports_missing_columns() -> None:
    service = FakeSheetsService({TAB: [["Týden", "SKU"]]})

    report = _client(service).validate_sheet_access("sheet-1", TAB, ["Týden", "STATUS"])

    assert not report.ok
    assert report.found_columns == ["Týden", "SKU"]
    assert report.missing_columns == ["STATUS"]


def test_validate_sheet_access_unknown_tab() -> None:
    report = _client(FakeSheetsService({TAB: []})).validate_sheet_access("sheet-1", "Nope")
    assert not report.ok
    assert "Nope" in (report.error or "")


def test_initialize_process_tabs_seeds_master_weeks() -> None:
    service = FakeSheetsService({"Sheet1": []})

    tabs = initialize_process_tabs(_client(service), "sheet-1", date(2026, 10, 21))

    assert tabs == [tab.name for tab in PROCESS_TABS]
    master = service.tabs[MASTER_TAB]
    assert len(master) == 10
    assert master[1][0] == "2026-10-19"
    assert master[9][0] == "2026-12-14"
    assert master[1][5] == "PLANNED"
