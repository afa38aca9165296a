"""
tests/fakes.py

In-memory stand-ins for the oracle, the Sheets API and the product feed.
"""

from __future__ import annotations

import json
from typing import Any

from app.domain.pipeline_models import FeedProduct
from app.sheets.base import SheetSnapshot, SheetsGateway
from llm_synthesis.adapter import BaseLLMAdapter, LLMRequest


# ---------------------------------------------------------------------------
# Oracle
# ---------------------------------------------------------------------------


class ScriptedAdapter(BaseLLMAdapter):
    """Returns scripted responses in order; Exception items are raised."""

    def __init__(self, responses: list[Any]) -> None:
        self._responses = list(responses)
        self.requests: list[LLMRequest] = []

    def generate(self, request: LLMRequest) -> str:
        self.requests.append(request)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, (dict, list)):
            return json.dumps(item)
        return item


class StageRoutingAdapter(BaseLLMAdapter):
    """Answers each stage by matching its system prompt."""

    def __init__(self, payloads: dict[str, Any]) -> None:
        self._payloads = payloads
        self.calls: list[str] = []

    def generate(self, request: LLMRequest) -> str:
        for system_prompt, payload in self._payloads.items():
            if request.system_prompt == system_prompt:
                self.calls.append(system_prompt)
                return json.dumps(payload)
        raise AssertionError("Unexpected stage prompt")


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


# ---------------------------------------------------------------------------
# Sheets gateway
# ---------------------------------------------------------------------------


class FakeSheetsGateway(SheetsGateway):
    def __init__(self, grids: dict[tuple[str, str], Any] | None = None) -> None:
        self.grids = dict(grids or {})
        self.reads: list[tuple[str, str]] = []
        self.appended: list[tuple[str, str, list[list[str]]]] = []
        self.replaced: list[tuple[str, str, str, str, list[list[str]]]] = []

    def read_range(self, spreadsheet_id: str, tab_name: str) -> SheetSnapshot:
        self.reads.append((spreadsheet_id, tab_name))
        grid = self.grids.get((spreadsheet_id, tab_name), [])
        if isinstance(grid, Exception):
            raise grid
        return SheetSnapshot.from_values(grid)

    def append_rows(self, spreadsheet_id: str, tab_name: str, rows: list[list[str]]) -> None:
        self.appended.append((spreadsheet_id, tab_name, rows))

    def replace_rows_for_key(
        self,
        spreadsheet_id: str,
        tab_name: str,
        key_column: str,
        key_value: str,
        new_rows: list[list[str]],
        header_row: list[str],
    ) -> None:
        self.replaced.append((spreadsheet_id, tab_name, key_column, key_value, new_rows))


class FakeFeed:
    def __init__(self, products: list[FeedProduct] | None = None, error: Exception | None = None) -> None:
        self._products = products or []
        self._error = error
        self.calls: list[str] = []

    def fetch_products(self, feed_url: str, mapping: Any = None) -> list[FeedProduct]:
        self.calls.append(feed_url)
        if self._error is not None:
            raise self._error
        return list(self._products)


# ---------------------------------------------------------------------------
# Google Sheets API resource
# ---------------------------------------------------------------------------


def _split_range(range_: str) -> tuple[str, str | None]:
    tab, _, cells = range_.partition("!")
    if tab.startswith("'") and tab.endswith("'"):
        tab = tab[1:-1].replace("''", "'")
    return tab, cells or None


class _Request:
    def __init__(self, action: Any) -> None:
        self._action = action
        self.num_retries: int | None = None

    def execute(self, num_retries: int = 0) -> Any:
        self.num_retries = num_retries
        return self._action()


class FakeSheetsService:
    """Minimal spreadsheets() resource over in-memory grids."""

    def __init__(self, tabs: dict[str, list[list[Any]]], spreadsheet_id: str = "sheet-1") -> None:
        self.spreadsheet_id = spreadsheet_id
        self.tabs = {name: [list(row) for row in grid] for name, grid in tabs.items()}
        self.tab_ids = {name: index for index, name in enumerate(self.tabs)}
        self.batch_requests: list[list[dict[str, Any]]] = []

    # resource navigation
    def spreadsheets(self) -> "FakeSheetsService":
        return self

    def values(self) -> "FakeSheetsService":
        return self

    # spreadsheets.get / batchUpdate
    def get(self, spreadsheetId: str, range: str | None = None, **_: Any) -> _Request:
        if range is None:
            return _Request(self._meta)
        tab, cells = _split_range(range)

        def read() -> dict[str, Any]:
            grid = self.tabs.get(tab, [])
            if cells == "1:1":
                grid = grid[:1]
            return {"values": [list(row) for row in grid]}

        return _Request(read)

    def _meta(self) -> dict[str, Any]:
        return {
            "properties": {"title": "Fake workbook"},
            "sheets": [
                {"properties": {"title": name, "sheetId": sheet_id}} for name, sheet_id in self.tab_ids.items()
            ],
        }

    def batchUpdate(self, spreadsheetId: str, body: dict[str, Any]) -> _Request:
        def apply() -> dict[str, Any]:
            self.batch_requests.append(body["requests"])
            names_by_id = {sheet_id: name for name, sheet_id in self.tab_ids.items()}
            for request in body["requests"]:
                if "deleteDimension" in request:
                    target = request["deleteDimension"]["range"]
                    grid = self.tabs[names_by_id[target["sheetId"]]]
                    del grid[target["startIndex"]:target["endIndex"]]
                elif "addSheet" in request:
                    title = request["addSheet"]["properties"]["title"]
                    self.tabs[title] = []
                    self.tab_ids[title] = len(self.tab_ids)
            return {}

        return _Request(apply)

    # values.append / values.update
    def append(self, spreadsheetId: str, range: str, body: dict[str, Any], **_: Any) -> _Request:
        tab, _cells = _split_range(range)

        def apply() -> dict[str, Any]:
            self.tabs.setdefault(tab, []).extend(list(row) for row in body["values"])
            return {}

        return _Request(apply)

    def update(self, spreadsheetId: str, range: str, body: dict[str, Any], **_: Any) -> _Request:
        tab, _cells = _split_range(range)

        def apply() -> dict[str, Any]:
            grid = self.tabs.setdefault(tab, [])
            for index, row in enumerate(body["values"]):
                if index < len(grid):
                    grid[index] = list(row)
                else:
                    grid.append(list(row))
            return {}

        return _Request(apply)
