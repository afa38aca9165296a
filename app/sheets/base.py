"""
app/sheets/base.py

Sheet snapshot record, content fingerprinting and the gateway interface
the pipeline reads from and writes to.
"""

from __future__ import annotations

import hashlib
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Sequence

FINGERPRINT_LENGTH = 16


class SheetsAccessError(RuntimeError):
    """
    Raised when a spreadsheet cannot be read or written.
    """


def compute_fingerprint(grid: Any) -> str:
    """
    Fixed-length digest of a raw cell grid.

    Order sensitive: reordering rows or columns changes the digest.
    """

    payload = json.dumps(grid, ensure_ascii=False, separators=(",", ":"), default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def combine_fingerprints(fingerprints: dict[str, str]) -> str:
    """
    Serialize a per-source fingerprint map for the run log.
    """

    return json.dumps(fingerprints, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class SheetSnapshot:
    """
    Read-only view of one tab: header order, data rows and grid digest.
    """

    headers: tuple[str, ...] = ()
    rows: tuple[dict[str, str], ...] = ()
    fingerprint: str = field(default_factory=lambda: compute_fingerprint([]))

    @classmethod
    def from_values(cls, values: Sequence[Sequence[Any]] | None) -> "SheetSnapshot":
        """
        Build a snapshot from a raw grid whose first row is the header.

        Fewer than two rows means there is no data; the result is empty
        and fingerprinted over the empty grid.
        """

        grid = [list(row) for row in (values or [])]
        if len(grid) < 2:
            return cls()

        headers = tuple(_cell_text(cell) for cell in grid[0])
        rows: list[dict[str, str]] = []
        for raw_row in grid[1:]:
            if not any(_cell_text(cell).strip() for cell in raw_row):
                continue
            rows.append(
                {
                    header: _cell_text(raw_row[index]) if index < len(raw_row) else ""
                    for index, header in enumerate(headers)
                }
            )
        return cls(headers=headers, rows=tuple(rows), fingerprint=compute_fingerprint(grid))

    def column_values(self, *candidates: str) -> list[str]:
        """
        Non-empty values of the first candidate column present on each row.
        """

        values: list[str] = []
        for row in self.rows:
            for name in candidates:
                value = row.get(name, "").strip()
                if value:
                    values.append(value)
                    break
        return values


class SheetsGateway(ABC):
    """
    Key-value style access to named tabs of a spreadsheet.
    """

    @abstractmethod
    def read_range(self, spreadsheet_id: str, tab_name: str) -> SheetSnapshot:
        """
        Read a whole tab and return its snapshot.
        """

    @abstractmethod
    def append_rows(self, spreadsheet_id: str, tab_name: str, rows: list[list[str]]) -> None:
        """
        Append rows after the last populated row of a tab.
        """

    @abstractmethod
    def replace_rows_for_key(
        self,
        spreadsheet_id: str,
        tab_name: str,
        key_column: str,
        key_value: str,
        new_rows: list[list[str]],
        header_row: list[str],
    ) -> None:
        """
        Delete rows whose ``key_column`` equals ``key_value``, then append
        ``new_rows``. Rows for other keys are untouched.
        """
