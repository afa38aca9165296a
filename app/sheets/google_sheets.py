"""
app/sheets/google_sheets.py

Google Sheets API implementation of the sheets gateway.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.config import GoogleSheetsSettings
from app.sheets.base import SheetSnapshot, SheetsAccessError, SheetsGateway

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
_TOKEN_URI = "https://oauth2.googleapis.com/token"


def build_credentials(settings: GoogleSheetsSettings) -> service_account.Credentials:
    """
    Service-account credentials from a key file or an inline email + key.
    """

    if settings.credentials_path:
        return service_account.Credentials.from_service_account_file(
            settings.credentials_path,
            scopes=SHEETS_SCOPES,
        )
    if settings.service_account_email and settings.private_key:
        return service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": settings.service_account_email,
                "private_key": settings.private_key,
                "token_uri": _TOKEN_URI,
            },
            scopes=SHEETS_SCOPES,
        )
    raise SheetsAccessError(
        "Google service account credentials not configured. Set "
        "GOOGLE_APPLICATION_CREDENTIALS or GOOGLE_SERVICE_ACCOUNT_EMAIL + GOOGLE_PRIVATE_KEY."
    )


def sheets_service_factory(settings: GoogleSheetsSettings) -> Callable[[], Any]:
    credentials = build_credentials(settings)

    def _factory() -> Any:
        return build("sheets", "v4", credentials=credentials, cache_discovery=False)

    return _factory


def quote_tab(tab_name: str) -> str:
    """
    A1 range for a whole tab; names with spaces need single quotes.
    """

    return "'" + tab_name.replace("'", "''") + "'"


@dataclass(frozen=True)
class SheetAccessReport:
    ok: bool
    title: str | None = None
    found_columns: list[str] = field(default_factory=list)
    missing_columns: list[str] = field(default_factory=list)
    error: str | None = None


class GoogleSheetsClient(SheetsGateway):
    """
    Sheets gateway backed by the v4 REST API.

    API resource objects are not thread-safe, so each thread builds its
    own from ``service_factory``.
    """

    def __init__(self, service_factory: Callable[[], Any], *, num_retries: int = 3) -> None:
        self._service_factory = service_factory
        self._num_retries = num_retries
        self._local = threading.local()

    def _service(self) -> Any:
        service = getattr(self._local, "service", None)
        if service is None:
            service = self._service_factory()
            self._local.service = service
        return service

    def _execute(self, request: Any, *, action: str, spreadsheet_id: str) -> Any:
        try:
            return request.execute(num_retries=self._num_retries)
        except HttpError as exc:
            logger.error(
                "Sheets API call failed action=%s spreadsheet=%s status=%s",
                action,
                spreadsheet_id,
                getattr(exc, "status_code", None),
            )
            raise SheetsAccessError(f"Sheets {action} failed for {spreadsheet_id}: {exc}") from exc

    def _values(self, spreadsheet_id: str, tab_name: str, **options: Any) -> list[list[Any]]:
        response = self._execute(
            self._service().spreadsheets().values().get(
                spreadsheetId=spreadsheet_id,
                range=quote_tab(tab_name),
                **options,
            ),
            action="read",
            spreadsheet_id=spreadsheet_id,
        )
        return response.get("values", []) or []

    def read_range(self, spreadsheet_id: str, tab_name: str) -> SheetSnapshot:
        values = self._values(
            spreadsheet_id,
            tab_name,
            valueRenderOption="UNFORMATTED_VALUE",
            dateTimeRenderOption="FORMATTED_STRING",
        )
        snapshot = SheetSnapshot.from_values(values)
        logger.debug(
            "Read tab spreadsheet=%s tab=%s rows=%d fingerprint=%s",
            spreadsheet_id,
            tab_name,
            len(snapshot.rows),
            snapshot.fingerprint,
        )
        return snapshot

    def append_rows(self, spreadsheet_id: str, tab_name: str, rows: list[list[str]]) -> None:
        if not rows:
            return
        self._execute(
            self._service().spreadsheets().values().append(
                spreadsheetId=spreadsheet_id,
                range=quote_tab(tab_name),
                valueInputOption="USER_ENTERED",
                insertDataOption="INSERT_ROWS",
                body={"values": rows},
            ),
            action="append",
            spreadsheet_id=spreadsheet_id,
        )

    def write_values(self, spreadsheet_id: str, tab_name: str, values: list[list[str]]) -> None:
        self._execute(
            self._service().spreadsheets().values().update(
                spreadsheetId=spreadsheet_id,
                range=f"{quote_tab(tab_name)}!A1",
                valueInputOption="USER_ENTERED",
                body={"values": values},
            ),
            action="update",
            spreadsheet_id=spreadsheet_id,
        )

    def _spreadsheet_meta(self, spreadsheet_id: str) -> dict[str, Any]:
        return self._execute(
            self._service().spreadsheets().get(spreadsheetId=spreadsheet_id),
            action="metadata",
            spreadsheet_id=spreadsheet_id,
        )

    @staticmethod
    def _tab_ids(meta: dict[str, Any]) -> dict[str, int]:
        tabs: dict[str, int] = {}
        for sheet in meta.get("sheets", []) or []:
            properties = sheet.get("properties", {})
            title = properties.get("title")
            if title is not None:
                tabs[title] = properties.get("sheetId")
        return tabs

    def _batch_update(self, spreadsheet_id: str, requests: list[dict[str, Any]], *, action: str) -> None:
        if not requests:
            return
        self._execute(
            self._service().spreadsheets().batchUpdate(
                spreadsheetId=spreadsheet_id,
                body={"requests": requests},
            ),
            action=action,
            spreadsheet_id=spreadsheet_id,
        )

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
        Replace one key's rows; not transactional across delete + append.

        Re-running the whole call is safe: deleting already-removed rows
        is a no-op and the append repeats only once the delete has run.
        """

        existing = self._values(spreadsheet_id, tab_name)
        if not existing:
            self.write_values(spreadsheet_id, tab_name, [list(header_row), *new_rows])
            return

        headers = [str(cell) for cell in existing[0]]
        if key_column not in headers:
            logger.warning(
                "Key column missing, appending without replace spreadsheet=%s tab=%s column=%s",
                spreadsheet_id,
                tab_name,
                key_column,
            )
            self.append_rows(spreadsheet_id, tab_name, new_rows)
            return

        key_index = headers.index(key_column)
        row_indices = rows_matching_key(existing, key_index, key_value)

        if row_indices:
            tab_id = self._tab_ids(self._spreadsheet_meta(spreadsheet_id)).get(tab_name)
            if tab_id is None:
                raise SheetsAccessError(f"Sheet tab {tab_name!r} not found in {spreadsheet_id}")
            self._batch_update(
                spreadsheet_id,
                [
                    {
                        "deleteDimension": {
                            "range": {
                                "sheetId": tab_id,
                                "dimension": "ROWS",
                                "startIndex": row_index,
                                "endIndex": row_index + 1,
                            }
                        }
                    }
                    for row_index in sorted(row_indices, reverse=True)
                ],
                action="delete_rows",
            )
            logger.info(
                "Deleted rows for key spreadsheet=%s tab=%s key=%s rows=%d",
                spreadsheet_id,
                tab_name,
                key_value,
                len(row_indices),
            )

        self.append_rows(spreadsheet_id, tab_name, new_rows)

    def validate_sheet_access(
        self,
        spreadsheet_id: str,
        tab_name: str,
        expected_columns: Sequence[str] | None = None,
    ) -> SheetAccessReport:
        """
        Check that a tab exists and carries the expected header columns.
        """

        try:
            meta = self._spreadsheet_meta(spreadsheet_id)
            title = meta.get("properties", {}).get("title")
            tabs = self._tab_ids(meta)
            if tab_name not in tabs:
                return SheetAccessReport(
                    ok=False,
                    title=title,
                    error=f"Sheet tab {tab_name!r} not found. Available: {', '.join(tabs)}",
                )
            header_values = self._execute(
                self._service().spreadsheets().values().get(
                    spreadsheetId=spreadsheet_id,
                    range=f"{quote_tab(tab_name)}!1:1",
                ),
                action="read_header",
                spreadsheet_id=spreadsheet_id,
            ).get("values", [])
        except SheetsAccessError as exc:
            return SheetAccessReport(ok=False, error=str(exc))

        found = [str(cell) for cell in (header_values[0] if header_values else [])]
        missing = [column for column in (expected_columns or []) if column not in found]
        return SheetAccessReport(ok=not missing, title=title, found_columns=found, missing_columns=missing)

    def ensure_tabs(self, spreadsheet_id: str, tab_names: Sequence[str]) -> list[str]:
        """
        Create any missing tabs; returns the names that were added.
        """

        existing = self._tab_ids(self._spreadsheet_meta(spreadsheet_id))
        missing = [name for name in tab_names if name not in existing]
        self._batch_update(
            spreadsheet_id,
            [{"addSheet": {"properties": {"title": name}}} for name in missing],
            action="add_tabs",
        )
        return missing


def rows_matching_key(values: Sequence[Sequence[Any]], key_index: int, key_value: str) -> list[int]:
    """
    Zero-based grid indices of data rows whose key cell equals ``key_value``.
    """

    matches: list[int] = []
    for row_index in range(1, len(values)):
        row = values[row_index]
        cell = row[key_index] if key_index < len(row) else ""
        if str(cell if cell is not None else "") == key_value:
            matches.append(row_index)
    return matches
