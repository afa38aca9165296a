"""
app/api/routers/sheets_router.py

Spreadsheet access checks and process-tab initialization.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from app.sheets.base import SheetsAccessError
from app.sheets.google_sheets import GoogleSheetsClient
from app.sheets.templates import initialize_process_tabs
from app.api.dependencies import get_sheets_client

router = APIRouter(prefix="/sheets", tags=["sheets"])


class SheetValidateRequest(BaseModel):
    spreadsheet_id: str = Field(min_length=1)
    sheet_name: str = Field(min_length=1)
    expected_columns: list[str] = Field(default_factory=list)


class SheetValidateResponse(BaseModel):
    ok: bool
    title: str | None = None
    found_columns: list[str] = Field(default_factory=list)
    missing_columns: list[str] = Field(default_factory=list)
    error: str | None = None


class SheetInitializeRequest(BaseModel):
    spreadsheet_id: str = Field(min_length=1)


class SheetInitializeResponse(BaseModel):
    ok: bool
    tabs: list[str]


@router.post("/validate", response_model=SheetValidateResponse)
def validate_sheet(
    body: SheetValidateRequest,
    sheets: GoogleSheetsClient = Depends(get_sheets_client),
) -> SheetValidateResponse:
    report = sheets.validate_sheet_access(body.spreadsheet_id, body.sheet_name, body.expected_columns)
    return SheetValidateResponse(
        ok=report.ok,
        title=report.title,
        found_columns=report.found_columns,
        missing_columns=report.missing_columns,
        error=report.error,
    )


@router.post("/initialize", response_model=SheetInitializeResponse)
def initialize_sheet(
    body: SheetInitializeRequest,
    sheets: GoogleSheetsClient = Depends(get_sheets_client),
) -> SheetInitializeResponse:
    try:
        tabs = initialize_process_tabs(sheets, body.spreadsheet_id, date.today())
    except SheetsAccessError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return SheetInitializeResponse(ok=True, tabs=tabs)
