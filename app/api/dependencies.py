"""
app/api/dependencies.py

Shared FastAPI dependencies resolving process-wide collaborators from
application state.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from app.services.run_service import RunService
from app.sheets.google_sheets import GoogleSheetsClient


def get_run_service(request: Request) -> RunService:
    service = getattr(request.app.state, "run_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pipeline runs are not available: Google Sheets access is not configured.",
        )
    return service


def get_sheets_client(request: Request) -> GoogleSheetsClient:
    """
    Return the shared Sheets client or fail with 503 when credentials are absent.
    """

    client = getattr(request.app.state, "sheets_client", None)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google Sheets access is not configured.",
        )
    return client
