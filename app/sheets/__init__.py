"""
app/sheets package marker.
"""

from app.sheets.base import (
    SheetSnapshot,
    SheetsAccessError,
    SheetsGateway,
    combine_fingerprints,
    compute_fingerprint,
)

__all__ = [
    "SheetSnapshot",
    "SheetsAccessError",
    "SheetsGateway",
    "combine_fingerprints",
    "compute_fingerprint",
]
