"""
app/services package marker.
"""

from app.services.run_service import RunInProgressError, RunOutcome, RunService

__all__ = [
    "RunInProgressError",
    "RunOutcome",
    "RunService",
]
