"""
app/api/routers package marker.
"""

from app.api.routers.client_router import router as client_router
from app.api.routers.run_router import router as run_router
from app.api.routers.sheets_router import router as sheets_router

__all__ = [
    "client_router",
    "run_router",
    "sheets_router",
]
