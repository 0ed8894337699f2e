"""
Route package initialization.
"""
from .history import router as history_router
from .listings import router as listings_router
from .sheets import backup_router, router as sheets_router

__all__ = ["backup_router", "history_router", "listings_router", "sheets_router"]
