"""
Search history route handlers.
"""
from fastapi import APIRouter, Depends

from listings.history import SearchHistory

from ..dependencies import get_history
from ..models import HistoryIn, HistoryOut

router = APIRouter(prefix="/api", tags=["history"])

@router.get("/search-history", response_model=HistoryOut)
async def get_search_history(history: SearchHistory = Depends(get_history)):
    return HistoryOut(items=history.get_all())

@router.post("/search-history", response_model=HistoryOut)
async def save_search_history(body: HistoryIn, history: SearchHistory = Depends(get_history)):
    """Record a submitted search; blank queries are ignored."""
    history.save(body.query)
    return HistoryOut(items=history.get_all())

@router.delete("/search-history", response_model=HistoryOut)
async def clear_search_history(history: SearchHistory = Depends(get_history)):
    history.clear()
    return HistoryOut(items=history.get_all())
