"""
API route handlers for listings endpoints.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Query, HTTPException, Depends
from fastapi.responses import StreamingResponse

from listings.export import listings_to_frame
from listings.search import SORT_OPTIONS, board_view, generate_suggestions
from listings.source import ListingBoard

from ..models import ListingOut, ListingsResponse, RefreshOut, SuggestionsResponse
from ..dependencies import get_board
from ..config import config

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["listings"])

SORT_PATTERN = "^(" + "|".join(SORT_OPTIONS) + ")$"


def get_listing_filters(
    q: str = "",
    type: Optional[str] = None,
    complex: Optional[str] = None,
    size: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    min_size: Optional[float] = None,
    max_size: Optional[float] = None,
) -> dict:
    """Dependency to extract listing filters."""
    return {
        'query': q,
        'type_': type,
        'complex_': complex,
        'size': size,
        'min_price': min_price,
        'max_price': max_price,
        'min_size': min_size,
        'max_size': max_size
    }

@router.get("/listings", response_model=ListingsResponse)
async def get_api_listings(
    filters: dict = Depends(get_listing_filters),
    sort: str = Query("recent", pattern=SORT_PATTERN),
    limit: int = Query(config.DEFAULT_API_LIMIT, ge=1, le=config.MAX_API_LIMIT),
    offset: int = Query(0, ge=0),
    board: ListingBoard = Depends(get_board)
):
    """Search the listing board with filtering, sorting and pagination."""
    try:
        results = board_view(board.listings, sort_by=sort, **filters)
        items = [ListingOut.from_listing(x) for x in results[offset:offset + limit]]
        return ListingsResponse(total=len(results), items=items)

    except Exception as e:
        logger.error(f"Error searching listings: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

@router.get("/listings/suggestions", response_model=SuggestionsResponse)
async def get_api_suggestions(
    q: str = "",
    limit: int = Query(5, ge=1, le=config.MAX_SUGGESTIONS),
    board: ListingBoard = Depends(get_board)
):
    """Autocomplete complex names and listing types."""
    return SuggestionsResponse(
        query=q,
        suggestions=generate_suggestions(board.listings, q, limit=limit)
    )

@router.post("/listings/refresh", response_model=RefreshOut)
async def refresh_listings(board: ListingBoard = Depends(get_board)):
    """Reload the board from the listing source chain."""
    listings = await board.refresh()
    return RefreshOut(count=len(listings), refreshed_at=board.refreshed_at)

@router.get("/export/csv")
async def export_listings_csv(
    filters: dict = Depends(get_listing_filters),
    sort: str = Query("recent", pattern=SORT_PATTERN),
    board: ListingBoard = Depends(get_board)
):
    """Export filtered listings as CSV."""
    try:
        df = listings_to_frame(board_view(board.listings, sort_by=sort, **filters))
        csv_content = df.to_csv(index=False).encode('utf-8-sig')

        return StreamingResponse(
            iter([csv_content]),
            media_type='text/csv',
            headers={'Content-Disposition': 'attachment; filename="yeoyeo_listings.csv"'}
        )

    except Exception as e:
        logger.error(f"Error exporting CSV: {e}")
        raise HTTPException(status_code=500, detail="Error generating CSV export")
