"""
Pydantic models for API request/response serialization.
"""
from typing import List, Optional
from pydantic import BaseModel

class ListingOut(BaseModel):
    """Output model for listing data."""
    type: str = ""
    complex: str = ""
    size: str = ""
    unit: str = ""
    price: str = ""
    features: str = ""
    category: str = ""
    price_value: float = 0.0
    size_value: float = 0.0

    @classmethod
    def from_listing(cls, listing) -> "ListingOut":
        return cls(
            **listing.to_dict(),
            price_value=listing.price_value,
            size_value=listing.size_value
        )

class ListingsResponse(BaseModel):
    """Response model for paginated listings."""
    total: int
    items: List[ListingOut]

class SuggestionsResponse(BaseModel):
    query: str
    suggestions: List[str]

class HistoryIn(BaseModel):
    query: str

class HistoryOut(BaseModel):
    items: List[str]

class RefreshOut(BaseModel):
    count: int
    refreshed_at: Optional[str] = None
